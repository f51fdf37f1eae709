from typing import Any, Dict, List
from relay.external.base_client import ExternalAPIClient


class PexelsClient(ExternalAPIClient):
    """Client for the Pexels photo search API."""

    service_name = "Pexels API"

    @property
    def base_url(self) -> str:
        return self.settings.PEXELS_API_URL

    @property
    def credential(self) -> str:
        return self.settings.PEXELS_API_KEY

    def _get_headers(self) -> Dict[str, str]:
        return {
            "Accept": "application/json",
            "Authorization": self.credential,
        }

    async def search(self, query: str, per_page: int = 10) -> List[Dict[str, Any]]:
        """Search photos and return them in the relay's shape."""
        payload = await self._make_request(
            method="GET",
            endpoint="/search",
            params={"query": query, "per_page": per_page}
        )

        photos = []
        for photo in payload.get("photos") or []:
            src = photo.get("src") or {}
            photos.append({
                "id": photo.get("id"),
                "description": photo.get("alt") or "",
                "photographer": photo.get("photographer"),
                "photographerUrl": photo.get("photographer_url"),
                "url": photo.get("url"),
                "width": photo.get("width"),
                "height": photo.get("height"),
                "image": {
                    "original": src.get("original"),
                    "large": src.get("large"),
                    "medium": src.get("medium"),
                    "small": src.get("small"),
                },
            })
        return photos
