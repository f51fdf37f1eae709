import logging
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field
from relay.core.circuit_breaker import CircuitBreakerOpenException
from relay.core.exceptions import ExternalAPIException
from relay.external.base_client import ExternalAPIClient, first_non_empty

logger = logging.getLogger(__name__)

WATCH_URL = "https://www.youtube.com/watch?v={video_id}"
THUMBNAIL_PREFERENCE = ("high", "medium", "default")


class VideoResult(BaseModel):
    """One video found by the search collaborator."""

    model_config = ConfigDict(populate_by_name=True)

    video_id: str = Field(serialization_alias="videoId")
    title: str
    video_url: str = Field(serialization_alias="videoUrl")
    thumbnail: Optional[str] = None
    channel: Optional[str] = None
    view_count: Optional[int] = Field(default=None, serialization_alias="viewCount")


def _pick_thumbnail(thumbnails: Dict[str, Any]) -> Optional[str]:
    return first_non_empty([(thumbnails.get(size) or {}).get("url") for size in THUMBNAIL_PREFERENCE])


class YouTubeClient(ExternalAPIClient):
    """Client for the YouTube Data API v3 (search.list and videos.list)."""

    service_name = "YouTube API"

    @property
    def base_url(self) -> str:
        return self.settings.YOUTUBE_API_URL

    @property
    def credential(self) -> str:
        return self.settings.YOUTUBE_API_KEY

    def _get_params(self) -> Dict[str, Any]:
        return {"key": self.credential}

    async def search(
        self,
        query: str,
        max_results: int = 1,
        with_statistics: bool = True
    ) -> List[VideoResult]:
        """
        Search videos matching a free-text query.

        Args:
            query: Search terms
            max_results: Number of videos to return (1-50)
            with_statistics: Also look up view counts (one more quota unit)

        Returns:
            VideoResult list, best match first; empty when nothing matched
        """
        payload = await self._make_request(
            method="GET",
            endpoint="/search",
            params={
                "part": "snippet",
                "q": query,
                "type": "video",
                "maxResults": max_results,
            }
        )

        results = []
        for item in payload.get("items") or []:
            video_id = (item.get("id") or {}).get("videoId")
            snippet = item.get("snippet") or {}
            if not video_id:
                continue
            results.append(
                VideoResult(
                    video_id=video_id,
                    title=snippet.get("title", ""),
                    video_url=WATCH_URL.format(video_id=video_id),
                    thumbnail=_pick_thumbnail(snippet.get("thumbnails") or {}),
                    channel=snippet.get("channelTitle"),
                )
            )

        if results and with_statistics and self.settings.YOUTUBE_FETCH_STATISTICS:
            results = await self._with_view_counts(results)

        return results

    async def _with_view_counts(self, results: List[VideoResult]) -> List[VideoResult]:
        """Fill in view counts; on failure the results are returned without them."""
        try:
            payload = await self._make_request(
                method="GET",
                endpoint="/videos",
                params={
                    "part": "statistics",
                    "id": ",".join(result.video_id for result in results),
                }
            )
        except (ExternalAPIException, CircuitBreakerOpenException) as e:
            logger.warning(f"View counts unavailable, returning results without them: {getattr(e, 'detail', e)}")
            return results

        counts = {}
        for item in payload.get("items") or []:
            view_count = (item.get("statistics") or {}).get("viewCount")
            if view_count is not None:
                counts[item.get("id")] = int(view_count)

        return [
            result.model_copy(update={"view_count": counts.get(result.video_id)})
            for result in results
        ]
