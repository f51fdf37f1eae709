from typing import Optional
from fastapi import APIRouter, Depends, Query
from relay.api.deps import get_pexels_client, get_settings_from_app
from relay.config import Settings
from relay.external.pexels_client import PexelsClient
from relay.schemas.media import PhotoSearchResponse

router = APIRouter()


@router.get("/photo-search", response_model=PhotoSearchResponse)
async def search_photos(
    query: Optional[str] = Query(None, description="Search term; PHOTO_DEFAULT_QUERY when omitted"),
    per_page: int = Query(10, ge=1, le=80, description="Number of photos"),
    pexels: PexelsClient = Depends(get_pexels_client),
    settings: Settings = Depends(get_settings_from_app)
):
    """Search stock photos on Pexels."""
    term = (query or "").strip() or settings.PHOTO_DEFAULT_QUERY
    photos = await pexels.search(term, per_page=per_page)
    return PhotoSearchResponse(
        message="Photos found." if photos else "No photos found.",
        query=term,
        data=photos
    )
