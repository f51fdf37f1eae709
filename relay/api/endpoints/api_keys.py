import logging
from pathlib import Path
from typing import Optional
from fastapi import APIRouter, Body, Depends
from fastapi.responses import FileResponse
from relay.api.deps import get_key_store, get_settings_from_app
from relay.config import Settings
from relay.core.exceptions import NotFoundException
from relay.models.api_key import format_timestamp
from relay.schemas.api_key import GenerateApiKeyRequest, GenerateApiKeyResponse
from relay.services.api_key_service import issue_api_key
from relay.services.key_store import JsonFileKeyStore

logger = logging.getLogger(__name__)

router = APIRouter()

GENERATE_PAGE = "generate-api-key.html"


@router.get("/generate-api-key", include_in_schema=False)
async def generate_api_key_page(settings: Settings = Depends(get_settings_from_app)):
    """Serve the page where users generate their own key."""
    page = Path(settings.STATIC_DIR) / GENERATE_PAGE
    if not page.is_file():
        raise NotFoundException(detail="Key generation page is not available.")
    return FileResponse(page, media_type="text/html")


@router.post("/generate-api-key", response_model=GenerateApiKeyResponse)
async def generate_api_key(
    payload: Optional[GenerateApiKeyRequest] = Body(None),
    store: JsonFileKeyStore = Depends(get_key_store),
    settings: Settings = Depends(get_settings_from_app)
):
    """
    Issue a new API key valid for API_KEY_LIFETIME_DAYS calendar days.
    """
    record = await issue_api_key(
        store,
        payload.apiName if payload else None,
        lifetime_days=settings.API_KEY_LIFETIME_DAYS
    )

    return GenerateApiKeyResponse(
        message="API key generated successfully.",
        apiKey=record.key,
        expirationDate=format_timestamp(record.expires_at)
    )
