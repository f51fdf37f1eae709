"""Pydantic schemas for request/response contracts."""
from relay.schemas.api_key import (
    GenerateApiKeyRequest,
    GenerateApiKeyResponse,
)
from relay.schemas.media import (
    VideoEntry,
    MusicSearchResponse,
    RelayResponse,
    PhotoSearchResponse,
)

__all__ = [
    "GenerateApiKeyRequest",
    "GenerateApiKeyResponse",
    "VideoEntry",
    "MusicSearchResponse",
    "RelayResponse",
    "PhotoSearchResponse",
]
