from typing import Any, Dict, List, Optional
from pydantic import BaseModel


class VideoEntry(BaseModel):
    """A video as returned to clients."""
    title: str
    videoUrl: str
    thumbnail: Optional[str] = None
    channel: Optional[str] = None
    viewCount: Optional[int] = None


class MusicSearchResponse(BaseModel):
    """Response schema for music search; data is the best match."""
    message: str
    data: VideoEntry
    results: List[VideoEntry]


class RelayResponse(BaseModel):
    """Generic envelope for collaborator results."""
    message: str
    data: Any


class PhotoSearchResponse(BaseModel):
    message: str
    query: str
    data: List[Dict[str, Any]]
