from typing import Optional
from pydantic import BaseModel


class GenerateApiKeyRequest(BaseModel):
    """Request schema for API key generation."""
    apiName: Optional[str] = None


class GenerateApiKeyResponse(BaseModel):
    """Response schema for API key generation."""
    message: str
    apiKey: str
    expirationDate: str
