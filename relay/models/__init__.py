"""Persisted record models."""
from relay.models.api_key import ApiKeyRecord, format_timestamp

__all__ = [
    "ApiKeyRecord",
    "format_timestamp",
]
