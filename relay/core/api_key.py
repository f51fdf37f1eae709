import logging
from datetime import datetime, timezone
from typing import Optional
from fastapi import Header, Request
from relay.core.exceptions import (
    ApiKeyRequiredException,
    ExpiredApiKeyException,
    InvalidApiKeyException,
)
from relay.core.logging_utils import get_request_id, sanitize_log_message
from relay.models.api_key import ApiKeyRecord
from relay.services.key_store import JsonFileKeyStore

logger = logging.getLogger(__name__)

API_KEY_HEADER = "X-API-Key"


async def verify_api_key(
    store: JsonFileKeyStore,
    x_api_key: Optional[str],
    now: Optional[datetime] = None
) -> ApiKeyRecord:
    """
    Resolve an API key to its record, rejecting missing, unknown and expired keys.

    Args:
        store: Key store to consult (read only)
        x_api_key: Key from the X-API-Key header
        now: Reference time for the expiry check

    Returns:
        ApiKeyRecord for the key

    Raises:
        ApiKeyRequiredException if no key was supplied
        InvalidApiKeyException if the key was never issued
        ExpiredApiKeyException if the key is past its expiration date
    """
    if not x_api_key or not x_api_key.strip():
        raise ApiKeyRequiredException()

    record = await store.get(x_api_key.strip())
    if record is None:
        raise InvalidApiKeyException()

    if record.is_expired(now or datetime.now(timezone.utc)):
        raise ExpiredApiKeyException()

    return record


async def require_api_key(
    request: Request,
    x_api_key: Optional[str] = Header(None, alias=API_KEY_HEADER)
) -> ApiKeyRecord:
    """
    Dependency attached to gated routes when they are mounted.

    The resolved record is attached to request.state.api_key.
    """
    record = await verify_api_key(request.app.state.key_store, x_api_key)
    request.state.api_key = record

    logger.debug(
        sanitize_log_message(
            "API key accepted",
            Path=request.url.path,
            Name=record.name,
            RequestID=get_request_id(request)
        )
    )
    return record
