import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

from relay.core.exceptions import MissingParameterException
from relay.core.logging_utils import sanitize_log_message
from relay.models.api_key import ApiKeyRecord
from relay.services.key_store import JsonFileKeyStore

logger = logging.getLogger(__name__)

API_KEY_LIFETIME_DAYS = 30


def generate_api_key() -> str:
    """Generate a secure random API key (32 bytes = 256 bits)."""
    return secrets.token_urlsafe(32)


def compute_expiration(issued_at: datetime, days: int = API_KEY_LIFETIME_DAYS) -> datetime:
    """
    Add calendar days to an issuance time on the local wall clock.

    The result keeps the local time of day, so across a DST change the
    offset from issued_at is not an exact multiple of 24 hours.

    Args:
        issued_at: Issuance time (naive values are taken as UTC)
        days: Number of calendar days

    Returns:
        Expiration time in UTC
    """
    if issued_at.tzinfo is None:
        issued_at = issued_at.replace(tzinfo=timezone.utc)
    # The key file keeps milliseconds
    issued_at = issued_at.replace(microsecond=issued_at.microsecond // 1000 * 1000)
    wall_clock = issued_at.astimezone().replace(tzinfo=None)
    return (wall_clock + timedelta(days=days)).astimezone(timezone.utc)


async def issue_api_key(
    store: JsonFileKeyStore,
    name: Optional[str],
    lifetime_days: int = API_KEY_LIFETIME_DAYS,
    now: Optional[datetime] = None
) -> ApiKeyRecord:
    """
    Issue and persist a new API key.

    Args:
        store: Key store receiving the record
        name: Label supplied by the caller
        lifetime_days: Calendar days until the key expires
        now: Issuance time (defaults to the current time)

    Returns:
        The stored ApiKeyRecord

    Raises:
        MissingParameterException if name is empty or absent (nothing is stored)
    """
    if name is None or not name.strip():
        raise MissingParameterException("apiName", detail="API name is required.")

    issued_at = now or datetime.now(timezone.utc)
    record = ApiKeyRecord(
        name=name.strip(),
        key=generate_api_key(),
        expires_at=compute_expiration(issued_at, lifetime_days),
    )
    await store.append(record)

    logger.info(
        sanitize_log_message(
            "API key issued",
            Name=record.name,
            ApiKey=record.key,
            ExpiresAt=record.to_document()["expiresAt"]
        )
    )
    return record
