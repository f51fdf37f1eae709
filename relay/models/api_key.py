from datetime import datetime, timezone
from typing import Optional
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_serializer, field_validator


def format_timestamp(value: datetime) -> str:
    """Render a timestamp as ISO-8601 UTC with millisecond precision, e.g. 2025-01-07T12:00:00.000Z."""
    return value.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class ApiKeyRecord(BaseModel):
    """API key record - one entry of the key file.

    Records are immutable once issued. Files written by older releases used
    apiName/apiKey/expirationDate; those names are still accepted on read.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str = Field(validation_alias=AliasChoices("name", "apiName"))
    key: str = Field(validation_alias=AliasChoices("key", "apiKey"))
    expires_at: datetime = Field(
        validation_alias=AliasChoices("expiresAt", "expires_at", "expirationDate"),
        serialization_alias="expiresAt",
    )

    @field_validator("expires_at")
    @classmethod
    def ensure_timezone(cls, v: datetime) -> datetime:
        # Naive timestamps in the key file are UTC
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v

    @field_serializer("expires_at")
    def serialize_expires_at(self, value: datetime) -> str:
        return format_timestamp(value)

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        now = now or datetime.now(timezone.utc)
        return now > self.expires_at

    def to_document(self) -> dict:
        """Return the JSON-ready form stored in the key file."""
        return self.model_dump(by_alias=True)
