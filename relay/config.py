from functools import lru_cache
from pathlib import Path
from typing import List
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, field_validator

PACKAGE_DIR = Path(__file__).resolve().parent

KNOWN_SERVICES = ("music", "photos", "weather", "chat")


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Built once at process start and frozen; pass it explicitly instead of
    reading the environment again.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    # Service descriptor (published on GET /api)
    PROJECT_NAME: str = "Media Relay API"
    VERSION: str = "1.0.0"
    DEVELOPMENT_DAY: str = Field(default="2024-12-08", description="Date the API was first published")
    API_AUTHOR: str = Field(default="", description="Author shown in the service descriptor")
    API_OWNER: str = Field(default="", description="Owner shown in the service descriptor")
    INFO_USE: str = Field(
        default="Generate an API key and send it in the X-API-Key header to use gated routes.",
        description="Usage notes shown in the service descriptor",
    )
    CONTACT_EMAIL: str = Field(default="", description="Support e-mail shown in the service descriptor")
    CONTACT_WEBSITE: str = Field(default="", description="Website shown in the service descriptor")
    ENVIRONMENT: str = Field(default="development", description="Environment: development, staging, production")

    # Server Configuration
    HOST: str = Field(default="0.0.0.0", description="Server host")
    PORT: int = Field(default=3000, description="Server port")

    # Routing
    API_PREFIX: str = Field(default="/api", description="Prefix of every relay route")
    ENABLED_SERVICES: List[str] = Field(
        default=list(KNOWN_SERVICES),
        description="Collaborator-backed services to expose: music, photos, weather, chat",
    )
    GATED_ROUTES: List[str] = Field(
        default=["/music/download"],
        description="Routes, relative to API_PREFIX, that require a valid X-API-Key; every other route is public",
    )
    STATIC_DIR: str = Field(
        default=str(PACKAGE_DIR / "static"),
        description="Directory holding the key generation page",
    )

    # API keys
    API_KEYS_FILE: str = Field(default="apiKeys.json", description="JSON file holding issued API keys")
    API_KEY_LIFETIME_DAYS: int = Field(default=30, description="Calendar days an issued key stays valid")

    # External APIs - YouTube Data API v3
    YOUTUBE_API_KEY: str = Field(default="", description="YouTube Data API key")
    YOUTUBE_API_URL: str = Field(default="https://www.googleapis.com/youtube/v3", description="YouTube Data API base URL")
    YOUTUBE_FETCH_STATISTICS: bool = Field(default=True, description="Fetch view counts for search results")

    # External APIs - Pexels
    PEXELS_API_KEY: str = Field(default="", description="Pexels API key")
    PEXELS_API_URL: str = Field(default="https://api.pexels.com/v1", description="Pexels API base URL")
    PHOTO_DEFAULT_QUERY: str = Field(default="nature", description="Search term used when no query is given")

    # External APIs - Tomorrow.io weather
    WEATHER_API_KEY: str = Field(default="", description="Tomorrow.io API key")
    WEATHER_API_URL: str = Field(default="https://api.tomorrow.io/v4", description="Tomorrow.io API base URL")

    # External APIs - conversational AI (OpenAI-compatible)
    CHAT_API_KEY: str = Field(default="", description="Chat completions API key")
    CHAT_API_URL: str = Field(default="https://api.openai.com/v1", description="Chat completions API base URL")
    CHAT_MODEL: str = Field(default="gpt-4o-mini", description="Model used for Tina replies")
    CHAT_SYSTEM_PROMPT: str = Field(
        default="You are Tina, a friendly assistant. Answer briefly and in the language of the user.",
        description="System prompt sent with every Tina conversation",
    )

    # Audio transcoding
    FFMPEG_BINARY: str = Field(default="ffmpeg", description="ffmpeg executable")
    AUDIO_CODEC: str = Field(default="libmp3lame", description="ffmpeg audio codec")
    AUDIO_BITRATE: int = Field(default=192, description="Audio bitrate in kbit/s")
    AUDIO_TEMP_DIR: str = Field(default="./audio", description="Directory for temporary MP3 files")

    # Upstream calls
    UPSTREAM_TIMEOUT: int = Field(default=30, description="Collaborator timeout in seconds")
    UPSTREAM_RETRY_ATTEMPTS: int = Field(default=1, description="Attempts per collaborator call (1 = no retry)")

    # Circuit Breaker
    CIRCUIT_BREAKER_FAILURE_THRESHOLD: int = Field(default=5, description="Failures before circuit opens")
    CIRCUIT_BREAKER_RECOVERY_TIMEOUT: int = Field(default=30, description="Seconds before attempting reset")
    CIRCUIT_BREAKER_HALF_OPEN_MAX_CALLS: int = Field(default=3, description="Max calls in half-open state")

    # Security - CORS
    BACKEND_CORS_ORIGINS: List[str] = Field(
        default=["http://localhost:3000"],
        description="Allowed CORS origins"
    )
    MAX_REQUEST_SIZE: int = Field(default=1048576, description="Max request body size in bytes (default 1MB)")

    # Rate Limiting
    RATE_LIMIT_ENABLED: bool = Field(default=True, description="Enable rate limiting")
    RATE_LIMIT_DEFAULT: str = Field(default="60/minute", description="Default rate limit")
    RATE_LIMIT_STORAGE_URI: str = Field(default="memory://", description="Rate limit storage URI")

    # Logging
    LOG_LEVEL: str = Field(default="INFO", description="Logging level (DEBUG, INFO, WARNING, ERROR)")
    LOG_DIR: str = Field(default="./logs", description="Directory for log files")
    LOG_RETENTION_DAYS: int = Field(default=30, description="Number of days to keep log files")
    LOG_ENABLE_REQUEST_LOGGING: bool = Field(default=True, description="Enable HTTP request/response logging")

    @field_validator('ENABLED_SERVICES')
    @classmethod
    def validate_enabled_services(cls, v: List[str]) -> List[str]:
        unknown = [name for name in v if name not in KNOWN_SERVICES]
        if unknown:
            raise ValueError(f"Unknown services {unknown}; valid options: {', '.join(KNOWN_SERVICES)}")
        return v

    @field_validator('API_PREFIX')
    @classmethod
    def validate_api_prefix(cls, v: str) -> str:
        v = v.rstrip("/")
        if not v.startswith("/"):
            raise ValueError('API_PREFIX must start with "/" and not be the site root')
        return v

    @field_validator('GATED_ROUTES')
    @classmethod
    def validate_gated_routes(cls, v: List[str]) -> List[str]:
        for path in v:
            if not path.startswith("/"):
                raise ValueError(f"GATED_ROUTES entry '{path}' must start with \"/\"")
        return v

    @field_validator('API_KEY_LIFETIME_DAYS')
    @classmethod
    def validate_key_lifetime(cls, v: int) -> int:
        if v < 1:
            raise ValueError('API_KEY_LIFETIME_DAYS must be at least 1')
        return v

    def get_log_level(self) -> str:
        """Get log level based on environment."""
        if self.ENVIRONMENT.lower() in ["development", "dev", "test"]:
            return "DEBUG"
        return self.LOG_LEVEL.upper()

    def is_enabled(self, service: str) -> bool:
        return service in self.ENABLED_SERVICES


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide settings, loading them on first use."""
    return Settings()
