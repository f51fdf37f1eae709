from typing import Optional
from fastapi import Request
from relay.config import Settings
from relay.core.exceptions import MissingParameterException
from relay.external.audio_transcoder import AudioTranscoder
from relay.external.chat_client import ChatClient
from relay.external.pexels_client import PexelsClient
from relay.external.weather_client import WeatherClient
from relay.external.youtube_client import YouTubeClient
from relay.services.key_store import JsonFileKeyStore


def get_settings_from_app(request: Request) -> Settings:
    """Settings the running app was built with."""
    return request.app.state.settings


def get_key_store(request: Request) -> JsonFileKeyStore:
    return request.app.state.key_store


# Collaborator dependencies; tests swap them through app.dependency_overrides
def get_youtube_client(request: Request) -> YouTubeClient:
    return YouTubeClient(
        request.app.state.settings,
        request.app.state.circuit_breakers.get("youtube"),
    )


def get_pexels_client(request: Request) -> PexelsClient:
    return PexelsClient(
        request.app.state.settings,
        request.app.state.circuit_breakers.get("pexels"),
    )


def get_weather_client(request: Request) -> WeatherClient:
    return WeatherClient(
        request.app.state.settings,
        request.app.state.circuit_breakers.get("weather"),
    )


def get_chat_client(request: Request) -> ChatClient:
    return ChatClient(
        request.app.state.settings,
        request.app.state.circuit_breakers.get("chat"),
    )


def get_audio_transcoder(request: Request) -> AudioTranscoder:
    return AudioTranscoder(request.app.state.settings)


def require_param(value: Optional[str], name: str) -> str:
    """Return the stripped parameter value or raise a 400 naming the parameter."""
    if value is None or not value.strip():
        raise MissingParameterException(name)
    return value.strip()
