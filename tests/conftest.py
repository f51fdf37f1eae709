import json
import pytest
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import AsyncGenerator, Generator, List, Optional
from relay.api.deps import (
    get_audio_transcoder,
    get_chat_client,
    get_pexels_client,
    get_weather_client,
    get_youtube_client,
)
from relay.config import Settings
from relay.external.youtube_client import VideoResult
from relay.main import create_app
from relay.models.api_key import ApiKeyRecord
from relay.services.key_store import JsonFileKeyStore


class FakeYouTubeClient:
    """Stands in for YouTubeClient; returns canned videos or raises a preset error."""

    def __init__(self):
        self.videos: List[VideoResult] = [
            VideoResult(
                video_id="abc123",
                title="Artist - Song",
                video_url="https://www.youtube.com/watch?v=abc123",
                thumbnail="https://i.ytimg.com/vi/abc123/hqdefault.jpg",
                channel="ArtistVEVO",
                view_count=1000,
            ),
            VideoResult(
                video_id="def456",
                title="Artist - Song (Live)",
                video_url="https://www.youtube.com/watch?v=def456",
            ),
        ]
        self.error: Optional[Exception] = None
        self.calls = []
        self.statistics: List[bool] = []

    async def search(self, query: str, max_results: int = 1, with_statistics: bool = True) -> List[VideoResult]:
        self.calls.append((query, max_results))
        self.statistics.append(with_statistics)
        if self.error:
            raise self.error
        return self.videos[:max_results]


class FakeTranscoder:
    """Stands in for AudioTranscoder; writes bytes to the output path, then optionally fails."""

    def __init__(self, temp_dir: Path):
        self.temp_dir = temp_dir
        self.payload = b"ID3\x03\x00fake-mp3-frames"
        self.error: Optional[Exception] = None
        self.output_paths: List[Path] = []

    def new_output_path(self) -> Path:
        self.temp_dir.mkdir(parents=True, exist_ok=True)
        path = self.temp_dir / f"track-{len(self.output_paths)}.mp3"
        self.output_paths.append(path)
        return path

    async def extract_mp3_async(self, video_url: str, output_path: Path) -> Path:
        output_path.write_bytes(self.payload)
        if self.error:
            raise self.error
        return output_path


class FakeRelayClient:
    """Records calls and returns a fixed result for the photo, weather and chat routes."""

    def __init__(self, result):
        self.result = result
        self.error: Optional[Exception] = None
        self.calls = []

    async def _respond(self, *args, **kwargs):
        self.calls.append((args, kwargs))
        if self.error:
            raise self.error
        return self.result

    search = _respond
    forecast = _respond
    complete = _respond


@pytest.fixture
def settings(tmp_path) -> Settings:
    """Settings isolated to a temporary directory, with rate limiting off."""
    return Settings(
        _env_file=None,
        ENVIRONMENT="test",
        API_KEYS_FILE=str(tmp_path / "data" / "apiKeys.json"),
        AUDIO_TEMP_DIR=str(tmp_path / "audio"),
        LOG_DIR=str(tmp_path / "logs"),
        RATE_LIMIT_ENABLED=False,
        YOUTUBE_API_KEY="yt-secret-key",
        PEXELS_API_KEY="pexels-secret-key",
        WEATHER_API_KEY="weather-secret-key",
        CHAT_API_KEY="chat-secret-key",
        YOUTUBE_API_URL="https://youtube.test/v3",
        PEXELS_API_URL="https://pexels.test/v1",
        WEATHER_API_URL="https://weather.test/v4",
        CHAT_API_URL="https://chat.test/v1",
    )


@pytest.fixture
def key_store(settings) -> JsonFileKeyStore:
    return JsonFileKeyStore(settings.API_KEYS_FILE)


@pytest.fixture
def seed_keys(settings):
    """Write key records straight to the key file before the app starts."""

    def _seed(*records: ApiKeyRecord) -> None:
        path = Path(settings.API_KEYS_FILE)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps([record.to_document() for record in records]), encoding="utf-8")

    return _seed


@pytest.fixture
def valid_key(seed_keys) -> str:
    record = ApiKeyRecord(
        name="Valid App",
        key="valid-test-key",
        expires_at=datetime.now(timezone.utc) + timedelta(days=10),
    )
    expired = ApiKeyRecord(
        name="Old App",
        key="expired-test-key",
        expires_at=datetime.now(timezone.utc) - timedelta(days=1),
    )
    seed_keys(record, expired)
    return record.key


@pytest.fixture
def fake_youtube() -> FakeYouTubeClient:
    return FakeYouTubeClient()


@pytest.fixture
def fake_transcoder(settings) -> FakeTranscoder:
    return FakeTranscoder(Path(settings.AUDIO_TEMP_DIR))


@pytest.fixture
def fake_pexels() -> FakeRelayClient:
    return FakeRelayClient([{"id": 1, "description": "Forest", "photographer": "Ana"}])


@pytest.fixture
def fake_weather() -> FakeRelayClient:
    return FakeRelayClient({"city": "Maputo", "forecast": [{"time": "2025-01-01T00:00:00Z", "values": {}}]})


@pytest.fixture
def fake_chat() -> FakeRelayClient:
    return FakeRelayClient({"reply": "Hello!", "model": "test-model", "usage": {}})


@pytest.fixture
def app(settings, fake_youtube, fake_transcoder, fake_pexels, fake_weather, fake_chat):
    """Application wired to fake collaborators."""
    application = create_app(settings)
    application.dependency_overrides[get_youtube_client] = lambda: fake_youtube
    application.dependency_overrides[get_audio_transcoder] = lambda: fake_transcoder
    application.dependency_overrides[get_pexels_client] = lambda: fake_pexels
    application.dependency_overrides[get_weather_client] = lambda: fake_weather
    application.dependency_overrides[get_chat_client] = lambda: fake_chat
    yield application
    application.dependency_overrides.clear()


@pytest.fixture(scope="function")
def client(app) -> Generator:
    """Sync test client; entering it runs the startup hook."""
    from fastapi.testclient import TestClient

    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture(scope="function")
async def async_client(app, key_store) -> AsyncGenerator:
    """Async test client; the key file is initialized the way startup does it."""
    from httpx import AsyncClient, ASGITransport

    await key_store.load()

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test"
    ) as ac:
        yield ac

