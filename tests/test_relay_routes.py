"""
Tests for the collaborator-backed relay routes: music, photos, weather and Tina.
"""
import pytest
from relay.core.circuit_breaker import CircuitBreakerOpenException
from relay.core.exceptions import ExternalAPIException, TranscodeException


class TestMusicSearch:
    """Tests for GET /api/music."""

    def test_search_returns_best_match(self, client, fake_youtube):
        """data holds the best match and results every match."""
        response = client.get("/api/music", params={"query": "artist song"})

        assert response.status_code == 200
        data = response.json()
        assert data["message"] == "Results found."
        assert data["data"]["title"] == "Artist - Song"
        assert data["data"]["videoUrl"] == "https://www.youtube.com/watch?v=abc123"
        assert data["data"]["thumbnail"].endswith("hqdefault.jpg")
        assert len(data["results"]) == 1
        assert fake_youtube.calls == [("artist song", 1)]

    def test_search_with_limit(self, client, fake_youtube):
        """limit asks the collaborator for more results."""
        response = client.get("/api/music", params={"query": "song", "limit": 2})

        assert response.status_code == 200
        assert len(response.json()["results"]) == 2

    @pytest.mark.parametrize("params", [{}, {"query": ""}, {"query": "   "}])
    def test_search_requires_query(self, client, fake_youtube, params):
        """A missing or empty query is a 400 naming the parameter."""
        response = client.get("/api/music", params=params)

        assert response.status_code == 400
        assert "query" in response.json()["error"]
        assert fake_youtube.calls == []

    def test_search_limit_out_of_range(self, client):
        """limit outside 1-10 is a 400."""
        response = client.get("/api/music", params={"query": "song", "limit": 50})

        assert response.status_code == 400
        assert "limit" in response.json()["error"]

    def test_search_no_results(self, client, fake_youtube):
        """No matching video is a 404."""
        fake_youtube.videos = []

        response = client.get("/api/music", params={"query": "nothing"})

        assert response.status_code == 404
        assert response.json() == {"error": "No video found."}

    def test_search_collaborator_failure(self, client, fake_youtube):
        """A collaborator failure is a 500 with an error field."""
        fake_youtube.error = ExternalAPIException(detail="YouTube API error: 403 - quota exceeded")

        response = client.get("/api/music", params={"query": "song"})

        assert response.status_code == 500
        assert "quota exceeded" in response.json()["error"]

    def test_search_circuit_open(self, client, fake_youtube):
        """An open circuit answers 503."""
        fake_youtube.error = CircuitBreakerOpenException("Circuit breaker 'youtube' is open")

        response = client.get("/api/music", params={"query": "song"})

        assert response.status_code == 503
        assert "error" in response.json()


class TestMusicDownload:
    """Tests for GET /api/music/download."""

    def test_download_streams_mp3(self, client, valid_key, fake_transcoder):
        """A valid key gets the MP3 as an attachment named after the video."""
        response = client.get(
            "/api/music/download",
            params={"query": "artist song"},
            headers={"X-API-Key": valid_key}
        )

        assert response.status_code == 200
        assert response.headers["content-type"] == "audio/mpeg"
        disposition = response.headers["content-disposition"]
        assert disposition.startswith("attachment")
        assert "Artist%20-%20Song.mp3" in disposition
        assert response.content == fake_transcoder.payload

    def test_download_skips_view_counts(self, client, valid_key, fake_youtube, fake_transcoder):
        """The download only needs the top match, not its statistics."""
        client.get("/api/music/download", params={"query": "song"}, headers={"X-API-Key": valid_key})

        assert fake_youtube.calls == [("song", 1)]
        assert fake_youtube.statistics == [False]

    def test_download_removes_temporary_file(self, client, valid_key, fake_transcoder):
        """The MP3 is deleted once the response has been sent."""
        client.get("/api/music/download", params={"query": "song"}, headers={"X-API-Key": valid_key})

        assert len(fake_transcoder.output_paths) == 1
        assert not fake_transcoder.output_paths[0].exists()
        assert list(fake_transcoder.temp_dir.iterdir()) == []

    def test_download_requires_query(self, client, valid_key, fake_youtube):
        """With a valid key, a missing query is a 400."""
        response = client.get("/api/music/download", headers={"X-API-Key": valid_key})

        assert response.status_code == 400
        assert "query" in response.json()["error"]
        assert fake_youtube.calls == []

    def test_download_video_not_found(self, client, valid_key, fake_youtube, fake_transcoder):
        """No matching video is a 404 and nothing is transcoded."""
        fake_youtube.videos = []

        response = client.get("/api/music/download", params={"query": "nothing"}, headers={"X-API-Key": valid_key})

        assert response.status_code == 404
        assert response.json() == {"error": "Video not found on YouTube."}
        assert fake_transcoder.output_paths == []

    def test_download_transcode_failure(self, client, valid_key, fake_transcoder):
        """An encoding failure is a 500 and leaves no partial file behind."""
        fake_transcoder.error = TranscodeException()

        response = client.get("/api/music/download", params={"query": "song"}, headers={"X-API-Key": valid_key})

        assert response.status_code == 500
        assert response.json() == {"error": "Error processing the audio."}
        assert len(fake_transcoder.output_paths) == 1
        assert list(fake_transcoder.temp_dir.iterdir()) == []


class TestPhotoSearch:
    """Tests for GET /api/photo-search."""

    def test_photo_search(self, client, fake_pexels):
        """Photos are relayed with the query echoed back."""
        response = client.get("/api/photo-search", params={"query": "forest", "per_page": 5})

        assert response.status_code == 200
        data = response.json()
        assert data["query"] == "forest"
        assert data["data"][0]["photographer"] == "Ana"
        assert fake_pexels.calls == [(("forest",), {"per_page": 5})]

    def test_photo_search_default_query(self, client, fake_pexels, settings):
        """Without a query the default search term is used."""
        response = client.get("/api/photo-search")

        assert response.status_code == 200
        assert response.json()["query"] == settings.PHOTO_DEFAULT_QUERY

    def test_photo_search_empty(self, client, fake_pexels):
        """An empty result set is still a 200."""
        fake_pexels.result = []

        response = client.get("/api/photo-search", params={"query": "zzz"})

        assert response.status_code == 200
        assert response.json()["data"] == []
        assert response.json()["message"] == "No photos found."


class TestWeather:
    """Tests for GET /api/weather."""

    def test_weather_forecast(self, client, fake_weather):
        """The forecast is relayed with the requested options."""
        response = client.get("/api/weather", params={"city": "Maputo", "units": "imperial", "days": 3})

        assert response.status_code == 200
        assert response.json()["data"]["city"] == "Maputo"
        assert fake_weather.calls == [
            (("Maputo",), {"units": "imperial", "timesteps": "1d", "horizon": 3})
        ]

    def test_weather_requires_city(self, client, fake_weather):
        """A missing city is a 400 naming the parameter."""
        response = client.get("/api/weather")

        assert response.status_code == 400
        assert response.json() == {"error": "Parameter 'city' is required."}
        assert fake_weather.calls == []

    def test_weather_invalid_units(self, client):
        """Unknown units are a 400."""
        response = client.get("/api/weather", params={"city": "Maputo", "units": "kelvin"})

        assert response.status_code == 400
        assert "units" in response.json()["error"]

    def test_weather_invalid_timesteps(self, client):
        """Unknown timesteps are a 400."""
        response = client.get("/api/weather", params={"city": "Maputo", "timesteps": "5m"})

        assert response.status_code == 400
        assert "timesteps" in response.json()["error"]


class TestTina:
    """Tests for GET /api/tina/messages."""

    def test_tina_reply(self, client, fake_chat):
        """The assistant reply is relayed."""
        response = client.get(
            "/api/tina/messages",
            params={"query": "hello", "context": "earlier", "user": "u1"}
        )

        assert response.status_code == 200
        assert response.json()["data"]["reply"] == "Hello!"
        assert fake_chat.calls == [(("hello",), {"context": "earlier", "user": "u1"})]

    def test_tina_requires_query(self, client, fake_chat):
        """A missing query is a 400."""
        response = client.get("/api/tina/messages")

        assert response.status_code == 400
        assert response.json() == {"error": "Parameter 'query' is required."}
        assert fake_chat.calls == []

    def test_tina_collaborator_failure(self, client, fake_chat):
        """A collaborator failure is a 500."""
        fake_chat.error = ExternalAPIException(detail="Chat API is not configured.")

        response = client.get("/api/tina/messages", params={"query": "hello"})

        assert response.status_code == 500
        assert response.json() == {"error": "Chat API is not configured."}
