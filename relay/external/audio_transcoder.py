"""AudioTranscoder - MP3 extraction via yt-dlp (stream lookup) and ffmpeg (encode)."""

import logging
import os
import subprocess
import uuid
from pathlib import Path
from typing import Dict, Tuple

import yt_dlp
from yt_dlp.utils import DownloadError
from starlette.concurrency import run_in_threadpool

from relay.config import Settings
from relay.core.exceptions import TranscodeException

logger = logging.getLogger(__name__)

YDL_OPTIONS = {
    "format": "bestaudio/best",
    "quiet": True,
    "no_warnings": True,
    "noplaylist": True,
}


class AudioTranscoder:
    def __init__(self, settings: Settings):
        self.ffmpeg_binary = settings.FFMPEG_BINARY
        self.codec = settings.AUDIO_CODEC
        self.bitrate = settings.AUDIO_BITRATE
        self.temp_dir = Path(settings.AUDIO_TEMP_DIR)

    def new_output_path(self) -> Path:
        self.temp_dir.mkdir(parents=True, exist_ok=True)
        return self.temp_dir / f"{uuid.uuid4().hex}.mp3"

    def resolve_audio_stream(self, video_url: str) -> Tuple[str, Dict[str, str]]:
        """Return the direct URL of the best audio stream and the headers it needs."""
        try:
            with yt_dlp.YoutubeDL(YDL_OPTIONS) as ydl:
                info = ydl.extract_info(video_url, download=False)
        except DownloadError as e:
            logger.error(f"Could not resolve audio stream for {video_url}: {e}")
            raise TranscodeException(detail=f"Could not read the video stream: {e}") from e

        stream_url = (info or {}).get("url")
        if not stream_url:
            raise TranscodeException(detail="No audio stream available for this video.")
        return stream_url, info.get("http_headers") or {}

    def transcode(self, stream_url: str, headers: Dict[str, str], output_path: Path) -> None:
        cmd = [self.ffmpeg_binary, "-y", "-loglevel", "error"]
        if headers:
            cmd += ["-headers", "".join(f"{name}: {value}\r\n" for name, value in headers.items())]
        cmd += [
            "-i", stream_url,
            "-vn",
            "-c:a", self.codec,
            "-b:a", f"{self.bitrate}k",
            str(output_path),
        ]

        try:
            result = subprocess.run(cmd, capture_output=True, text=True)
        except OSError as e:
            logger.error(f"Could not start {self.ffmpeg_binary}: {e}")
            raise TranscodeException(detail=f"Audio encoder unavailable: {e}") from e

        if result.returncode != 0:
            logger.error(f"Error extracting audio: {result.stderr[-500:]}")
            raise TranscodeException(detail="Error processing the audio.")

        if not output_path.exists() or output_path.stat().st_size == 0:
            raise TranscodeException(detail="Audio encoder produced no output.")

    def extract_mp3(self, video_url: str, output_path: Path) -> Path:
        """
        Write the audio of a video to output_path as MP3.

        The partial output is removed on any failure.
        """
        try:
            stream_url, headers = self.resolve_audio_stream(video_url)
            self.transcode(stream_url, headers, output_path)
            return output_path
        except Exception:
            if os.path.exists(output_path):
                os.unlink(output_path)
            raise

    async def extract_mp3_async(self, video_url: str, output_path: Path) -> Path:
        return await run_in_threadpool(self.extract_mp3, video_url, output_path)
