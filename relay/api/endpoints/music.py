import logging
from typing import Optional
from fastapi import APIRouter, Depends, Query, Request
from relay.api.deps import get_audio_transcoder, get_youtube_client, require_param
from relay.api.responses import TemporaryFileResponse, remove_file, safe_filename
from relay.core.exceptions import NotFoundException
from relay.core.logging_utils import get_request_id, sanitize_log_message
from relay.external.audio_transcoder import AudioTranscoder
from relay.external.youtube_client import VideoResult, YouTubeClient
from relay.schemas.media import MusicSearchResponse, VideoEntry

logger = logging.getLogger(__name__)

router = APIRouter()


def to_entry(video: VideoResult) -> VideoEntry:
    return VideoEntry(**video.model_dump(by_alias=True, exclude={"video_id"}))


@router.get("", response_model=MusicSearchResponse)
async def search_music(
    query: Optional[str] = Query(None, description="Song or video name to search for"),
    limit: int = Query(1, ge=1, le=10, description="Number of results"),
    youtube: YouTubeClient = Depends(get_youtube_client)
):
    """
    Search YouTube for a song. data holds the best match, results every match.
    """
    query = require_param(query, "query")

    videos = await youtube.search(query, max_results=limit)
    if not videos:
        raise NotFoundException(detail="No video found.")

    entries = [to_entry(video) for video in videos]
    return MusicSearchResponse(
        message="Results found.",
        data=entries[0],
        results=entries
    )


@router.get("/download")
async def download_music(
    request: Request,
    query: Optional[str] = Query(None, description="Song or video name to search for"),
    youtube: YouTubeClient = Depends(get_youtube_client),
    transcoder: AudioTranscoder = Depends(get_audio_transcoder)
):
    """
    Find a video and stream its audio as MP3.

    The MP3 is written to a temporary file that is deleted when the
    response finishes, or right away if encoding fails.
    """
    query = require_param(query, "query")

    videos = await youtube.search(query, max_results=1, with_statistics=False)
    if not videos:
        raise NotFoundException(detail="Video not found on YouTube.")
    video = videos[0]

    output_path = transcoder.new_output_path()
    try:
        await transcoder.extract_mp3_async(video.video_url, output_path)
    except Exception:
        remove_file(output_path)
        raise

    logger.info(
        sanitize_log_message(
            "Audio ready for download",
            Title=video.title,
            VideoUrl=video.video_url,
            RequestID=get_request_id(request)
        )
    )

    return TemporaryFileResponse(
        output_path,
        media_type="audio/mpeg",
        filename=safe_filename(video.title, "mp3")
    )
