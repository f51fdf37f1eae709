import logging
import os
import re
from fastapi.responses import FileResponse
from starlette.types import Receive, Scope, Send

logger = logging.getLogger(__name__)

_UNSAFE_FILENAME_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1f]')


def safe_filename(title: str, extension: str, default: str = "audio") -> str:
    """Build a download filename from a free-text title."""
    name = _UNSAFE_FILENAME_CHARS.sub("_", title).strip(" .")[:200] or default
    return f"{name}.{extension}"


def remove_file(path) -> None:
    """Delete a file if it exists, logging (not raising) on failure."""
    try:
        if os.path.exists(path):
            os.unlink(path)
    except OSError as e:
        logger.error(f"Error deleting temporary file {path}: {e}")


class TemporaryFileResponse(FileResponse):
    """FileResponse that deletes its file once the response is over, sent or not."""

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        try:
            await super().__call__(scope, receive, send)
        finally:
            remove_file(self.path)
