# =============================================================================
# core/media.py  —  Local Media Validation & Upload
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Takes a path supplied by the agent, checks it points at an acceptable
#   image or video, reads it, and hands the bytes to the X client's media
#   upload.  Returns the media id to attach to a post.
#
# CHECKS (in order):
#   1. The path exists            -> "File not found: <name>"
#   2. It is a regular file       -> "Path is not a file: <name>"
#   3. It is within the size cap  -> 5MB images / 512MB videos
#   4. Its extension is known     -> MIME type lookup below
#
#   Only the file's base name appears in messages, never the full path.
# =============================================================================

import asyncio
from pathlib import Path

from core.x_client import XApi

IMAGE_MIME_TYPES: dict[str, str] = {
    "png": "image/png",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "gif": "image/gif",
    "webp": "image/webp",
}

VIDEO_MIME_TYPES: dict[str, str] = {
    "mp4": "video/mp4",
    "mov": "video/quicktime",
    "avi": "video/x-msvideo",
    "webm": "video/webm",
    "m4v": "video/x-m4v",
}

_MB = 1024 * 1024

MAX_IMAGE_SIZE = 5 * _MB
MAX_VIDEO_SIZE = 512 * _MB
LONG_VIDEO_THRESHOLD = 15 * _MB


class MediaUploadError(ValueError):
    """A media file failed validation before upload."""


def _stat_file(raw_path: str) -> tuple[Path, int]:
    path = Path(raw_path).resolve()
    try:
        stats = path.stat()
    except OSError:
        raise MediaUploadError(f"File not found: {path.name}") from None

    if not path.is_file():
        raise MediaUploadError(f"Path is not a file: {path.name}")

    return path, stats.st_size


def _mime_type(path: Path, mime_types: dict[str, str], kind: str) -> str:
    ext = path.suffix.lower().lstrip(".")
    if ext not in mime_types:
        supported = ", ".join(mime_types)
        raise MediaUploadError(f"Unsupported {kind} format. Supported formats: {supported}")
    return mime_types[ext]


async def upload_image(client: XApi, image_path: str) -> str:
    """Validate and upload an image, returning its media id.

    Raises:
        MediaUploadError: missing path, directory, over 5MB, or unknown type.
    """
    path, size = await asyncio.to_thread(_stat_file, image_path)

    if size > MAX_IMAGE_SIZE:
        raise MediaUploadError(f"Image size exceeds 5MB limit ({size / _MB:.2f}MB)")

    mime_type = _mime_type(path, IMAGE_MIME_TYPES, "image")
    data = await asyncio.to_thread(path.read_bytes)
    return await client.upload_media(data, mime_type)


async def upload_video(client: XApi, video_path: str) -> str:
    """Validate and upload a video, returning its media id.

    Files over 15MB are flagged as long videos so the client picks the
    matching upload category.

    Raises:
        MediaUploadError: missing path, directory, over 512MB, or unknown type.
    """
    path, size = await asyncio.to_thread(_stat_file, video_path)

    if size > MAX_VIDEO_SIZE:
        raise MediaUploadError(f"Video size exceeds 512MB limit ({size / _MB:.2f}MB)")

    mime_type = _mime_type(path, VIDEO_MIME_TYPES, "video")
    data = await asyncio.to_thread(path.read_bytes)
    return await client.upload_media(
        data,
        mime_type,
        long_video=size > LONG_VIDEO_THRESHOLD,
    )
