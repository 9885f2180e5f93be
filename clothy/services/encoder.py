"""
Upload encoder — raw file bytes → base64 payload + media type.

Reads the whole file before returning. Same bytes always give the same payload.
"""

import asyncio
import base64
import logging
import mimetypes
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from ..core.errors import EncodingError

logger = logging.getLogger(__name__)

GENERIC_MEDIA_TYPE = "application/octet-stream"


@dataclass(frozen=True)
class EncodedImage:
    """Transport-safe form of one uploaded image."""

    payload: str      # base64, no data: prefix
    media_type: str   # e.g. image/png

    def to_bytes(self) -> bytes:
        return base64.b64decode(self.payload)


def detect_media_type(filename: Optional[str], content_type: Optional[str] = None) -> str:
    """Declared type wins unless it is the generic one; otherwise guess from the name."""
    if content_type and content_type != GENERIC_MEDIA_TYPE:
        return content_type
    if filename:
        guessed, _ = mimetypes.guess_type(filename)
        if guessed:
            return guessed
    return GENERIC_MEDIA_TYPE


def encode_bytes(
    data: bytes,
    filename: Optional[str] = None,
    content_type: Optional[str] = None,
) -> EncodedImage:
    if not data:
        raise EncodingError(f"File is empty: {filename or 'upload'}")
    return EncodedImage(
        payload=base64.b64encode(data).decode("utf-8"),
        media_type=detect_media_type(filename, content_type),
    )


async def encode_upload(file) -> EncodedImage:
    """
    Encode a FastAPI UploadFile (or anything with async read(), filename, content_type).

    Raises EncodingError if the content cannot be read.
    """
    filename = getattr(file, "filename", None)
    try:
        data = await file.read()
    except (OSError, ValueError) as e:
        logger.warning("Could not read upload %s: %s", filename, e)
        raise EncodingError(f"Could not read file: {filename or 'upload'}") from e

    return encode_bytes(data, filename, getattr(file, "content_type", None))


async def encode_path(path: Union[str, Path]) -> EncodedImage:
    """Encode a file on disk. The read runs in a thread."""
    path = Path(path)
    try:
        data = await asyncio.to_thread(path.read_bytes)
    except OSError as e:
        logger.warning("Could not read %s: %s", path, e)
        raise EncodingError(f"Could not read file: {path.name}") from e

    return encode_bytes(data, path.name)
