"""EXIF metadata embedding for stored snapshots.

Embedding is a best-effort enhancement: every problem is returned as a
``Failure(MetadataEmbedError)`` for the caller to log, never raised, and the
file on disk is left as it was.

Only the APP1 (EXIF) segment is replaced; the compressed image data is
copied through unchanged. This is blocking file work, callers on the event
loop run it in a worker thread.
"""

import io
import logging
import struct
from pathlib import Path
from typing import Union

import piexif

from camera_media.domain.exceptions import MetadataEmbedError
from camera_media.domain.outcome import Failure, ProcessOutcome, Success

logger = logging.getLogger(__name__)

AUTHOR = "camera.ui"

JPEG_MAGIC = b"\xff\xd8"

# Windows "XP" tags of IFD0, stored as UTF-16LE byte sequences
XP_TITLE = piexif.ImageIFD.XPTitle
XP_COMMENT = piexif.ImageIFD.XPComment
XP_AUTHOR = piexif.ImageIFD.XPAuthor


def encode_wide_text(text: str) -> bytes:
    """Encode text the way XP tags expect it (UTF-16LE, NUL terminated)."""
    return text.encode("utf-16-le") + b"\x00\x00"


def decode_wide_text(value: Union[bytes, tuple]) -> str:
    raw = bytes(value)
    return raw.decode("utf-16-le").rstrip("\x00")


def build_exif(title: str, label: str) -> bytes:
    """Serialize an EXIF block carrying title, comment and author."""
    zeroth = {
        XP_TITLE: tuple(encode_wide_text(title)),
        XP_COMMENT: tuple(encode_wide_text(label)),
        XP_AUTHOR: tuple(encode_wide_text(AUTHOR)),
    }
    return piexif.dump({"0th": zeroth, "Exif": {}, "GPS": {}})


def embed_metadata(file_path: Union[str, Path], title: str, label: str) -> ProcessOutcome:
    """Rewrite a JPEG in place with title, comment and author EXIF fields.

    Args:
        file_path: Stored JPEG to update
        title: Image title, the camera name
        label: Detection label, written as the comment

    Returns:
        ``Success(path)`` or ``Failure(MetadataEmbedError)``
    """
    path = Path(file_path)

    try:
        original = path.read_bytes()
    except OSError as e:
        logger.debug(f"Can not read file {path} to create EXIF information, skipping..")
        return Failure(MetadataEmbedError(f"Can not read {path}: {e}", camera=title))

    if not original.startswith(JPEG_MAGIC):
        return Failure(MetadataEmbedError(f"{path} is not a JPEG image", camera=title))

    rewritten = io.BytesIO()
    try:
        piexif.insert(build_exif(title, label), original, rewritten)
    except (ValueError, struct.error) as e:
        logger.debug(f"Can not create EXIF information for {path}: {e}")
        return Failure(MetadataEmbedError(f"Can not embed metadata in {path}: {e}", camera=title))

    try:
        path.write_bytes(rewritten.getvalue())
    except OSError as e:
        return Failure(MetadataEmbedError(f"Can not write {path}: {e}", camera=title))

    return Success(path)
