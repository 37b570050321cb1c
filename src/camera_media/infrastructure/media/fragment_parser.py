"""Fragmented MP4 box parser.

Reads ISO BMFF boxes off a byte stream: a 32-bit big-endian size, a
four-character type, and (when the size is 1) a 64-bit extended size.
"""

import asyncio
import struct
from typing import AsyncIterator

from camera_media.domain.exceptions import FragmentParseError
from camera_media.domain.models import ContainerFragment
from camera_media.domain.protocols import ByteStreamReader

BOX_HEADER_SIZE = 8
EXTENDED_SIZE_LENGTH = 8


async def _read(reader: ByteStreamReader, count: int, box_type: str) -> bytes:
    try:
        return await reader.readexactly(count)
    except asyncio.IncompleteReadError as e:
        raise FragmentParseError(
            f"Stream ended inside box '{box_type}' ({len(e.partial)} of {count} bytes)"
        ) from e


async def parse_fragmented_mp4(reader: ByteStreamReader) -> AsyncIterator[ContainerFragment]:
    """Yield every box of the stream in order.

    The iteration ends cleanly when the stream closes on a box boundary.

    Raises:
        FragmentParseError: On a truncated or malformed box
    """
    while True:
        try:
            header = await reader.readexactly(BOX_HEADER_SIZE)
        except asyncio.IncompleteReadError as e:
            if not e.partial:
                return
            raise FragmentParseError(
                f"Stream ended inside a box header ({len(e.partial)} of {BOX_HEADER_SIZE} bytes)"
            ) from e

        (size,) = struct.unpack(">I", header[:4])
        box_type = header[4:8].decode("latin-1")

        if size == 1:
            extended = await _read(reader, EXTENDED_SIZE_LENGTH, box_type)
            header += extended
            (size,) = struct.unpack(">Q", extended)

        if size < len(header):
            # size 0 ("until end of file") can not be framed on a live stream
            raise FragmentParseError(f"Invalid size {size} for box '{box_type}'")

        payload = await _read(reader, size - len(header), box_type)
        yield ContainerFragment(header=header, box_type=box_type, payload=payload)


def build_box(box_type: str, payload: bytes = b"") -> bytes:
    """Serialize one box (used for synthetic streams)."""
    if len(box_type) != 4:
        raise ValueError(f"Box type must have four characters, got {box_type!r}")
    return struct.pack(">I", BOX_HEADER_SIZE + len(payload)) + box_type.encode("latin-1") + payload
