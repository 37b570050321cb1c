"""Unit tests for the fragmented MP4 box parser."""

import asyncio
import struct

import pytest

from camera_media.domain.exceptions import FragmentParseError
from camera_media.infrastructure.media.fragment_parser import build_box, parse_fragmented_mp4


def reader_for(data: bytes) -> asyncio.StreamReader:
    reader = asyncio.StreamReader()
    reader.feed_data(data)
    reader.feed_eof()
    return reader


async def collect(data: bytes):
    return [fragment async for fragment in parse_fragmented_mp4(reader_for(data))]


class TestParseFragmentedMp4:
    """Test box framing."""

    @pytest.mark.asyncio
    async def test_boxes_in_order(self):
        data = build_box("ftyp", b"isom") + build_box("moov", b"\x01" * 20) + build_box("mdat")

        fragments = await collect(data)

        assert [f.box_type for f in fragments] == ["ftyp", "moov", "mdat"]
        assert fragments[0].payload == b"isom"
        assert fragments[1].size == 28
        assert b"".join(f.header + f.payload for f in fragments) == data

    @pytest.mark.asyncio
    async def test_empty_stream(self):
        assert await collect(b"") == []

    @pytest.mark.asyncio
    async def test_extended_size(self):
        payload = b"\x02" * 10
        data = struct.pack(">I", 1) + b"mdat" + struct.pack(">Q", 16 + len(payload)) + payload

        (fragment,) = await collect(data)

        assert fragment.box_type == "mdat"
        assert len(fragment.header) == 16
        assert fragment.payload == payload

    @pytest.mark.asyncio
    async def test_truncated_header(self):
        with pytest.raises(FragmentParseError, match="box header"):
            await collect(build_box("ftyp") + b"\x00\x00")

    @pytest.mark.asyncio
    async def test_truncated_payload(self):
        with pytest.raises(FragmentParseError, match="moov"):
            await collect(build_box("moov", b"\x00" * 32)[:20])

    @pytest.mark.asyncio
    async def test_invalid_size(self):
        with pytest.raises(FragmentParseError, match="Invalid size"):
            await collect(struct.pack(">I", 4) + b"moof")

    @pytest.mark.asyncio
    async def test_zero_size_is_rejected(self):
        with pytest.raises(FragmentParseError):
            await collect(struct.pack(">I", 0) + b"mdat")

    def test_build_box_requires_four_characters(self):
        with pytest.raises(ValueError):
            build_box("mdat2")
