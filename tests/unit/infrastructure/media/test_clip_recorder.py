"""Unit tests for clip recording and buffered clip storage."""

import pytest

from camera_media.domain.exceptions import ProcessExitError, WriteError
from camera_media.infrastructure.media.buffered_writer import BufferedClipWriter, write_buffer
from camera_media.infrastructure.media.clip_recorder import ClipRecorder


class TestClipRecorder:
    """Test live clip recording."""

    @pytest.mark.asyncio
    async def test_record_clip(self, runner, spawner, camera, make_process, tmp_path):
        spawner.results.append(make_process())

        path = await ClipRecorder(runner).store_video(camera, tmp_path, "cam", 30)

        arguments = spawner.calls[0].arguments
        assert path == tmp_path / "cam.mp4"
        assert arguments[arguments.index("-t") + 1] == "30"
        assert arguments[arguments.index("-crf") + 1] == "23"
        assert arguments[arguments.index("-pix_fmt") + 1] == "yuv420p"
        assert arguments[-1] == str(path)

    @pytest.mark.asyncio
    async def test_record_clip_failure(self, runner, spawner, camera, make_process, tmp_path):
        spawner.results.append(make_process(returncode=1, diagnostics=["Connection timed out"]))

        with pytest.raises(ProcessExitError, match="Connection timed out"):
            await ClipRecorder(runner).store_video(camera, tmp_path, "cam", 10)

    @pytest.mark.asyncio
    async def test_invalid_duration(self, runner, camera, tmp_path):
        with pytest.raises(ValueError):
            await ClipRecorder(runner).store_video(camera, tmp_path, "cam", 0)


class TestBufferedClipWriter:
    """Test writing prebuffered clips."""

    @pytest.mark.asyncio
    async def test_store_video_buffer(self, camera, tmp_path):
        path = await BufferedClipWriter().store_video_buffer(camera, b"\x00\x00\x00\x18ftyp", tmp_path, "cam")

        assert path == tmp_path / "cam.mp4"
        assert path.read_bytes() == b"\x00\x00\x00\x18ftyp"

    @pytest.mark.asyncio
    async def test_missing_directory(self, camera, tmp_path):
        with pytest.raises(WriteError) as exc_info:
            await BufferedClipWriter().store_video_buffer(camera, b"data", tmp_path / "missing", "cam")

        assert exc_info.value.camera == "Front Door"

    @pytest.mark.asyncio
    async def test_write_buffer_creates_parents(self, tmp_path):
        path = await write_buffer(tmp_path / "a" / "b.bin", b"x", make_parents=True)

        assert path.read_bytes() == b"x"
