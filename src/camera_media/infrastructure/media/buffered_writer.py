"""Writing already-obtained media buffers to disk."""

import logging
from pathlib import Path
from typing import Optional, Union

import aiofiles

from camera_media.domain.artifacts import video_path
from camera_media.domain.exceptions import WriteError
from camera_media.domain.models import Camera

logger = logging.getLogger(__name__)


async def write_buffer(
    destination: Union[str, Path],
    data: bytes,
    *,
    make_parents: bool = False,
    camera: Optional[str] = None,
) -> Path:
    """Write ``data`` through a scoped output stream.

    Raises:
        WriteError: If the destination can not be opened or written
    """
    path = Path(destination)

    try:
        if make_parents:
            path.parent.mkdir(parents=True, exist_ok=True)
        async with aiofiles.open(path, "wb") as f:
            await f.write(data)
    except OSError as e:
        raise WriteError(f"Can not write {path}: {e}", camera=camera) from e

    return path


async def read_buffer(source: Union[str, Path], *, camera: Optional[str] = None) -> bytes:
    """Read a stored artifact back through a scoped input stream.

    Raises:
        WriteError: If the stored file can not be read back
    """
    path = Path(source)

    try:
        async with aiofiles.open(path, "rb") as f:
            return await f.read()
    except OSError as e:
        raise WriteError(f"Can not read {path}: {e}", camera=camera) from e


class BufferedClipWriter:
    """Stores a prebuffered clip without involving the video processor."""

    async def store_video_buffer(
        self,
        camera: Camera,
        file_buffer: bytes,
        recording_path: Union[str, Path],
        file_name: str,
    ) -> Path:
        """Write ``file_buffer`` to ``<recording_path>/<file_name>.mp4``.

        Raises:
            WriteError: If the file can not be written
        """
        destination = video_path(recording_path, file_name)
        logger.debug(f"[{camera.name}] Storing video to: {destination}")

        return await write_buffer(destination, file_buffer, camera=camera.name)
