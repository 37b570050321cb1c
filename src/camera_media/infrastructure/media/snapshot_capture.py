"""Still image capture.

Snapshots come from three places: the live camera source, a buffer handed in
by the caller (raw JPEG or packaged video), or a previously recorded clip.
Stored JPEGs get EXIF metadata once they are completely written.
"""

import asyncio
import base64
import logging
from pathlib import Path
from typing import Optional, Union

import aiofiles.os

from camera_media.domain.artifacts import snapshot_path, thumbnail_path, video_path
from camera_media.domain.exceptions import EmptyOutputError
from camera_media.domain.models import Camera
from camera_media.infrastructure.media.buffered_writer import read_buffer, write_buffer
from camera_media.infrastructure.media.command_builder import CommandBuilder
from camera_media.infrastructure.media.metadata_embedder import embed_metadata
from camera_media.infrastructure.media.process_runner import ProcessRunner

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def decode_buffer(file_buffer: Union[bytes, str]) -> bytes:
    """Accept raw bytes or the base64 text notifications carry images in."""
    if isinstance(file_buffer, str):
        return base64.b64decode(file_buffer)
    return bytes(file_buffer)


class SnapshotCapture:
    """Produces still images through the video processor."""

    def __init__(
        self,
        runner: Optional[ProcessRunner] = None,
        builder: Optional[CommandBuilder] = None,
    ):
        self.runner = runner or ProcessRunner()
        self.builder = builder or CommandBuilder(self.runner.config)

    async def get_and_store_snapshot(
        self,
        camera: Camera,
        recording_path: Optional[PathLike] = None,
        file_name: Optional[str] = None,
        label: str = "no label",
        is_placeholder: bool = False,
        store_snapshot: bool = False,
    ) -> bytes:
        """Grab a snapshot from the live source.

        Without ``store_snapshot`` the image is read from the process output.
        With it, the process writes the destination file directly; the file
        is then validated, tagged with metadata and its content returned.

        Raises:
            ProcessSpawnError: If the video processor can not be started
            ProcessExitError: If the video processor fails
            EmptyOutputError: If no image was produced
        """
        destination: Optional[Path] = None
        if store_snapshot:
            if recording_path is None or not file_name:
                raise ValueError("Storing a snapshot requires a recording path and file name")
            destination = snapshot_path(recording_path, file_name, is_placeholder)

        arguments = self.builder.snapshot_from_source(camera.video_config, destination)
        logger.debug(f"[{camera.name}] Snapshot requested")

        outcome = await self.runner.run(
            arguments,
            operation="snapshot",
            camera=camera.name,
            capture_output=True,
            expect_output=destination is None,
        )
        image_buffer = outcome.unwrap()

        if destination is None:
            return image_buffer

        try:
            stored = (await aiofiles.os.stat(destination)).st_size > 0
        except OSError:
            stored = False

        if not stored:
            raise EmptyOutputError(
                f"Snapshot file {destination} is empty!", camera=camera.name
            )

        await self._embed_metadata(camera, destination, label)
        return await read_buffer(destination, camera=camera.name)

    async def store_buffer(
        self,
        camera: Camera,
        file_buffer: Union[bytes, str],
        recording_path: PathLike,
        file_name: str,
        label: str = "no label",
        is_placeholder: bool = False,
        extern_recording: bool = False,
    ) -> Path:
        """Store a snapshot from a caller supplied buffer.

        Args:
            camera: Camera the buffer belongs to
            file_buffer: JPEG bytes (or base64 text), or packaged video bytes
            recording_path: Destination directory
            file_name: Artifact base name
            label: Detection label for the metadata comment
            is_placeholder: Store as the ``@2`` preview image
            extern_recording: The buffer is packaged video and must be re-muxed

        Returns:
            Path of the stored image
        """
        output_path = snapshot_path(recording_path, file_name, is_placeholder)
        data = decode_buffer(file_buffer)

        if extern_recording:
            arguments = self.builder.snapshot_from_buffer(camera.video_config, output_path)
            outcome = await self.runner.run(
                arguments,
                operation="snapshot",
                camera=camera.name,
                input_data=data,
            )
            outcome.unwrap()
            logger.debug(f"[{camera.name}] Snapshot stored to: {output_path}")
        else:
            await write_buffer(output_path, data, make_parents=True, camera=camera.name)

        await self._embed_metadata(camera, output_path, label)
        return output_path

    async def store_snapshot_from_video(
        self, camera: Camera, recording_path: PathLike, file_name: str
    ) -> Path:
        """Create the ``@2`` preview image of a recorded clip."""
        clip = video_path(recording_path, file_name)
        destination = thumbnail_path(recording_path, file_name)

        arguments = self.builder.snapshot_from_clip(clip, destination)
        outcome = await self.runner.run(arguments, operation="snapshot", camera=camera.name)
        outcome.unwrap()

        return destination

    @staticmethod
    async def _embed_metadata(camera: Camera, path: Path, label: str) -> None:
        result = await asyncio.to_thread(embed_metadata, path, camera.name, label)
        if not result.is_success:
            logger.debug(f"[{camera.name}] Skipping EXIF information: {result.message}")
