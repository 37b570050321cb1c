"""Application service for camera media operations.

This service composes the media infrastructure (snapshot capture, clip
recording, buffered writes and live fragment streaming) behind one facade,
and implements the notification recording flow on top of it.
"""

import logging
from contextlib import aclosing, asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Optional, Union

from camera_media.domain.artifacts import snapshot_path, video_path
from camera_media.domain.exceptions import MediaError
from camera_media.domain.models import Camera, OperationKind, OperationRequest
from camera_media.domain.outcome import Failure, ProcessOutcome, Success
from camera_media.infrastructure.config import Settings, get_settings
from camera_media.infrastructure.media.buffered_writer import BufferedClipWriter
from camera_media.infrastructure.media.clip_recorder import ClipRecorder
from camera_media.infrastructure.media.command_builder import CommandBuilder
from camera_media.infrastructure.media.fragment_streamer import (
    LiveFragmentStreamer,
    PrebufferRegistry,
)
from camera_media.infrastructure.media.process_runner import ProcessRunner
from camera_media.infrastructure.media.snapshot_capture import SnapshotCapture
from camera_media.infrastructure.observability import traced

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]
FileBuffer = Union[bytes, str]


class MediaService:
    """Facade over every camera media operation.

    Each operation runs independently; nothing is shared between calls
    except the (stateless) runner and argument builder.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        runner: Optional[ProcessRunner] = None,
        prebuffers: Optional[PrebufferRegistry] = None,
    ):
        """Initialize the media service.

        Args:
            settings: Application settings, defaults to :func:`get_settings`
            runner: Process runner, e.g. one with a test spawner
            prebuffers: Registry of prebuffer providers by camera name
        """
        self.settings = settings or get_settings()
        self.runner = runner or ProcessRunner(self.settings.processor)
        self.builder = CommandBuilder(self.runner.config, self.settings.streaming)
        self.prebuffers = prebuffers or PrebufferRegistry()

        self.snapshots = SnapshotCapture(self.runner, self.builder)
        self.recorder = ClipRecorder(self.runner, self.builder)
        self.writer = BufferedClipWriter()
        self.streamer = LiveFragmentStreamer(
            self.runner, self.builder, self.prebuffers, self.settings.streaming
        )

    @traced("camera_media.snapshot")
    async def snapshot(
        self,
        camera: Camera,
        recording_path: Optional[PathLike] = None,
        file_name: Optional[str] = None,
        label: str = "no label",
        is_placeholder: bool = False,
        store: bool = False,
    ) -> bytes:
        return await self.snapshots.get_and_store_snapshot(
            camera, recording_path, file_name, label, is_placeholder, store
        )

    @traced("camera_media.snapshot_from_buffer")
    async def snapshot_from_buffer(
        self,
        camera: Camera,
        file_buffer: FileBuffer,
        recording_path: PathLike,
        file_name: str,
        label: str = "no label",
        is_placeholder: bool = False,
        extern_recording: bool = False,
    ) -> Path:
        return await self.snapshots.store_buffer(
            camera, file_buffer, recording_path, file_name, label, is_placeholder, extern_recording
        )

    @traced("camera_media.snapshot_from_clip")
    async def snapshot_from_clip(self, camera: Camera, recording_path: PathLike, file_name: str) -> Path:
        return await self.snapshots.store_snapshot_from_video(camera, recording_path, file_name)

    @traced("camera_media.record_clip")
    async def record_clip(
        self, camera: Camera, recording_path: PathLike, file_name: str, recording_timer: int
    ) -> Path:
        return await self.recorder.store_video(camera, recording_path, file_name, recording_timer)

    @traced("camera_media.clip_from_buffer")
    async def clip_from_buffer(
        self, camera: Camera, file_buffer: bytes, recording_path: PathLike, file_name: str
    ) -> Path:
        return await self.writer.store_video_buffer(camera, file_buffer, recording_path, file_name)

    def fragments(self, camera: Camera) -> AsyncIterator[bytes]:
        """Lazy fragmented MP4 chunks; nothing starts until iterated."""
        return self.streamer.handle_fragments_requests(camera)

    @asynccontextmanager
    async def fragment_stream(self, camera: Camera) -> AsyncIterator[AsyncIterator[bytes]]:
        """Scope a live stream so its session is torn down on exit.

        Example::

            async with service.fragment_stream(camera) as chunks:
                async for chunk in chunks:
                    await websocket.send_bytes(chunk)
        """
        async with aclosing(self.fragments(camera)) as chunks:
            yield chunks

    async def execute(self, request: OperationRequest) -> ProcessOutcome:
        """Run one operation request and report its outcome.

        Media errors become ``Failure`` outcomes. Live stream requests return
        ``Success`` wrapping the (not yet started) chunk iterator.
        """
        camera = request.camera

        try:
            if request.kind == OperationKind.SNAPSHOT_FROM_SOURCE:
                value = await self.snapshot(
                    camera,
                    request.recording_path,
                    request.file_name,
                    request.label,
                    request.is_placeholder,
                    request.store,
                )
            elif request.kind == OperationKind.SNAPSHOT_FROM_BUFFER:
                value = await self.snapshot_from_buffer(
                    camera,
                    _required(request.buffer, "buffer", request.kind),
                    _required(request.recording_path, "recording_path", request.kind),
                    _required(request.file_name, "file_name", request.kind),
                    request.label,
                    request.is_placeholder,
                    request.extern_recording,
                )
            elif request.kind == OperationKind.SNAPSHOT_FROM_CLIP:
                value = await self.snapshot_from_clip(
                    camera,
                    _required(request.recording_path, "recording_path", request.kind),
                    _required(request.file_name, "file_name", request.kind),
                )
            elif request.kind == OperationKind.CLIP_RECORD:
                value = await self.record_clip(
                    camera,
                    _required(request.recording_path, "recording_path", request.kind),
                    _required(request.file_name, "file_name", request.kind),
                    _required(request.duration, "duration", request.kind),
                )
            elif request.kind == OperationKind.CLIP_FROM_BUFFER:
                value = await self.clip_from_buffer(
                    camera,
                    _required(request.buffer, "buffer", request.kind),
                    _required(request.recording_path, "recording_path", request.kind),
                    _required(request.file_name, "file_name", request.kind),
                )
            elif request.kind == OperationKind.LIVE_FRAGMENT_STREAM:
                value = self.fragments(camera)
            else:
                raise ValueError(f"Unknown operation kind: {request.kind}")
        except MediaError as e:
            if e.camera is None:
                e.camera = camera.name
            return Failure(e)

        return Success(value)

    @traced("camera_media.record_notification_media")
    async def record_notification_media(
        self,
        camera: Camera,
        record_type: str,
        recording_path: PathLike,
        file_name: str,
        label: str = "no label",
        recording_timer: int = 10,
        file_buffer: Optional[FileBuffer] = None,
        extern_recording: bool = False,
    ) -> Path:
        """Store the media of a notification.

        Videos are stored from ``file_buffer`` when given, otherwise recorded
        live for ``recording_timer`` seconds; either way an ``@2`` preview is
        extracted. Snapshots are stored from ``file_buffer`` or grabbed live.

        Returns:
            Path of the stored video or snapshot
        """
        if record_type.lower() == "video":
            if file_buffer is not None:
                logger.debug(f"[{camera.name}] Storing prebuffered video")
                await self.clip_from_buffer(camera, file_buffer, recording_path, file_name)
            else:
                await self.record_clip(camera, recording_path, file_name, recording_timer)

            await self.snapshot_from_clip(camera, recording_path, file_name)
            return video_path(recording_path, file_name)

        if file_buffer is not None:
            return await self.snapshot_from_buffer(
                camera,
                file_buffer,
                recording_path,
                file_name,
                label,
                extern_recording=extern_recording,
            )

        await self.snapshot(camera, recording_path, file_name, label, store=True)
        return snapshot_path(recording_path, file_name)


def _required(value, name: str, kind: OperationKind):
    if value is None:
        raise ValueError(f"{kind.value} requests need a {name}")
    return value
