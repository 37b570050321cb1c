"""Live fragmented MP4 streaming.

A stream request resolves its input (prebuffer provider or the camera
source), starts one long-running video processor session that stream-copies
audio and video into fragmented MP4, and hands the consumer a lazy sequence
of byte chunks, one per flush-boundary box.

The session owns the process and, when the input came from a prebuffer, the
socket the provider handed out. Both are released exactly once whatever ends
the iteration: the consumer closing it early, an error, or the end of the
stream.
"""

import asyncio
import logging
from collections import deque
from contextlib import aclosing
from dataclasses import dataclass
from typing import AsyncIterator, Deque, Dict, List, Optional, Sequence

from camera_media.domain.exceptions import (
    FragmentParseError,
    PrebufferUnavailableError,
    ProcessExitError,
    ProcessSpawnError,
)
from camera_media.domain.models import Camera, ContainerFragment, PrebufferInput
from camera_media.domain.protocols import Closable, PrebufferProvider, ProcessHandle
from camera_media.infrastructure.config import StreamingConfig
from camera_media.infrastructure.media.command_builder import CommandBuilder
from camera_media.infrastructure.media.fragment_parser import parse_fragmented_mp4
from camera_media.infrastructure.media.process_runner import ProcessRunner, describe_exit

logger = logging.getLogger(__name__)

AUDIO_COPY = ["-acodec", "copy"]
VIDEO_COPY = ["-vcodec", "copy"]


@dataclass
class ResolvedInput:
    """Input arguments of a stream session and the socket backing them, if any."""

    arguments: List[str]
    socket: Optional[Closable] = None
    from_prebuffer: bool = False


class PrebufferRegistry:
    """Prebuffer providers of the cameras that currently run one."""

    def __init__(self) -> None:
        self._providers: Dict[str, PrebufferProvider] = {}

    def register(self, camera_name: str, provider: PrebufferProvider) -> None:
        self._providers[camera_name] = provider

    def unregister(self, camera_name: str) -> None:
        self._providers.pop(camera_name, None)

    def get(self, camera_name: str) -> Optional[PrebufferProvider]:
        return self._providers.get(camera_name)

    def __contains__(self, camera_name: object) -> bool:
        return camera_name in self._providers


class StreamSession:
    """One running fragmented MP4 session.

    Use as an async context manager; leaving the block tears the session
    down. :meth:`close` is idempotent.
    """

    def __init__(
        self,
        camera_name: str,
        process: ProcessHandle,
        socket: Optional[Closable] = None,
        *,
        debug: bool = False,
        terminate_timeout: float = 5.0,
        diagnostics_limit: int = 200,
    ):
        self.camera_name = camera_name
        self.process = process
        self.socket = socket
        self.debug = debug
        self.terminate_timeout = terminate_timeout

        # Only the most recent lines are kept for error reports
        self.diagnostics: Deque[str] = deque(maxlen=diagnostics_limit)
        self._diagnostics_task: Optional[asyncio.Task] = None
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def start(self) -> None:
        """Start draining the process diagnostics."""
        if self._diagnostics_task is None:
            self._diagnostics_task = asyncio.create_task(self._collect_diagnostics())

    async def _collect_diagnostics(self) -> None:
        async for line in self.process.read_diagnostics():
            self.diagnostics.append(line)
            if self.debug:
                logger.debug(f"[{self.camera_name}] {line}")

    async def fragments(self) -> AsyncIterator[ContainerFragment]:
        """Parse the process output into container fragments."""
        stream = self.process.output_stream
        if stream is None:
            raise RuntimeError("Stream session process has no output pipe")

        try:
            async for fragment in parse_fragmented_mp4(stream):
                yield fragment
        except FragmentParseError as e:
            e.camera = self.camera_name
            e.diagnostics = list(self.diagnostics)
            raise

    async def finish(self) -> None:
        """Check how the process ended once its output is exhausted.

        Raises:
            ProcessExitError: If the process exited with an error
        """
        try:
            returncode = await asyncio.wait_for(self.process.wait(), self.terminate_timeout)
        except asyncio.TimeoutError:
            # Output closed but the process lingers, teardown will stop it
            return

        if self._diagnostics_task is not None:
            try:
                await asyncio.wait_for(asyncio.shield(self._diagnostics_task), 1.0)
            except asyncio.TimeoutError:
                pass
            except Exception as e:
                logger.debug(f"[{self.camera_name}] Diagnostics reader failed: {e}")

        if returncode != 0:
            raise ProcessExitError(
                f"FFmpeg fragments process exited with error! ({describe_exit(returncode)})",
                returncode=returncode,
                diagnostics=self.diagnostics,
                camera=self.camera_name,
            )

    async def close(self) -> None:
        """Close the socket and terminate the process, once."""
        if self._closed:
            return
        self._closed = True

        if self.socket is not None:
            try:
                self.socket.close()
            except OSError as e:
                logger.debug(f"[{self.camera_name}] Error closing prebuffer socket: {e}")

        self.process.terminate()
        try:
            await asyncio.wait_for(self.process.wait(), self.terminate_timeout)
        except asyncio.TimeoutError:
            logger.warning(f"[{self.camera_name}] FFmpeg did not terminate, killing it")
            self.process.kill()
            await self.process.wait()

        if self._diagnostics_task is not None:
            if not self._diagnostics_task.done():
                self._diagnostics_task.cancel()
            try:
                await self._diagnostics_task
            except asyncio.CancelledError:
                pass
            except Exception as e:
                logger.debug(f"[{self.camera_name}] Diagnostics reader failed: {e}")

    async def __aenter__(self) -> "StreamSession":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()


class LiveFragmentStreamer:
    """Serves live camera video as a lazy sequence of fragmented MP4 chunks."""

    def __init__(
        self,
        runner: Optional[ProcessRunner] = None,
        builder: Optional[CommandBuilder] = None,
        prebuffers: Optional[PrebufferRegistry] = None,
        streaming: Optional[StreamingConfig] = None,
    ):
        """Initialize the streamer.

        Args:
            runner: Runner used to spawn the video processor
            builder: Argument builder
            prebuffers: Registry of prebuffer providers by camera name
            streaming: Streaming configuration (container, flush boundaries)
        """
        self.runner = runner or ProcessRunner()
        self.streaming = streaming or StreamingConfig()
        self.builder = builder or CommandBuilder(self.runner.config, self.streaming)
        self.prebuffers = prebuffers or PrebufferRegistry()

    @property
    def flush_box_types(self) -> frozenset:
        return frozenset(self.streaming.flush_box_types)

    async def resolve_input(self, camera: Camera) -> ResolvedInput:
        """Pick the session input.

        A reachable prebuffer is preferred for cameras with prebuffering
        enabled. Any provider failure falls back to the camera source.
        """
        provider = self.prebuffers.get(camera.name)

        if camera.prebuffering and provider is not None:
            try:
                logger.debug(f"[{camera.name}] Setting prebuffer stream as input")
                result = await provider.get_video(
                    container=self.streaming.container,
                    prebuffer=camera.prebuffer_length,
                )
                return self._prebuffer_input(result)
            except Exception as e:
                error = PrebufferUnavailableError(
                    f"Can not access prebuffer stream, skipping: {e}", camera=camera.name
                )
                logger.warning(f"[{camera.name}] {error.message}")

        return ResolvedInput(arguments=self.builder.input_source(camera.video_config))

    @staticmethod
    def _prebuffer_input(result) -> ResolvedInput:
        if isinstance(result, PrebufferInput):
            arguments, socket = list(result.arguments), result.socket
        else:
            arguments, socket = list(result), None

        if not arguments:
            if socket is not None:
                socket.close()
            raise ValueError("prebuffer returned no input arguments")

        return ResolvedInput(arguments=arguments, socket=socket, from_prebuffer=True)

    async def start_fragmented_mp4_session(
        self,
        camera: Camera,
        resolved: ResolvedInput,
        audio_arguments: Sequence[str] = AUDIO_COPY,
        video_arguments: Sequence[str] = VIDEO_COPY,
    ) -> StreamSession:
        """Spawn the stream-copy process for ``resolved`` input.

        Raises:
            ProcessSpawnError: If the video processor can not be started; the
                input socket is closed before raising
        """
        arguments = self.builder.fragment_stream(
            resolved.arguments, audio_arguments, video_arguments
        )

        try:
            process = await self.runner.spawn(arguments, pipe_output=True)
        except ProcessSpawnError as e:
            e.camera = camera.name
            if resolved.socket is not None:
                resolved.socket.close()
            raise

        session = StreamSession(
            camera.name,
            process,
            resolved.socket,
            debug=camera.video_config.debug,
            terminate_timeout=self.runner.config.terminate_timeout,
            diagnostics_limit=self.runner.config.diagnostic_lines,
        )
        session.start()
        return session

    async def handle_fragments_requests(self, camera: Camera) -> AsyncIterator[bytes]:
        """Yield fragmented MP4 chunks until the consumer stops or the stream ends.

        Boxes accumulate until a flush-boundary box (``moov``/``mdat`` by
        default) arrives; the accumulated bytes are then yielded as one chunk.
        Close the iterator (``aclose()``) when abandoning it early.

        Raises:
            ProcessSpawnError: If the video processor can not be started
            FragmentParseError: If the stream is malformed
            ProcessExitError: If the video processor exits with an error
        """
        logger.debug(f"[{camera.name}] Video fragments requested from interface")

        resolved = await self.resolve_input(camera)
        session = await self.start_fragmented_mp4_session(camera, resolved)
        flush_box_types = self.flush_box_types

        logger.debug(f"[{camera.name}] Recording started")

        async with session:
            pending: List[bytes] = []

            async with aclosing(session.fragments()) as fragments:
                async for fragment in fragments:
                    pending.append(fragment.header)
                    pending.append(fragment.payload)

                    if fragment.box_type in flush_box_types:
                        chunk = b"".join(pending)
                        pending = []
                        yield chunk

            await session.finish()

        logger.debug(f"[{camera.name}] Recording completed")
