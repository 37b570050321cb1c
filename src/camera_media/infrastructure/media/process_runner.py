"""Video processor process management.

One :class:`ProcessRunner` invocation spawns exactly one process, wires its
pipes, collects stderr line by line and resolves a single
:data:`~camera_media.domain.outcome.ProcessOutcome` from its termination.
"""

import asyncio
import logging
import os
import shlex
import signal
import subprocess
from typing import AsyncIterator, List, Optional, Sequence

from camera_media.domain.exceptions import (
    EmptyOutputError,
    MediaError,
    ProcessExitError,
    ProcessSpawnError,
)
from camera_media.domain.outcome import Failure, OutcomeFuture, ProcessOutcome, Success
from camera_media.domain.protocols import ProcessHandle, ProcessSpawner
from camera_media.infrastructure.config import ProcessorConfig

logger = logging.getLogger(__name__)


class AsyncioProcessHandle:
    """:class:`ProcessHandle` backed by ``asyncio.subprocess.Process``."""

    def __init__(self, process: asyncio.subprocess.Process, chunk_size: int = 65536):
        self._process = process
        self.chunk_size = chunk_size

    @property
    def pid(self) -> Optional[int]:
        return self._process.pid

    @property
    def returncode(self) -> Optional[int]:
        return self._process.returncode

    @property
    def output_stream(self) -> Optional[asyncio.StreamReader]:
        return self._process.stdout

    async def write_input(self, data: bytes) -> None:
        stdin = self._process.stdin
        if stdin is None:
            raise RuntimeError("Process was started without an input pipe")

        try:
            stdin.write(data)
            await stdin.drain()
        except (BrokenPipeError, ConnectionResetError):
            # The processor may stop reading once it has what it needs
            logger.debug(f"Process {self.pid} closed its input early")
        finally:
            stdin.close()

    async def read_output(self) -> AsyncIterator[bytes]:
        if self._process.stdout is None:
            return

        while True:
            chunk = await self._process.stdout.read(self.chunk_size)
            if not chunk:
                break
            yield chunk

    async def read_diagnostics(self) -> AsyncIterator[str]:
        if self._process.stderr is None:
            return

        async for raw_line in self._process.stderr:
            line = raw_line.decode(errors="replace").strip("\r\n")
            if line:
                yield line

    async def wait(self) -> int:
        return await self._process.wait()

    def terminate(self) -> None:
        if self._process.returncode is None:
            try:
                self._process.terminate()
            except ProcessLookupError:
                pass

    def kill(self) -> None:
        if self._process.returncode is None:
            try:
                self._process.kill()
            except ProcessLookupError:
                pass


async def spawn_process(
    executable: str,
    arguments: Sequence[str],
    *,
    pipe_input: bool = False,
    pipe_output: bool = False,
    limit: int = 1024 * 1024,
) -> AsyncioProcessHandle:
    """Start the video processor.

    Raises:
        ProcessSpawnError: If the executable cannot be launched
    """
    try:
        process = await asyncio.create_subprocess_exec(
            executable,
            *arguments,
            stdin=subprocess.PIPE if pipe_input else subprocess.DEVNULL,
            stdout=subprocess.PIPE if pipe_output else subprocess.DEVNULL,
            stderr=subprocess.PIPE,
            env=os.environ.copy(),
            limit=limit,
        )
    except OSError as e:
        raise ProcessSpawnError(f"Failed to start {executable}: {e}") from e

    return AsyncioProcessHandle(process)


def describe_exit(returncode: int) -> str:
    """Human readable exit reason (``code 1`` or ``SIGKILL``)."""
    if returncode < 0:
        try:
            return signal.Signals(-returncode).name
        except ValueError:
            return f"signal {-returncode}"
    return f"code {returncode}"


class ProcessRunner:
    """Runs short-lived video processor invocations."""

    def __init__(
        self,
        config: Optional[ProcessorConfig] = None,
        spawner: Optional[ProcessSpawner] = None,
    ):
        """Initialize the runner.

        Args:
            config: Processor configuration (executable, pipe limits)
            spawner: Process factory, defaults to :func:`spawn_process`
        """
        self.config = config or ProcessorConfig()
        self._spawner = spawner

    @property
    def video_processor(self) -> str:
        return self.config.video_processor

    async def spawn(
        self, arguments: Sequence[str], *, pipe_input: bool = False, pipe_output: bool = False
    ) -> ProcessHandle:
        if self._spawner is not None:
            return await self._spawner(
                self.video_processor, arguments, pipe_input=pipe_input, pipe_output=pipe_output
            )
        return await spawn_process(
            self.video_processor,
            arguments,
            pipe_input=pipe_input,
            pipe_output=pipe_output,
            limit=self.config.stream_limit,
        )

    async def run(
        self,
        arguments: Sequence[str],
        *,
        operation: str,
        camera: Optional[str] = None,
        input_data: Optional[bytes] = None,
        capture_output: bool = False,
        expect_output: bool = False,
    ) -> ProcessOutcome:
        """Run one invocation to completion.

        Args:
            arguments: Video processor arguments (without the executable)
            operation: Operation name used in diagnostics, e.g. ``snapshot``
            camera: Camera name for log context
            input_data: Payload written to stdin, which is closed afterwards
            capture_output: Collect stdout and return it on success
            expect_output: Treat an empty stdout as a failure

        Returns:
            ``Success(bytes | None)`` or ``Failure(MediaError)``
        """
        outcome = OutcomeFuture()
        diagnostics: List[str] = []
        output = bytearray()
        capture_output = capture_output or expect_output

        logger.debug(
            f"[{camera}] {operation} command: {self.video_processor} {shlex.join(arguments)}"
        )

        try:
            handle = await self.spawn(
                arguments, pipe_input=input_data is not None, pipe_output=capture_output
            )
        except ProcessSpawnError as e:
            e.camera = camera
            logger.error(f"[{camera}] {e.message}")
            outcome.resolve(Failure(e))
            return await outcome.wait()

        async def collect_diagnostics() -> None:
            async for line in handle.read_diagnostics():
                diagnostics.append(line)

        async def collect_output() -> None:
            async for chunk in handle.read_output():
                output.extend(chunk)

        tasks = [collect_diagnostics()]
        if capture_output:
            tasks.append(collect_output())
        if input_data is not None:
            tasks.append(handle.write_input(input_data))

        try:
            await asyncio.gather(*tasks)
            returncode = await handle.wait()
        except Exception as e:
            handle.kill()
            try:
                await asyncio.wait_for(handle.wait(), self.config.terminate_timeout)
            except asyncio.TimeoutError:
                logger.warning(f"[{camera}] FFmpeg {operation} process did not exit after kill")
            outcome.resolve(
                Failure(
                    ProcessExitError(
                        f"FFmpeg {operation} process failed! ({e})",
                        diagnostics=diagnostics,
                        camera=camera,
                    )
                )
            )
            return await outcome.wait()

        outcome.resolve(
            self._resolve_exit(
                returncode,
                operation=operation,
                camera=camera,
                diagnostics=diagnostics,
                output=bytes(output) if capture_output else None,
                expect_output=expect_output,
            )
        )
        return await outcome.wait()

    @staticmethod
    def _resolve_exit(
        returncode: int,
        *,
        operation: str,
        camera: Optional[str],
        diagnostics: List[str],
        output: Optional[bytes],
        expect_output: bool,
    ) -> ProcessOutcome:
        error: Optional[MediaError] = None

        if returncode != 0:
            error = ProcessExitError(
                f"FFmpeg {operation} process exited with error! ({describe_exit(returncode)})",
                returncode=returncode,
                diagnostics=diagnostics,
                camera=camera,
            )
        elif expect_output and not output:
            error = EmptyOutputError(
                f"FFmpeg {operation} output is empty!",
                diagnostics=diagnostics,
                camera=camera,
            )

        if error is not None:
            logger.error(f"[{camera}] {error.diagnostic_text}")
            return Failure(error)

        logger.debug(f"[{camera}] FFmpeg {operation} process exited (expected)")
        return Success(output)
