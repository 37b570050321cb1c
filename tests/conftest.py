"""Pytest configuration and fixtures."""

import asyncio
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

import logfire
import pytest

from camera_media.domain.models import Camera, VideoConfig
from camera_media.infrastructure.config import ProcessorConfig
from camera_media.infrastructure.media.process_runner import ProcessRunner


@pytest.fixture(scope="session", autouse=True)
def quiet_logfire():
    """Keep spans local during tests."""
    logfire.configure(send_to_logfire=False, console=False)


class FakeProcessHandle:
    """In-memory stand-in for a running video processor.

    A finished handle has its output fed and closed and its exit code set.
    A running handle keeps its output open until ``terminate``/``kill``
    or :meth:`finish` is called.
    """

    def __init__(
        self,
        *,
        returncode: int = 0,
        stdout: bytes = b"",
        diagnostics: Sequence[str] = (),
        running: bool = False,
        pid: int = 4242,
    ):
        self.pid = pid
        self.returncode: Optional[int] = None
        self.diagnostics = list(diagnostics)
        self.written = bytearray()
        self.input_closed = False
        self.terminate_calls = 0
        self.kill_calls = 0
        self.wait_calls = 0

        self._exited = asyncio.Event()
        self.output_stream = asyncio.StreamReader()
        if stdout:
            self.output_stream.feed_data(stdout)

        if not running:
            self.finish(returncode)

    def feed(self, data: bytes) -> None:
        self.output_stream.feed_data(data)

    def finish(self, returncode: int = 0) -> None:
        self.output_stream.feed_eof()
        if self.returncode is None:
            self.returncode = returncode
            self._exited.set()

    async def write_input(self, data: bytes) -> None:
        self.written.extend(data)
        self.input_closed = True

    async def read_output(self):
        while True:
            chunk = await self.output_stream.read(65536)
            if not chunk:
                break
            yield chunk

    async def read_diagnostics(self):
        for line in self.diagnostics:
            yield line

    async def wait(self) -> int:
        self.wait_calls += 1
        await self._exited.wait()
        return self.returncode

    def terminate(self) -> None:
        self.terminate_calls += 1
        self.finish(-15)

    def kill(self) -> None:
        self.kill_calls += 1
        self.finish(-9)


@dataclass
class SpawnCall:
    executable: str
    arguments: List[str]
    pipe_input: bool
    pipe_output: bool


@dataclass
class FakeSpawner:
    """Hands out prepared handles (or raises prepared errors) in order."""

    results: list = field(default_factory=list)
    calls: List[SpawnCall] = field(default_factory=list)

    async def __call__(self, executable, arguments, *, pipe_input=False, pipe_output=False):
        self.calls.append(SpawnCall(executable, list(arguments), pipe_input, pipe_output))
        result = self.results.pop(0)
        if isinstance(result, Exception):
            raise result
        return result


class FakeSocket:
    """Counts close calls."""

    def __init__(self):
        self.close_calls = 0

    def close(self) -> None:
        self.close_calls += 1


@pytest.fixture
def video_config():
    return VideoConfig(source="-rtsp_transport tcp -i rtsp://10.0.0.5/live")


@pytest.fixture
def camera(video_config):
    return Camera(name="Front Door", video_config=video_config)


@pytest.fixture
def spawner():
    return FakeSpawner()


@pytest.fixture
def runner(spawner):
    return ProcessRunner(ProcessorConfig(terminate_timeout=0.5), spawner=spawner)


@pytest.fixture
def make_process():
    """Factory for :class:`FakeProcessHandle` (call inside the running loop)."""
    return FakeProcessHandle


@pytest.fixture
def make_socket():
    return FakeSocket
