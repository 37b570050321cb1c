"""Protocol definitions for the collaborators of the media core.

Protocols keep the orchestration code independent of how processes are
spawned and how prebuffered video is served.
"""

from typing import TYPE_CHECKING, AsyncIterator, Optional, Protocol, Sequence, Union, runtime_checkable

if TYPE_CHECKING:
    from camera_media.domain.models import PrebufferInput


@runtime_checkable
class Closable(Protocol):
    """Anything that can be closed synchronously, e.g. a socket or stream writer."""

    def close(self) -> None: ...


@runtime_checkable
class ByteStreamReader(Protocol):
    """Readable byte stream with exact reads (``asyncio.StreamReader``)."""

    async def readexactly(self, n: int) -> bytes: ...


class ProcessHandle(Protocol):
    """Capability set of one running video processor invocation."""

    @property
    def pid(self) -> Optional[int]: ...

    @property
    def returncode(self) -> Optional[int]: ...

    @property
    def output_stream(self) -> Optional[ByteStreamReader]:
        """Raw standard output, when it was captured."""
        ...

    async def write_input(self, data: bytes) -> None:
        """Write ``data`` to standard input and close it."""
        ...

    def read_output(self) -> AsyncIterator[bytes]:
        """Iterate over standard output chunks until end of stream."""
        ...

    def read_diagnostics(self) -> AsyncIterator[str]:
        """Iterate over standard error lines until end of stream."""
        ...

    async def wait(self) -> int:
        """Wait for termination and return the exit code."""
        ...

    def terminate(self) -> None: ...

    def kill(self) -> None: ...


class ProcessSpawner(Protocol):
    """Starts one video processor process."""

    async def __call__(
        self,
        executable: str,
        arguments: Sequence[str],
        *,
        pipe_input: bool = False,
        pipe_output: bool = False,
    ) -> ProcessHandle: ...


class PrebufferProvider(Protocol):
    """Serves recently buffered live video as a ready-made input source."""

    async def get_video(
        self, *, container: str, prebuffer: Optional[int]
    ) -> Union["PrebufferInput", Sequence[str]]:
        """Return input arguments, optionally bundled with a socket to close later."""
        ...
