"""Media-specific exceptions.

Every failure the media core can report derives from :class:`MediaError`.
Each error carries a :class:`FailureKind` so callers can branch on the kind
without caring about the concrete class, plus the diagnostic lines captured
from the video processor (when there is one).

Fatal kinds propagate to the caller. ``METADATA`` and
``PREBUFFER_UNAVAILABLE`` are absorbed where they happen and only logged.
"""

from enum import Enum
from typing import Optional, Sequence


class FailureKind(str, Enum):
    """Categories of media failures."""

    SPAWN = "spawn"  # video processor could not be launched
    EXIT = "exit"  # process terminated with an error code or signal
    EMPTY_OUTPUT = "empty_output"  # clean exit but nothing was produced
    WRITE = "write"  # destination stream failed
    FRAGMENT_PARSE = "fragment_parse"  # malformed fragmented MP4 stream
    METADATA = "metadata"  # EXIF embedding failed (non-fatal)
    PREBUFFER_UNAVAILABLE = "prebuffer_unavailable"  # non-fatal, falls back

    @property
    def is_fatal(self) -> bool:
        return self not in (FailureKind.METADATA, FailureKind.PREBUFFER_UNAVAILABLE)


class MediaError(Exception):
    """Base exception for all media operation errors."""

    kind: FailureKind = FailureKind.EXIT

    def __init__(
        self,
        message: str,
        *,
        diagnostics: Optional[Sequence[str]] = None,
        camera: Optional[str] = None,
    ):
        """Initialize media error.

        Args:
            message: Human-readable error message
            diagnostics: Diagnostic lines captured from the video processor
            camera: Name of the camera the operation ran for
        """
        super().__init__(message)
        self.message = message
        self.diagnostics = list(diagnostics or [])
        self.camera = camera

    @property
    def diagnostic_text(self) -> str:
        """Message followed by every diagnostic line, in receipt order."""
        return " - ".join([self.message, *self.diagnostics])

    def __str__(self) -> str:
        return self.diagnostic_text

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(message={self.message!r}, "
            f"kind={self.kind.value!r}, camera={self.camera!r})"
        )


class ProcessSpawnError(MediaError):
    """The video processor executable could not be started."""

    kind = FailureKind.SPAWN


class ProcessExitError(MediaError):
    """The video processor exited with a failure code or signal."""

    kind = FailureKind.EXIT

    def __init__(self, message: str, *, returncode: Optional[int] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.returncode = returncode


class EmptyOutputError(MediaError):
    """The process exited cleanly but produced no output."""

    kind = FailureKind.EMPTY_OUTPUT


class WriteError(MediaError):
    """Writing to the destination stream failed."""

    kind = FailureKind.WRITE


class FragmentParseError(MediaError):
    """The fragmented MP4 stream could not be parsed."""

    kind = FailureKind.FRAGMENT_PARSE


class MetadataEmbedError(MediaError):
    """Embedding metadata into a stored image failed."""

    kind = FailureKind.METADATA


class PrebufferUnavailableError(MediaError):
    """The prebuffer provider could not supply an input source."""

    kind = FailureKind.PREBUFFER_UNAVAILABLE
