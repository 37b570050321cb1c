"""Domain layer: camera models, outcomes, errors and collaborator protocols."""

from camera_media.domain.exceptions import (
    EmptyOutputError,
    FailureKind,
    FragmentParseError,
    MediaError,
    MetadataEmbedError,
    PrebufferUnavailableError,
    ProcessExitError,
    ProcessSpawnError,
    WriteError,
)
from camera_media.domain.models import (
    Camera,
    ContainerFragment,
    OperationKind,
    OperationRequest,
    PrebufferInput,
    VideoConfig,
)
from camera_media.domain.outcome import Failure, OutcomeFuture, ProcessOutcome, Success

__all__ = [
    # Models
    "Camera",
    "VideoConfig",
    "OperationKind",
    "OperationRequest",
    "ContainerFragment",
    "PrebufferInput",
    # Outcomes
    "Success",
    "Failure",
    "ProcessOutcome",
    "OutcomeFuture",
    # Errors
    "FailureKind",
    "MediaError",
    "ProcessSpawnError",
    "ProcessExitError",
    "EmptyOutputError",
    "WriteError",
    "FragmentParseError",
    "MetadataEmbedError",
    "PrebufferUnavailableError",
]
