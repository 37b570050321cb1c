"""Camera media acquisition and live streaming."""

from camera_media.application.services import MediaService
from camera_media.domain import (
    Camera,
    Failure,
    MediaError,
    OperationKind,
    OperationRequest,
    Success,
    VideoConfig,
)

__version__ = "0.1.0"

__all__ = [
    "Camera",
    "Failure",
    "MediaError",
    "MediaService",
    "OperationKind",
    "OperationRequest",
    "Success",
    "VideoConfig",
]
