"""Camera and media domain models."""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from camera_media.domain.protocols import Closable


class VideoConfig(BaseModel):
    """Per-camera video settings supplied by the caller for one operation.

    Accepts both the snake_case field names and the camelCase keys used by
    camera configuration files (``maxWidth``, ``videoFilter``, ``mapvideo``...).
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    source: str = Field(default="", description="Input arguments, e.g. '-i rtsp://...'")
    max_width: Optional[int] = Field(default=None, alias="maxWidth", gt=0)
    max_height: Optional[int] = Field(default=None, alias="maxHeight", gt=0)
    vcodec: Optional[str] = Field(default=None, description="Video codec for recordings")
    video_filter: Optional[str] = Field(default=None, alias="videoFilter")
    map_video: Optional[str] = Field(default=None, alias="mapvideo")
    map_audio: Optional[str] = Field(default=None, alias="mapaudio")
    debug: bool = Field(default=False, description="Log video processor output")

    # Input tuning
    stimeout: Optional[int] = Field(default=None, ge=0, description="Socket timeout in seconds")
    analyzeduration: Optional[int] = Field(default=None, ge=0)
    probesize: Optional[int] = Field(default=None, ge=0)
    read_rate: bool = Field(default=False, alias="readRate")


class Camera(BaseModel):
    """Camera descriptor handed in by the caller."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    name: str
    video_config: VideoConfig = Field(default_factory=VideoConfig, alias="videoConfig")
    prebuffering: bool = Field(default=False)
    prebuffer_length: int = Field(default=4000, alias="prebufferLength", ge=0)


class OperationKind(str, Enum):
    """Media operations the core can perform."""

    SNAPSHOT_FROM_SOURCE = "snapshot-from-source"
    SNAPSHOT_FROM_BUFFER = "snapshot-from-buffer"
    SNAPSHOT_FROM_CLIP = "snapshot-from-clip"
    CLIP_RECORD = "clip-record"
    CLIP_FROM_BUFFER = "clip-from-buffer"
    LIVE_FRAGMENT_STREAM = "live-fragment-stream"


@dataclass(frozen=True)
class OperationRequest:
    """One media request as issued by the API layer."""

    camera: Camera
    kind: OperationKind
    recording_path: Optional[Path] = None
    file_name: Optional[str] = None
    duration: Optional[int] = None  # seconds, clip recordings only
    label: str = "no label"
    store: bool = False
    buffer: Optional[Union[bytes, str]] = None
    is_placeholder: bool = False
    extern_recording: bool = False


@dataclass(frozen=True)
class ContainerFragment:
    """One box of a fragmented MP4 stream."""

    header: bytes
    box_type: str
    payload: bytes

    @property
    def size(self) -> int:
        return len(self.header) + len(self.payload)


@dataclass
class PrebufferInput:
    """Ready-made input handed out by a prebuffer provider."""

    arguments: list[str] = field(default_factory=list)
    socket: Optional[Closable] = None
