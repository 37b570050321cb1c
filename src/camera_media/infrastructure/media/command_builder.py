"""Video processor argument construction.

Translates a camera's ``VideoConfig`` into the ordered argument list for one
operation kind. Nothing here spawns a process or touches the filesystem; the
executable itself is prepended by the process runner.
"""

import shlex
from pathlib import Path
from typing import Any, List, Optional, Sequence, Union

from camera_media.domain.models import OperationKind, VideoConfig
from camera_media.infrastructure.config import ProcessorConfig, StreamingConfig

PathLike = Union[str, Path]

# "-" reads stdin as an input and writes stdout as an output
STDIO = "-"
STDOUT = "pipe:1"


def generate_input_source(
    video_config: VideoConfig, timeout_option: str = "-stimeout"
) -> List[str]:
    """Derive the input arguments of a live camera source.

    The configured ``source`` holds the raw input arguments
    (e.g. ``-rtsp_transport tcp -i rtsp://...``). Stream analysis and timeout options
    are prepended unless the source already sets them.

    ffmpeg 5 removed the RTSP ``-stimeout`` option in favour of ``-timeout``;
    pass ``timeout_option="-timeout"`` for those builds.

    Raises:
        ValueError: If the camera has no source configured
    """
    arguments = shlex.split(video_config.source or "")
    if not arguments:
        raise ValueError("Video config has no source")

    prefix: List[str] = []

    if video_config.analyzeduration is not None and "-analyzeduration" not in arguments:
        prefix.extend(["-analyzeduration", str(video_config.analyzeduration)])

    if video_config.probesize is not None and "-probesize" not in arguments:
        prefix.extend(["-probesize", str(video_config.probesize)])

    if video_config.stimeout and timeout_option not in arguments:
        prefix.extend([timeout_option, str(video_config.stimeout * 1_000_000)])  # microseconds

    if video_config.read_rate and "-re" not in arguments:
        prefix.append("-re")

    return prefix + arguments


class CommandBuilder:
    """Builds video processor arguments for every media operation."""

    def __init__(
        self,
        config: Optional[ProcessorConfig] = None,
        streaming: Optional[StreamingConfig] = None,
    ):
        self.config = config or ProcessorConfig()
        self.streaming = streaming or StreamingConfig()

    def input_source(self, video_config: VideoConfig) -> List[str]:
        return generate_input_source(video_config, self.config.timeout_option)

    @staticmethod
    def base_arguments() -> List[str]:
        """Silence the banner and only report errors."""
        return ["-hide_banner", "-loglevel", "error"]

    def scale(self, video_config: VideoConfig) -> str:
        width = video_config.max_width or self.config.default_max_width
        height = video_config.max_height or self.config.default_max_height
        return f"{width}x{height}"

    def snapshot_from_buffer(self, video_config: VideoConfig, destination: PathLike) -> List[str]:
        """Re-mux a packaged video buffer read from stdin into a still image."""
        return [
            *self.base_arguments(),
            "-an",
            "-sn",
            "-dn",
            "-y",
            "-re",
            "-i",
            STDIO,
            "-s",
            self.scale(video_config),
            "-f",
            "image2",
            "-update",
            "1",
            str(destination),
        ]

    def snapshot_from_source(
        self, video_config: VideoConfig, destination: Optional[PathLike] = None
    ) -> List[str]:
        """Grab a still image from the live source.

        Two frames at 1 fps are requested so the second one can serve as the
        higher fidelity image. Without a destination the image goes to stdout.
        """
        args = [
            *self.base_arguments(),
            "-y",
            *self.input_source(video_config),
            "-s",
            self.scale(video_config),
            "-frames:v",
            "2",
            "-r",
            "1",
            "-update",
            "1",
            "-f",
            "image2",
        ]

        if video_config.video_filter:
            args.extend(["-filter:v", video_config.video_filter])

        args.append(str(destination) if destination is not None else STDIO)
        return args

    def snapshot_from_clip(self, clip_path: PathLike, destination: PathLike) -> List[str]:
        """Extract one preview frame from a recorded clip."""
        return [
            *self.base_arguments(),
            "-y",
            "-ss",
            self.config.thumbnail_offset,
            "-i",
            str(clip_path),
            "-frames:v",
            "1",
            str(destination),
        ]

    def clip_record(
        self, video_config: VideoConfig, duration: int, destination: PathLike
    ) -> List[str]:
        """Record ``duration`` seconds of the live source into an MP4 file."""
        args = [
            *self.base_arguments(),
            "-nostdin",
            "-y",
            *self.input_source(video_config),
            "-t",
            str(duration),
            "-strict",
            "experimental",
            "-threads",
            "0",
            "-s",
            self.scale(video_config),
            "-vcodec",
            video_config.vcodec or self.config.default_vcodec,
            "-pix_fmt",
            "yuv420p",
            "-movflags",
            "+faststart",
            "-crf",
            str(self.config.crf),
        ]

        if video_config.map_video:
            args.extend(["-map", video_config.map_video])

        if video_config.video_filter:
            args.extend(["-filter:v", video_config.video_filter])

        if video_config.map_audio:
            args.extend(["-map", video_config.map_audio])

        args.append(str(destination))
        return args

    def fragment_stream(
        self,
        input_arguments: Sequence[str],
        audio_arguments: Optional[Sequence[str]] = None,
        video_arguments: Optional[Sequence[str]] = None,
    ) -> List[str]:
        """Stream-copy the resolved input as fragmented MP4 on stdout."""
        return [
            *self.base_arguments(),
            *input_arguments,
            *(audio_arguments if audio_arguments is not None else ["-acodec", "copy"]),
            *(video_arguments if video_arguments is not None else ["-vcodec", "copy"]),
            "-f",
            self.streaming.container,
            "-movflags",
            self.streaming.movflags,
            STDOUT,
        ]

    def build(self, kind: OperationKind, video_config: VideoConfig, **options: Any) -> List[str]:
        """Build the arguments for ``kind``.

        Args:
            kind: Operation to build arguments for
            video_config: Camera video settings
            **options: ``destination``, ``clip_path``, ``duration`` or
                ``input_arguments`` depending on the kind

        Raises:
            ValueError: For kinds that never spawn a process
        """
        if kind == OperationKind.SNAPSHOT_FROM_SOURCE:
            return self.snapshot_from_source(video_config, options.get("destination"))
        elif kind == OperationKind.SNAPSHOT_FROM_BUFFER:
            return self.snapshot_from_buffer(video_config, options["destination"])
        elif kind == OperationKind.SNAPSHOT_FROM_CLIP:
            return self.snapshot_from_clip(options["clip_path"], options["destination"])
        elif kind == OperationKind.CLIP_RECORD:
            return self.clip_record(video_config, options["duration"], options["destination"])
        elif kind == OperationKind.LIVE_FRAGMENT_STREAM:
            input_arguments = options.get("input_arguments")
            if input_arguments is None:
                input_arguments = self.input_source(video_config)
            return self.fragment_stream(input_arguments)

        raise ValueError(f"Operation {kind.value} does not use the video processor")
