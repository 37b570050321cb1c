"""Media processing built on the external video processor."""

from .buffered_writer import BufferedClipWriter, write_buffer
from .clip_recorder import ClipRecorder
from .command_builder import CommandBuilder, generate_input_source
from .fragment_parser import parse_fragmented_mp4
from .fragment_streamer import (
    LiveFragmentStreamer,
    PrebufferRegistry,
    ResolvedInput,
    StreamSession,
)
from .metadata_embedder import embed_metadata
from .process_runner import AsyncioProcessHandle, ProcessRunner, spawn_process
from .snapshot_capture import SnapshotCapture

__all__ = [
    "AsyncioProcessHandle",
    "BufferedClipWriter",
    "ClipRecorder",
    "CommandBuilder",
    "LiveFragmentStreamer",
    "PrebufferRegistry",
    "ProcessRunner",
    "ResolvedInput",
    "SnapshotCapture",
    "StreamSession",
    "embed_metadata",
    "generate_input_source",
    "parse_fragmented_mp4",
    "spawn_process",
    "write_buffer",
]
