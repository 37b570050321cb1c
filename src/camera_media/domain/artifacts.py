"""Naming convention for stored media artifacts.

Artifacts live flat in a recordings directory:

- ``<Camera_Name>-<id>-<timestamp>_<trigger>_CUI.jpeg`` for snapshots
- ``<Camera_Name>-<id>-<timestamp>_<trigger>_CUI.mp4`` for clips
- ``<...>@2.jpeg`` for the preview thumbnail of a clip (or a placeholder image)
"""

import re
from pathlib import Path
from typing import Union

PathLike = Union[str, Path]

THUMBNAIL_SUFFIX = "@2"

_TRIGGER_SUFFIXES = {
    "motion": "_m",
    "doorbell": "_d",
}


def build_artifact_name(camera_name: str, artifact_id: str, timestamp: int, trigger: str) -> str:
    """Build the base file name (without extension) for a notification artifact."""
    suffix = _TRIGGER_SUFFIXES.get(trigger, "_c")
    camera = re.sub(r"\s+", "_", camera_name)
    return f"{camera}-{artifact_id}-{timestamp}{suffix}_CUI"


def artifact_extension(record_type: str) -> str:
    return "mp4" if record_type.lower() == "video" else "jpeg"


def snapshot_path(recording_path: PathLike, file_name: str, is_placeholder: bool = False) -> Path:
    return Path(recording_path) / f"{file_name}{THUMBNAIL_SUFFIX if is_placeholder else ''}.jpeg"


def video_path(recording_path: PathLike, file_name: str) -> Path:
    return Path(recording_path) / f"{file_name}.mp4"


def thumbnail_path(recording_path: PathLike, file_name: str) -> Path:
    return snapshot_path(recording_path, file_name, is_placeholder=True)
