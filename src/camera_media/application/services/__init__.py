"""Application services for camera media workflows."""

from .media_service import MediaService

__all__ = ["MediaService"]
