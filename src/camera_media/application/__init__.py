"""Application layer for camera media."""
