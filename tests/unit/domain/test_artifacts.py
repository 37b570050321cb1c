"""Tests for artifact naming."""

from pathlib import Path

from camera_media.domain.artifacts import (
    artifact_extension,
    build_artifact_name,
    snapshot_path,
    thumbnail_path,
    video_path,
)


class TestArtifactNames:
    """Test artifact name construction."""

    def test_trigger_suffixes(self):
        assert build_artifact_name("Front Door", "abc", 1700000000, "motion") == (
            "Front_Door-abc-1700000000_m_CUI"
        )
        assert build_artifact_name("Front Door", "abc", 1700000000, "doorbell").endswith("_d_CUI")
        assert build_artifact_name("Front Door", "abc", 1700000000, "custom").endswith("_c_CUI")

    def test_whitespace_runs_collapse(self):
        assert build_artifact_name("Back  Yard\tCam", "1", 2, "motion").startswith("Back_Yard_Cam-")

    def test_extensions(self):
        assert artifact_extension("Video") == "mp4"
        assert artifact_extension("Snapshot") == "jpeg"

    def test_paths(self):
        base = Path("/recordings")

        assert snapshot_path(base, "cam-1") == base / "cam-1.jpeg"
        assert snapshot_path(base, "cam-1", is_placeholder=True) == base / "cam-1@2.jpeg"
        assert video_path("/recordings", "cam-1") == base / "cam-1.mp4"
        assert thumbnail_path(base, "cam-1") == base / "cam-1@2.jpeg"
