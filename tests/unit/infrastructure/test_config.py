"""Tests for media core settings."""

from camera_media.infrastructure.config import Settings


class TestSettings:
    """Test settings defaults and environment overrides."""

    def test_defaults(self):
        settings = Settings(_env_file=None)

        assert settings.video_processor == "ffmpeg"
        assert settings.processor.default_max_width == 1280
        assert settings.processor.default_max_height == 720
        assert settings.processor.crf == 23
        assert settings.streaming.flush_box_types == ["moov", "mdat"]
        assert settings.logfire.enabled is False

    def test_environment_overrides(self, monkeypatch):
        """Nested groups are configured with a double underscore delimiter."""
        monkeypatch.setenv("CAMERA_MEDIA_PROCESSOR__VIDEO_PROCESSOR", "/opt/ffmpeg/bin/ffmpeg")
        monkeypatch.setenv("CAMERA_MEDIA_PROCESSOR__TERMINATE_TIMEOUT", "2.5")
        monkeypatch.setenv("CAMERA_MEDIA_STREAMING__FLUSH_BOX_TYPES", '["moof", "mdat"]')

        settings = Settings(_env_file=None)

        assert settings.video_processor == "/opt/ffmpeg/bin/ffmpeg"
        assert settings.processor.terminate_timeout == 2.5
        assert settings.streaming.flush_box_types == ["moof", "mdat"]
