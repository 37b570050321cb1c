"""Tests for Logfire spans and logging setup."""

import logging
from unittest.mock import MagicMock, Mock, patch

import pytest

from camera_media.domain.exceptions import EmptyOutputError
from camera_media.infrastructure.config import LogfireConfig, LoggingConfig, Settings
from camera_media.infrastructure.observability import (
    configure_logfire,
    configure_logging,
    traced,
)
from camera_media.infrastructure.observability.logfire_decorators import _safe_repr


class TestTracedDecorator:
    """Test the traced decorator."""

    @patch("camera_media.infrastructure.observability.logfire_decorators.logfire")
    @pytest.mark.asyncio
    async def test_traced_success(self, mock_logfire):
        mock_logfire.span.return_value = MagicMock()

        class Service:
            @traced(name="camera_media.test")
            async def run(self, camera, buffer):
                return len(buffer)

        result = await Service().run("Front Door", b"\x00" * 10)

        assert result == 10
        span_name = mock_logfire.span.call_args[0][0]
        attributes = mock_logfire.span.call_args[1]
        assert span_name == "camera_media.test"
        assert attributes["function"] == "run"
        assert attributes["args"] == "('Front Door', <10 bytes>)"

    @patch("camera_media.infrastructure.observability.logfire_decorators.logfire")
    @pytest.mark.asyncio
    async def test_traced_media_error(self, mock_logfire):
        mock_span = Mock()
        mock_logfire.span.return_value.__enter__ = Mock(return_value=mock_span)
        mock_logfire.span.return_value.__exit__ = Mock(return_value=None)

        @traced()
        async def snapshot():
            raise EmptyOutputError("FFmpeg snapshot output is empty!")

        with pytest.raises(EmptyOutputError):
            await snapshot()

        mock_span.set_attribute.assert_any_call("error", True)
        mock_span.set_attribute.assert_any_call("error_type", "EmptyOutputError")
        mock_span.set_attribute.assert_any_call("failure_kind", "empty_output")

    def test_traced_requires_coroutine(self):
        with pytest.raises(TypeError):

            @traced()
            def not_async():
                return None

    def test_safe_repr_truncates(self):
        assert len(_safe_repr("x" * 500)) <= 203


class TestConfigureLogfire:
    """Test Logfire configuration."""

    @patch("camera_media.infrastructure.observability.logfire_setup.logfire")
    def test_disabled(self, mock_logfire):
        assert configure_logfire(Settings(_env_file=None)) is False
        mock_logfire.configure.assert_not_called()

    @patch("camera_media.infrastructure.observability.logfire_setup.logfire")
    def test_enabled(self, mock_logfire):
        settings = Settings(
            _env_file=None,
            logfire=LogfireConfig(enabled=True, service_name="camera-media-test", environment="test"),
        )

        assert configure_logfire(settings) is True
        mock_logfire.configure.assert_called_once_with(
            service_name="camera-media-test",
            console=False,
            send_to_logfire="if-token-present",
            environment="test",
        )

    @patch("camera_media.infrastructure.observability.logfire_setup.logfire")
    def test_configure_error_is_reported(self, mock_logfire):
        mock_logfire.configure.side_effect = RuntimeError("bad token")
        settings = Settings(_env_file=None, logfire=LogfireConfig(enabled=True))

        assert configure_logfire(settings) is False


class TestConfigureLogging:
    """Test package logger setup."""

    def test_handler_added_once(self):
        settings = Settings(_env_file=None, logging=LoggingConfig(level="debug"))
        package_logger = logging.getLogger("camera_media")

        try:
            configure_logging(settings)
            configure_logging(settings)

            marked = [h for h in package_logger.handlers if getattr(h, "_camera_media", False)]
            assert len(marked) == 1
            assert package_logger.level == logging.DEBUG
        finally:
            for handler in list(package_logger.handlers):
                if getattr(handler, "_camera_media", False):
                    package_logger.removeHandler(handler)
            package_logger.setLevel(logging.NOTSET)
