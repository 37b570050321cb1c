"""Logging and Logfire setup for the camera media core.

Modules log through the standard library (``logging.getLogger(__name__)``).
When Logfire is enabled those records are bridged into Logfire next to the
spans opened by :func:`~camera_media.infrastructure.observability.traced`.
"""

import logging
from typing import Any, Dict, Optional

import logfire

from camera_media.infrastructure.config import Settings, get_settings

logger = logging.getLogger(__name__)

_ROOT_LOGGER = "camera_media"


def configure_logging(settings: Optional[Settings] = None) -> logging.Logger:
    """Configure the package logger from settings.

    Args:
        settings: Settings to use (defaults to the cached settings)

    Returns:
        The configured package logger
    """
    settings = settings or get_settings()
    package_logger = logging.getLogger(_ROOT_LOGGER)
    package_logger.setLevel(settings.logging.level.upper())

    if not any(getattr(h, "_camera_media", False) for h in package_logger.handlers):
        handler: logging.Handler
        if settings.logfire.enabled:
            handler = logfire.LogfireLoggingHandler()
        else:
            handler = logging.StreamHandler()
            handler.setFormatter(logging.Formatter(settings.logging.format))
        handler._camera_media = True  # type: ignore[attr-defined]
        package_logger.addHandler(handler)

    return package_logger


def configure_logfire(
    settings: Optional[Settings] = None,
    additional_config: Optional[Dict[str, Any]] = None,
) -> bool:
    """Configure and initialize Logfire with application settings.

    Args:
        settings: Settings to use (defaults to the cached settings)
        additional_config: Additional configuration to merge with defaults

    Returns:
        True if Logfire was configured
    """
    settings = settings or get_settings()

    if not settings.logfire.enabled:
        logger.info("Logfire is disabled in configuration")
        return False

    config: Dict[str, Any] = {
        "service_name": settings.logfire.service_name,
        "console": None if settings.logfire.console_enabled else False,
        "send_to_logfire": settings.logfire.send_to_logfire,
    }
    if settings.logfire.environment:
        config["environment"] = settings.logfire.environment
    if settings.logfire.token:
        config["token"] = settings.logfire.token.get_secret_value()
    if additional_config:
        config.update(additional_config)

    try:
        logfire.configure(**config)
    except Exception as e:
        # Logfire problems are reported, never raised
        logger.error(f"Failed to configure Logfire: {e}")
        return False

    logger.info(f"Logfire configured for {settings.logfire.service_name}")
    return True
