"""Configuration settings for the camera media core.

This module provides centralized configuration management using Pydantic Settings,
with logical grouping of related settings. Per-camera video settings are not
part of it: they arrive with every request as a ``VideoConfig``.
"""

from functools import lru_cache
from typing import Literal, Optional

from pydantic import BaseModel, Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class ProcessorConfig(BaseModel):
    """Video processor (ffmpeg) configuration."""

    video_processor: str = Field(default="ffmpeg", description="Video processor executable")
    default_max_width: int = Field(default=1280, description="Output width when unset")
    default_max_height: int = Field(default=720, description="Output height when unset")
    default_vcodec: str = Field(default="libx264", description="Recording codec when unset")
    crf: int = Field(default=23, description="Constant rate factor for recordings")
    thumbnail_offset: str = Field(
        default="00:00:03.500", description="Seek offset for clip thumbnails"
    )
    terminate_timeout: float = Field(
        default=5.0, description="Seconds to wait after terminate before killing"
    )
    stream_limit: int = Field(
        default=1024 * 1024, description="Pipe reader buffer limit in bytes"
    )
    timeout_option: str = Field(
        default="-stimeout",
        description="Socket timeout input option (ffmpeg 5 and later use -timeout)",
    )
    diagnostic_lines: int = Field(
        default=200, ge=1, description="Diagnostic lines kept per stream session"
    )


class StreamingConfig(BaseModel):
    """Live fragment streaming configuration."""

    container: str = Field(default="mp4", description="Container requested from prebuffers")
    movflags: str = Field(
        default="frag_keyframe+empty_moov+default_base_moof",
        description="Fragmented MP4 muxer flags",
    )
    flush_box_types: list[str] = Field(
        default=["moov", "mdat"],
        description="Box types that close a deliverable fragment",
    )


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(default="INFO", description="Application log level")
    format: str = Field(
        default="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        description="Log record format",
    )


class LogfireConfig(BaseModel):
    """Logfire observability configuration."""

    enabled: bool = Field(default=False, description="Enable Logfire observability")
    service_name: str = Field(default="camera-media", description="Service name for Logfire")
    environment: Optional[str] = Field(default=None, description="Logfire environment")
    token: Optional[SecretStr] = Field(
        default=None, description="Logfire write token (optional for local development)"
    )
    console_enabled: bool = Field(default=False, description="Enable Logfire console output")
    send_to_logfire: Literal["if-token-present", True, False] = Field(
        default="if-token-present", description="Export policy"
    )


class Settings(BaseSettings):
    """Media core settings with logical grouping."""

    model_config = SettingsConfigDict(
        env_prefix="CAMERA_MEDIA_",
        env_nested_delimiter="__",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    processor: ProcessorConfig = Field(default_factory=ProcessorConfig)
    streaming: StreamingConfig = Field(default_factory=StreamingConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    logfire: LogfireConfig = Field(default_factory=LogfireConfig)

    @property
    def video_processor(self) -> str:
        return self.processor.video_processor


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Returns:
        Settings: Media core settings
    """
    return Settings()
