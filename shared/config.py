"""
Configuration management.

Centralized environment variable management and validation.
"""

from typing import Literal
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from shared.errors import ConfigError


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,  # Allow case-insensitive env var matching
        extra="ignore"
    )

    # Generation service
    api_base_url: str = "http://localhost:3001"
    request_timeout_seconds: float = 30.0

    # Base URL used to turn relative media paths into absolute ones
    media_base_url: str = "http://localhost:3000"

    # Redis configuration (project snapshots, events)
    redis_url: str = "redis://localhost:6379"

    # Environment
    environment: Literal["development", "staging", "production"] = "development"

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # Image job polling (3s cadence, 5s after a transport error, 30 min budget)
    image_poll_interval: float = 3.0
    image_poll_error_interval: float = 5.0
    image_poll_max_attempts: int = 600

    # Interpolation (first/last frame) video backend polling
    interpolation_poll_interval: float = 10.0
    interpolation_poll_error_interval: float = 15.0
    interpolation_poll_max_attempts: int = 360

    # Scene-payload video backend polling
    scene_video_poll_interval: float = 5.0
    scene_video_poll_error_interval: float = 5.0
    scene_video_poll_max_attempts: int = 600

    video_backend: Literal["interpolation", "scene"] = "scene"
    scene_duration_seconds: int = 8
    aspect_ratio: str = "16:9"

    # Credits
    video_unit_cost: int = 5

    # Timeline
    intro_clip_url: str = "/video/intro_special.mov"
    intro_clip_title: str = "Intro"
    intro_clip_duration: float = 6.0
    default_clip_duration: float = 5.0
    audio_resync_threshold: float = 0.5
    default_music_volume: float = 0.5

    @field_validator("api_base_url", "media_base_url")
    @classmethod
    def validate_http_url(cls, v: str) -> str:
        """Validate service URL format."""
        if not v:
            raise ConfigError("Service URL is required")
        if not v.startswith(("http://", "https://")):
            raise ConfigError(f"Service URL must be a valid HTTP/HTTPS URL: {v}")
        return v.rstrip("/")

    @field_validator("redis_url")
    @classmethod
    def validate_redis_url(cls, v: str) -> str:
        """Validate Redis URL format."""
        if not v:
            raise ConfigError("REDIS_URL is required")
        if not v.startswith(("redis://", "rediss://")):
            raise ConfigError("REDIS_URL must start with redis:// or rediss://")
        return v

    @field_validator(
        "image_poll_max_attempts",
        "interpolation_poll_max_attempts",
        "scene_video_poll_max_attempts",
    )
    @classmethod
    def validate_attempt_budget(cls, v: int) -> int:
        """Every watch needs a bounded, positive attempt budget."""
        if v < 1:
            raise ConfigError("Poll attempt budget must be at least 1")
        return v

    @field_validator("intro_clip_duration", "default_clip_duration")
    @classmethod
    def validate_duration(cls, v: float) -> float:
        """Validate clip durations."""
        if v <= 0:
            raise ConfigError("Clip durations must be positive")
        return v

    @field_validator("default_music_volume")
    @classmethod
    def validate_volume(cls, v: float) -> float:
        """Validate music volume range."""
        if not 0.0 <= v <= 1.0:
            raise ConfigError("DEFAULT_MUSIC_VOLUME must be between 0 and 1")
        return v


# Singleton instance
try:
    settings = Settings()
except Exception as e:
    # Re-raise as ConfigError for consistency
    if isinstance(e, ConfigError):
        raise
    raise ConfigError(f"Failed to load configuration: {str(e)}") from e
