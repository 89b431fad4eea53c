"""
Configuration management.

Centralized environment variable management and validation.
"""

from pathlib import Path
from typing import List, Literal, Optional
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

    # Environment
    environment: Literal["development", "staging", "production"] = "development"

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_file: Optional[str] = None  # Rotating file log, console only when unset

    # HTTP server
    host: str = "0.0.0.0"
    port: int = 5000
    # Comma-separated list of allowed origins; "*" allows any origin
    cors_origins: str = "*"

    # Working directories (created at startup)
    upload_dir: Path = Path("uploads")
    temp_dir: Path = Path("temp")
    output_dir: Path = Path("outputs")

    # External tools
    ffmpeg_path: str = "ffmpeg"
    ffprobe_path: str = "ffprobe"
    ffmpeg_timeout: int = 600  # Per invocation, seconds

    # Admission control
    max_concurrent_jobs: int = 2
    max_media_items: int = 50

    @field_validator("ffmpeg_timeout")
    @classmethod
    def validate_ffmpeg_timeout(cls, v: int) -> int:
        """Validate ffmpeg timeout is positive."""
        if v <= 0:
            raise ConfigError("FFMPEG_TIMEOUT must be a positive number of seconds")
        return v

    @field_validator("max_concurrent_jobs")
    @classmethod
    def validate_max_concurrent_jobs(cls, v: int) -> int:
        """Validate at least one job slot exists."""
        if v < 1:
            raise ConfigError("MAX_CONCURRENT_JOBS must be at least 1")
        return v

    @field_validator("max_media_items")
    @classmethod
    def validate_max_media_items(cls, v: int) -> int:
        """Validate media item limit."""
        if v < 1:
            raise ConfigError("MAX_MEDIA_ITEMS must be at least 1")
        return v

    @field_validator("ffmpeg_path", "ffprobe_path")
    @classmethod
    def validate_tool_path(cls, v: str) -> str:
        """Validate tool paths are not blank."""
        if not v or not v.strip():
            raise ConfigError("FFMPEG_PATH and FFPROBE_PATH must not be empty")
        return v.strip()

    @property
    def cors_origin_list(self) -> List[str]:
        """
        Allowed CORS origins as a list.

        "*" (the default) is returned as ["*"]; otherwise the comma-separated
        value is split and blank entries are dropped.
        """
        origins = [o.strip() for o in self.cors_origins.split(",")]
        return [o for o in origins if o] or ["*"]

    def ensure_directories(self) -> None:
        """Create the upload, temp and output directories if absent."""
        for directory in (self.upload_dir, self.temp_dir, self.output_dir):
            directory.mkdir(parents=True, exist_ok=True)


# Singleton instance
try:
    settings = Settings()
except Exception as e:
    # Re-raise as ConfigError for consistency
    if isinstance(e, ConfigError):
        raise
    raise ConfigError(f"Failed to load configuration: {str(e)}") from e
