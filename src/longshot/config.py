"""Environment-based configuration for LongShot."""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from LONGSHOT_* environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="LONGSHOT_",
        case_sensitive=False,
    )

    # Server
    host: str = "0.0.0.0"  # noqa: S104
    port: int = 8083
    log_level: str = "INFO"

    # Authentication (None = disabled)
    api_key: str | None = None

    # Concurrency
    max_concurrent: int = Field(default=2, ge=1)
    region_workers: int = Field(default=1, ge=1)

    # Input limits
    max_image_pixels: int = Field(default=40_000_000, ge=1)
    max_file_size: int = Field(default=104_857_600, ge=1)

    # Slicing defaults
    default_sensitivity: int = Field(default=50, ge=0, le=100)
    default_sharpen: bool = True
    default_margin: float = Field(default=0, ge=0)
    default_max_height: int = Field(default=1200, ge=1)
    default_overlap: int = Field(default=0, ge=0)


def get_settings() -> Settings:
    """Create and return application settings."""
    return Settings()
