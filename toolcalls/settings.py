"""Application settings using pydantic-settings.

Loads configuration from environment variables with .env file support.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Environment
    environment: Literal["development", "testing", "production"] = "development"
    debug: bool = False
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Level for the toolcalls loggers",
    )

    # Dispatch
    dispatch_mode: Literal["sequential", "concurrent"] = Field(
        default="sequential",
        description="Default dispatch mode when a caller does not pick one",
    )
    dispatch_max_workers: int | None = Field(
        default=None,
        ge=1,
        description="Worker pool bound for concurrent dispatch (None = one worker per call)",
    )
    tool_timeout_seconds: float | None = Field(
        default=None,
        gt=0,
        description="Per-handler timeout in seconds (None = wait indefinitely)",
    )

    # Streaming
    stream_chunk_size: int = Field(
        default=4096,
        ge=1,
        description="Read size used by the CLI when streaming a response file",
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Uses lru_cache to ensure settings are loaded once and reused.
    """
    return Settings()
