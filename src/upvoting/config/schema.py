"""Pydantic models for upvoting configuration."""

from __future__ import annotations

from pydantic import BaseModel, Field


class DatabaseConfig(BaseModel):
    """Database connection settings."""

    url: str = "sqlite+aiosqlite:///~/.local/share/upvoting/upvoting.db"
    pool_size: int = 5
    max_overflow: int = 10
    pool_timeout: int = 30
    pool_recycle: int = 3600


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = "INFO"
    file: str = ""


class RetrySettings(BaseModel):
    """Backoff for callers that re-issue operations after a conflict."""

    max_retries: int = Field(default=3, ge=0)
    base_delay: float = Field(default=0.05, ge=0.0)
    max_delay: float = Field(default=2.0, ge=0.0)
    jitter: bool = True


class UpvotingConfig(BaseModel):
    """Top-level configuration for upvoting."""

    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    retry: RetrySettings = Field(default_factory=RetrySettings)
