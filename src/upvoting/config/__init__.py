"""Configuration loading and validation."""

from upvoting.config.loader import load_config
from upvoting.config.schema import (
    DatabaseConfig,
    LoggingConfig,
    RetrySettings,
    UpvotingConfig,
)

__all__ = [
    "DatabaseConfig",
    "LoggingConfig",
    "RetrySettings",
    "UpvotingConfig",
    "load_config",
]
