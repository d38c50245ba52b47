"""Core types, errors, and shared utilities."""

from upvoting.core.errors import (
    AlreadyVotedError,
    ConfigError,
    ConflictError,
    DuplicateRecordError,
    LedgerError,
    NotAuthorizedError,
    NotVotedError,
    RecordNotFoundError,
    StorageError,
    StorageUnavailableError,
    UpvotingError,
)
from upvoting.core.retry import RetryConfig, is_retryable, retry_with_backoff

__all__ = [
    "AlreadyVotedError",
    "ConfigError",
    "ConflictError",
    "DuplicateRecordError",
    "LedgerError",
    "NotAuthorizedError",
    "NotVotedError",
    "RecordNotFoundError",
    "RetryConfig",
    "StorageError",
    "StorageUnavailableError",
    "UpvotingError",
    "is_retryable",
    "retry_with_backoff",
]
