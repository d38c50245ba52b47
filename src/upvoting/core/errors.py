"""Exception hierarchy for upvoting.

Every module imports from here. The hierarchy is:

    UpvotingError
    ├── LedgerError(item)
    │   ├── RecordNotFoundError
    │   ├── DuplicateRecordError
    │   ├── NotAuthorizedError(user)
    │   ├── AlreadyVotedError(user, direction)
    │   └── NotVotedError(user, direction)
    ├── ConfigError
    └── StorageError
        ├── StorageUnavailableError
        └── ConflictError(item, expected_version)
"""

from __future__ import annotations


class UpvotingError(Exception):
    """Base exception for all upvoting errors."""


# ─── Ledger Errors ────────────────────────────────────────────


class LedgerError(UpvotingError):
    """Base for vote ledger precondition failures."""

    def __init__(self, item: str, message: str) -> None:
        self.item = item
        super().__init__(message)


class RecordNotFoundError(LedgerError):
    """No vote record exists for the item."""

    def __init__(self, item: str) -> None:
        super().__init__(item, f"Item {item} does not exist!")


class DuplicateRecordError(LedgerError):
    """A vote record already exists for the item."""

    def __init__(self, item: str) -> None:
        super().__init__(item, f"Item {item} already has a vote record")


class NotAuthorizedError(LedgerError):
    """User is not in the item's reviewer set."""

    def __init__(self, item: str, user: str) -> None:
        self.user = user
        super().__init__(item, f"User {user} not in reviewers of item {item}")


class AlreadyVotedError(LedgerError):
    """User already holds a vote (either direction) on the item."""

    def __init__(self, item: str, user: str, direction: str) -> None:
        self.user = user
        self.direction = direction
        super().__init__(
            item, f"User {user} already {direction}voted item {item}"
        )


class NotVotedError(LedgerError):
    """User does not hold the vote they tried to retract."""

    def __init__(self, item: str, user: str, direction: str) -> None:
        self.user = user
        self.direction = direction
        super().__init__(item, f"User {user} has no {direction}vote on item {item}")


# ─── Configuration Errors ─────────────────────────────────────


class ConfigError(UpvotingError):
    """Invalid configuration."""


# ─── Storage Errors ───────────────────────────────────────────


class StorageError(UpvotingError):
    """Database or persistence layer error."""


class StorageUnavailableError(StorageError):
    """Database unreachable or connection dropped. Safe to retry."""


class ConflictError(StorageError):
    """Conditional update lost to a concurrent writer. Safe to retry."""

    def __init__(self, item: str, expected_version: int) -> None:
        self.item = item
        self.expected_version = expected_version
        super().__init__(
            f"Vote record {item} changed concurrently "
            f"(expected version {expected_version})"
        )
