"""SQLAlchemy models for the vote ledger."""

from __future__ import annotations

from datetime import UTC, datetime

from sqlalchemy import JSON, DateTime, Integer, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def _utcnow() -> datetime:
    """Current UTC time for timestamps."""
    return datetime.now(UTC)


class Base(DeclarativeBase):
    """Declarative base for all upvoting models."""


class VoteRecord(Base):
    """Reviewer, upvoter and downvoter sets for one votable item.

    Sets are persisted as sorted JSON arrays. ``version`` increases by one
    on every write and guards conditional updates.
    """

    __tablename__ = "vote_records"

    item: Mapped[str] = mapped_column(String(64), primary_key=True)
    reviewers: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    upvoters: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    downvoters: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    version: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=_utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=_utcnow, onupdate=_utcnow
    )
