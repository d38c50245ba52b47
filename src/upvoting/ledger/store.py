"""Keyed-record store for vote records.

Every method runs in its own transaction. Writes are either
insert-if-absent or an update conditioned on the version that was read,
so two writers racing on the same item cannot both succeed.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from sqlalchemy import delete, update
from sqlalchemy.exc import (
    DBAPIError,
    IntegrityError,
    InterfaceError,
    OperationalError,
    SQLAlchemyError,
)
from sqlalchemy.pool import StaticPool

from upvoting.core.errors import (
    ConflictError,
    DuplicateRecordError,
    StorageError,
    StorageUnavailableError,
)
from upvoting.ledger.models import VoteRecord, _utcnow

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Iterable

    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class VoteState:
    """Immutable snapshot of one vote record."""

    item: str
    reviewers: frozenset[str]
    upvoters: frozenset[str] = frozenset()
    downvoters: frozenset[str] = frozenset()
    version: int = 1

    def evolve(
        self,
        *,
        upvoters: Iterable[str] | None = None,
        downvoters: Iterable[str] | None = None,
    ) -> VoteState:
        """Return a copy with replaced vote sets and the next version."""
        return VoteState(
            item=self.item,
            reviewers=self.reviewers,
            upvoters=self.upvoters if upvoters is None else frozenset(upvoters),
            downvoters=(
                self.downvoters if downvoters is None else frozenset(downvoters)
            ),
            version=self.version + 1,
        )


def _to_state(row: VoteRecord) -> VoteState:
    return VoteState(
        item=row.item,
        reviewers=frozenset(row.reviewers or ()),
        upvoters=frozenset(row.upvoters or ()),
        downvoters=frozenset(row.downvoters or ()),
        version=row.version,
    )


def _shares_connection(factory: object) -> bool:
    """True if the factory is bound to an engine with a single shared connection."""
    bind = getattr(factory, "kw", {}).get("bind")
    if bind is None:
        return False
    return isinstance(bind.sync_engine.pool, StaticPool)


def _wrap(exc: SQLAlchemyError, action: str) -> StorageError:
    """Translate a SQLAlchemy failure into the storage error taxonomy."""
    if isinstance(exc, OperationalError | InterfaceError) or (
        isinstance(exc, DBAPIError) and exc.connection_invalidated
    ):
        return StorageUnavailableError(f"Database unavailable during {action}: {exc}")
    return StorageError(f"Storage failure during {action}: {exc}")


class VoteStore:
    """Async keyed-record store over an ``async_sessionmaker``.

    When every session shares one DBAPI connection (``StaticPool``, as used
    for in-memory SQLite) transactions cannot be isolated from each other,
    so store calls are serialized behind a lock.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._factory = session_factory
        self._lock = asyncio.Lock() if _shares_connection(session_factory) else None

    @contextlib.asynccontextmanager
    async def _session(self, *, write: bool) -> AsyncIterator[AsyncSession]:
        """Open a session (in a transaction for writes), serialized if needed."""
        async with contextlib.AsyncExitStack() as stack:
            if self._lock is not None:
                await stack.enter_async_context(self._lock)
            opener = self._factory.begin() if write else self._factory()
            yield await stack.enter_async_context(opener)

    async def get(self, item: str) -> VoteState | None:
        """Load the record for *item*, or None."""
        try:
            async with self._session(write=False) as session:
                row = await session.get(VoteRecord, item)
                return None if row is None else _to_state(row)
        except SQLAlchemyError as e:
            raise _wrap(e, f"get {item}") from e

    async def insert(self, state: VoteState) -> VoteState:
        """Insert a new record. Raises DuplicateRecordError if one exists."""
        row = VoteRecord(
            item=state.item,
            reviewers=sorted(state.reviewers),
            upvoters=sorted(state.upvoters),
            downvoters=sorted(state.downvoters),
            version=state.version,
        )
        try:
            async with self._session(write=True) as session:
                session.add(row)
        except IntegrityError as e:
            raise DuplicateRecordError(state.item) from e
        except SQLAlchemyError as e:
            raise _wrap(e, f"insert {state.item}") from e
        return state

    async def update(self, previous: VoteState, new: VoteState) -> VoteState:
        """Write *new* only if the stored version still equals *previous*'s.

        Raises ConflictError when another writer got there first (or the
        record was deleted in between).
        """
        stmt = (
            update(VoteRecord)
            .where(
                VoteRecord.item == previous.item,
                VoteRecord.version == previous.version,
            )
            .values(
                upvoters=sorted(new.upvoters),
                downvoters=sorted(new.downvoters),
                version=previous.version + 1,
                updated_at=_utcnow(),
            )
            .execution_options(synchronize_session=False)
        )
        try:
            async with self._session(write=True) as session:
                result = await session.execute(stmt)
                updated = result.rowcount
        except SQLAlchemyError as e:
            raise _wrap(e, f"update {previous.item}") from e

        if updated == 0:
            logger.info(
                "Conditional update lost for %s at version %d",
                previous.item,
                previous.version,
            )
            raise ConflictError(previous.item, previous.version)
        return new

    async def delete(self, item: str) -> bool:
        """Delete the record for *item*. Returns True if a row was removed."""
        stmt = delete(VoteRecord).where(VoteRecord.item == item)
        try:
            async with self._session(write=True) as session:
                result = await session.execute(stmt)
                return bool(result.rowcount)
        except SQLAlchemyError as e:
            raise _wrap(e, f"delete {item}") from e
