"""Shared test fixtures for upvoting."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool, StaticPool

from upvoting.ledger.ledger import VoteLedger
from upvoting.ledger.models import Base
from upvoting.ledger.store import VoteStore

if TYPE_CHECKING:
    from pathlib import Path

    from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession


async def _factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    return async_sessionmaker(engine, expire_on_commit=False)


@pytest.fixture
async def db_factory(tmp_path: Path) -> async_sessionmaker[AsyncSession]:  # type: ignore[misc]
    """Sessionmaker over a file-backed SQLite database, one connection per session."""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'votes.db'}", poolclass=NullPool
    )
    yield await _factory(engine)
    await engine.dispose()


@pytest.fixture
async def memory_factory() -> async_sessionmaker[AsyncSession]:  # type: ignore[misc]
    """Sessionmaker over in-memory SQLite where all sessions share one connection."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    yield await _factory(engine)
    await engine.dispose()


@pytest.fixture
def store(db_factory: async_sessionmaker[AsyncSession]) -> VoteStore:
    return VoteStore(db_factory)


@pytest.fixture
def ledger(store: VoteStore) -> VoteLedger:
    return VoteLedger(store)
