"""Schema bootstrap for file-based SQLite.

Runs on startup for file-based SQLite databases. In-memory SQLite uses
``create_all`` directly; server databases are managed by alembic.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from upvoting.ledger.models import Base

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncEngine

logger = logging.getLogger(__name__)


async def ensure_schema(engine: AsyncEngine) -> None:
    """Create ``vote_records`` if the database does not have it yet."""
    async with engine.begin() as conn:
        rows = await conn.exec_driver_sql("PRAGMA table_info(vote_records)")
        if any(True for _ in rows):
            return
        logger.info("Creating vote_records table")
        await conn.run_sync(Base.metadata.create_all)
