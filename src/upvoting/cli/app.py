"""Main CLI application.

Click commands for the vote ledger: init, show, upvote, downvote,
retract, toggle, count, delete.
"""

from __future__ import annotations

import asyncio
import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING

import click

from upvoting import __version__
from upvoting.config.loader import load_config
from upvoting.core.errors import ConfigError, UpvotingError

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

    from upvoting.config.schema import UpvotingConfig
    from upvoting.ledger.ledger import VoteLedger, VoteResult

logger = logging.getLogger(__name__)


# ── Helpers ──────────────────────────────────────────────────────


def _error(msg: str) -> None:
    """Print an error message to stderr and exit."""
    click.echo(f"Error: {msg}", err=True)
    sys.exit(1)


def _load_config(config_path: str | None) -> UpvotingConfig:
    """Load config with user-friendly error handling."""
    try:
        return load_config(path=config_path)
    except ConfigError as e:
        _error(str(e))
        raise  # unreachable, keeps mypy happy


def _setup_logging(config: UpvotingConfig) -> None:
    """Configure the root logger from the [logging] section."""
    level = getattr(logging, config.logging.level.upper(), logging.INFO)
    kwargs: dict[str, object] = {
        "level": level,
        "format": "%(asctime)s %(levelname)s %(name)s: %(message)s",
    }
    if config.logging.file:
        log_path = Path(config.logging.file).expanduser()
        log_path.parent.mkdir(parents=True, exist_ok=True)
        kwargs["filename"] = str(log_path)
    logging.basicConfig(**kwargs)  # type: ignore[arg-type]


async def _create_db(
    config: UpvotingConfig,
) -> tuple[async_sessionmaker[AsyncSession], AsyncEngine]:
    """Create async engine and sessionmaker from config."""
    from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

    from upvoting.ledger.models import Base

    url = config.database.url
    if "~" in url:
        url = url.replace("~", str(Path.home()))

    # Ensure parent directory exists for sqlite
    if url.startswith("sqlite"):
        db_path = url.split("///")[-1] if "///" in url else ""
        if db_path and db_path != ":memory:":
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    engine_kwargs: dict[str, object] = {}
    if url.startswith("sqlite"):
        if ":memory:" in url:
            # In-memory SQLite needs StaticPool so all sessions share
            # the same connection (and thus the same in-memory DB).
            from sqlalchemy.pool import StaticPool

            engine_kwargs["poolclass"] = StaticPool
            engine_kwargs["connect_args"] = {"check_same_thread": False}
        else:
            from sqlalchemy.pool import NullPool

            engine_kwargs["poolclass"] = NullPool
    else:
        engine_kwargs["pool_size"] = config.database.pool_size
        engine_kwargs["max_overflow"] = config.database.max_overflow
        engine_kwargs["pool_timeout"] = config.database.pool_timeout
        engine_kwargs["pool_recycle"] = config.database.pool_recycle
        engine_kwargs["pool_pre_ping"] = True

    engine = create_async_engine(url, **engine_kwargs)

    # Only use create_all for in-memory SQLite (tests/dev).
    # File-based SQLite gets ensure_schema; servers are managed by alembic.
    is_memory = url.startswith("sqlite") and ":memory:" in url
    if is_memory:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
    elif url.startswith("sqlite"):
        from upvoting.ledger.migrations import ensure_schema

        await ensure_schema(engine)

    factory = async_sessionmaker(engine, expire_on_commit=False)
    return factory, engine


async def _with_ledger(
    config: UpvotingConfig,
    op: Callable[[VoteLedger], Awaitable[VoteResult]],
    *,
    retry: bool = False,
) -> VoteResult:
    """Open the database, run *op* against a ledger, dispose the engine.

    With ``retry`` set, conflicting concurrent writes are re-issued with
    backoff per the [retry] section.
    """
    from upvoting.core.retry import RetryConfig, retry_with_backoff
    from upvoting.ledger.ledger import VoteLedger
    from upvoting.ledger.store import VoteStore

    factory, engine = await _create_db(config)
    try:
        ledger = VoteLedger(VoteStore(factory))
        if not retry:
            return await op(ledger)
        settings = config.retry
        retry_config = RetryConfig(
            max_retries=settings.max_retries,
            base_delay=settings.base_delay,
            max_delay=settings.max_delay,
            jitter=settings.jitter,
        )

        def _log_retry(attempt: int, delay: float, error: Exception) -> None:
            logger.info("Retry %d in %.2fs after: %s", attempt, delay, error)

        return await retry_with_backoff(
            lambda: op(ledger), retry_config, on_retry=_log_retry
        )
    finally:
        await engine.dispose()


def _run(
    ctx: click.Context,
    op: Callable[[VoteLedger], Awaitable[VoteResult]],
    *,
    retry: bool = False,
) -> VoteResult:
    """Load config, run one ledger operation, exit 1 on any upvoting error."""
    config = _load_config(ctx.obj["config_path"])
    _setup_logging(config)
    try:
        return asyncio.run(_with_ledger(config, op, retry=retry))
    except UpvotingError as e:
        _error(str(e))
        raise  # unreachable


# ── CLI group ────────────────────────────────────────────────────


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name="upvoting")
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True),
    default=None,
    help="Path to config file.",
)
@click.pass_context
def cli(ctx: click.Context, config_path: str | None) -> None:
    """upvoting - Reviewer-gated vote ledger.

    Track who may vote on an item and who upvoted or downvoted it.
    """
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


# ── init / delete ────────────────────────────────────────────────


@cli.command()
@click.argument("item")
@click.argument("reviewers", nargs=-1)
@click.pass_context
def init(ctx: click.Context, item: str, reviewers: tuple[str, ...]) -> None:
    """Create the vote record for ITEM with the given REVIEWERS."""
    result = _run(ctx, lambda ledger: ledger.initialize(item, reviewers))
    click.echo(f"{result.msg}: {item} ({len(reviewers)} reviewers)")


@cli.command()
@click.argument("item")
@click.pass_context
def delete(ctx: click.Context, item: str) -> None:
    """Delete the vote record for ITEM (no error if absent)."""
    result = _run(ctx, lambda ledger: ledger.delete_record(item))
    click.echo(f"{result.msg}: {item}")


# ── queries ──────────────────────────────────────────────────────


@cli.command()
@click.argument("item")
@click.pass_context
def show(ctx: click.Context, item: str) -> None:
    """Show reviewers of ITEM and how each voted."""
    from upvoting.cli.display import VoteDisplay

    result = _run(ctx, lambda ledger: ledger.get_vote_state(item))
    assert result.state is not None
    VoteDisplay().state(result.state)


@cli.command()
@click.argument("item")
@click.pass_context
def count(ctx: click.Context, item: str) -> None:
    """Print upvote and downvote counts for ITEM."""
    from upvoting.cli.display import VoteDisplay

    result = _run(ctx, lambda ledger: ledger.get_vote_state(item))
    assert result.state is not None
    VoteDisplay().counts(len(result.state.upvoters), len(result.state.downvoters))


# ── votes ────────────────────────────────────────────────────────

_DIRECTION = click.option(
    "--direction",
    type=click.Choice(["up", "down"]),
    default="up",
    show_default=True,
    help="Which vote to act on.",
)


@cli.command()
@click.argument("item")
@click.argument("user")
@click.pass_context
def upvote(ctx: click.Context, item: str, user: str) -> None:
    """Cast an upvote on ITEM as USER."""
    result = _run(ctx, lambda ledger: ledger.cast_upvote(item, user), retry=True)
    click.echo(result.msg)


@cli.command()
@click.argument("item")
@click.argument("user")
@click.pass_context
def downvote(ctx: click.Context, item: str, user: str) -> None:
    """Cast a downvote on ITEM as USER."""
    result = _run(ctx, lambda ledger: ledger.cast_downvote(item, user), retry=True)
    click.echo(result.msg)


@cli.command()
@click.argument("item")
@click.argument("user")
@_DIRECTION
@click.pass_context
def retract(ctx: click.Context, item: str, user: str, direction: str) -> None:
    """Retract USER's vote on ITEM."""
    if direction == "up":
        result = _run(
            ctx, lambda ledger: ledger.retract_upvote(item, user), retry=True
        )
    else:
        result = _run(
            ctx, lambda ledger: ledger.retract_downvote(item, user), retry=True
        )
    click.echo(result.msg)


@cli.command()
@click.argument("item")
@click.argument("user")
@_DIRECTION
@click.pass_context
def toggle(ctx: click.Context, item: str, user: str, direction: str) -> None:
    """Cast USER's vote on ITEM, or retract it if already held."""
    if direction == "up":
        result = _run(ctx, lambda ledger: ledger.toggle_upvote(item, user), retry=True)
    else:
        result = _run(
            ctx, lambda ledger: ledger.toggle_downvote(item, user), retry=True
        )
    click.echo(result.msg)
