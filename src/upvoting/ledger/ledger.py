"""Vote ledger: reviewer-gated up/down votes per item.

Per (item, user) pair the ledger is a three-state machine::

    NoVote --cast_upvote-->     Upvoted
    NoVote --cast_downvote-->   Downvoted
    Upvoted --retract_upvote--> NoVote
    Downvoted --retract_downvote--> NoVote

There is no direct Upvoted <-> Downvoted edge. Switching direction is
two ledger calls, and another caller may observe (or write into) the
NoVote state between them.

Every operation reads one snapshot, checks its preconditions against that
snapshot, and writes at most once through a version-conditioned update.
A lost race surfaces as :class:`~upvoting.core.errors.ConflictError`;
the ledger never retries.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from upvoting.core.errors import (
    AlreadyVotedError,
    NotAuthorizedError,
    NotVotedError,
    RecordNotFoundError,
)
from upvoting.ledger.store import VoteState

if TYPE_CHECKING:
    from collections.abc import Iterable

    from upvoting.ledger.store import VoteStore

logger = logging.getLogger(__name__)


class Direction(str, Enum):
    UP = "up"
    DOWN = "down"


@dataclass(frozen=True, slots=True)
class VoteResult:
    """Confirmation message plus the structured payload of an operation."""

    msg: str
    state: VoteState | None = None
    count: int | None = None


class VoteLedger:
    """Owns the vote records for all votable items.

    The backing store is passed in explicitly; the ledger holds no other
    state, so any number of ledgers may share one store.
    """

    def __init__(self, store: VoteStore) -> None:
        self._store = store

    # ── Lifecycle ────────────────────────────────────────────────

    async def initialize(
        self, item: object, reviewers: Iterable[object]
    ) -> VoteResult:
        """Create the record for *item* with an empty vote history.

        An empty reviewer pool is accepted; nobody can vote on such an item.
        """
        state = VoteState(
            item=str(item),
            reviewers=frozenset(str(r) for r in reviewers),
        )
        await self._store.insert(state)
        logger.debug(
            "Initialized vote record %s with %d reviewers",
            state.item,
            len(state.reviewers),
        )
        return VoteResult(msg="Vote record created", state=state)

    async def delete_record(self, item: object) -> VoteResult:
        """Remove the record for *item*. Deleting a missing record is a no-op."""
        removed = await self._store.delete(str(item))
        if removed:
            logger.debug("Deleted vote record %s", item)
        return VoteResult(msg="Vote record deleted")

    async def has_record(self, item: object) -> bool:
        return await self._store.get(str(item)) is not None

    # ── Queries ──────────────────────────────────────────────────

    async def get_vote_state(self, item: object) -> VoteResult:
        state = await self._load(str(item))
        return VoteResult(msg="Votes found", state=state)

    async def count_upvotes(self, item: object) -> VoteResult:
        state = await self._load(str(item))
        return VoteResult(msg="Upvotes counted", count=len(state.upvoters))

    async def count_downvotes(self, item: object) -> VoteResult:
        state = await self._load(str(item))
        return VoteResult(msg="Downvotes counted", count=len(state.downvoters))

    # ── Cast / retract ───────────────────────────────────────────

    async def cast_upvote(self, item: object, user: object) -> VoteResult:
        state = await self._load(str(item))
        new = _cast(state, str(user), Direction.UP)
        return await self._commit(state, new, "Upvoted")

    async def cast_downvote(self, item: object, user: object) -> VoteResult:
        state = await self._load(str(item))
        new = _cast(state, str(user), Direction.DOWN)
        return await self._commit(state, new, "Downvoted")

    async def retract_upvote(self, item: object, user: object) -> VoteResult:
        state = await self._load(str(item))
        new = _retract(state, str(user), Direction.UP)
        return await self._commit(state, new, "Upvote removed")

    async def retract_downvote(self, item: object, user: object) -> VoteResult:
        state = await self._load(str(item))
        new = _retract(state, str(user), Direction.DOWN)
        return await self._commit(state, new, "Downvote removed")

    async def toggle_upvote(self, item: object, user: object) -> VoteResult:
        """Retract the user's upvote if held, otherwise cast one."""
        return await self._toggle(str(item), str(user), Direction.UP)

    async def toggle_downvote(self, item: object, user: object) -> VoteResult:
        """Retract the user's downvote if held, otherwise cast one."""
        return await self._toggle(str(item), str(user), Direction.DOWN)

    # ── Internals ────────────────────────────────────────────────

    async def _load(self, item: str) -> VoteState:
        state = await self._store.get(item)
        if state is None:
            raise RecordNotFoundError(item)
        return state

    async def _toggle(self, item: str, user: str, direction: Direction) -> VoteResult:
        state = await self._load(item)
        held = state.upvoters if direction is Direction.UP else state.downvoters
        if user in held:
            new = _retract(state, user, direction)
            msg = "Upvote removed" if direction is Direction.UP else "Downvote removed"
        else:
            new = _cast(state, user, direction)
            msg = "Upvoted" if direction is Direction.UP else "Downvoted"
        return await self._commit(state, new, msg)

    async def _commit(
        self, previous: VoteState, new: VoteState, msg: str
    ) -> VoteResult:
        await self._store.update(previous, new)
        logger.debug("%s: %s (version %d)", previous.item, msg, new.version)
        return VoteResult(msg=msg, state=new)


def _cast(state: VoteState, user: str, direction: Direction) -> VoteState:
    """Check cast preconditions in order and return the next snapshot."""
    if user not in state.reviewers:
        raise NotAuthorizedError(state.item, user)
    if user in state.upvoters:
        raise AlreadyVotedError(state.item, user, Direction.UP.value)
    if user in state.downvoters:
        raise AlreadyVotedError(state.item, user, Direction.DOWN.value)
    if direction is Direction.UP:
        return state.evolve(upvoters=state.upvoters | {user})
    return state.evolve(downvoters=state.downvoters | {user})


def _retract(state: VoteState, user: str, direction: Direction) -> VoteState:
    """Remove *user* from the set named by *direction*."""
    if direction is Direction.UP:
        if user not in state.upvoters:
            raise NotVotedError(state.item, user, direction.value)
        return state.evolve(upvoters=state.upvoters - {user})
    if user not in state.downvoters:
        raise NotVotedError(state.item, user, direction.value)
    return state.evolve(downvoters=state.downvoters - {user})
