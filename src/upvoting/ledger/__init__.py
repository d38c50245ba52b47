"""Vote ledger and its persistence."""

from upvoting.ledger.ledger import Direction, VoteLedger, VoteResult
from upvoting.ledger.models import Base, VoteRecord
from upvoting.ledger.store import VoteState, VoteStore

__all__ = [
    "Base",
    "Direction",
    "VoteLedger",
    "VoteRecord",
    "VoteResult",
    "VoteState",
    "VoteStore",
]
