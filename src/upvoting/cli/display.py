"""Rich rendering of vote records for the CLI."""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.console import Console
from rich.table import Table

if TYPE_CHECKING:
    from upvoting.ledger.store import VoteState


def _status(user: str, state: VoteState) -> str:
    if user in state.upvoters:
        return "[green]upvoted[/green]"
    if user in state.downvoters:
        return "[red]downvoted[/red]"
    return "[dim]no vote[/dim]"


class VoteDisplay:
    """Renders vote state and counts.

    Accepts an optional :class:`~rich.console.Console` for dependency
    injection in tests.
    """

    def __init__(self, console: Console | None = None) -> None:
        self._console = console or Console()

    def state(self, state: VoteState) -> None:
        """Print one row per reviewer with their current vote."""
        table = Table(title=f"Item {state.item}", title_justify="left")
        table.add_column("Reviewer")
        table.add_column("Vote")
        for user in sorted(state.reviewers):
            table.add_row(user, _status(user, state))
        self._console.print(table)
        self.counts(len(state.upvoters), len(state.downvoters))

    def counts(self, upvotes: int, downvotes: int) -> None:
        self._console.print(f"[green]+{upvotes}[/green]  [red]-{downvotes}[/red]")
