"""upvoting - per-item vote ledger with reviewer authorization."""

__version__ = "0.1.0"
