"""Career assist tracker: ledger service, HTTP API and leaderboard widget."""

__version__ = "0.1.0"
