"""Domain records for players and their assist ledger."""

from .player import LedgerEntry, PlayerRecord
from .results import AppliedDelta, Discrepancy, LedgerSummary, Progress, UndoResult

__all__ = [
    "AppliedDelta",
    "Discrepancy",
    "LedgerEntry",
    "LedgerSummary",
    "PlayerRecord",
    "Progress",
    "UndoResult",
]
