"""Assist ledger core."""

from .service import LedgerService, bootstrap, compute_progress, rank_players

__all__ = ["LedgerService", "bootstrap", "compute_progress", "rank_players"]
