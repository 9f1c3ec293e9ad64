"""Persistence layer for players and the assist ledger."""

from __future__ import annotations

from assisttracker.config.settings import Settings

from .base import LedgerStore
from .memory import MemoryLedgerStore
from .sqlite import SqliteLedgerStore


def open_store(settings: Settings) -> LedgerStore:
    """Build the store selected by ``settings.storage``."""

    if settings.storage == "memory":
        return MemoryLedgerStore()
    return SqliteLedgerStore(settings.db_path)


__all__ = [
    "LedgerStore",
    "MemoryLedgerStore",
    "SqliteLedgerStore",
    "open_store",
]
