"""Storage interface the ledger service is written against."""

from __future__ import annotations

from datetime import date
from typing import Dict, List, Optional, Protocol, Sequence

from assisttracker.config.seed import SeedPlayer
from assisttracker.models import AppliedDelta, LedgerEntry, PlayerRecord, UndoResult


MAX_STORED_INT = 2**63 - 1


class LedgerStore(Protocol):
    """Players plus their append-only ledger.

    ``apply_delta`` and ``remove_entry`` change the entry list and the player's
    counter in one atomic step. Both raise ``NotFound`` for unknown ids and
    ``InvalidDelta`` when the player's total would drop below zero, leaving the
    store untouched.
    """

    def get_player(self, player_id: int) -> Optional[PlayerRecord]:
        ...

    def list_players(self) -> List[PlayerRecord]:
        ...

    def count_players(self) -> int:
        ...

    def get_entry(self, entry_id: int) -> Optional[LedgerEntry]:
        ...

    def list_entries(
        self,
        *,
        player_id: Optional[int] = None,
        limit: Optional[int] = None,
        newest_first: bool = False,
    ) -> List[LedgerEntry]:
        ...

    def delta_totals(self) -> Dict[int, int]:
        ...

    def apply_delta(
        self,
        player_id: int,
        delta: int,
        *,
        entry_date: date,
        opponent: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> AppliedDelta:
        ...

    def remove_entry(self, entry_id: int) -> UndoResult:
        ...

    def seed_players(self, seeds: Sequence[SeedPlayer]) -> int:
        ...


def negative_total_message(name: str, assists: int, delta: int) -> str:
    if delta < 0:
        return f"Cannot remove {-delta} assists. {name} only has {assists} assists."
    return f"Cannot apply {delta:+d} assists. {name} only has {assists} assists."


def fits_integer_column(value: int) -> bool:
    """SQLite INTEGER columns hold signed 64-bit values."""

    return -MAX_STORED_INT - 1 <= value <= MAX_STORED_INT
