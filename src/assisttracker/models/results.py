"""Result types returned by ledger operations."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional

from .player import LedgerEntry, PlayerRecord


@dataclass(frozen=True)
class AppliedDelta:
    entry: LedgerEntry
    player: PlayerRecord

    @property
    def entry_id(self) -> int:
        """Id of the appended entry; callers keep it as their undo pointer."""

        return self.entry.entry_id


@dataclass(frozen=True)
class UndoResult:
    entry_id: int
    delta: int
    player_id: int
    player: PlayerRecord


@dataclass(frozen=True)
class LedgerSummary:
    total_entries: int
    total_delta: int
    distinct_players: int
    earliest_date: Optional[date]
    latest_date: Optional[date]


@dataclass(frozen=True)
class Discrepancy:
    player_id: int
    name: str
    assists: int
    expected: int

    @property
    def drift(self) -> int:
        return self.assists - self.expected


@dataclass(frozen=True)
class Progress:
    tracked: PlayerRecord
    leader: PlayerRecord
    ratio: float

    @property
    def percent(self) -> float:
        return self.ratio * 100.0

    @property
    def needed(self) -> int:
        return max(self.leader.assists - self.tracked.assists, 0)
