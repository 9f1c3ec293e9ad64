"""In-process store used for tests, demo mode and ``ASSIST_TRACKER_STORAGE=memory``."""

from __future__ import annotations

import threading
from datetime import date, datetime, timezone
from typing import Dict, List, Optional, Sequence

from assisttracker.config.seed import SeedPlayer
from assisttracker.errors import InvalidDelta, NotFound
from assisttracker.models import AppliedDelta, LedgerEntry, PlayerRecord, UndoResult

from .base import MAX_STORED_INT, negative_total_message


class MemoryLedgerStore:
    """Players and ledger entries held in dicts behind a single lock."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._players: Dict[int, PlayerRecord] = {}
        self._entries: Dict[int, LedgerEntry] = {}
        self._next_player_id = 1
        self._next_entry_id = 1

    def get_player(self, player_id: int) -> Optional[PlayerRecord]:
        with self._lock:
            return self._players.get(player_id)

    def list_players(self) -> List[PlayerRecord]:
        with self._lock:
            players = list(self._players.values())
        return sorted(players, key=lambda player: (-player.assists, player.name))

    def count_players(self) -> int:
        with self._lock:
            return len(self._players)

    def get_entry(self, entry_id: int) -> Optional[LedgerEntry]:
        with self._lock:
            return self._entries.get(entry_id)

    def list_entries(
        self,
        *,
        player_id: Optional[int] = None,
        limit: Optional[int] = None,
        newest_first: bool = False,
    ) -> List[LedgerEntry]:
        with self._lock:
            entries = [
                entry
                for entry in self._entries.values()
                if player_id is None or entry.player_id == player_id
            ]
        if newest_first:
            entries.sort(key=lambda entry: (entry.created_at, entry.entry_id), reverse=True)
        else:
            entries.sort(key=lambda entry: (entry.entry_date, entry.created_at, entry.entry_id), reverse=True)
        if limit is not None:
            entries = entries[:max(limit, 0)]
        return entries

    def delta_totals(self) -> Dict[int, int]:
        totals: Dict[int, int] = {}
        with self._lock:
            for entry in self._entries.values():
                totals[entry.player_id] = totals.get(entry.player_id, 0) + entry.delta
        return totals

    def apply_delta(
        self,
        player_id: int,
        delta: int,
        *,
        entry_date: date,
        opponent: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> AppliedDelta:
        now = datetime.now(timezone.utc)
        with self._lock:
            player = self._players.get(player_id)
            if player is None:
                raise NotFound(f"Player with ID {player_id} does not exist.")
            new_total = player.assists + delta
            if new_total < 0:
                raise InvalidDelta(negative_total_message(player.name, player.assists, delta))
            if new_total > MAX_STORED_INT:
                raise InvalidDelta(f"{delta:+d} assists is out of range for {player.name}.")
            entry = LedgerEntry(
                entry_id=self._next_entry_id,
                player_id=player_id,
                delta=delta,
                entry_date=entry_date,
                opponent=opponent,
                notes=notes,
                created_at=now,
            )
            updated = player.model_copy(update={"assists": new_total, "updated_at": now})
            self._next_entry_id += 1
            self._entries[entry.entry_id] = entry
            self._players[player_id] = updated
        return AppliedDelta(entry=entry, player=updated)

    def remove_entry(self, entry_id: int) -> UndoResult:
        now = datetime.now(timezone.utc)
        with self._lock:
            entry = self._entries.get(entry_id)
            if entry is None:
                raise NotFound(f"Assist log with ID {entry_id} does not exist.")
            player = self._players[entry.player_id]
            new_total = player.assists - entry.delta
            if new_total < 0:
                raise InvalidDelta(
                    f"Cannot undo assist log {entry_id}. {player.name} only has {player.assists} assists."
                )
            updated = player.model_copy(update={"assists": new_total, "updated_at": now})
            del self._entries[entry_id]
            self._players[player.player_id] = updated
        return UndoResult(entry_id=entry_id, delta=entry.delta, player_id=player.player_id, player=updated)

    def seed_players(self, seeds: Sequence[SeedPlayer]) -> int:
        now = datetime.now(timezone.utc)
        with self._lock:
            if self._players:
                return 0
            for seed in seeds:
                player_id = self._next_player_id
                self._next_player_id += 1
                self._players[player_id] = PlayerRecord(
                    player_id=player_id,
                    name=seed.name,
                    team=seed.team,
                    assists=seed.assists,
                    seed_assists=seed.assists,
                    color=seed.color,
                    is_tracked=seed.is_tracked,
                    created_at=now,
                    updated_at=now,
                )
        return len(seeds)
