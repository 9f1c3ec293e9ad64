"""Assist ledger state machine on top of an injected store."""

from __future__ import annotations

import logging
from datetime import date
from typing import Callable, List, Optional, Sequence

from assisttracker.config.seed import SEED_PLAYERS, SeedPlayer, validate_seeds
from assisttracker.errors import InvalidDelta, NotFound
from assisttracker.models import (
    AppliedDelta,
    Discrepancy,
    LedgerEntry,
    LedgerSummary,
    PlayerRecord,
    Progress,
    UndoResult,
)
from assisttracker.persistence import LedgerStore


logger = logging.getLogger("uvicorn.error")
logger.setLevel(logging.INFO)


def _require_int(value: object, label: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidDelta(f"{label} must be an integer")
    return value


def _require_positive(value: object, label: str) -> int:
    count = _require_int(value, label)
    if count < 1:
        raise InvalidDelta(f"{label} must be a positive number")
    return count


def rank_players(players: Sequence[PlayerRecord]) -> List[PlayerRecord]:
    """Order by assists descending, breaking ties by name."""

    return sorted(players, key=lambda player: (-player.assists, player.name))


def compute_progress(players: Sequence[PlayerRecord]) -> Optional[Progress]:
    """Tracked player's share of the leader's total, capped at 100%."""

    tracked = next((player for player in players if player.is_tracked), None)
    if tracked is None:
        return None
    leader = rank_players(players)[0]
    if leader.assists <= 0:
        ratio = 1.0
    else:
        ratio = min(tracked.assists / leader.assists, 1.0)
    return Progress(tracked=tracked, leader=leader, ratio=ratio)


def bootstrap(store: LedgerStore, seeds: Sequence[SeedPlayer] = SEED_PLAYERS) -> int:
    """Seed an empty store with the reference table; returns rows inserted."""

    validate_seeds(seeds)
    inserted = store.seed_players(seeds)
    if inserted:
        logger.info("Seeded %s players into the ledger store", inserted)
    else:
        logger.info("Players table already contains data; skipping seed")
    return inserted


class LedgerService:
    """Keeps each player's total equal to its seed value plus its surviving deltas.

    Every write goes through the store's atomic ``apply_delta`` or
    ``remove_entry``. The service never remembers a "last operation"; callers
    keep the entry id returned by :meth:`apply_delta` if they want to undo it.
    """

    def __init__(self, store: LedgerStore, *, today: Callable[[], date] = date.today):
        self.store = store
        self._today = today

    def apply_delta(
        self,
        player_id: int,
        delta: int,
        entry_date: Optional[date] = None,
        *,
        opponent: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> AppliedDelta:
        delta = _require_int(delta, "delta")
        if delta == 0:
            raise InvalidDelta("delta must be non-zero")
        try:
            applied = self.store.apply_delta(
                player_id,
                delta,
                entry_date=entry_date or self._today(),
                opponent=opponent,
                notes=notes,
            )
        except (InvalidDelta, NotFound) as exc:
            logger.warning("Rejected %+d assists for player %s: %s", delta, player_id, exc.message)
            raise
        logger.info(
            "Applied %+d assists to %s (now %s, entry %s)",
            delta,
            applied.player.name,
            applied.player.assists,
            applied.entry_id,
        )
        return applied

    def add_assists(
        self,
        player_id: int,
        count: int,
        entry_date: Optional[date] = None,
        *,
        opponent: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> AppliedDelta:
        count = _require_positive(count, "assists_to_add")
        return self.apply_delta(player_id, count, entry_date, opponent=opponent, notes=notes)

    def reduce_assists(
        self,
        player_id: int,
        count: int,
        entry_date: Optional[date] = None,
        *,
        notes: Optional[str] = None,
    ) -> AppliedDelta:
        count = _require_positive(count, "assists_to_remove")
        return self.apply_delta(player_id, -count, entry_date, notes=notes)

    def set_total(
        self,
        player_id: int,
        assists: int,
        entry_date: Optional[date] = None,
        *,
        opponent: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> Optional[AppliedDelta]:
        """Move a player to ``assists`` by logging the difference from the stored total.

        Returns ``None`` when the total is already ``assists``.
        """

        target = _require_int(assists, "assists")
        if target < 0:
            raise InvalidDelta("assists must not be negative")
        current = self.get_player(player_id)
        delta = target - current.assists
        if delta == 0:
            return None
        return self.apply_delta(player_id, delta, entry_date, opponent=opponent, notes=notes)

    def undo_last(self, entry_id: int) -> UndoResult:
        try:
            result = self.store.remove_entry(entry_id)
        except (InvalidDelta, NotFound) as exc:
            logger.warning("Undo of assist log %s rejected: %s", entry_id, exc.message)
            raise
        logger.info(
            "Undid assist log %s (%+d) for %s (now %s)",
            entry_id,
            result.delta,
            result.player.name,
            result.player.assists,
        )
        return result

    def get_player(self, player_id: int) -> PlayerRecord:
        player = self.store.get_player(player_id)
        if player is None:
            raise NotFound(f"Player with ID {player_id} does not exist.")
        return player

    def tracked_player(self) -> PlayerRecord:
        for player in self.store.list_players():
            if player.is_tracked:
                return player
        raise NotFound("No tracked player found in database")

    def list_ranking(self) -> List[PlayerRecord]:
        return rank_players(self.store.list_players())

    def entries(self, player_id: Optional[int] = None) -> List[LedgerEntry]:
        if player_id is not None:
            self.get_player(player_id)
        return self.store.list_entries(player_id=player_id)

    def recent(self, limit: int = 10) -> List[LedgerEntry]:
        limit = _require_positive(limit, "limit")
        return self.store.list_entries(limit=limit, newest_first=True)

    def summary(self) -> LedgerSummary:
        entries = self.store.list_entries()
        dates = [entry.entry_date for entry in entries]
        return LedgerSummary(
            total_entries=len(entries),
            total_delta=sum(entry.delta for entry in entries),
            distinct_players=len({entry.player_id for entry in entries}),
            earliest_date=min(dates) if dates else None,
            latest_date=max(dates) if dates else None,
        )

    def reconcile(self) -> List[Discrepancy]:
        """Players whose total no longer equals seed value plus logged deltas."""

        totals = self.store.delta_totals()
        drift: List[Discrepancy] = []
        for player in self.store.list_players():
            expected = player.seed_assists + totals.get(player.player_id, 0)
            if player.assists != expected:
                drift.append(
                    Discrepancy(
                        player_id=player.player_id,
                        name=player.name,
                        assists=player.assists,
                        expected=expected,
                    )
                )
        return drift

    def progress(self) -> Progress:
        progress = compute_progress(self.store.list_players())
        if progress is None:
            raise NotFound("No tracked player found in database")
        return progress
