import sqlite3
from concurrent.futures import ThreadPoolExecutor
from datetime import date
from pathlib import Path

import pytest

from assisttracker.config import SEED_PLAYERS, SeedPlayer
from assisttracker.errors import InvalidDelta, NotFound, StorageError
from assisttracker.ledger import LedgerService
from assisttracker.persistence import SqliteLedgerStore

from .conftest import GAME_DAY


def _braden_id(store) -> int:
    return next(player.player_id for player in store.list_players() if player.is_tracked)


def test_seed_players_only_fills_empty_store(store):
    assert store.seed_players(SEED_PLAYERS) == 11
    assert store.seed_players(SEED_PLAYERS) == 0
    assert store.count_players() == 11
    braden = store.get_player(_braden_id(store))
    assert braden.assists == 758
    assert braden.seed_assists == 758


def test_apply_delta_appends_entry_and_updates_counter(seeded_store):
    player_id = _braden_id(seeded_store)
    applied = seeded_store.apply_delta(player_id, 12, entry_date=GAME_DAY, opponent="Indiana")

    assert applied.player.assists == 770
    assert applied.entry.delta == 12
    assert applied.entry.opponent == "Indiana"
    assert seeded_store.get_entry(applied.entry_id) == applied.entry
    assert seeded_store.get_player(player_id).assists == 770


def test_entry_ids_increase_and_are_not_reused(seeded_store):
    player_id = _braden_id(seeded_store)
    first = seeded_store.apply_delta(player_id, 1, entry_date=GAME_DAY).entry_id
    second = seeded_store.apply_delta(player_id, 2, entry_date=GAME_DAY).entry_id
    seeded_store.remove_entry(second)
    third = seeded_store.apply_delta(player_id, 3, entry_date=GAME_DAY).entry_id

    assert first < second < third


def test_apply_delta_below_zero_leaves_store_untouched(seeded_store):
    player_id = _braden_id(seeded_store)
    with pytest.raises(InvalidDelta, match="only has 758 assists"):
        seeded_store.apply_delta(player_id, -900, entry_date=GAME_DAY)

    assert seeded_store.get_player(player_id).assists == 758
    assert seeded_store.list_entries() == []


def test_apply_delta_unknown_player(seeded_store):
    with pytest.raises(NotFound):
        seeded_store.apply_delta(999, 5, entry_date=GAME_DAY)
    assert seeded_store.list_entries() == []


def test_remove_entry_reverses_delta(seeded_store):
    player_id = _braden_id(seeded_store)
    applied = seeded_store.apply_delta(player_id, -8, entry_date=GAME_DAY)

    result = seeded_store.remove_entry(applied.entry_id)

    assert result.delta == -8
    assert result.player_id == player_id
    assert result.player.assists == 758
    assert seeded_store.get_entry(applied.entry_id) is None


def test_remove_missing_entry_raises(seeded_store):
    with pytest.raises(NotFound):
        seeded_store.remove_entry(42)


def test_remove_entry_refuses_to_go_negative(store):
    store.seed_players([SeedPlayer("Rookie", "Team", 0, "#111111", is_tracked=True)])
    player_id = store.list_players()[0].player_id
    added = store.apply_delta(player_id, 5, entry_date=GAME_DAY)
    store.apply_delta(player_id, -5, entry_date=GAME_DAY)

    with pytest.raises(InvalidDelta):
        store.remove_entry(added.entry_id)
    assert store.get_player(player_id).assists == 0
    assert len(store.list_entries()) == 2


def test_list_entries_orderings(seeded_store):
    player_id = _braden_id(seeded_store)
    older = seeded_store.apply_delta(player_id, 4, entry_date=date(2025, 1, 10)).entry_id
    newer_game = seeded_store.apply_delta(player_id, 6, entry_date=date(2025, 1, 20)).entry_id
    latest_created = seeded_store.apply_delta(player_id, 2, entry_date=date(2025, 1, 12)).entry_id

    by_date = [entry.entry_id for entry in seeded_store.list_entries()]
    by_creation = [entry.entry_id for entry in seeded_store.list_entries(newest_first=True)]

    assert by_date == [newer_game, latest_created, older]
    assert by_creation == [latest_created, newer_game, older]
    assert [entry.entry_id for entry in seeded_store.list_entries(limit=1, newest_first=True)] == [latest_created]
    assert seeded_store.list_entries(player_id=player_id + 100) == []


def test_delta_totals_per_player(seeded_store):
    players = seeded_store.list_players()
    leader, braden_id = players[0].player_id, _braden_id(seeded_store)
    seeded_store.apply_delta(braden_id, 10, entry_date=GAME_DAY)
    seeded_store.apply_delta(braden_id, -3, entry_date=GAME_DAY)
    seeded_store.apply_delta(leader, 1, entry_date=GAME_DAY)

    assert seeded_store.delta_totals() == {braden_id: 7, leader: 1}


def test_sqlite_store_persists_between_instances(tmp_path: Path):
    path = tmp_path / "nested" / "ledger.sqlite"
    first = SqliteLedgerStore(path)
    first.seed_players(SEED_PLAYERS)
    player_id = _braden_id(first)
    entry_id = first.apply_delta(player_id, 3, entry_date=GAME_DAY, notes="box score fix").entry_id

    reopened = SqliteLedgerStore(path)
    assert reopened.get_player(player_id).assists == 761
    entry = reopened.get_entry(entry_id)
    assert entry.notes == "box score fix"
    assert entry.entry_date == GAME_DAY


def test_sqlite_store_shared_memory_uri():
    store = SqliteLedgerStore("file:assist-ledger-test?mode=memory&cache=shared")
    try:
        store.seed_players(SEED_PLAYERS)
        assert store.count_players() == 11
    finally:
        store.close()


def test_oversized_ids_behave_like_unknown_ids(seeded_store):
    huge = 2**63
    assert seeded_store.get_player(huge) is None
    assert seeded_store.get_entry(huge) is None
    assert seeded_store.list_entries(player_id=huge) == []
    with pytest.raises(NotFound):
        seeded_store.apply_delta(huge, 1, entry_date=GAME_DAY)
    with pytest.raises(NotFound):
        seeded_store.remove_entry(huge)


def test_totals_beyond_integer_range_are_rejected(seeded_store):
    player_id = _braden_id(seeded_store)
    with pytest.raises(InvalidDelta):
        seeded_store.apply_delta(player_id, 2**63, entry_date=GAME_DAY)
    assert seeded_store.get_player(player_id).assists == 758
    assert seeded_store.list_entries() == []


def test_negative_limit_returns_nothing(seeded_store):
    player_id = _braden_id(seeded_store)
    for delta in (1, 2, 3):
        seeded_store.apply_delta(player_id, delta, entry_date=GAME_DAY)
    assert seeded_store.list_entries(limit=-1, newest_first=True) == []
    assert len(seeded_store.list_entries(limit=2, newest_first=True)) == 2


def test_concurrent_writes_to_one_player_are_serialized(seeded_store):
    player_id = _braden_id(seeded_store)

    def add_then_undo(step: int) -> int:
        kept = seeded_store.apply_delta(player_id, step % 5 + 1, entry_date=GAME_DAY)
        undone = seeded_store.apply_delta(player_id, 7, entry_date=GAME_DAY)
        seeded_store.remove_entry(undone.entry_id)
        return kept.entry.delta

    with ThreadPoolExecutor(max_workers=8) as pool:
        kept_deltas = list(pool.map(add_then_undo, range(40)))

    ledger = LedgerService(seeded_store)
    assert ledger.reconcile() == []
    assert seeded_store.get_player(player_id).assists == 758 + sum(kept_deltas)
    assert len(seeded_store.list_entries(player_id=player_id)) == 40


class _FailingCounterUpdate:
    """Connection proxy whose player counter UPDATE fails after the ledger INSERT ran."""

    def __init__(self, conn: sqlite3.Connection):
        self._conn = conn

    def execute(self, sql: str, params=()):
        if sql.lstrip().startswith("UPDATE players"):
            raise sqlite3.OperationalError("disk I/O error")
        return self._conn.execute(sql, params)

    def __getattr__(self, name):
        return getattr(self._conn, name)


def _break_counter_updates(store: SqliteLedgerStore, monkeypatch) -> None:
    connect = store._connect
    monkeypatch.setattr(store, "_connect", lambda: _FailingCounterUpdate(connect()))


def test_failed_apply_leaves_no_partial_write(tmp_path: Path, monkeypatch):
    store = SqliteLedgerStore(tmp_path / "ledger.sqlite")
    store.seed_players(SEED_PLAYERS)
    player_id = _braden_id(store)
    _break_counter_updates(store, monkeypatch)

    with pytest.raises(StorageError):
        store.apply_delta(player_id, 12, entry_date=GAME_DAY)

    monkeypatch.undo()
    assert store.list_entries() == []
    assert store.get_player(player_id).assists == 758


def test_failed_undo_keeps_entry_and_counter(tmp_path: Path, monkeypatch):
    store = SqliteLedgerStore(tmp_path / "ledger.sqlite")
    store.seed_players(SEED_PLAYERS)
    player_id = _braden_id(store)
    entry_id = store.apply_delta(player_id, 12, entry_date=GAME_DAY).entry_id
    _break_counter_updates(store, monkeypatch)

    with pytest.raises(StorageError):
        store.remove_entry(entry_id)

    monkeypatch.undo()
    assert store.get_entry(entry_id) is not None
    assert store.get_player(player_id).assists == 770


def test_check_constraint_violation_becomes_storage_error(tmp_path: Path):
    store = SqliteLedgerStore(tmp_path / "ledger.sqlite")
    store.seed_players(SEED_PLAYERS)
    player_id = _braden_id(store)

    with pytest.raises(StorageError):
        store.apply_delta(player_id, 0, entry_date=GAME_DAY)

    assert store.list_entries() == []
    assert store.get_player(player_id).assists == 758
