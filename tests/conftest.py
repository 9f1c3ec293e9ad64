from datetime import date
from pathlib import Path

import pytest

from assisttracker.ledger import LedgerService, bootstrap
from assisttracker.persistence import MemoryLedgerStore, SqliteLedgerStore

GAME_DAY = date(2025, 1, 15)


@pytest.fixture(params=["memory", "sqlite"])
def store(request, tmp_path: Path):
    if request.param == "memory":
        return MemoryLedgerStore()
    return SqliteLedgerStore(tmp_path / "ledger.sqlite")


@pytest.fixture
def seeded_store(store):
    bootstrap(store)
    return store


@pytest.fixture
def ledger(seeded_store) -> LedgerService:
    return LedgerService(seeded_store, today=lambda: GAME_DAY)


@pytest.fixture
def braden(ledger: LedgerService):
    return ledger.tracked_player()
