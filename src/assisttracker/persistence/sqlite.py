"""SQLite-backed store for players and the assist ledger."""

from __future__ import annotations

import sqlite3
import threading
from contextlib import contextmanager
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Sequence

from assisttracker.config.seed import SeedPlayer
from assisttracker.errors import InvalidDelta, NotFound, StorageError
from assisttracker.models import AppliedDelta, LedgerEntry, PlayerRecord, UndoResult

from .base import MAX_STORED_INT, fits_integer_column, negative_total_message


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class SqliteLedgerStore:
    """Players and ledger tables in one SQLite database.

    Connections are opened per operation. Writes take ``BEGIN IMMEDIATE`` so the
    ledger row and the player's counter commit together or not at all, and a
    process-level lock keeps writers from this store in a single file.
    """

    def __init__(self, db_path: Path | str):
        self._use_uri = isinstance(db_path, str) and db_path.startswith("file:")
        self.db_path: Path | str = db_path if self._use_uri else Path(db_path)
        self._write_lock = threading.Lock()
        self._keepalive: Optional[sqlite3.Connection] = None
        if self._use_uri and "memory" in str(db_path):
            # Shared-cache memory databases vanish once the last connection closes.
            self._keepalive = self._connect()
        self._ensure_schema()

    def _connect(self) -> sqlite3.Connection:
        if isinstance(self.db_path, Path):
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
        try:
            conn = sqlite3.connect(self.db_path, uri=self._use_uri, timeout=10.0)
        except sqlite3.Error as exc:
            raise StorageError(f"Cannot open database {self.db_path}: {exc}") from exc
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        return conn

    @contextmanager
    def _reading(self) -> Iterator[sqlite3.Connection]:
        conn = self._connect()
        try:
            yield conn
        except sqlite3.Error as exc:
            raise StorageError(str(exc)) from exc
        finally:
            conn.close()

    @contextmanager
    def _transaction(self) -> Iterator[sqlite3.Connection]:
        with self._write_lock:
            conn = self._connect()
            try:
                conn.execute("BEGIN IMMEDIATE")
                yield conn
                conn.commit()
            except sqlite3.Error as exc:
                conn.rollback()
                raise StorageError(str(exc)) from exc
            except BaseException:
                conn.rollback()
                raise
            finally:
                conn.close()

    def _ensure_schema(self) -> None:
        with self._transaction() as conn:
            self._create_schema(conn)

    def _create_schema(self, conn: sqlite3.Connection) -> None:
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS players (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                name TEXT NOT NULL,
                assists INTEGER NOT NULL DEFAULT 0 CHECK (assists >= 0),
                seed_assists INTEGER NOT NULL DEFAULT 0,
                team TEXT NOT NULL,
                color TEXT NOT NULL,
                is_tracked INTEGER NOT NULL DEFAULT 0,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            )
            """
        )
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS ledger (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                player_id INTEGER NOT NULL REFERENCES players (id),
                date TEXT NOT NULL,
                delta INTEGER NOT NULL CHECK (delta != 0),
                opponent TEXT,
                notes TEXT,
                created_at TEXT NOT NULL
            )
            """
        )
        conn.execute("CREATE INDEX IF NOT EXISTS ledger_player_idx ON ledger (player_id)")

    def get_player(self, player_id: int) -> Optional[PlayerRecord]:
        if not fits_integer_column(player_id):
            return None
        with self._reading() as conn:
            row = conn.execute("SELECT * FROM players WHERE id = ?", (player_id,)).fetchone()
            if row is None:
                return None
            return self._row_to_player(row)

    def list_players(self) -> List[PlayerRecord]:
        with self._reading() as conn:
            rows = conn.execute("SELECT * FROM players ORDER BY assists DESC, name ASC").fetchall()
        return [self._row_to_player(row) for row in rows]

    def count_players(self) -> int:
        with self._reading() as conn:
            return int(conn.execute("SELECT COUNT(*) FROM players").fetchone()[0])

    def get_entry(self, entry_id: int) -> Optional[LedgerEntry]:
        if not fits_integer_column(entry_id):
            return None
        with self._reading() as conn:
            row = conn.execute("SELECT * FROM ledger WHERE id = ?", (entry_id,)).fetchone()
            if row is None:
                return None
            return self._row_to_entry(row)

    def list_entries(
        self,
        *,
        player_id: Optional[int] = None,
        limit: Optional[int] = None,
        newest_first: bool = False,
    ) -> List[LedgerEntry]:
        if player_id is not None and not fits_integer_column(player_id):
            return []
        query = "SELECT * FROM ledger"
        params: list[int] = []
        if player_id is not None:
            query += " WHERE player_id = ?"
            params.append(player_id)
        if newest_first:
            query += " ORDER BY created_at DESC, id DESC"
        else:
            query += " ORDER BY date DESC, created_at DESC, id DESC"
        if limit is not None:
            query += " LIMIT ?"
            params.append(min(max(limit, 0), MAX_STORED_INT))
        with self._reading() as conn:
            rows = conn.execute(query, tuple(params)).fetchall()
        return [self._row_to_entry(row) for row in rows]

    def delta_totals(self) -> Dict[int, int]:
        with self._reading() as conn:
            rows = conn.execute(
                "SELECT player_id, SUM(delta) AS total FROM ledger GROUP BY player_id"
            ).fetchall()
        return {int(row["player_id"]): int(row["total"]) for row in rows}

    def apply_delta(
        self,
        player_id: int,
        delta: int,
        *,
        entry_date: date,
        opponent: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> AppliedDelta:
        if not fits_integer_column(player_id):
            raise NotFound(f"Player with ID {player_id} does not exist.")
        now = _now_iso()
        with self._transaction() as conn:
            row = conn.execute("SELECT * FROM players WHERE id = ?", (player_id,)).fetchone()
            if row is None:
                raise NotFound(f"Player with ID {player_id} does not exist.")
            new_total = int(row["assists"]) + delta
            if new_total < 0:
                raise InvalidDelta(negative_total_message(row["name"], int(row["assists"]), delta))
            if not fits_integer_column(delta) or new_total > MAX_STORED_INT:
                raise InvalidDelta(f"{delta:+d} assists is out of range for {row['name']}.")
            cursor = conn.execute(
                """
                INSERT INTO ledger (player_id, date, delta, opponent, notes, created_at)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (player_id, entry_date.isoformat(), delta, opponent, notes, now),
            )
            entry_id = cursor.lastrowid
            conn.execute(
                "UPDATE players SET assists = ?, updated_at = ? WHERE id = ?",
                (new_total, now, player_id),
            )
            entry_row = conn.execute("SELECT * FROM ledger WHERE id = ?", (entry_id,)).fetchone()
            player_row = conn.execute("SELECT * FROM players WHERE id = ?", (player_id,)).fetchone()
        return AppliedDelta(entry=self._row_to_entry(entry_row), player=self._row_to_player(player_row))

    def remove_entry(self, entry_id: int) -> UndoResult:
        if not fits_integer_column(entry_id):
            raise NotFound(f"Assist log with ID {entry_id} does not exist.")
        now = _now_iso()
        with self._transaction() as conn:
            entry_row = conn.execute("SELECT * FROM ledger WHERE id = ?", (entry_id,)).fetchone()
            if entry_row is None:
                raise NotFound(f"Assist log with ID {entry_id} does not exist.")
            player_id = int(entry_row["player_id"])
            delta = int(entry_row["delta"])
            row = conn.execute("SELECT * FROM players WHERE id = ?", (player_id,)).fetchone()
            if row is None:  # pragma: no cover - foreign key keeps this from happening
                raise NotFound(f"Player with ID {player_id} does not exist.")
            new_total = int(row["assists"]) - delta
            if new_total < 0:
                raise InvalidDelta(
                    f"Cannot undo assist log {entry_id}. {row['name']} only has {row['assists']} assists."
                )
            conn.execute("DELETE FROM ledger WHERE id = ?", (entry_id,))
            conn.execute(
                "UPDATE players SET assists = ?, updated_at = ? WHERE id = ?",
                (new_total, now, player_id),
            )
            player_row = conn.execute("SELECT * FROM players WHERE id = ?", (player_id,)).fetchone()
        return UndoResult(
            entry_id=entry_id,
            delta=delta,
            player_id=player_id,
            player=self._row_to_player(player_row),
        )

    def seed_players(self, seeds: Sequence[SeedPlayer]) -> int:
        now = _now_iso()
        with self._transaction() as conn:
            existing = conn.execute("SELECT COUNT(*) FROM players").fetchone()[0]
            if existing:
                return 0
            conn.executemany(
                """
                INSERT INTO players (
                    name, assists, seed_assists, team, color, is_tracked, created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                [
                    (seed.name, seed.assists, seed.assists, seed.team, seed.color, int(seed.is_tracked), now, now)
                    for seed in seeds
                ],
            )
        return len(seeds)

    def close(self) -> None:
        if self._keepalive is not None:
            self._keepalive.close()
            self._keepalive = None

    def _row_to_player(self, row: sqlite3.Row) -> PlayerRecord:
        return PlayerRecord(
            player_id=row["id"],
            name=row["name"],
            team=row["team"],
            assists=row["assists"],
            seed_assists=row["seed_assists"],
            color=row["color"],
            is_tracked=bool(row["is_tracked"]),
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )

    def _row_to_entry(self, row: sqlite3.Row) -> LedgerEntry:
        return LedgerEntry(
            entry_id=row["id"],
            player_id=row["player_id"],
            delta=row["delta"],
            entry_date=date.fromisoformat(row["date"]),
            opponent=row["opponent"],
            notes=row["notes"],
            created_at=datetime.fromisoformat(row["created_at"]),
        )
