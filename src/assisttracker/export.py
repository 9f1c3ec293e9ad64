"""CSV export of the assist ledger."""

from __future__ import annotations

import csv
from io import StringIO
from typing import Mapping, Sequence

from assisttracker.models import LedgerEntry, PlayerRecord


LEDGER_CSV_HEADERS: tuple[str, ...] = (
    "entry_id",
    "player_id",
    "player_name",
    "team",
    "game_date",
    "delta",
    "opponent",
    "notes",
    "created_at",
)


def export_ledger_to_csv(
    entries: Sequence[LedgerEntry],
    players: Mapping[int, PlayerRecord],
) -> str:
    """Render ledger entries as CSV, one row per entry in the order given."""

    buffer = StringIO()
    writer = csv.writer(buffer)
    writer.writerow(LEDGER_CSV_HEADERS)
    for entry in entries:
        player = players.get(entry.player_id)
        writer.writerow([
            entry.entry_id,
            entry.player_id,
            player.name if player else "",
            player.team if player else "",
            entry.entry_date.isoformat(),
            entry.delta,
            entry.opponent or "",
            entry.notes or "",
            entry.created_at.isoformat(),
        ])
    return buffer.getvalue()


__all__ = ["LEDGER_CSV_HEADERS", "export_ledger_to_csv"]
