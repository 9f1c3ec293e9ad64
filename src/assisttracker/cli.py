"""Command-line interface for the assist ledger."""

from __future__ import annotations

import argparse
import sys
from datetime import date
from pathlib import Path
from typing import Optional, Sequence

import uvicorn

from assisttracker.api import create_app
from assisttracker.config import Settings
from assisttracker.config_loader import DEFAULT_STATE_PATH, WidgetState
from assisttracker.errors import ConnectivityError, LedgerError
from assisttracker.ledger import LedgerService, bootstrap
from assisttracker.persistence import open_store
from assisttracker.widget import LeaderboardSync, render_leaderboard, render_progress


def _parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Track career assists against the all-time leaders")
    parser.add_argument(
        "--api",
        default=None,
        help="Base URL of a running API for ranking/add/reduce/undo (default: local store)",
    )
    parser.add_argument(
        "--state",
        type=Path,
        default=DEFAULT_STATE_PATH,
        help="File holding the undo pointer between runs",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("init-db", help="Create tables and seed the reference players")
    commands.add_parser("ranking", help="Print the leaderboard and tracked player progress")
    commands.add_parser("summary", help="Print ledger statistics")
    commands.add_parser("reconcile", help="Check totals against seed values plus logged deltas")

    add = commands.add_parser("add", help="Add assists to a player (tracked player by default)")
    add.add_argument("count", type=int)
    add.add_argument("--player", type=int, default=None, help="Player ID")
    add.add_argument("--date", type=date.fromisoformat, default=None, help="Game date (YYYY-MM-DD)")
    add.add_argument("--opponent", default=None)
    add.add_argument("--notes", default=None)

    reduce = commands.add_parser("reduce", help="Remove assists from a player")
    reduce.add_argument("count", type=int)
    reduce.add_argument("--player", type=int, default=None, help="Player ID")
    reduce.add_argument("--date", type=date.fromisoformat, default=None, help="Game date (YYYY-MM-DD)")
    reduce.add_argument("--notes", default=None)

    undo = commands.add_parser("undo", help="Undo the last change (or a specific ledger entry)")
    undo.add_argument("entry_id", type=int, nargs="?", default=None)

    serve = commands.add_parser("serve", help="Run the HTTP API with uvicorn")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8000)
    return parser.parse_args(argv)


def _local_service(settings: Settings) -> LedgerService:
    store = open_store(settings)
    bootstrap(store)
    return LedgerService(store)


def _print_board(players, progress) -> None:
    print(render_leaderboard(players))
    print()
    print(render_progress(progress))


def _run_remote(args: argparse.Namespace, api_url: str, state: WidgetState) -> int:
    with LeaderboardSync(api_url) as sync:
        if args.command == "ranking":
            sync.refresh()
            if sync.warning:
                print(sync.warning, file=sys.stderr)
            _print_board(sync.players, sync.progress())
            return 0
        if args.command in ("add", "reduce"):
            if args.player is not None:
                print("--player is not supported with --api; the tracked player is updated", file=sys.stderr)
            if args.command == "add":
                entry_id = sync.add_assists(args.count)
            else:
                entry_id = sync.reduce_assists(args.count)
            if not sync.offline:
                state.last_entry_id = entry_id
                state.api_url = api_url
                state.save(args.state)
            _print_board(sync.players, sync.progress())
            print(f"\nUndo pointer: {entry_id}")
            return 0
        entry_id = args.entry_id
        if entry_id is None and state.api_url == api_url:
            entry_id = state.last_entry_id
        if entry_id is None:
            print("Nothing to undo")
            return 0
        sync.last_entry_id = entry_id
        sync.undo_last()
        if state.api_url == api_url and state.last_entry_id == entry_id:
            state.last_entry_id = None
            state.save(args.state)
        print(sync.message)
        _print_board(sync.players, sync.progress())
        return 0


def _run_local(args: argparse.Namespace, settings: Settings, state: WidgetState) -> int:
    ledger = _local_service(settings)
    if args.command == "init-db":
        print(f"Store ready with {ledger.store.count_players()} players")
        return 0
    if args.command == "ranking":
        _print_board(ledger.list_ranking(), ledger.progress())
        return 0
    if args.command == "summary":
        summary = ledger.summary()
        print(f"Entries: {summary.total_entries}")
        print(f"Total delta: {summary.total_delta:+d}")
        print(f"Players touched: {summary.distinct_players}")
        print(f"Date range: {summary.earliest_date or '-'} .. {summary.latest_date or '-'}")
        return 0
    if args.command == "reconcile":
        drift = ledger.reconcile()
        if not drift:
            print("All player totals reconcile with the ledger")
            return 0
        for row in drift:
            print(f"{row.name} (id {row.player_id}): assists={row.assists} expected={row.expected} drift={row.drift:+d}")
        return 1
    if args.command in ("add", "reduce"):
        player_id = args.player if args.player is not None else ledger.tracked_player().player_id
        if args.command == "add":
            applied = ledger.add_assists(player_id, args.count, args.date, opponent=args.opponent, notes=args.notes)
            print(f"Added {args.count} assists to {applied.player.name} (now {applied.player.assists:,})")
        else:
            applied = ledger.reduce_assists(player_id, args.count, args.date, notes=args.notes)
            print(f"Removed {args.count} assists from {applied.player.name} (now {applied.player.assists:,})")
        state.last_entry_id = applied.entry_id
        state.api_url = None
        state.save(args.state)
        print(f"Undo pointer: {applied.entry_id}")
        return 0
    # undo
    entry_id = args.entry_id
    if entry_id is None and state.api_url is None:
        entry_id = state.last_entry_id
    if entry_id is None:
        print("Nothing to undo")
        return 0
    result = ledger.undo_last(entry_id)
    if state.api_url is None and state.last_entry_id == entry_id:
        state.last_entry_id = None
        state.save(args.state)
    print(f"Undid assist log {entry_id}: {result.player.name} back to {result.player.assists:,} ({-result.delta:+d})")
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _parse_args(argv)
    settings = Settings.from_env()

    if args.command == "serve":
        uvicorn.run(create_app(settings=settings), host=args.host, port=args.port)
        return 0

    state = WidgetState.load(args.state)
    api_url = args.api or settings.api_url
    try:
        if api_url and args.command in ("ranking", "add", "reduce", "undo"):
            return _run_remote(args, api_url, state)
        return _run_local(args, settings, state)
    except (LedgerError, ConnectivityError) as exc:
        message = exc.message if isinstance(exc, LedgerError) else str(exc)
        print(f"error: {message}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
