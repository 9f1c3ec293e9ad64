"""Lightweight REST client for the assist tracker API."""

from __future__ import annotations

import argparse
import json
from pathlib import Path

import httpx


def main() -> None:
    parser = argparse.ArgumentParser(description="Interact with the assist tracker REST API")
    parser.add_argument("base_url", help="Base URL of the API, e.g. http://localhost:8000")
    parser.add_argument("--recent", action="store_true", help="Print the most recent ledger entries")
    parser.add_argument("--summary", action="store_true", help="Print ledger statistics")
    parser.add_argument("--player", type=int, metavar="PLAYER_ID", help="Print one player and their ledger")
    parser.add_argument("--add", type=int, metavar="N", help="Add N assists to the tracked player")
    parser.add_argument("--undo", type=int, metavar="ENTRY_ID", help="Delete a ledger entry and reverse it")
    parser.add_argument("--export-path", type=Path, help="Download the ledger CSV to this path")
    args = parser.parse_args()

    with httpx.Client(base_url=args.base_url) as client:
        resp = client.get("/health")
        resp.raise_for_status()

        if args.add is not None:
            tracked = client.get("/players/tracked")
            tracked.raise_for_status()
            player_id = tracked.json()["data"]["id"]
            resp = client.post(f"/players/{player_id}/add-assists", json={"assists_to_add": args.add})
            if resp.status_code == 400:
                raise SystemExit(resp.json()["message"])
            resp.raise_for_status()
            payload = resp.json()
            print(payload["message"])
            print(f"Undo with: --undo {payload['assistLogId']}")

        if args.undo is not None:
            resp = client.delete(f"/assists/{args.undo}")
            if resp.status_code == 404:
                raise SystemExit(f"assist log {args.undo} not found")
            resp.raise_for_status()
            print(json.dumps(resp.json()["data"], indent=2))

        if args.player is not None:
            resp = client.get(f"/players/{args.player}")
            if resp.status_code == 404:
                raise SystemExit(f"player {args.player} not found")
            resp.raise_for_status()
            print(json.dumps(resp.json()["data"], indent=2))
            resp = client.get(f"/assists/player/{args.player}")
            resp.raise_for_status()
            print(json.dumps(resp.json()["data"], indent=2))

        if args.recent:
            resp = client.get("/assists/recent")
            resp.raise_for_status()
            print(json.dumps(resp.json()["data"], indent=2))

        if args.summary:
            resp = client.get("/assists/stats/summary")
            resp.raise_for_status()
            print(json.dumps(resp.json()["data"], indent=2))

        if args.export_path:
            resp = client.get("/assists/export.csv")
            resp.raise_for_status()
            args.export_path.write_text(resp.text, encoding="utf-8")
            print(f"CSV export saved to {args.export_path}")

        if not any([args.recent, args.summary, args.player is not None, args.add is not None,
                    args.undo is not None, args.export_path]):
            resp = client.get("/players")
            resp.raise_for_status()
            for rank, player in enumerate(resp.json()["data"], start=1):
                marker = "*" if player["is_tracked"] else " "
                print(f"{rank:>3}{marker} {player['name']:<20} {player['team']:<24} {player['assists']:>6}")


if __name__ == "__main__":
    main()
