"""Presentation layer: leaderboard sync client and renderers."""

from .render import render_leaderboard, render_progress
from .sync import LeaderboardSync, demo_ledger, fingerprint, player_from_payload

__all__ = [
    "LeaderboardSync",
    "demo_ledger",
    "fingerprint",
    "player_from_payload",
    "render_leaderboard",
    "render_progress",
]
