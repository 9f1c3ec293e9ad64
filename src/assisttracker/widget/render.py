"""Plain-text rendering of the leaderboard for terminals."""

from __future__ import annotations

from typing import Optional, Sequence

from assisttracker.models import PlayerRecord, Progress


def render_leaderboard(players: Sequence[PlayerRecord]) -> str:
    """One line per player in the order given; the tracked player is starred."""

    name_width = max([len(player.name) for player in players] + [6])
    team_width = max([len(player.team) for player in players] + [4])
    lines = [f"{'#':>3}  {'Player':<{name_width}}  {'Team':<{team_width}}  {'Assists':>7}"]
    for rank, player in enumerate(players, start=1):
        marker = "*" if player.is_tracked else " "
        lines.append(
            f"{rank:>3}{marker} {player.name:<{name_width}}  {player.team:<{team_width}}  {player.assists:>7,}"
        )
    return "\n".join(lines)


def render_progress(progress: Optional[Progress], *, width: int = 30) -> str:
    if progress is None:
        return "No tracked player found"
    filled = int(round(progress.ratio * width))
    bar = "#" * filled + "-" * (width - filled)
    line = (
        f"[{bar}] {progress.percent:5.1f}%  {progress.tracked.name} "
        f"{progress.tracked.assists:,} / {progress.leader.assists:,}"
    )
    if progress.needed:
        return f"{line}\nNeeds {progress.needed} assists to break record"
    return f"{line}\nRecord holder: {progress.tracked.name}"
