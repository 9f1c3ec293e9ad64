"""Reference table of career assist leaders used to seed the store."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Sequence, Tuple


@dataclass(frozen=True)
class SeedPlayer:
    name: str
    team: str
    assists: int
    color: str
    is_tracked: bool = False


SEED_PLAYERS: Tuple[SeedPlayer, ...] = (
    SeedPlayer("Bobby Hurley", "Duke", 1076, "#001A57"),
    SeedPlayer("Chris Corchiani", "NC State", 1038, "#CC0000"),
    SeedPlayer("Ed Cota", "North Carolina", 1030, "#7BAFD4"),
    SeedPlayer("Jason Brickman", "Long Island University", 1007, "#002D62"),
    SeedPlayer("Keith Jennings", "East Tennessee State", 983, "#003366"),
    SeedPlayer("Steve Blake", "Maryland", 972, "#E03A3E"),
    SeedPlayer("Sherman Douglas", "Syracuse", 960, "#F76900"),
    SeedPlayer("Tony Miller", "Marquette", 956, "#003366"),
    SeedPlayer("Aaron Miles", "Kansas", 954, "#0051BA"),
    SeedPlayer("Greg Anthony", "Nevada-Las Vegas", 950, "#BA0C2F"),
    SeedPlayer("Braden Smith", "Purdue", 758, "#CEB888", is_tracked=True),
)


def iter_seeds() -> Iterable[SeedPlayer]:
    """Return an iterator over the reference table."""

    return iter(SEED_PLAYERS)


def get_seed(name: str) -> SeedPlayer:
    """Fetch a seed row by player name, raising KeyError if missing."""

    wanted = name.strip().casefold()
    for seed in SEED_PLAYERS:
        if seed.name.casefold() == wanted:
            return seed
    raise KeyError(f"No seed player named {name!r}")


def tracked_seed(seeds: Sequence[SeedPlayer] = SEED_PLAYERS) -> SeedPlayer:
    validate_seeds(seeds)
    return next(seed for seed in seeds if seed.is_tracked)


def validate_seeds(seeds: Sequence[SeedPlayer]) -> None:
    """Require unique names, non-negative totals and exactly one tracked player."""

    tracked = [seed.name for seed in seeds if seed.is_tracked]
    if len(tracked) != 1:
        raise ValueError(f"Exactly one seed player must be tracked, found {len(tracked)}")
    seen: set[str] = set()
    for seed in seeds:
        key = seed.name.casefold()
        if key in seen:
            raise ValueError(f"Duplicate seed player {seed.name!r}")
        seen.add(key)
        if seed.assists < 0:
            raise ValueError(f"Seed player {seed.name!r} has negative assists")
