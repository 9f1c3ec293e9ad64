"""Configuration helpers for seed data and runtime settings."""

from .seed import SEED_PLAYERS, SeedPlayer, get_seed, iter_seeds, tracked_seed, validate_seeds
from .settings import Settings

__all__ = [
    "SEED_PLAYERS",
    "SeedPlayer",
    "Settings",
    "get_seed",
    "iter_seeds",
    "tracked_seed",
    "validate_seeds",
]
