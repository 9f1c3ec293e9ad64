"""Environment-driven runtime settings."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional


logger = logging.getLogger("uvicorn.error")

_STORAGE_ENV = "ASSIST_TRACKER_STORAGE"
_DB_PATH_ENV = "ASSIST_TRACKER_DB_PATH"
_API_URL_ENV = "ASSIST_TRACKER_API_URL"
_MAX_ERRORS_ENV = "ASSIST_TRACKER_MAX_ERRORS"
_RECENT_LIMIT_ENV = "ASSIST_TRACKER_RECENT_LIMIT"
_CORS_ORIGINS_ENV = "ASSIST_TRACKER_CORS_ORIGINS"

STORAGE_CHOICES = ("sqlite", "memory")
DEFAULT_DB_PATH = Path(__file__).resolve().parents[2] / "assist_tracker.sqlite"
DEFAULT_MAX_ERRORS = 3
DEFAULT_RECENT_LIMIT = 10
DEFAULT_CORS_ORIGINS: tuple[str, ...] = ("*",)


def _env_int(name: str, default: int, *, min_value: int | None = None) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning("Invalid int for %s: %s; using default %d", name, raw, default)
        return default
    if min_value is not None:
        value = max(min_value, value)
    return value


def _env_storage() -> str:
    raw = (os.getenv(_STORAGE_ENV) or "sqlite").strip().lower()
    if raw not in STORAGE_CHOICES:
        logger.warning("Unknown storage backend %s; using sqlite", raw)
        return "sqlite"
    return raw


def _env_origins() -> tuple[str, ...]:
    raw = os.getenv(_CORS_ORIGINS_ENV)
    if raw is None:
        return DEFAULT_CORS_ORIGINS
    origins = tuple(origin.strip() for origin in raw.split(",") if origin.strip())
    return origins or DEFAULT_CORS_ORIGINS


@dataclass(frozen=True)
class Settings:
    storage: str = "sqlite"
    db_path: Path | str = DEFAULT_DB_PATH
    api_url: Optional[str] = None
    max_errors: int = DEFAULT_MAX_ERRORS
    recent_limit: int = DEFAULT_RECENT_LIMIT
    cors_origins: tuple[str, ...] = DEFAULT_CORS_ORIGINS

    @classmethod
    def from_env(cls) -> "Settings":
        raw_path = os.getenv(_DB_PATH_ENV)
        db_path: Path | str
        if raw_path and raw_path.startswith("file:"):
            db_path = raw_path
        elif raw_path:
            db_path = Path(raw_path)
        else:
            db_path = DEFAULT_DB_PATH
        return cls(
            storage=_env_storage(),
            db_path=db_path,
            api_url=(os.getenv(_API_URL_ENV) or "").strip() or None,
            max_errors=_env_int(_MAX_ERRORS_ENV, DEFAULT_MAX_ERRORS, min_value=1),
            recent_limit=_env_int(_RECENT_LIMIT_ENV, DEFAULT_RECENT_LIMIT, min_value=1),
            cors_origins=_env_origins(),
        )
