"""Persist and load the CLI's undo pointer between invocations."""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Optional


DEFAULT_STATE_PATH = Path.home() / ".assist_tracker_state.json"


@dataclass
class WidgetState:
    last_entry_id: Optional[int] = None
    api_url: Optional[str] = None

    @classmethod
    def load(cls, path: Path) -> "WidgetState":
        if not path.exists():
            return cls()
        data = json.loads(path.read_text(encoding="utf-8"))
        last_entry_id = data.get("last_entry_id")
        return cls(
            last_entry_id=int(last_entry_id) if last_entry_id is not None else None,
            api_url=data.get("api_url"),
        )

    def save(self, path: Path) -> None:
        payload = {
            "last_entry_id": self.last_entry_id,
            "api_url": self.api_url,
        }
        path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
