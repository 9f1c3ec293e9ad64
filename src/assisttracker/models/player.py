"""Canonical player and ledger records shared by the store, service and API."""

from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator
from pydantic.config import ConfigDict


class PlayerRecord(BaseModel):
    """A tracked entity with its cumulative assist count."""

    player_id: int = Field(..., ge=1)
    name: str = Field(..., min_length=1)
    team: str
    assists: int = Field(..., ge=0)
    seed_assists: int = Field(0, ge=0)
    color: str = ""
    is_tracked: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(frozen=True)


class LedgerEntry(BaseModel):
    """One signed change applied to a player. Never mutated after creation."""

    entry_id: int = Field(..., ge=1)
    player_id: int = Field(..., ge=1)
    delta: int
    entry_date: date
    opponent: Optional[str] = None
    notes: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(frozen=True)

    @field_validator("delta")
    @classmethod
    def _non_zero(cls, value: int) -> int:
        if value == 0:
            raise ValueError("delta must be non-zero")
        return value
