from __future__ import annotations

from datetime import date, datetime
from typing import List

from pydantic import BaseModel, Field


class PlayerResponse(BaseModel):
    id: int
    name: str
    team: str
    assists: int
    color: str
    is_tracked: bool
    created_at: datetime | None = None
    updated_at: datetime | None = None


class PlayerListResponse(BaseModel):
    success: bool = True
    data: List[PlayerResponse]
    count: int


class PlayerDetailResponse(BaseModel):
    success: bool = True
    data: PlayerResponse


class AddAssistsRequest(BaseModel):
    assists_to_add: int = Field(..., ge=1)
    game_date: date | None = None
    opponent: str | None = None
    notes: str | None = None


class ReduceAssistsRequest(BaseModel):
    assists_to_remove: int = Field(..., ge=1)
    game_date: date | None = None
    notes: str | None = None


class SetAssistsRequest(BaseModel):
    assists: int = Field(..., ge=0)
    game_date: date | None = None
    opponent: str | None = None
    notes: str | None = None


class AssistMutationResponse(BaseModel):
    success: bool = True
    message: str
    data: PlayerResponse
    assistLogId: int | None = None
