from __future__ import annotations

from datetime import date, datetime
from typing import List

from pydantic import BaseModel, Field


class AssistLogResponse(BaseModel):
    id: int
    player_id: int
    player_name: str
    player_team: str
    game_date: date
    delta: int
    opponent: str | None = None
    notes: str | None = None
    created_at: datetime
    current_total: int | None = None


class AssistLogListResponse(BaseModel):
    success: bool = True
    data: List[AssistLogResponse]
    count: int


class AssistLogDetailResponse(BaseModel):
    success: bool = True
    message: str
    data: AssistLogResponse


class CreateAssistLogRequest(BaseModel):
    player_id: int = Field(..., ge=1)
    game_date: date
    assists_added: int = Field(..., ge=1)
    opponent: str | None = None
    notes: str | None = None


class UndoData(BaseModel):
    deletedLogId: int
    assistsSubtracted: int
    playerId: int


class UndoResponse(BaseModel):
    success: bool = True
    message: str
    data: UndoData


class SummaryData(BaseModel):
    total_entries: int
    total_delta: int
    distinct_players: int
    earliest_date: date | None = None
    latest_date: date | None = None


class SummaryResponse(BaseModel):
    success: bool = True
    data: SummaryData
