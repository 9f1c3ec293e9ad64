"""Pydantic models for API I/O."""

from .player import (
    AddAssistsRequest,
    AssistMutationResponse,
    PlayerDetailResponse,
    PlayerListResponse,
    PlayerResponse,
    ReduceAssistsRequest,
    SetAssistsRequest,
)
from .assists import (
    AssistLogDetailResponse,
    AssistLogListResponse,
    AssistLogResponse,
    CreateAssistLogRequest,
    SummaryData,
    SummaryResponse,
    UndoData,
    UndoResponse,
)

__all__ = [
    "AddAssistsRequest",
    "AssistLogDetailResponse",
    "AssistLogListResponse",
    "AssistLogResponse",
    "AssistMutationResponse",
    "CreateAssistLogRequest",
    "PlayerDetailResponse",
    "PlayerListResponse",
    "PlayerResponse",
    "ReduceAssistsRequest",
    "SetAssistsRequest",
    "SummaryData",
    "SummaryResponse",
    "UndoData",
    "UndoResponse",
]
