"""REST API for the assist ledger."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from html import escape
from typing import Iterable, Mapping

from fastapi import FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse, Response

from assisttracker.api.schemas import (
    AddAssistsRequest,
    AssistLogDetailResponse,
    AssistLogListResponse,
    AssistLogResponse,
    AssistMutationResponse,
    CreateAssistLogRequest,
    PlayerDetailResponse,
    PlayerListResponse,
    PlayerResponse,
    ReduceAssistsRequest,
    SetAssistsRequest,
    SummaryData,
    SummaryResponse,
    UndoData,
    UndoResponse,
)
from assisttracker.colors import display_color
from assisttracker.config import Settings
from assisttracker.errors import LedgerError
from assisttracker.export import export_ledger_to_csv
from assisttracker.ledger import LedgerService, bootstrap, compute_progress
from assisttracker.models import LedgerEntry, PlayerRecord
from assisttracker.persistence import LedgerStore, open_store


logger = logging.getLogger("uvicorn.error")


def player_to_response(player: PlayerRecord) -> PlayerResponse:
    return PlayerResponse(
        id=player.player_id,
        name=player.name,
        team=player.team,
        assists=player.assists,
        color=player.color,
        is_tracked=player.is_tracked,
        created_at=player.created_at,
        updated_at=player.updated_at,
    )


def entry_to_response(
    entry: LedgerEntry,
    players: Mapping[int, PlayerRecord],
    *,
    include_total: bool = False,
) -> AssistLogResponse:
    player = players.get(entry.player_id)
    return AssistLogResponse(
        id=entry.entry_id,
        player_id=entry.player_id,
        player_name=player.name if player else "",
        player_team=player.team if player else "",
        game_date=entry.entry_date,
        delta=entry.delta,
        opponent=entry.opponent,
        notes=entry.notes,
        created_at=entry.created_at,
        current_total=player.assists if (player and include_total) else None,
    )


def _validation_message(exc: RequestValidationError) -> str:
    parts: list[str] = []
    for error in exc.errors():
        loc = [str(part) for part in error.get("loc", ()) if part not in ("body", "path", "query")]
        field = ".".join(loc) or "request"
        parts.append(f"{field}: {error.get('msg', 'invalid value')}")
    return "; ".join(parts) or "Invalid request"


def _render_page(body: str) -> str:
    return f"""<!DOCTYPE html>
<html lang=\"en\">
<head>
    <meta charset=\"utf-8\">
    <title>Assist Tracker</title>
    <style>
        body {{ font-family: Arial, sans-serif; margin: 2rem; background: #f5f7fa; }}
        main {{ background: #fff; padding: 2rem; border-radius: 12px; box-shadow: 0 2px 6px rgba(0,0,0,0.08); }}
        table {{ border-collapse: collapse; width: 100%; margin-top: 1rem; }}
        th, td {{ padding: 0.5rem; border: 1px solid #e2e8f0; text-align: left; }}
        tr.tracked {{ background: #fefce8; font-weight: 600; }}
        .swatch {{ display: inline-block; width: 0.9rem; height: 0.9rem; border-radius: 50%; margin-right: 0.5rem; vertical-align: middle; }}
        .progress {{ background: #e2e8f0; border-radius: 8px; height: 1.2rem; overflow: hidden; }}
        .progress .bar {{ background: #CEB888; height: 100%; }}
        .hint {{ color: #475569; margin: 0.5rem 0 0; }}
        .hint.close {{ color: #047857; font-weight: 600; }}
    </style>
</head>
<body>
    <main>{body}</main>
</body>
</html>"""


def _render_leaderboard_page(players: list[PlayerRecord]) -> str:
    progress = compute_progress(players)
    sections: list[str] = ["<h1>Career Assists Leaderboard</h1>"]
    if progress is not None:
        needed_class = "hint close" if progress.needed <= 100 else "hint"
        sections.append(
            f"""
        <section class=\"tracked-progress\">
            <h2>{escape(progress.tracked.name)}: {progress.tracked.assists:,} assists</h2>
            <div class=\"progress\"><div class=\"bar\" style=\"width: {progress.percent:.1f}%\"></div></div>
            <p class=\"{needed_class}\">Needs {progress.needed} assists to break record ({progress.percent:.1f}% of {escape(progress.leader.name)})</p>
        </section>"""
        )
    rows: list[str] = []
    for rank, player in enumerate(players, start=1):
        color = player.color if player.is_tracked else display_color(player)
        row_class = " class=\"tracked\"" if player.is_tracked else ""
        rows.append(
            f"<tr{row_class}><td>{rank}</td>"
            f"<td><span class=\"swatch\" style=\"background: {escape(color)}\"></span>{escape(player.name)}</td>"
            f"<td>{escape(player.team)}</td><td>{player.assists:,}</td></tr>"
        )
    sections.append(
        "<table><thead><tr><th>#</th><th>Player</th><th>Team</th><th>Assists</th></tr></thead>"
        f"<tbody>{''.join(rows)}</tbody></table>"
    )
    return _render_page("\n".join(sections))


def create_app(store: LedgerStore | None = None, settings: Settings | None = None) -> FastAPI:
    settings = settings or Settings.from_env()
    if store is None:
        store = open_store(settings)
        bootstrap(store)
    app = FastAPI(title="Assist Tracker")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_methods=["*"],
        allow_headers=["*"],
    )
    ledger = LedgerService(store)
    app.state.ledger = ledger
    app.state.settings = settings

    def players_by_id() -> dict[int, PlayerRecord]:
        return {player.player_id: player for player in ledger.store.list_players()}

    def entries_payload(entries: Iterable[LedgerEntry]) -> AssistLogListResponse:
        lookup = players_by_id()
        data = [entry_to_response(entry, lookup) for entry in entries]
        return AssistLogListResponse(data=data, count=len(data))

    @app.exception_handler(LedgerError)
    async def ledger_error(request: Request, exc: LedgerError) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "error": exc.title, "message": exc.message},
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(
            status_code=400,
            content={"success": False, "error": "Invalid request", "message": _validation_message(exc)},
        )

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {
            "status": "ok",
            "message": "Assist Tracker API is running",
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    @app.get("/players", response_model=PlayerListResponse)
    async def list_players():
        ranking = ledger.list_ranking()
        return PlayerListResponse(data=[player_to_response(player) for player in ranking], count=len(ranking))

    @app.get("/players/tracked", response_model=PlayerDetailResponse)
    async def tracked_player():
        return PlayerDetailResponse(data=player_to_response(ledger.tracked_player()))

    @app.get("/players/{player_id}", response_model=PlayerDetailResponse)
    async def get_player(player_id: int):
        return PlayerDetailResponse(data=player_to_response(ledger.get_player(player_id)))

    @app.post("/players/{player_id}/add-assists", response_model=AssistMutationResponse)
    async def add_assists(player_id: int, payload: AddAssistsRequest):
        applied = ledger.add_assists(
            player_id,
            payload.assists_to_add,
            payload.game_date,
            opponent=payload.opponent,
            notes=payload.notes,
        )
        return AssistMutationResponse(
            message=f"Successfully added {payload.assists_to_add} assists to {applied.player.name}",
            data=player_to_response(applied.player),
            assistLogId=applied.entry_id,
        )

    @app.post("/players/{player_id}/reduce-assists", response_model=AssistMutationResponse)
    async def reduce_assists(player_id: int, payload: ReduceAssistsRequest):
        applied = ledger.reduce_assists(
            player_id,
            payload.assists_to_remove,
            payload.game_date,
            notes=payload.notes,
        )
        return AssistMutationResponse(
            message=f"Successfully removed {payload.assists_to_remove} assists from {applied.player.name}",
            data=player_to_response(applied.player),
            assistLogId=applied.entry_id,
        )

    @app.put("/players/{player_id}/assists", response_model=AssistMutationResponse)
    async def set_assists(player_id: int, payload: SetAssistsRequest):
        applied = ledger.set_total(
            player_id,
            payload.assists,
            payload.game_date,
            opponent=payload.opponent,
            notes=payload.notes,
        )
        if applied is None:
            player = ledger.get_player(player_id)
            return AssistMutationResponse(
                message="Player assists unchanged",
                data=player_to_response(player),
                assistLogId=None,
            )
        return AssistMutationResponse(
            message="Player assists updated successfully",
            data=player_to_response(applied.player),
            assistLogId=applied.entry_id,
        )

    @app.get("/assists", response_model=AssistLogListResponse)
    async def list_assists():
        return entries_payload(ledger.entries())

    @app.get("/assists/recent", response_model=AssistLogListResponse)
    async def recent_assists(limit: int | None = Query(None, ge=1)):
        return entries_payload(ledger.recent(settings.recent_limit if limit is None else limit))

    @app.get("/assists/player/{player_id}", response_model=AssistLogListResponse)
    async def player_assists(player_id: int):
        return entries_payload(ledger.entries(player_id))

    @app.get("/assists/stats/summary", response_model=SummaryResponse)
    async def assists_summary():
        summary = ledger.summary()
        return SummaryResponse(
            data=SummaryData(
                total_entries=summary.total_entries,
                total_delta=summary.total_delta,
                distinct_players=summary.distinct_players,
                earliest_date=summary.earliest_date,
                latest_date=summary.latest_date,
            )
        )

    @app.get("/assists/export.csv")
    async def export_assists():
        csv_text = export_ledger_to_csv(ledger.entries(), players_by_id())
        return Response(
            content=csv_text,
            media_type="text/csv",
            headers={"Content-Disposition": "attachment; filename=assist-ledger.csv"},
        )

    @app.post("/assists", response_model=AssistLogDetailResponse, status_code=201)
    async def create_assist_log(payload: CreateAssistLogRequest):
        applied = ledger.add_assists(
            payload.player_id,
            payload.assists_added,
            payload.game_date,
            opponent=payload.opponent,
            notes=payload.notes,
        )
        lookup = {applied.player.player_id: applied.player}
        return AssistLogDetailResponse(
            message="Assist log created successfully",
            data=entry_to_response(applied.entry, lookup, include_total=True),
        )

    @app.delete("/assists/{entry_id}", response_model=UndoResponse)
    async def undo_assists(entry_id: int):
        result = ledger.undo_last(entry_id)
        return UndoResponse(
            message=f"Assist log deleted and {result.delta} assists subtracted from player",
            data=UndoData(
                deletedLogId=result.entry_id,
                assistsSubtracted=result.delta,
                playerId=result.player_id,
            ),
        )

    @app.get("/ui", response_class=HTMLResponse)
    async def ui_index():
        return HTMLResponse(_render_leaderboard_page(ledger.list_ranking()))

    logger.info("Assist Tracker API ready (%s storage)", type(store).__name__)
    return app


__all__ = ["create_app", "entry_to_response", "player_to_response"]
