"""Client-side copy of the leaderboard kept in sync with the API.

The sync object holds the ranked player list, a fingerprint used to skip
redundant re-renders, and the undo pointer returned by the last mutation.
After ``max_errors`` consecutive connection failures it switches to a demo
ledger running in memory, so the widget keeps working offline with the same
rules as the server.
"""

from __future__ import annotations

import logging
from typing import Any, Optional, Sequence

import httpx

from assisttracker.colors import display_color
from assisttracker.config.settings import DEFAULT_MAX_ERRORS
from assisttracker.errors import ConnectivityError, InvalidDelta, LedgerError, NotFound
from assisttracker.ledger import LedgerService, bootstrap, compute_progress, rank_players
from assisttracker.models import PlayerRecord, Progress
from assisttracker.persistence import MemoryLedgerStore


logger = logging.getLogger(__name__)


def demo_ledger() -> LedgerService:
    """Fresh in-memory ledger seeded with the built-in reference table."""

    store = MemoryLedgerStore()
    bootstrap(store)
    return LedgerService(store)


def fingerprint(players: Sequence[PlayerRecord]) -> str:
    return "|".join(f"{player.player_id}-{player.assists}" for player in players)


def player_from_payload(row: dict[str, Any]) -> PlayerRecord:
    player = PlayerRecord(
        player_id=int(row["id"]),
        name=str(row["name"]),
        team=str(row.get("team") or ""),
        assists=int(row["assists"]),
        color=str(row.get("color") or ""),
        is_tracked=bool(row.get("is_tracked", False)),
    )
    if player.is_tracked and player.color:
        return player
    return player.model_copy(update={"color": display_color(player)})


def _error_from_response(status_code: int, body: dict[str, Any]) -> LedgerError:
    message = str(body.get("message") or body.get("error") or f"HTTP {status_code}")
    if status_code == 404:
        return NotFound(message)
    if status_code in (400, 422):
        return InvalidDelta(message)
    return LedgerError(message)


class LeaderboardSync:
    def __init__(
        self,
        base_url: Optional[str] = None,
        *,
        client: Optional[httpx.Client] = None,
        max_errors: int = DEFAULT_MAX_ERRORS,
        timeout: float = 5.0,
    ):
        self.base_url = base_url
        self._owns_client = client is None and bool(base_url)
        if client is not None:
            self._client: Optional[httpx.Client] = client
        elif base_url:
            self._client = httpx.Client(base_url=base_url, timeout=timeout)
        else:
            self._client = None
        self.max_errors = max(1, max_errors)
        self.players: list[PlayerRecord] = []
        self.fingerprint: Optional[str] = None
        self.error_count = 0
        self.warning: Optional[str] = None
        self.message: Optional[str] = None
        self.last_entry_id: Optional[int] = None
        self.is_mutating = False
        self._offline: Optional[LedgerService] = None
        if self._client is None:
            self.load_demo_data()

    def __enter__(self) -> "LeaderboardSync":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        if self._owns_client and self._client is not None:
            self._client.close()

    @property
    def offline(self) -> bool:
        return self._offline is not None

    def load_demo_data(self) -> None:
        logger.info("Loading demo data")
        self._offline = demo_ledger()
        self.last_entry_id = None
        self._apply_players(self._offline.list_ranking())

    def tracked(self) -> Optional[PlayerRecord]:
        return next((player for player in self.players if player.is_tracked), None)

    def progress(self) -> Optional[Progress]:
        return compute_progress(self.players)

    def refresh(self) -> bool:
        """Pull the player list; returns True only when the ranking changed."""

        if self.is_mutating:
            logger.debug("Mutation in progress; skipping refresh")
            return False
        if self._offline is not None:
            return self._apply_players(self._offline.list_ranking())
        try:
            body = self._request("GET", "/players")
        except ConnectivityError as exc:
            self._record_failure(exc)
            return False
        except LedgerError as exc:
            self.message = exc.message
            return False
        self._record_success()
        return self._apply_players([player_from_payload(row) for row in body.get("data", [])])

    def force_refresh(self) -> bool:
        self.fingerprint = None
        return self.refresh()

    def add_assists(self, count: int) -> Optional[int]:
        count = self._validate_count(count, "Please enter a valid number of assists")
        return self._mutate(
            lambda ledger, player_id: ledger.add_assists(player_id, count).entry_id,
            "add-assists",
            {"assists_to_add": count},
            "Failed to add assists. Please try again.",
        )

    def reduce_assists(self, count: int) -> Optional[int]:
        count = self._validate_count(count, "Please enter a valid number of assists to remove")
        return self._mutate(
            lambda ledger, player_id: ledger.reduce_assists(player_id, count).entry_id,
            "reduce-assists",
            {"assists_to_remove": count},
            "Failed to reduce assists. Please try again.",
        )

    def undo_last(self) -> bool:
        """Reverse the entry behind the undo pointer; False when there is nothing to undo."""

        entry_id = self.last_entry_id
        if entry_id is None:
            return False
        self.is_mutating = True
        try:
            if self._offline is not None:
                self._offline.undo_last(entry_id)
            else:
                self._request("DELETE", f"/assists/{entry_id}")
        except ConnectivityError as exc:
            self._record_failure(exc)
            self.message = "Failed to undo. Please try again."
            raise
        except LedgerError as exc:
            self.message = exc.message
            raise
        finally:
            self.is_mutating = False
        if self._offline is None:
            self._record_success()
        self.last_entry_id = None
        self.message = "Last update undone successfully!"
        self.force_refresh()
        return True

    def _mutate(self, offline_call, action: str, body: dict[str, Any], failure: str) -> Optional[int]:
        if not self.players:
            failures = self.error_count
            self.refresh()
            if self.error_count > failures and self._offline is None:
                # The refresh already counted this action's failure.
                self.message = failure
                raise ConnectivityError(self.warning or failure)
        tracked = self.tracked()
        if tracked is None:
            raise NotFound("Tracked player not found")
        self.is_mutating = True
        try:
            if self._offline is not None:
                entry_id: Optional[int] = offline_call(self._offline, tracked.player_id)
            else:
                payload = self._request("POST", f"/players/{tracked.player_id}/{action}", json=body)
                raw_id = payload.get("assistLogId")
                entry_id = int(raw_id) if raw_id is not None else None
        except ConnectivityError as exc:
            self._record_failure(exc)
            self.message = failure
            raise
        except LedgerError as exc:
            self.message = exc.message
            raise
        finally:
            self.is_mutating = False
        if self._offline is None:
            self._record_success()
        self.last_entry_id = entry_id
        self.message = None
        self.force_refresh()
        return entry_id

    def _validate_count(self, count: object, message: str) -> int:
        if isinstance(count, bool) or not isinstance(count, int) or count < 1:
            self.message = message
            raise InvalidDelta(message)
        return count

    def _request(self, method: str, path: str, json: Optional[dict[str, Any]] = None) -> dict[str, Any]:
        if self._client is None:
            raise ConnectivityError("No API client configured")
        try:
            resp = self._client.request(method, path, json=json)
        except httpx.TransportError as exc:
            raise ConnectivityError(str(exc) or type(exc).__name__) from exc
        if resp.status_code >= 500:
            raise ConnectivityError(f"HTTP {resp.status_code}")
        try:
            body = resp.json()
        except ValueError as exc:
            raise ConnectivityError(f"Invalid JSON from {path}") from exc
        if not isinstance(body, dict):
            raise ConnectivityError(f"Unexpected payload from {path}")
        if resp.status_code >= 400:
            raise _error_from_response(resp.status_code, body)
        if not body.get("success", False):
            raise ConnectivityError(str(body.get("message") or f"Request to {path} failed"))
        return body

    def _record_failure(self, exc: ConnectivityError) -> None:
        self.error_count += 1
        logger.warning("Request failed (%s/%s): %s", self.error_count, self.max_errors, exc)
        if self.error_count >= self.max_errors:
            self.warning = "Unable to connect to server. Using demo data."
            self.load_demo_data()
            return
        self.warning = f"Connection issue ({self.error_count}/{self.max_errors}). Retrying on next action..."
        if not self.players:
            self._apply_players(demo_ledger().list_ranking())

    def _record_success(self) -> None:
        self.error_count = 0
        self.warning = None

    def _apply_players(self, players: Sequence[PlayerRecord]) -> bool:
        ranked = rank_players(players)
        current = fingerprint(ranked)
        if current == self.fingerprint:
            logger.debug("Leaderboard state unchanged, skipping update")
            return False
        self.fingerprint = current
        self.players = ranked
        return True
