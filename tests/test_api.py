import csv
from io import StringIO

import pytest
from httpx import ASGITransport, AsyncClient

from assisttracker.api import create_app
from assisttracker.config import Settings
from assisttracker.ledger import bootstrap
from assisttracker.persistence import MemoryLedgerStore, SqliteLedgerStore


@pytest.fixture
async def client(tmp_path):
    store = SqliteLedgerStore(tmp_path / "api.sqlite")
    bootstrap(store)
    settings = Settings(storage="sqlite", db_path=tmp_path / "api.sqlite", recent_limit=3)
    app = create_app(store=store, settings=settings)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as async_client:
        async_client.app = app
        yield async_client


async def _tracked(client: AsyncClient) -> dict:
    resp = await client.get("/players/tracked")
    assert resp.status_code == 200
    return resp.json()["data"]


@pytest.mark.anyio
async def test_health(client: AsyncClient):
    resp = await client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


@pytest.mark.anyio
async def test_list_players_ranked(client: AsyncClient):
    resp = await client.get("/players")
    assert resp.status_code == 200
    payload = resp.json()
    assert payload["success"] is True
    assert payload["count"] == 11 == len(payload["data"])
    assists = [row["assists"] for row in payload["data"]]
    assert assists == sorted(assists, reverse=True)
    assert payload["data"][0]["name"] == "Bobby Hurley"
    tracked = [row for row in payload["data"] if row["is_tracked"]]
    assert [row["name"] for row in tracked] == ["Braden Smith"]
    assert tracked[0]["color"] == "#CEB888"


@pytest.mark.anyio
async def test_get_player_not_found(client: AsyncClient):
    resp = await client.get("/players/999")
    assert resp.status_code == 404
    body = resp.json()
    assert body["success"] is False
    assert body["error"] == "Not found"


@pytest.mark.anyio
async def test_add_then_undo_round_trip(client: AsyncClient):
    braden = await _tracked(client)
    before = [(row["id"], row["assists"]) for row in (await client.get("/players")).json()["data"]]

    resp = await client.post(
        f"/players/{braden['id']}/add-assists",
        json={"assists_to_add": 12, "game_date": "2025-01-15", "opponent": "Indiana"},
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["data"]["assists"] == 770
    assert body["message"] == "Successfully added 12 assists to Braden Smith"
    entry_id = body["assistLogId"]
    assert isinstance(entry_id, int)

    logs = (await client.get(f"/assists/player/{braden['id']}")).json()
    assert logs["count"] == 1
    assert logs["data"][0]["delta"] == 12
    assert logs["data"][0]["opponent"] == "Indiana"

    undo = await client.delete(f"/assists/{entry_id}")
    assert undo.status_code == 200
    assert undo.json()["data"] == {
        "deletedLogId": entry_id,
        "assistsSubtracted": 12,
        "playerId": braden["id"],
    }
    assert (await _tracked(client))["assists"] == 758
    after = [(row["id"], row["assists"]) for row in (await client.get("/players")).json()["data"]]
    assert after == before

    again = await client.delete(f"/assists/{entry_id}")
    assert again.status_code == 404
    assert again.json()["success"] is False


@pytest.mark.anyio
async def test_reduce_below_zero_is_rejected(client: AsyncClient):
    braden = await _tracked(client)
    resp = await client.post(f"/players/{braden['id']}/reduce-assists", json={"assists_to_remove": 900})
    assert resp.status_code == 400
    body = resp.json()
    assert body["success"] is False
    assert "only has 758 assists" in body["message"]
    assert (await _tracked(client))["assists"] == 758
    assert (await client.get("/assists")).json()["count"] == 0


@pytest.mark.anyio
async def test_reduce_assists(client: AsyncClient):
    braden = await _tracked(client)
    resp = await client.post(f"/players/{braden['id']}/reduce-assists", json={"assists_to_remove": 3})
    assert resp.status_code == 200
    assert resp.json()["data"]["assists"] == 755
    logs = (await client.get("/assists")).json()["data"]
    assert logs[0]["delta"] == -3


@pytest.mark.anyio
@pytest.mark.parametrize("payload", [{"assists_to_add": 0}, {"assists_to_add": "many"}, {}])
async def test_add_assists_validation(client: AsyncClient, payload):
    braden = await _tracked(client)
    resp = await client.post(f"/players/{braden['id']}/add-assists", json=payload)
    assert resp.status_code == 400
    assert resp.json()["success"] is False


@pytest.mark.anyio
async def test_add_assists_unknown_player(client: AsyncClient):
    resp = await client.post("/players/999/add-assists", json={"assists_to_add": 1})
    assert resp.status_code == 404


@pytest.mark.anyio
async def test_set_assists_logs_the_difference(client: AsyncClient):
    braden = await _tracked(client)
    resp = await client.put(f"/players/{braden['id']}/assists", json={"assists": 760})
    assert resp.status_code == 200
    body = resp.json()
    assert body["data"]["assists"] == 760
    logs = (await client.get("/assists")).json()["data"]
    assert [row["delta"] for row in logs] == [2]

    unchanged = await client.put(f"/players/{braden['id']}/assists", json={"assists": 760})
    assert unchanged.status_code == 200
    assert unchanged.json()["assistLogId"] is None
    assert (await client.get("/assists")).json()["count"] == 1


@pytest.mark.anyio
async def test_create_assist_log(client: AsyncClient):
    braden = await _tracked(client)
    resp = await client.post(
        "/assists",
        json={"player_id": braden["id"], "game_date": "2025-02-01", "assists_added": 7, "notes": "road win"},
    )
    assert resp.status_code == 201
    data = resp.json()["data"]
    assert data["delta"] == 7
    assert data["current_total"] == 765
    assert data["player_name"] == "Braden Smith"
    assert data["game_date"] == "2025-02-01"


@pytest.mark.anyio
async def test_recent_and_summary(client: AsyncClient):
    braden = await _tracked(client)
    for count in (1, 2, 3, 4):
        await client.post(f"/players/{braden['id']}/add-assists", json={"assists_to_add": count})

    recent = (await client.get("/assists/recent")).json()
    assert recent["count"] == 3
    assert [row["delta"] for row in recent["data"]] == [4, 3, 2]

    limited = (await client.get("/assists/recent", params={"limit": 1})).json()
    assert [row["delta"] for row in limited["data"]] == [4]

    summary = (await client.get("/assists/stats/summary")).json()["data"]
    assert summary["total_entries"] == 4
    assert summary["total_delta"] == 10
    assert summary["distinct_players"] == 1


@pytest.mark.anyio
async def test_export_csv(client: AsyncClient):
    braden = await _tracked(client)
    await client.post(f"/players/{braden['id']}/add-assists", json={"assists_to_add": 5, "opponent": "Illinois"})

    resp = await client.get("/assists/export.csv")
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/csv")
    rows = list(csv.DictReader(StringIO(resp.text)))
    assert len(rows) == 1
    assert rows[0]["player_name"] == "Braden Smith"
    assert rows[0]["delta"] == "5"
    assert rows[0]["opponent"] == "Illinois"


@pytest.mark.anyio
async def test_ui_page(client: AsyncClient):
    resp = await client.get("/ui")
    assert resp.status_code == 200
    assert "Career Assists Leaderboard" in resp.text
    assert "Needs 318 assists to break record" in resp.text
    assert "Braden Smith" in resp.text


@pytest.mark.anyio
async def test_ids_beyond_integer_range_are_not_found(client: AsyncClient):
    huge = 2**63
    resp = await client.get(f"/players/{huge}")
    assert resp.status_code == 404
    assert resp.json()["success"] is False

    resp = await client.delete(f"/assists/{huge}")
    assert resp.status_code == 404
    assert resp.json()["error"] == "Not found"

    resp = await client.get(f"/assists/player/{huge}")
    assert resp.status_code == 404


@pytest.mark.anyio
async def test_counts_beyond_integer_range_are_rejected(client: AsyncClient):
    braden = await _tracked(client)
    resp = await client.post(f"/players/{braden['id']}/add-assists", json={"assists_to_add": 2**63})
    assert resp.status_code == 400
    assert resp.json()["success"] is False

    resp = await client.put(f"/players/{braden['id']}/assists", json={"assists": 2**64})
    assert resp.status_code == 400

    assert (await _tracked(client))["assists"] == 758
    assert (await client.get("/assists")).json()["count"] == 0


@pytest.mark.anyio
@pytest.mark.parametrize("limit", [0, -1])
async def test_recent_rejects_non_positive_limit(client: AsyncClient, limit):
    resp = await client.get("/assists/recent", params={"limit": limit})
    assert resp.status_code == 400
    assert resp.json()["success"] is False


@pytest.mark.anyio
async def test_cors_headers_allow_any_origin_by_default(client: AsyncClient):
    resp = await client.get("/players", headers={"Origin": "http://widget.example"})
    assert resp.status_code == 200
    assert resp.headers["access-control-allow-origin"] == "*"

    preflight = await client.options(
        "/players/1/add-assists",
        headers={
            "Origin": "http://widget.example",
            "Access-Control-Request-Method": "POST",
            "Access-Control-Request-Headers": "content-type",
        },
    )
    assert preflight.status_code == 200
    assert preflight.headers["access-control-allow-origin"] == "*"


@pytest.mark.anyio
async def test_cors_respects_configured_origins():
    settings = Settings(storage="memory", cors_origins=("http://widget.example",))
    app = create_app(store=MemoryLedgerStore(), settings=settings)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as async_client:
        allowed = await async_client.get("/health", headers={"Origin": "http://widget.example"})
        denied = await async_client.get("/health", headers={"Origin": "http://elsewhere.example"})

    assert allowed.headers["access-control-allow-origin"] == "http://widget.example"
    assert "access-control-allow-origin" not in denied.headers
