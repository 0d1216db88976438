import asyncio
import os

import pytest
import requests
from aiohttp import test_utils

from deadlock_graph.main import create_app
from deadlock_graph.utils.config import Settings


def run_with_client(fn, cfg=None):
    async def go():
        app = await create_app(cfg or Settings(_env_file=None))
        async with test_utils.TestClient(test_utils.TestServer(app)) as client:
            return await fn(client)

    return asyncio.run(go())


async def post_check(client, payload):
    resp = await client.post("/check", json=payload)
    return resp.status, await resp.json()


@pytest.mark.integration
def test_index_and_health():
    async def fn(client):
        r1 = await client.get("/")
        r2 = await client.get("/health")
        return await r1.text(), r2.status, await r2.json()

    text, status, body = run_with_client(fn)
    assert text == "Server Running"
    assert status == 200
    assert body["ok"] is True


@pytest.mark.integration
def test_check_reports_cycle():
    graph = {"P1": ["R1"], "R1": ["P2"], "P2": ["R2"], "R2": ["P1"]}
    status, body = run_with_client(lambda c: post_check(c, {"graph": graph}))
    assert status == 200
    assert body == {"deadlock": True, "cycle": ["P1", "R1", "P2", "R2", "P1"]}


@pytest.mark.integration
def test_check_keeps_submitted_key_order():
    graph = {"R2": ["P1"], "P1": ["R1"], "R1": ["P2"], "P2": ["R2"]}
    _, body = run_with_client(lambda c: post_check(c, {"graph": graph}))
    assert body["cycle"] == ["R2", "P1", "R1", "P2", "R2"]


@pytest.mark.integration
def test_check_no_deadlock():
    status, body = run_with_client(lambda c: post_check(c, {"graph": {"A": ["B"]}}))
    assert status == 200
    assert body == {"deadlock": False, "cycle": []}

    _, body = run_with_client(lambda c: post_check(c, {"graph": {}}))
    assert body == {"deadlock": False, "cycle": []}


@pytest.mark.integration
@pytest.mark.parametrize(
    "payload",
    [
        {},
        {"graph": None},
        {"graph": ["P1"]},
        {"graph": {"P1": "R1"}},
        {"graph": {"P1": [1]}},
        [1, 2],
    ],
)
def test_check_rejects_malformed_graph(payload):
    status, body = run_with_client(lambda c: post_check(c, payload))
    assert status == 400
    assert body["ok"] is False
    assert body["error"] == "invalid_graph"


@pytest.mark.integration
def test_check_rejects_invalid_json():
    async def fn(client):
        resp = await client.post("/check", data="{not json", headers={"Content-Type": "application/json"})
        return resp.status, await resp.json()

    status, body = run_with_client(fn)
    assert status == 400
    assert body["error"] == "invalid_json"


@pytest.mark.integration
def test_cors_headers_and_preflight():
    cfg = Settings(_env_file=None, CORS_ALLOW_ORIGIN="http://localhost:5173")

    async def fn(client):
        pre = await client.options("/check")
        resp = await client.post("/check", json={"graph": {}})
        return pre.status, pre.headers, resp.headers

    pre_status, pre_headers, headers = run_with_client(fn, cfg)
    assert pre_status == 204
    assert pre_headers["Access-Control-Allow-Origin"] == "http://localhost:5173"
    assert "POST" in pre_headers["Access-Control-Allow-Methods"]
    assert headers["Access-Control-Allow-Origin"] == "http://localhost:5173"


@pytest.mark.integration
@pytest.mark.skipif("DEADLOCK_API_URL" not in os.environ, reason="no live server; set DEADLOCK_API_URL")
def test_live_server_check():
    url = os.environ["DEADLOCK_API_URL"].rstrip("/")
    r = requests.post(f"{url}/check", json={"graph": {"P1": ["R1"], "R1": ["P1"]}}, timeout=3)
    assert r.status_code == 200
    assert r.json() == {"deadlock": True, "cycle": ["P1", "R1", "P1"]}
