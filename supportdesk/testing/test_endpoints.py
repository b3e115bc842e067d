from __future__ import annotations

import asyncio
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from supportdesk import main
from supportdesk.app.error_messages import UNKNOWN_SESSION_MESSAGE
from supportdesk.app.services import support_service


@pytest.fixture
def client() -> TestClient:
    return TestClient(main.app)


@pytest.fixture(autouse=True)
def close_leftover_sessions():
    yield
    main.TRANSPORT.close_all()


def _active(client: TestClient) -> int:
    return client.get("/health").json()["activeSessions"]


def test_root_banner(client):
    body = client.get("/").json()
    assert body["ok"] is True
    assert body["health"] == "/health"


def test_health_snapshot(client):
    res = client.get("/health")
    assert res.status_code == 200
    data = res.json()
    assert data["status"] == "ok"
    assert data["server"] == main.SERVER_NAME
    assert data["version"] == main.SERVER_VERSION
    assert data["tools"] == ["search_knowledge_base", "get_customer_data", "log_interaction"]
    assert data["activeSessions"] == 0
    assert "/tool" in data["endpoints"]["direct"]


def test_direct_tool_success(client):
    res = client.post("/tool", json={"name": "search_knowledge_base", "arguments": {"query": "I have a BILLING question"}})
    assert res.status_code == 200
    body = res.json()
    assert body["success"] is True
    assert "1-800-BILLING" in body["result"]


def test_direct_tool_structured_result(client):
    res = client.post("/tool", json={"name": "get_customer_data", "arguments": {"customerId": "C001"}})
    assert res.json() == {
        "success": True,
        "result": {"name": "Alice Johnson", "plan": "Premium", "memberSince": "2021-03-15", "openTickets": 2},
    }


def test_direct_tool_log_interaction(client):
    res = client.post(
        "/tool",
        json={"name": "log_interaction", "arguments": {"customerId": "C001", "category": "billing", "resolution": "refund issued"}},
    )
    assert res.status_code == 200
    assert "Ticket ID: TKT-" in res.json()["result"]


def test_direct_tool_unknown_tool(client):
    res = client.post("/tool", json={"name": "nonexistent", "arguments": {}})
    assert res.status_code == 400
    body = res.json()
    assert body["success"] is False
    assert "get_customer_data" in body["error"]


def test_direct_tool_invalid_input(client):
    res = client.post("/tool", json={"name": "get_customer_data", "arguments": {"customerId": 1}})
    assert res.status_code == 400
    assert "customerId" in res.json()["error"]


@pytest.mark.parametrize("content", [b"", b"not json", b"[1, 2]"])
def test_direct_tool_bad_body(client, content):
    res = client.post("/tool", content=content, headers={"content-type": "application/json"})
    assert res.status_code == 400
    assert res.json()["success"] is False


def test_direct_tool_handler_failure_is_500(client, monkeypatch):
    def boom(query):
        raise RuntimeError("secret connection string")

    monkeypatch.setattr(support_service, "search_knowledge_base", boom)
    res = client.post("/tool", json={"name": "search_knowledge_base", "arguments": {"query": "billing"}})
    assert res.status_code == 500
    body = res.json()
    assert body["success"] is False
    assert "secret" not in body["error"]


def test_direct_tool_does_not_touch_sessions(client):
    before = _active(client)
    client.post("/tool", json={"name": "search_knowledge_base", "arguments": {"query": "x"}})
    assert _active(client) == before


@pytest.mark.parametrize("url", ["/messages?sessionId=never-created", "/messages"])
def test_messages_unknown_session(client, url):
    before = _active(client)
    res = client.post(url, json={"jsonrpc": "2.0", "id": 1, "method": "ping"})
    assert res.status_code == 400
    assert res.json() == {"error": UNKNOWN_SESSION_MESSAGE}
    assert _active(client) == before


def test_messages_routed_to_live_session(client):
    session = main.TRANSPORT.connect()
    res = client.post(
        f"/messages?sessionId={session.id}",
        json={
            "jsonrpc": "2.0",
            "id": 3,
            "method": "tools/call",
            "params": {"name": "get_customer_data", "arguments": {"customerId": "C002"}},
        },
    )
    assert res.status_code == 200
    assert "Bob Smith" in res.json()["result"]["content"][0]["text"]


def test_messages_notification_is_accepted(client):
    session = main.TRANSPORT.connect()
    res = client.post(
        f"/messages?sessionId={session.id}",
        json={"jsonrpc": "2.0", "method": "notifications/initialized"},
    )
    assert res.status_code == 202
    assert res.content == b""


def test_messages_bad_body_for_live_session(client):
    session = main.TRANSPORT.connect()
    res = client.post(f"/messages?sessionId={session.id}", content=b"{oops", headers={"content-type": "application/json"})
    assert res.status_code == 400
    assert res.json()["error"]["code"] == -32600


def test_messages_after_close_is_rejected_without_new_session(client):
    session = main.TRANSPORT.connect()
    main.TRANSPORT.close(session.id)
    before = _active(client)

    res = client.post(f"/messages?sessionId={session.id}", json={"jsonrpc": "2.0", "id": 1, "method": "ping"})

    assert res.status_code == 400
    assert "reconnect" in res.json()["error"]
    assert _active(client) == before


def test_sse_route_session_lifecycle_updates_health():
    async def never_disconnected() -> bool:
        return False

    async def scenario():
        counts = [main.health().activeSessions]
        bystander = main.TRANSPORT.connect()
        counts.append(main.health().activeSessions)

        response = await main.sse_connect(SimpleNamespace(is_disconnected=never_disconnected))
        counts.append(main.health().activeSessions)
        first = await response.body_iterator.__anext__()

        # client hangs up: stream is closed and the background task also fires
        await response.body_iterator.aclose()
        await response.background()
        counts.append(main.health().activeSessions)
        return counts, first, bystander

    counts, first, bystander = asyncio.run(scenario())
    base = counts[0]
    assert counts == [base, base + 1, base + 2, base + 1]
    assert first.startswith("event: endpoint\ndata: /messages?sessionId=")
    assert main.TRANSPORT.store.get(bystander.id) is bystander


def test_sse_route_response_headers():
    async def scenario():
        async def never() -> bool:
            return False

        response = await main.sse_connect(SimpleNamespace(is_disconnected=never))
        await response.background()
        return response

    response = asyncio.run(scenario())
    assert response.media_type == "text/event-stream"
    assert response.headers["cache-control"] == "no-cache"
    assert main.TRANSPORT.active_sessions() == 0
