"""Tests for the tickets and system APIs."""

import pytest
from fastapi.testclient import TestClient

from app.exceptions import AnalysisError, AnalysisTimeoutError, NoRelevantContentError
from app.main import create_app
from app.schemas.ticket import CustomerAnalysis
from app.services.ticket_manager import TicketManager
from app.stores.smart import SmartTicketStore
from app.workers.analysis import AnalysisResult


@pytest.fixture
def manager(local_store, mock_analyzer, setup_tickets):
    local_store.save_all(setup_tickets)
    return TicketManager(SmartTicketStore(local_store), analyzer=mock_analyzer)


@pytest.fixture
def client(manager):
    """Client in testing mode wired to a file-backed manager."""
    app = create_app(testing=True, ticket_manager=manager)
    with TestClient(app) as c:
        yield c


def test_health(client):
    resp = client.get("/system/health")
    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "ok"
    assert body["booted"] is True
    assert body["remote_enabled"] is False
    assert body["ticket_count"] == 3


def test_list_tickets_paginated(client):
    resp = client.get("/tickets", params={"page": 1, "size": 2})
    assert resp.status_code == 200
    body = resp.json()
    assert body["total"] == 3
    assert [t["id"] for t in body["items"]] == ["t-jane-new", "t-omar"]
    assert "lastActivityAt" in body["items"][0]


def test_list_tickets_filters(client):
    resp = client.get("/tickets", params={"customer_key": "email:jane@example.com"})
    assert [t["id"] for t in resp.json()["items"]] == ["t-jane-new", "t-jane-old"]

    resp = client.get("/tickets", params={"status": "Resolved"})
    assert [t["id"] for t in resp.json()["items"]] == ["t-jane-old"]


def test_get_ticket(client):
    resp = client.get("/tickets/t-omar")
    assert resp.status_code == 200
    assert resp.json()["customerKey"] == "email:omar@example.com"
    assert client.get("/tickets/missing").status_code == 404


def test_update_status(client):
    resp = client.patch("/tickets/t-omar/status", json={"status": "Closed"})
    assert resp.status_code == 200
    assert resp.json()["status"] == "Closed"
    bad = client.patch("/tickets/t-omar/status", json={"status": "Archived"})
    assert bad.status_code == 422


def test_delete_ticket(client):
    assert client.delete("/tickets/t-jane-old").status_code == 204
    assert client.get("/tickets/t-jane-old").status_code == 404
    assert client.delete("/tickets/t-jane-old").status_code == 404


def test_delete_message(client):
    resp = client.delete("/tickets/t-jane-new/messages/t-jane-new-m0")
    assert resp.status_code == 200
    assert [m["id"] for m in resp.json()["messages"]] == ["t-jane-new-m1"]

    assert client.delete("/tickets/t-omar/messages/t-omar-m0").status_code == 204
    assert client.get("/tickets/t-omar").status_code == 404
    assert client.delete("/tickets/t-jane-new/messages/nope").status_code == 404


def test_manual_entry_creates_ticket(client, mock_analyzer):
    mock_analyzer.analyze.return_value = AnalysisResult(
        customer_analysis=CustomerAnalysis(text="Valve leaks", root_cause_primary="Valve Leak"),
        agent_reply_text="",
        detected_product=None,
        customer_turns=1,
        agent_turns=0,
    )
    resp = client.post(
        "/tickets/manual",
        json={
            "customer_email": "New@Example.com",
            "chat_conversation": "Customer: my valve leaks",
        },
    )
    assert resp.status_code == 201
    body = resp.json()
    assert body["customerKey"] == "email:new@example.com"
    assert body["rootCausePrimary"] == "Valve Leak"
    assert client.get("/system/health").json()["ticket_count"] == 4


@pytest.mark.parametrize(
    "error,status_code",
    [
        (NoRelevantContentError("no product"), 422),
        (AnalysisTimeoutError("slow"), 504),
        (AnalysisError("bad gateway"), 502),
    ],
)
def test_manual_entry_analysis_failures(client, mock_analyzer, error, status_code):
    mock_analyzer.analyze.side_effect = error
    resp = client.post("/tickets/manual", json={"chat_conversation": "Customer: leak"})
    assert resp.status_code == status_code
    assert client.get("/system/health").json()["ticket_count"] == 3


def test_manual_entry_requires_conversation(client):
    resp = client.post("/tickets/manual", json={"chat_conversation": ""})
    assert resp.status_code == 422


def test_chat_entry_keys_guest_by_session(client, mock_analyzer):
    mock_analyzer.analyze.return_value = AnalysisResult(
        customer_analysis=CustomerAnalysis(text="Pillow leaks"),
        agent_reply_text="",
        detected_product=None,
        customer_turns=1,
        agent_turns=0,
    )
    resp = client.post(
        "/tickets/chat",
        json={
            "session": {"session_id": "sess-1", "customer_name": "Guest"},
            "messages": [{"session_id": "sess-1", "message_text": "My pillow leaks"}],
        },
    )
    assert resp.status_code == 201
    assert resp.json()["customerKey"] == "fallback:sess-1"


def test_inbox_items_and_hide(client, mock_analyzer):
    mock_analyzer.analyze.return_value = AnalysisResult(
        customer_analysis=CustomerAnalysis(text="Ether leaks"),
        agent_reply_text="",
        detected_product=None,
        customer_turns=1,
        agent_turns=0,
    )
    assert client.post("/inbox/threads/t-hidden/hide").status_code == 204
    resp = client.post(
        "/inbox/items",
        json=[
            {
                "threadId": "t-1",
                "messageId": "m-1",
                "dateMs": 10,
                "fromEmail": "omar@example.com",
                "bodyText": "My Ether leaks",
            },
            {
                "threadId": "t-hidden",
                "messageId": "m-2",
                "dateMs": 20,
                "fromEmail": "x@example.com",
                "bodyText": "hello",
            },
        ],
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["accepted"] == 1
    assert len(body["ticket_ids"]) == 1
