import pytest
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from portaal.core.settings import Settings
from portaal.main import create_app
from tests.conftest import as_dealer


@pytest.fixture
def demo_client():
    app = create_app(Settings(_env_file=None, LOG_LEVEL="WARNING"))
    with TestClient(app) as c:
        yield c


ADMIN = {"X-Dealer-Id": "demo-admin"}
DEALER = {"X-Dealer-Id": "demo-dealer"}


# ============================================================
# Modo demo
# ============================================================

def test_health_reports_demo_mode(demo_client):
    assert demo_client.get("/health").json() == {"status": "ok", "demo_mode": True}


def test_status_in_demo_mode(demo_client):
    body = demo_client.get("/v1/status").json()

    assert body["demo_mode"] is True
    assert body["database_configured"] is False
    assert body["database_ready"] is False
    assert body["storage_configured"] is False
    assert body["realtime_backend"] == "polling"


def test_demo_dealers(demo_client):
    dealers = demo_client.get("/v1/dealers").json()

    assert {d["id"] for d in dealers} == {"demo-admin", "demo-dealer", "demo-manager"}
    assert all(d["online"] is False for d in dealers)


def test_demo_files_scopes(demo_client):
    approved = demo_client.get("/v1/files").json()
    assert {f["filename"] for f in approved} == {"product-catalog.pdf", "technical-specs.pdf"}

    everything = demo_client.get("/v1/files", params={"scope": "all"}, headers=ADMIN).json()
    assert len(everything) == 5
    actions = {f["filename"]: f["allowed_actions"] for f in everything}
    assert actions["price-list-2024.xlsx"] == ["approve", "reject"]
    assert actions["product-catalog.pdf"] == []

    mine = demo_client.get("/v1/files", params={"scope": "mine"}, headers=DEALER).json()
    assert len(mine) == 3
    assert all(f["allowed_actions"] == [] for f in mine)


def test_demo_all_files_requires_admin(demo_client):
    assert demo_client.get("/v1/files", params={"scope": "all"}, headers=DEALER).status_code == 403


def test_demo_create_dealer_is_refused(demo_client):
    resp = demo_client.post("/v1/dealers", json={"name": "Jan", "email": "jan@example.com"}, headers=ADMIN)

    assert resp.status_code == 503
    assert resp.json()["detail"].startswith("Database not configured")


def test_demo_send_message(demo_client):
    resp = demo_client.post("/v1/chat/messages", json={"receiver_id": "demo-admin", "message": "hoi"}, headers=DEALER)
    assert resp.status_code == 503

    resp = demo_client.post("/v1/chat/messages", json={"receiver_id": "demo-admin", "message": "  "}, headers=DEALER)
    assert resp.status_code == 204


def test_demo_preferences_default(demo_client):
    prefs = demo_client.get("/v1/preferences", headers=DEALER).json()
    assert (prefs["language"], prefs["theme"]) == ("nl", "light")


def test_identity_required(demo_client):
    assert demo_client.get("/v1/chat/conversations").status_code == 401
    assert demo_client.get("/v1/chat/conversations", headers={"X-Dealer-Id": "nobody"}).status_code == 401


# ============================================================
# Banco configurado (SQLite)
# ============================================================

def test_status_with_database(client):
    body = client.get("/v1/status").json()
    assert body["demo_mode"] is False
    assert body["database_ready"] is True


def test_dealer_admin_flow(client, seeded):
    admin = as_dealer(seeded["admin"])

    resp = client.post("/v1/dealers", json={"name": " Jan ", "email": "JAN@example.com"}, headers=admin)
    assert resp.status_code == 201
    jan = resp.json()
    assert (jan["name"], jan["email"]) == ("Jan", "jan@example.com")

    resp = client.post("/v1/dealers", json={"name": "Jan 2", "email": "jan@example.com"}, headers=admin)
    assert resp.status_code == 409
    assert resp.json()["detail"] == "A dealer with this email address already exists"

    resp = client.post("/v1/dealers", json={"name": "Jan", "email": "nope"}, headers=admin)
    assert resp.status_code == 422
    assert resp.json()["detail"] == "Please enter a valid email address"

    resp = client.patch(f"/v1/dealers/{jan['id']}", json={"company": "Autohuis"}, headers=admin)
    assert resp.json()["company"] == "Autohuis"

    resp = client.post(f"/v1/dealers/{jan['id']}/toggle-status", headers=admin)
    assert resp.json()["status"] == "inactive"

    stats = client.get("/v1/dealers/stats", headers=admin).json()
    assert (stats["total"], stats["inactive"]) == (4, 1)

    assert client.delete(f"/v1/dealers/{jan['id']}", headers=admin).status_code == 204
    assert client.get(f"/v1/dealers/{jan['id']}").status_code == 404


def test_dealer_writes_require_admin(client, seeded):
    alice = as_dealer(seeded["alice"])

    assert client.post("/v1/dealers", json={"name": "X", "email": "x@example.com"}, headers=alice).status_code == 403
    assert client.get("/v1/dealers/stats", headers=alice).status_code == 403


def test_admin_cannot_delete_self(client, seeded):
    admin = seeded["admin"]
    assert client.delete(f"/v1/dealers/{admin.id}", headers=as_dealer(admin)).status_code == 409


def test_search_and_online(client, seeded):
    assert [d["name"] for d in client.get("/v1/dealers/search", params={"q": "ali"}).json()] == ["Alice"]
    assert client.get("/v1/dealers/search", params={"q": " "}).json() == []
    assert client.get("/v1/dealers/online").json() == []


def test_sessions(client, seeded):
    alice = seeded["alice"]

    resp = client.post("/v1/sessions", json={"dealer_id": alice.id})
    assert resp.status_code == 201
    session_id = resp.json()["id"]

    me = client.get("/v1/sessions/me", headers={"X-Session-Id": session_id}).json()
    assert me["id"] == alice.id
    assert me["online"] is True
    assert [d["id"] for d in client.get("/v1/dealers/online").json()] == [alice.id]

    active = client.get("/v1/sessions/active", headers=as_dealer(seeded["admin"])).json()
    assert [s["dealer_name"] for s in active] == ["Alice"]

    assert client.delete(f"/v1/sessions/{session_id}", headers={"X-Session-Id": session_id}).status_code == 204
    assert client.get("/v1/sessions/me", headers={"X-Session-Id": session_id}).status_code == 401


def test_open_session_unknown_dealer(client, seeded):
    assert client.post("/v1/sessions", json={"dealer_id": "missing"}).status_code == 404


def test_file_review_flow(client, seeded):
    alice, admin = as_dealer(seeded["alice"]), as_dealer(seeded["admin"])

    resp = client.post(
        "/v1/files/upload",
        files=[("files", ("a.pdf", b"%PDF-1.4", "application/pdf")), ("files", ("b.txt", b"b", "text/plain"))],
        data={"folder": "Docs"},
        headers=alice,
    )
    assert resp.status_code == 201
    uploaded = resp.json()
    assert [f["status"] for f in uploaded] == ["pending", "pending"]
    assert uploaded[0]["url"].startswith("/placeholder.svg")
    file_id = uploaded[0]["id"]

    assert client.patch(f"/v1/files/{file_id}/status", json={"status": "approved"}, headers=alice).status_code == 403

    resp = client.patch(f"/v1/files/{file_id}/status", json={"status": "approved"}, headers=admin)
    assert resp.status_code == 200
    assert resp.json()["allowed_actions"] == []

    resp = client.patch(f"/v1/files/{file_id}/status", json={"status": "rejected"}, headers=admin)
    assert resp.status_code == 409
    assert resp.json()["detail"] == "Cannot change file status from approved to rejected"

    assert [f["id"] for f in client.get("/v1/files").json()] == [file_id]
    assert len(client.get("/v1/files", params={"scope": "mine"}, headers=alice).json()) == 2

    resp = client.get(f"/v1/files/{file_id}/download", headers=as_dealer(seeded["bob"]), follow_redirects=False)
    assert resp.status_code == 307
    assert resp.headers["location"].startswith("/placeholder.svg")

    pending_id = uploaded[1]["id"]
    resp = client.get(f"/v1/files/{pending_id}/download", headers=as_dealer(seeded["bob"]), follow_redirects=False)
    assert resp.status_code == 404


def test_upload_requires_folder(client, seeded):
    resp = client.post(
        "/v1/files/upload",
        files=[("files", ("a.pdf", b"x", "application/pdf"))],
        data={"folder": "  "},
        headers=as_dealer(seeded["alice"]),
    )
    assert resp.status_code == 422


def test_avatar_upload(client, seeded):
    alice = seeded["alice"]

    resp = client.post(
        f"/v1/dealers/{alice.id}/avatar",
        files={"file": ("me.png", b"\x89PNG", "image/png")},
        headers=as_dealer(alice),
    )
    assert resp.status_code == 200
    assert resp.json()["profile_picture"].startswith("/placeholder.svg")

    resp = client.post(
        f"/v1/dealers/{alice.id}/avatar",
        files={"file": ("me.png", b"\x89PNG", "image/png")},
        headers=as_dealer(seeded["bob"]),
    )
    assert resp.status_code == 403


def test_chat_flow(client, seeded):
    alice, bob = seeded["alice"], seeded["bob"]

    resp = client.post("/v1/chat/messages", json={"receiver_id": bob.id, "message": " hoi Bob "}, headers=as_dealer(alice))
    assert resp.status_code == 201
    message = resp.json()
    assert message["message"] == "hoi Bob"

    assert client.post(
        "/v1/chat/messages", json={"receiver_id": bob.id, "message": "   "}, headers=as_dealer(alice)
    ).status_code == 204

    history = client.get(f"/v1/chat/messages/{alice.id}", headers=as_dealer(bob)).json()
    assert [m["id"] for m in history] == [message["id"]]

    summaries = client.get("/v1/chat/conversations", headers=as_dealer(bob)).json()
    assert summaries[0]["dealer"]["id"] == alice.id
    assert summaries[0]["unread_count"] == 1
    assert [s["dealer"]["name"] for s in summaries[1:]] == ["Anna Admin"]

    changed = client.post("/v1/chat/messages/read", json={"ids": [message["id"]]}, headers=as_dealer(bob)).json()
    assert changed[0]["read"] is True
    assert client.post(f"/v1/chat/conversations/{alice.id}/read", headers=as_dealer(bob)).json() == []


def test_preferences(client, seeded):
    alice = as_dealer(seeded["alice"])

    assert client.get("/v1/preferences", headers=alice).json()["language"] == "nl"

    resp = client.patch("/v1/preferences", json={"language": "en", "chat_notifications": False}, headers=alice)
    assert resp.status_code == 200
    assert (resp.json()["language"], resp.json()["chat_notifications"]) == ("en", False)


# ============================================================
# WebSockets
# ============================================================

def test_chat_websocket(client, seeded):
    alice, bob = seeded["alice"], seeded["bob"]
    client.post("/v1/chat/messages", json={"receiver_id": bob.id, "message": "eerste"}, headers=as_dealer(alice))

    with client.websocket_connect(f"/v1/chat/ws?other_id={alice.id}&dealer_id={bob.id}") as ws:
        history = ws.receive_json()
        assert history["type"] == "history"
        assert [m["message"] for m in history["messages"]] == ["eerste"]

        ws.send_json({"action": "send", "message": "tweede"})
        event = ws.receive_json()
        assert event["type"] == "INSERT"
        assert event["message"]["sender_id"] == bob.id

        ws.send_json({"action": "unknown"})
        assert ws.receive_json() == {"type": "error", "detail": "Unknown action: unknown"}

        ws.send_json({"action": "refresh"})
        refreshed = ws.receive_json()
        assert [m["message"] for m in refreshed["messages"]] == ["eerste", "tweede"]


def test_chat_websocket_answers_non_object_frames(client, seeded):
    alice, bob = seeded["alice"], seeded["bob"]

    with client.websocket_connect(f"/v1/chat/ws?other_id={alice.id}&dealer_id={bob.id}") as ws:
        assert ws.receive_json()["type"] == "history"

        ws.send_json([1, 2])
        assert ws.receive_json() == {"type": "error", "detail": "Invalid payload"}
        ws.send_json("refresh")
        assert ws.receive_json() == {"type": "error", "detail": "Invalid payload"}

        # o socket continua aberto
        ws.send_json({"action": "unknown"})
        assert ws.receive_json() == {"type": "error", "detail": "Unknown action: unknown"}


def test_chat_websocket_rejects_unknown_dealer(client, seeded):
    with pytest.raises(WebSocketDisconnect):
        with client.websocket_connect(f"/v1/chat/ws?other_id={seeded['alice'].id}&dealer_id=nobody") as ws:
            ws.receive_json()


def test_presence_websocket(client, seeded):
    alice = seeded["alice"]

    with client.websocket_connect(f"/v1/presence/ws?dealer_id={alice.id}") as ws:
        update = ws.receive_json()

    assert update == {"type": "online", "dealer_ids": [alice.id]}
