"""Tests for the HTTP surface."""

from __future__ import annotations

import httpx
import pytest
from fastapi.testclient import TestClient

from contentcraft.analysis.pipeline import AnalysisPipeline
from contentcraft.api.app import create_app
from contentcraft.api.deps import Services
from contentcraft.backend.account import AccountClient
from contentcraft.backend.appwrite import AppwriteHTTP
from contentcraft.config import Settings
from contentcraft.errors import (
    GENERIC_FAILURE_MESSAGE,
    INCOMPLETE_CONTENT_MESSAGE,
    UpstreamError,
)
from contentcraft.storage import database
from contentcraft.storage.local import LocalContentStore
from tests.conftest import QUALITY_REPLY, FakeCompletion

DRAFT = "The quick brown fox jumps over the lazy dog."
USERS = {
    "good": {"$id": "user-1", "name": "Ada", "email": "ada@example.com"},
    "other": {"$id": "user-2", "name": "Bob", "email": "bob@example.com"},
}


def _backend(request: httpx.Request) -> httpx.Response:
    path = request.url.path
    if path.endswith("/account/sessions/email"):
        return httpx.Response(201, json={"$id": "sess-1", "userId": "user-1", "secret": "good"})
    if path.endswith("/account/sessions/current"):
        return httpx.Response(204)
    if path.endswith("/account") and request.method == "GET":
        user = USERS.get(request.headers.get("x-appwrite-session", ""))
        if user is None:
            return httpx.Response(401, json={"message": "invalid session"})
        return httpx.Response(200, json=user)
    if path.endswith("/account") and request.method == "POST":
        return httpx.Response(201, json=USERS["good"])
    return httpx.Response(404, json={"message": "not found"})


@pytest.fixture
def make_client(settings: Settings):
    clients: list[TestClient] = []

    def factory(*replies: str | Exception) -> TestClient:
        services = Services(
            settings=settings,
            pipeline=AnalysisPipeline(FakeCompletion(*(replies or ("unused",)))),
            store=LocalContentStore(settings.db_path),
            accounts=AccountClient(
                AppwriteHTTP(settings, transport=httpx.MockTransport(_backend))
            ),
        )
        client = TestClient(create_app(settings, services))
        client.__enter__()
        clients.append(client)
        return client

    yield factory
    for client in clients:
        client.__exit__(None, None, None)


@pytest.fixture
def client(make_client) -> TestClient:
    return make_client(QUALITY_REPLY)


# ---------------------------------------------------------------------------
# Analysis routes
# ---------------------------------------------------------------------------


def test_healthz(client: TestClient) -> None:
    resp = client.get("/healthz")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


def test_quality_analysis_shape(client: TestClient) -> None:
    resp = client.post("/api/quality-analysis", json={"content": DRAFT})

    assert resp.status_code == 200
    body = resp.json()
    assert body["contentScore"] == 82
    assert body["wordCount"] == 9
    assert body["readingTime"] == 1
    assert body["keyInsights"] == ["Clear thesis"]
    assert "kind" not in body
    assert "x-trace-id" in resp.headers


def test_rephrase_returns_plain_string(make_client) -> None:
    client = make_client("A fresher sentence.")
    resp = client.post("/api/rephrase", json={"content": DRAFT})

    assert resp.status_code == 200
    assert resp.json() == "A fresher sentence."


def test_content_generation(make_client) -> None:
    client = make_client("Dr. Marla Spivak", "# Bees\n\nText.")
    resp = client.post(
        "/api/content-generation",
        json={"title": "Urban beekeeping", "keywords": ["hives"], "tone": "casual"},
    )

    assert resp.status_code == 200
    assert resp.json() == {"content": "# Bees\n\nText.", "expert": "Dr. Marla Spivak"}


def test_invalid_model_json_is_422(make_client) -> None:
    client = make_client("not valid json")
    resp = client.post("/api/originality-check", json={"content": DRAFT})

    assert resp.status_code == 422
    assert resp.json()["error"] == INCOMPLETE_CONTENT_MESSAGE


def test_upstream_failure_is_502(make_client) -> None:
    client = make_client(UpstreamError("HTTP 500"))
    resp = client.post("/api/authenticity-check", json={"content": DRAFT})

    assert resp.status_code == 502
    body = resp.json()
    assert body["error"] == GENERIC_FAILURE_MESSAGE
    assert body["trace_id"] == resp.headers["x-trace-id"]


def test_blank_content_is_rejected(client: TestClient) -> None:
    resp = client.post("/api/quality-analysis", json={"content": "   "})
    assert resp.status_code == 422


def test_knowledge_search_without_provider_is_502(client: TestClient) -> None:
    resp = client.post("/api/knowledge-search", json={"topic": "urban beekeeping"})
    assert resp.status_code == 502


# ---------------------------------------------------------------------------
# Account routes
# ---------------------------------------------------------------------------


def test_login_and_me(client: TestClient) -> None:
    resp = client.post(
        "/api/account/login", json={"email": "ada@example.com", "password": "password123"}
    )
    assert resp.status_code == 200
    assert resp.json() == {
        "token": "good",
        "userId": "user-1",
        "name": "Ada",
        "email": "ada@example.com",
    }

    me = client.get("/api/account", headers={"X-Session-Token": "good"})
    assert me.json()["userId"] == "user-1"

    logout = client.post("/api/account/logout", headers={"X-Session-Token": "good"})
    assert logout.status_code == 204


def test_signup_requires_long_password(client: TestClient) -> None:
    resp = client.post(
        "/api/account/signup", json={"email": "a@b.c", "password": "short", "name": "A"}
    )
    assert resp.status_code == 422


def test_expired_session_is_401(client: TestClient) -> None:
    resp = client.get("/api/account", headers={"X-Session-Token": "stale"})
    assert resp.status_code == 401


# ---------------------------------------------------------------------------
# Content history routes
# ---------------------------------------------------------------------------


def test_contents_require_session(client: TestClient) -> None:
    resp = client.get("/api/contents")
    assert resp.status_code == 401


def test_save_list_delete(client: TestClient) -> None:
    headers = {"X-Session-Token": "good"}
    saved = client.post(
        "/api/contents",
        headers=headers,
        json={"mode": "quality-analysis", "content": DRAFT, "result": {"contentScore": 70}},
    )
    assert saved.status_code == 200
    document_id = saved.json()["documentId"]

    patched = client.post(
        "/api/contents",
        headers=headers,
        json={
            "mode": "rephrase",
            "content": DRAFT,
            "result": "Reworded.",
            "documentId": document_id,
        },
    )
    assert patched.json()["documentId"] == document_id

    history = client.get("/api/contents", headers=headers).json()
    assert history["total"] == 1
    document = history["documents"][0]
    assert document["contentScore"] == 70
    assert document["rephrasedVersion"] == "Reworded."

    assert client.delete(f"/api/contents/{document_id}", headers=headers).status_code == 204
    assert client.get("/api/contents", headers=headers).json()["total"] == 0


def test_cannot_touch_another_users_record(client: TestClient) -> None:
    saved = client.post(
        "/api/contents",
        headers={"X-Session-Token": "good"},
        json={"mode": "rephrase", "content": DRAFT, "result": "Mine."},
    )
    document_id = saved.json()["documentId"]

    resp = client.delete(f"/api/contents/{document_id}", headers={"X-Session-Token": "other"})
    assert resp.status_code == 404
    assert client.get("/api/contents", headers={"X-Session-Token": "other"}).json()["total"] == 0


def test_save_validates_mode(client: TestClient) -> None:
    resp = client.post(
        "/api/contents",
        headers={"X-Session-Token": "good"},
        json={"mode": "outline-extraction", "content": DRAFT, "result": {"outline": "x"}},
    )
    # A wrong-typed outline falls back to empty; an unknown mode does not.
    assert resp.status_code == 200

    resp = client.post(
        "/api/contents",
        headers={"X-Session-Token": "good"},
        json={"mode": "summarize", "content": DRAFT, "result": {}},
    )
    assert resp.status_code == 422


def test_shutdown_disposes_sqlite_engines(settings: Settings) -> None:
    services = Services(
        settings=settings,
        pipeline=AnalysisPipeline(FakeCompletion("unused")),
        store=LocalContentStore(settings.db_path),
        accounts=AccountClient(AppwriteHTTP(settings, transport=httpx.MockTransport(_backend))),
    )
    with TestClient(create_app(settings, services)) as client:
        saved = client.post(
            "/api/contents",
            headers={"X-Session-Token": "good"},
            json={"mode": "rephrase", "content": DRAFT, "result": "Kept."},
        )
        assert saved.status_code == 200
        history = client.get("/api/contents", headers={"X-Session-Token": "good"}).json()
        assert history["documents"][0]["createdAt"].endswith("+00:00")
        assert str(settings.db_path) in database._engines

    assert database._engines == {}
