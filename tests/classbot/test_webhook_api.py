"""Tests for the HTTP API: webhook receiver and read-only ledgers.

Uses httpx.AsyncClient over ASGITransport; the dispatcher and services are
mocked to isolate the API layer from GitHub and the database.
"""

from __future__ import annotations

import hashlib
import hmac
import json
from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pydantic
import pytest
from httpx import ASGITransport, AsyncClient

from classbot.api.routers.webhooks import verify_signature
from classbot.config.loader import ConfigError
from classbot.engines.payloads import PushEvent
from classbot.models.alert import Alert
from classbot.models.submission import CodeSubmission, Submission

# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------

NOW = datetime(2026, 1, 15, 12, 0, 0, tzinfo=timezone.utc)
SECRET = "webhook-secret-for-tests"
API_TOKEN = "api-token-for-tests"

PUSH = {
    "ref": "refs/heads/main",
    "after": "a" * 40,
    "pusher": {"name": "alice"},
    "repository": {"name": "hw-1-alice", "owner": {"login": "cs101", "id": 1}},
    "commits": [],
}


def _sign(body: bytes, secret: str = SECRET) -> str:
    return "sha256=" + hmac.new(secret.encode(), body, hashlib.sha256).hexdigest()


def _headers(body: bytes, event: str = "push", **extra) -> dict[str, str]:
    headers = {
        "X-GitHub-Event": event,
        "X-GitHub-Delivery": "d-1",
        "X-Hub-Signature-256": _sign(body),
        "Content-Type": "application/json",
    }
    headers.update(extra)
    return headers


def _payload_error() -> pydantic.ValidationError:
    try:
        PushEvent.model_validate({})
    except pydantic.ValidationError as exc:
        return exc
    raise AssertionError("empty push payload validated")


def _alert() -> Alert:
    return Alert(
        id=1,
        timestamp=NOW,
        cleared=False,
        userid=555,
        assignment_id=2,
        repo="cs101/hw-1-alice",
        issue=3,
        sha="a" * 40,
        details=[{"kind": "invalid-files", "files": ["secret.txt"]}],
    )


def _submission() -> Submission:
    sub = Submission(
        id=4, timestamp=NOW, userid=555, assignment_id=2, score=70.0, max_score=100.0
    )
    sub.code = CodeSubmission(
        id=4,
        repo="hw-1-alice",
        head_sha="b" * 40,
        scored_by="action",
        check_run_id=42,
        status="success",
        execution_time=1.5,
        autograde={"score": 70},
    )
    return sub


@pytest.fixture
def dispatcher():
    mock = AsyncMock()
    mock.dispatch.return_value = ["workflows", "watchdog"]
    return mock


@pytest.fixture
def app(dispatcher, monkeypatch):
    """Test app without lifespan; DB and dispatcher are overridden."""
    from classbot.api import create_app, deps

    monkeypatch.setenv("CLASSBOT_API_TOKEN", API_TOKEN)
    application = create_app()

    async def _mock_session():
        yield AsyncMock()

    application.dependency_overrides[deps.get_session] = _mock_session
    application.dependency_overrides[deps.get_dispatcher] = lambda: dispatcher
    application.dependency_overrides[deps.get_webhook_secret] = lambda: SECRET
    return application


@pytest.fixture
async def client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


# ---------------------------------------------------------------------------
# Signature
# ---------------------------------------------------------------------------


class TestVerifySignature:
    def test_valid(self):
        assert verify_signature(SECRET, b"{}", _sign(b"{}"))

    def test_wrong_secret(self):
        assert not verify_signature(SECRET, b"{}", _sign(b"{}", "other"))

    def test_missing_or_malformed(self):
        assert not verify_signature(SECRET, b"{}", None)
        assert not verify_signature(SECRET, b"{}", "sha1=abc")


# ---------------------------------------------------------------------------
# Webhook endpoint
# ---------------------------------------------------------------------------


class TestWebhook:
    async def test_dispatches_push(self, client, dispatcher):
        body = json.dumps(PUSH).encode()
        resp = await client.post("/api/v1/webhooks/github", content=body, headers=_headers(body))

        assert resp.status_code == 200
        assert resp.json() == {
            "event": "push",
            "delivery": "d-1",
            "components": ["workflows", "watchdog"],
        }
        dispatcher.dispatch.assert_awaited_once_with("push", PUSH)
        assert "X-Request-ID" in resp.headers

    async def test_bad_signature(self, client, dispatcher):
        body = json.dumps(PUSH).encode()
        headers = _headers(body, **{"X-Hub-Signature-256": _sign(body, "wrong")})
        resp = await client.post("/api/v1/webhooks/github", content=body, headers=headers)

        assert resp.status_code == 401
        dispatcher.dispatch.assert_not_called()

    async def test_unsigned_accepted_without_secret(self, app, client, dispatcher):
        from classbot.api import deps

        app.dependency_overrides[deps.get_webhook_secret] = lambda: None
        body = json.dumps(PUSH).encode()
        headers = _headers(body)
        del headers["X-Hub-Signature-256"]

        resp = await client.post("/api/v1/webhooks/github", content=body, headers=headers)
        assert resp.status_code == 200

    async def test_unsupported_event(self, client, dispatcher):
        body = b'{"zen": "Keep it logically awesome."}'
        resp = await client.post(
            "/api/v1/webhooks/github", content=body, headers=_headers(body, event="ping")
        )

        assert resp.status_code == 202
        assert resp.json()["components"] == []
        dispatcher.dispatch.assert_not_called()

    async def test_invalid_json(self, client):
        body = b"not json"
        resp = await client.post("/api/v1/webhooks/github", content=body, headers=_headers(body))
        assert resp.status_code == 422

    async def test_malformed_payload(self, client, dispatcher):
        dispatcher.dispatch.side_effect = _payload_error()
        body = b"{}"
        resp = await client.post("/api/v1/webhooks/github", content=body, headers=_headers(body))
        assert resp.status_code == 422

    async def test_config_error(self, client, dispatcher):
        dispatcher.dispatch.side_effect = ConfigError("invalid classbot configuration")
        body = json.dumps(PUSH).encode()
        resp = await client.post("/api/v1/webhooks/github", content=body, headers=_headers(body))
        assert resp.status_code == 500
        assert "configuration" in resp.json()["detail"]
        assert resp.json()["source"] == "classbot.yml"

    async def test_component_failure(self, client, dispatcher):
        dispatcher.dispatch.side_effect = RuntimeError("boom")
        body = json.dumps(PUSH).encode()
        resp = await client.post("/api/v1/webhooks/github", content=body, headers=_headers(body))
        assert resp.status_code == 500
        assert resp.json() == {"detail": "event processing failed"}


# ---------------------------------------------------------------------------
# Ledger endpoints
# ---------------------------------------------------------------------------


class TestLedgers:
    async def test_alerts_require_token(self, client):
        resp = await client.get("/api/v1/alerts/")
        assert resp.status_code == 401

    async def test_alerts_wrong_token(self, client):
        resp = await client.get("/api/v1/alerts/", headers={"Authorization": "Bearer nope"})
        assert resp.status_code == 401

    async def test_list_alerts(self, app, client):
        from classbot.api import deps

        svc = AsyncMock()
        svc.list.return_value = {
            "data": [_alert()],
            "next_cursor": None,
            "has_more": False,
            "total": 1,
        }
        app.dependency_overrides[deps.get_alert_service] = lambda: svc

        resp = await client.get(
            "/api/v1/alerts/",
            params={"org": "cs101", "userid": 555},
            headers={"Authorization": f"Bearer {API_TOKEN}"},
        )

        assert resp.status_code == 200
        data = resp.json()
        assert data["meta"] == {"next_cursor": None, "has_more": False, "total": 1}
        assert data["data"][0]["sha"] == "a" * 40
        assert data["data"][0]["details"][0]["files"] == ["secret.txt"]
        kwargs = svc.list.call_args.kwargs
        assert kwargs["org"] == "cs101"
        assert kwargs["userid"] == 555
        assert kwargs["assignment"] is None

    async def test_list_submissions(self, app, client):
        from classbot.api import deps

        svc = AsyncMock()
        svc.list.return_value = {
            "data": [_submission()],
            "next_cursor": "c",
            "has_more": True,
            "total": 2,
        }
        app.dependency_overrides[deps.get_submission_service] = lambda: svc

        resp = await client.get(
            "/api/v1/submissions/",
            params={"assignment": "hw-1"},
            headers={"Authorization": f"Bearer {API_TOKEN}"},
        )

        assert resp.status_code == 200
        item = resp.json()["data"][0]
        assert item["score"] == 70.0
        assert item["code"]["head_sha"] == "b" * 40
        assert item["code"]["status"] == "success"

    async def test_page_size_bounds(self, client):
        resp = await client.get(
            "/api/v1/alerts/",
            params={"page_size": 0},
            headers={"Authorization": f"Bearer {API_TOKEN}"},
        )
        assert resp.status_code == 422

    async def test_invalid_cursor(self, app, client):
        from classbot.api import deps
        from classbot.dao.base import InvalidCursorError

        svc = AsyncMock()
        svc.list.side_effect = InvalidCursorError("bad cursor")
        app.dependency_overrides[deps.get_alert_service] = lambda: svc

        resp = await client.get(
            "/api/v1/alerts/",
            params={"cursor": "zzz"},
            headers={"Authorization": f"Bearer {API_TOKEN}"},
        )

        assert resp.status_code == 422
        assert resp.json()["param"] == "cursor"

    async def test_health(self, client):
        resp = await client.get("/health")
        assert resp.status_code == 200
        assert resp.json() == {"status": "ok"}


# ---------------------------------------------------------------------------
# Webhook endpoint with the real dispatcher
# ---------------------------------------------------------------------------


class TestWebhookDispatch:
    @pytest.fixture
    def runners(self):
        return {
            name: AsyncMock() for name in ("workflows", "watchdog", "autograde", "badges", "gradelog")
        }

    @pytest.fixture
    def dispatcher(self, session_factory, runners):
        from classbot.config.defaults import DEFAULT_CONFIG
        from classbot.config.loader import validate_config
        from classbot.dispatcher import EventDispatcher, RepoFilter

        loader = AsyncMock()
        loader.load.return_value = validate_config(DEFAULT_CONFIG)
        return EventDispatcher(
            AsyncMock(),
            session_factory,
            repo_filter=RepoFilter(owner_pattern=".*", name_pattern=".*"),
            config_loader=loader,
            **runners,
        )

    async def test_push_delivery_succeeds(self, client, runners):
        body = json.dumps(PUSH).encode()
        resp = await client.post("/api/v1/webhooks/github", content=body, headers=_headers(body))

        assert resp.status_code == 200
        assert resp.json()["components"] == ["workflows", "watchdog"]
        runners["watchdog"].run.assert_awaited_once()

    async def test_check_run_delivery_succeeds(self, client, runners):
        payload = {
            "action": "completed",
            "repository": PUSH["repository"],
            "check_run": {"id": 2, "name": "Autograding", "head_sha": "a" * 40},
        }
        body = json.dumps(payload).encode()
        resp = await client.post(
            "/api/v1/webhooks/github", content=body, headers=_headers(body, event="check_run")
        )

        assert resp.status_code == 200
        assert resp.json()["components"] == ["badges"]


# ---------------------------------------------------------------------------
# Classroom endpoints
# ---------------------------------------------------------------------------


class TestClassroom:
    async def test_list_assignments(self, app, client):
        from classbot.api import deps
        from classbot.models.classroom import Assignment

        svc = AsyncMock()
        svc.list_for_org.return_value = [
            Assignment(id=1, org_id=9001, name="hw-1", due=NOW),
            Assignment(id=2, org_id=9001, name="hw-2", due=None),
        ]
        app.dependency_overrides[deps.get_assignment_service] = lambda: svc

        resp = await client.get(
            "/api/v1/orgs/cs101/assignments",
            headers={"Authorization": f"Bearer {API_TOKEN}"},
        )

        assert resp.status_code == 200
        assert [a["name"] for a in resp.json()] == ["hw-1", "hw-2"]
        assert resp.json()[1]["due"] is None
        assert svc.list_for_org.call_args.args[1] == "cs101"

    async def test_unknown_org(self, app, client):
        from classbot.api import deps
        from classbot.services import NotFoundError

        svc = AsyncMock()
        svc.list_for_org.side_effect = NotFoundError("classroom org 'nope' not found")
        app.dependency_overrides[deps.get_assignment_service] = lambda: svc

        resp = await client.get(
            "/api/v1/orgs/nope/assignments",
            headers={"Authorization": f"Bearer {API_TOKEN}"},
        )

        assert resp.status_code == 404
        assert resp.json() == {"detail": "classroom org 'nope' not found"}

    async def test_assignments_require_token(self, client):
        resp = await client.get("/api/v1/orgs/cs101/assignments")
        assert resp.status_code == 401

    async def test_user_profile(self, app, client):
        from classbot.api import deps
        from classbot.models.user import User

        svc = AsyncMock()
        svc.get.return_value = User(
            id=555, username="alice", sis_id="s-1", role="member", name="Alice"
        )
        app.dependency_overrides[deps.get_user_service] = lambda: svc

        resp = await client.get(
            "/api/v1/users/555", headers={"Authorization": f"Bearer {API_TOKEN}"}
        )

        assert resp.status_code == 200
        assert resp.json() == {
            "id": 555,
            "username": "alice",
            "sis_id": "s-1",
            "role": "member",
            "name": "Alice",
        }


# ---------------------------------------------------------------------------
# Error mapping and request ids
# ---------------------------------------------------------------------------


class TestErrorMapping:
    def test_duplicate_record_names_key(self):
        from classbot.api.errors import error_body, status_for
        from classbot.services import DuplicateRecordError

        exc = DuplicateRecordError("sha", "a" * 40)

        assert status_for(exc) == 409
        assert error_body(exc) == {
            "detail": f"sha {'a' * 40!r} already recorded",
            "key": "sha",
            "value": "a" * 40,
        }

    def test_status_by_class(self):
        from classbot.api.errors import status_for
        from classbot.services import (
            AuthenticationError,
            ConflictError,
            NotFoundError,
            ServiceError,
            ValidationError,
        )

        assert status_for(AuthenticationError("x")) == 401
        assert status_for(NotFoundError("x")) == 404
        assert status_for(ConflictError("x")) == 409
        assert status_for(ValidationError("x")) == 422
        assert status_for(ServiceError("x")) == 500

    async def test_delivery_guid_is_request_id(self, client):
        delivery = "72d3162e-cc78-11e3-81ab-4c9367dc0958"
        body = json.dumps(PUSH).encode()
        headers = _headers(body, **{"X-GitHub-Delivery": delivery})

        resp = await client.post("/api/v1/webhooks/github", content=body, headers=headers)

        assert resp.headers["X-Request-ID"] == delivery

    async def test_request_id_passthrough(self, client):
        request_id = "0b0b7c9e-5c1a-4b8e-9f5e-1f2a3b4c5d6e"
        resp = await client.get("/health", headers={"X-Request-ID": request_id})
        assert resp.headers["X-Request-ID"] == request_id

    async def test_invalid_request_id_replaced(self, client):
        resp = await client.get("/health", headers={"X-Request-ID": "not-a-uuid"})
        assert resp.headers["X-Request-ID"] != "not-a-uuid"
