"""Tests for the webhook dispatcher."""

import hashlib
import hmac
import json
from typing import ClassVar
from unittest.mock import AsyncMock

import pytest
import structlog
from aiohttp.test_utils import TestClient, TestServer

from octogram.config import GitHubConfig, Settings
from octogram.core import signature as signature_module
from octogram.github.events import EVENTS, GitHubEvent
from octogram.webhooks.server import WebhookServer

SECRET = "gh-secret"
PATH = "/webhooks/github"

STAR = {
    "action": "created",
    "repository": {"full_name": "org/repo", "html_url": "https://github.com/org/repo"},
    "sender": {"login": "alice", "html_url": "https://github.com/alice"},
}


def sign(body: bytes, secret: str = SECRET) -> str:
    return "sha256=" + hmac.new(secret.encode(), body, hashlib.sha256).hexdigest()


def headers(body: bytes, event: str = "star", **extra: str) -> dict[str, str]:
    result = {
        "Content-Type": "application/json",
        "X-GitHub-Event": event,
        "X-GitHub-Delivery": "72d3162e-cc78-11e3-81ab-4c9367dc0958",
        "X-Hub-Signature-256": sign(body),
    }
    result.update(extra)
    return result


@pytest.fixture
def sender():
    mock = AsyncMock()
    mock.send_message.return_value = True
    return mock


@pytest.fixture
def settings():
    return Settings(github=GitHubConfig(webhook_secret=SECRET, ignored_events=["watch"]))


@pytest.fixture
def server(settings, sender):
    return WebhookServer(settings, sender)


@pytest.fixture
async def client(server):
    async with TestClient(TestServer(server._build_app())) as c:
        yield c


class TestRouting:
    async def test_health(self, client):
        resp = await client.get("/health")
        assert resp.status == 200
        assert await resp.text() == "ok"

    async def test_get_on_webhook_path_not_allowed(self, client):
        resp = await client.get(PATH)
        assert resp.status == 405

    async def test_unknown_path(self, client):
        resp = await client.post("/elsewhere", json={})
        assert resp.status == 404


class TestRequestValidation:
    async def test_missing_event_header(self, client, sender):
        body = json.dumps(STAR).encode()
        hdrs = headers(body)
        del hdrs["X-GitHub-Event"]
        resp = await client.post(PATH, data=body, headers=hdrs)
        assert resp.status == 400
        sender.send_message.assert_not_called()

    async def test_wrong_content_type(self, client, sender):
        body = json.dumps(STAR).encode()
        resp = await client.post(
            PATH, data=body, headers=headers(body, **{"Content-Type": "application/x-www-form-urlencoded"})
        )
        assert resp.status == 415
        sender.send_message.assert_not_called()

    async def test_content_type_with_charset(self, client, server):
        body = json.dumps(STAR).encode()
        resp = await client.post(
            PATH, data=body, headers=headers(body, **{"Content-Type": "application/json; charset=utf-8"})
        )
        assert resp.status == 202
        await server.drain()

    async def test_invalid_json(self, client, sender):
        body = b"not json"
        resp = await client.post(PATH, data=body, headers=headers(body))
        assert resp.status == 400
        sender.send_message.assert_not_called()


class TestSignaturePolicy:
    async def test_missing_signature(self, client, sender):
        body = json.dumps(STAR).encode()
        hdrs = headers(body)
        del hdrs["X-Hub-Signature-256"]
        resp = await client.post(PATH, data=body, headers=hdrs)
        assert resp.status == 403
        sender.send_message.assert_not_called()

    async def test_invalid_signature(self, client, sender):
        body = json.dumps(STAR).encode()
        resp = await client.post(PATH, data=body, headers=headers(body, **{"X-Hub-Signature-256": sign(body, "wrong")}))
        assert resp.status == 403
        sender.send_message.assert_not_called()

    async def test_malformed_signature(self, client):
        body = json.dumps(STAR).encode()
        resp = await client.post(PATH, data=body, headers=headers(body, **{"X-Hub-Signature-256": "sha256=invalid"}))
        assert resp.status == 403

    async def test_signature_checked_before_json(self, client):
        body = b"not json"
        resp = await client.post(PATH, data=body, headers=headers(body, **{"X-Hub-Signature-256": sign(body, "wrong")}))
        assert resp.status == 403

    async def test_verification_error_is_server_error(self, client, sender, monkeypatch):
        def boom(secret, body):
            raise RuntimeError("no digest")

        monkeypatch.setattr(signature_module, "compute_signature", boom)
        body = json.dumps(STAR).encode()
        resp = await client.post(PATH, data=body, headers=headers(body))
        assert resp.status == 500
        sender.send_message.assert_not_called()

    async def test_no_secret_skips_verification(self, sender):
        server = WebhookServer(Settings(), sender)
        body = json.dumps(STAR).encode()
        async with TestClient(TestServer(server._build_app())) as client:
            hdrs = headers(body)
            del hdrs["X-Hub-Signature-256"]
            resp = await client.post(PATH, data=body, headers=hdrs)
            assert resp.status == 202
        await server.drain()
        sender.send_message.assert_awaited_once()


class ExplodingEvent(GitHubEvent):
    event_type: ClassVar[str] = "explode"

    def render(self) -> str:
        raise RuntimeError("renderer bug")


class TestDelivery:
    async def test_star_is_relayed(self, client, server, sender):
        body = json.dumps(STAR).encode()
        resp = await client.post(PATH, data=body, headers=headers(body))
        assert resp.status == 202
        await server.drain()
        sender.send_message.assert_awaited_once_with(
            "⭐ [alice](https://github.com/alice) starred [org/repo](https://github.com/org/repo)"
        )

    async def test_suppressed_action_returns_200(self, client, server, sender):
        body = json.dumps({**STAR, "action": "edited"}).encode()
        resp = await client.post(PATH, data=body, headers=headers(body))
        assert resp.status == 200
        await server.drain()
        sender.send_message.assert_not_called()

    async def test_unknown_event_returns_200(self, client, server, sender):
        body = json.dumps(STAR).encode()
        resp = await client.post(PATH, data=body, headers=headers(body, event="sponsorship"))
        assert resp.status == 200
        await server.drain()
        sender.send_message.assert_not_called()

    async def test_ignored_event(self, client, server, sender):
        body = json.dumps({**STAR, "action": "started"}).encode()
        resp = await client.post(PATH, data=body, headers=headers(body, event="watch"))
        assert resp.status == 200
        await server.drain()
        sender.send_message.assert_not_called()

    async def test_formatter_failure_sends_fallback(self, client, server, sender, monkeypatch):
        monkeypatch.setitem(EVENTS, "explode", ExplodingEvent)
        body = json.dumps(STAR).encode()
        resp = await client.post(PATH, data=body, headers=headers(body, event="explode"))
        assert resp.status == 202
        await server.drain()
        sender.send_message.assert_awaited_once_with(
            "⚠️ Error processing `explode` event for repo `org/repo`\\."
        )

    async def test_delivery_id_bound_during_send(self, client, server, sender):
        seen = {}

        async def capture(message):
            seen.update(structlog.contextvars.get_contextvars())
            return True

        sender.send_message.side_effect = capture
        body = json.dumps(STAR).encode()
        resp = await client.post(PATH, data=body, headers=headers(body))
        assert resp.status == 202
        await server.drain()
        assert seen.get("delivery") == "72d3162e-cc78-11e3-81ab-4c9367dc0958"
        assert "delivery" not in structlog.contextvars.get_contextvars()

    async def test_failed_send_still_accepted(self, client, server, sender):
        sender.send_message.return_value = False
        body = json.dumps(STAR).encode()
        resp = await client.post(PATH, data=body, headers=headers(body))
        assert resp.status == 202
        await server.drain()


class TestLifecycle:
    async def test_stop_drains_and_closes_sender(self, server, sender):
        await server.stop()
        sender.close.assert_awaited_once()

    async def test_custom_path(self, sender):
        settings = Settings(server={"path": "hooks"})
        server = WebhookServer(settings, sender)
        assert server.path == "/hooks"
        async with TestClient(TestServer(server._build_app())) as client:
            body = json.dumps(STAR).encode()
            hdrs = headers(body)
            del hdrs["X-Hub-Signature-256"]
            resp = await client.post("/hooks", data=body, headers=hdrs)
            assert resp.status == 202
        await server.drain()
