"""Webhook HTTP server using aiohttp."""

from __future__ import annotations

import asyncio
import json
from typing import Any

import structlog
from aiohttp import web

from octogram.config import Settings
from octogram.core.formatter import try_format
from octogram.core.signature import SignatureStatus, check_signature
from octogram.telegram.sender import TelegramSender
from octogram.utils.logging import get_logger

log = get_logger(__name__)

EVENT_HEADER = "X-GitHub-Event"
DELIVERY_HEADER = "X-GitHub-Delivery"
SIGNATURE_HEADER = "X-Hub-Signature-256"


class WebhookServer:
    """Receives GitHub deliveries and relays them to Telegram."""

    def __init__(self, settings: Settings, sender: TelegramSender) -> None:
        self._settings = settings
        self._sender = sender
        self._runner: web.AppRunner | None = None
        self._pending: set[asyncio.Task[bool]] = set()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        server = self._settings.server
        if not self._settings.github.webhook_secret:
            log.warning(
                "webhook_secret_not_configured",
                msg="Signature verification is disabled; anyone can post deliveries.",
            )
        if not self._settings.telegram.configured:
            log.warning(
                "telegram_not_configured",
                msg="bot_token and chat_id are required; messages will be dropped.",
            )
        app = self._build_app()
        self._runner = web.AppRunner(app)
        await self._runner.setup()
        site = web.TCPSite(self._runner, server.bind, server.port)
        await site.start()
        log.info(
            "webhook_server_started",
            bind=server.bind,
            port=server.port,
            path=self.path,
        )

    async def stop(self) -> None:
        if self._runner is not None:
            await self._runner.cleanup()
            self._runner = None
        await self.drain()
        await self._sender.close()
        log.info("webhook_server_stopped")

    async def drain(self) -> None:
        """Wait for in-flight Telegram sends to finish."""
        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)

    # ------------------------------------------------------------------
    # App construction
    # ------------------------------------------------------------------

    @property
    def path(self) -> str:
        path = self._settings.server.path
        return path if path.startswith("/") else f"/{path}"

    def _build_app(self) -> web.Application:
        app = web.Application()
        app.router.add_post(self.path, self._handle_webhook)
        app.router.add_get("/health", self._handle_health)
        return app

    # ------------------------------------------------------------------
    # Request handling
    # ------------------------------------------------------------------

    async def _handle_health(self, request: web.Request) -> web.Response:
        return web.Response(text="ok")

    async def _handle_webhook(self, request: web.Request) -> web.Response:
        delivery = request.headers.get(DELIVERY_HEADER, "")
        with structlog.contextvars.bound_contextvars(delivery=delivery):
            return await self._dispatch(request)

    async def _dispatch(self, request: web.Request) -> web.Response:
        event_type = request.headers.get(EVENT_HEADER, "").strip()
        if not event_type:
            return web.Response(status=400, text="Missing X-GitHub-Event header")

        if request.content_type != "application/json":
            log.info("webhook_unsupported_content_type", content_type=request.content_type)
            return web.Response(status=415, text="Expected application/json")

        body = await request.read()

        status = check_signature(
            self._settings.github.webhook_secret,
            body,
            request.headers.get(SIGNATURE_HEADER),
        )
        if status is SignatureStatus.ERROR:
            return web.Response(status=500, text="Signature verification failed")
        if status is SignatureStatus.DISABLED:
            log.warning("webhook_signature_unchecked", event_type=event_type)
        elif not status.accepted:
            log.warning("webhook_signature_rejected", event_type=event_type, status=status.value)
            return web.Response(status=403, text="Invalid signature")

        try:
            payload: Any = json.loads(body)
        except ValueError:
            return web.Response(status=400, text="Invalid JSON")

        if event_type in self._settings.github.ignored_events:
            log.info("webhook_ignored", event_type=event_type)
            return web.Response(status=200, text="Ignored")

        result = try_format(event_type, payload)
        if not result.ok:
            log.error(
                "webhook_format_failed",
                event_type=event_type,
                exc_info=result.error,
            )

        log.info(
            "webhook_received",
            event_type=event_type,
            action=payload.get("action") if isinstance(payload, dict) else None,
            relayed=bool(result.message),
        )

        if not result.message:
            return web.Response(status=200, text="OK")

        self._schedule_send(result.message)
        return web.Response(status=202, text="Accepted")

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _schedule_send(self, message: str) -> None:
        # The task copies the current context, so the delivery id stays bound
        task = asyncio.create_task(self._sender.send_message(message))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
