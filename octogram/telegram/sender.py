"""Telegram Bot API delivery for formatted messages."""

from __future__ import annotations

from typing import Any

import httpx

from octogram.config import TelegramConfig
from octogram.utils.logging import get_logger

log = get_logger(__name__)

PARSE_MODE = "MarkdownV2"


class TelegramSender:
    """Posts MarkdownV2 text to one chat (and optionally one forum topic).

    Failures are logged and reported as False; retrying is left to whoever
    redelivers the webhook.
    """

    def __init__(
        self, config: TelegramConfig, client: httpx.AsyncClient | None = None
    ) -> None:
        self._config = config
        self._client = client or httpx.AsyncClient(timeout=config.timeout)

    def build_payload(self, text: str) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "chat_id": self._config.chat_id,
            "text": text,
            "parse_mode": PARSE_MODE,
            "disable_web_page_preview": self._config.disable_link_preview,
        }
        if self._config.message_thread_id is not None:
            payload["message_thread_id"] = self._config.message_thread_id
        return payload

    async def send_message(self, text: str) -> bool:
        if not text:
            log.info("telegram_skip_empty")
            return False
        if not self._config.configured:
            log.error("telegram_not_configured", msg="bot_token and chat_id are required")
            return False

        url = f"{self._config.api_base.rstrip('/')}/bot{self._config.bot_token}/sendMessage"
        try:
            response = await self._client.post(url, json=self.build_payload(text))
        except httpx.HTTPError as exc:
            # str(exc) can embed the request URL, which carries the token
            log.error("telegram_send_failed", error=type(exc).__name__)
            return False

        if response.is_success:
            log.info("telegram_message_sent", chat_id=self._config.chat_id)
            return True

        try:
            data = response.json()
        except ValueError:
            data = None
        if isinstance(data, dict):
            description = data.get("description", "")
        else:
            description = response.text[:200]
        log.error(
            "telegram_api_error",
            status=response.status_code,
            description=description,
        )
        return False

    async def close(self) -> None:
        await self._client.aclose()
