"""Turn a GitHub event into a Telegram MarkdownV2 message."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from octogram.core.markdown import code, escape
from octogram.github.events import EVENTS
from octogram.github.models import dig
from octogram.utils.logging import get_logger

log = get_logger(__name__)


@dataclass
class FormatResult:
    """Outcome of formatting one delivery.

    ``message`` is always safe to send ("" means send nothing). When the
    renderer failed, ``error`` holds the exception and ``message`` is the
    fallback notice.
    """
    message: str
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def supported_events() -> list[str]:
    return sorted(EVENTS)


def format_event(event_type: str, payload: Any) -> str:
    """Render a payload; "" for unknown event types and uninteresting actions."""
    event_cls = EVENTS.get(event_type)
    if event_cls is None:
        log.debug("unsupported_event", event_type=event_type)
        return ""
    data = payload if isinstance(payload, Mapping) else {}
    event = event_cls.model_validate(dict(data))
    message = event.render().strip()
    if not message:
        log.debug("event_suppressed", event_type=event_type, action=event.action)
    return message


def fallback_message(event_type: str, payload: Any) -> str:
    repo = dig(payload, "repository", "full_name") if isinstance(payload, dict) else None
    if not isinstance(repo, str) or not repo:
        repo = "unknown"
    return f"⚠️ Error processing {code(event_type)} event for repo {code(repo)}{escape('.')}"


def try_format(event_type: str, payload: Any) -> FormatResult:
    """Like ``format_event`` but never raises: failures yield the fallback notice."""
    try:
        return FormatResult(message=format_event(event_type, payload))
    except Exception as exc:
        return FormatResult(message=fallback_message(event_type, payload), error=exc)
