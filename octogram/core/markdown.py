"""Telegram MarkdownV2 escaping and markup builders.

Everything that comes from a webhook payload is untrusted text. It must go
through ``escape`` (or one of the builders below, which escape for you)
before it is placed in a message, otherwise Telegram rejects the whole
message with a parse error.
"""

from __future__ import annotations

import re
from typing import Any

# Reserved outside entities: _ * [ ] ( ) ~ ` > # + - = | { } . ! and the backslash itself.
_ESCAPE_RE = re.compile(r"([\\_*\[\]()~`>#+\-=|{}.!])")
_CODE_ESCAPE_RE = re.compile(r"([\\`])")
_URL_ESCAPE_RE = re.compile(r"([\\)])")

ELLIPSIS = "\\.\\.\\."


def escape(text: Any) -> str:
    """Escape text for use outside of code and link syntax."""
    if text is None:
        return ""
    return _ESCAPE_RE.sub(r"\\\1", str(text))


def escape_code(text: Any) -> str:
    """Escape text for use inside `inline code` or ```pre``` blocks."""
    if text is None:
        return ""
    return _CODE_ESCAPE_RE.sub(r"\\\1", str(text))


def escape_url(url: str) -> str:
    """Escape a URL for use inside the (...) part of an inline link."""
    return _URL_ESCAPE_RE.sub(r"\\\1", url)


def safe_url(value: Any) -> str | None:
    """Return the value if it is an absolute http(s) URL, else None."""
    if not isinstance(value, str):
        return None
    value = value.strip()
    if value.startswith(("https://", "http://")):
        return value
    return None


def bold(text: Any) -> str:
    return f"*{escape(text)}*"


def italic(text: Any) -> str:
    return f"_{escape(text)}_"


def code(text: Any) -> str:
    return f"`{escape_code(text)}`"


def link(text: Any, url: Any) -> str:
    """Inline link, or just the escaped text when there is no usable URL."""
    return link_markup(escape(text), url)


def link_markup(markup: str, url: Any) -> str:
    """Inline link around already-escaped markup."""
    target = safe_url(url)
    if not target:
        return markup
    return f"[{markup}]({escape_url(target)})"


def truncate(text: Any, limit: int) -> tuple[str, bool]:
    if text is None:
        return "", False
    text = str(text)
    if len(text) <= limit:
        return text, False
    return text[:limit], True


def preview(text: Any, limit: int) -> str:
    """Escaped preview of free-form text, with an ellipsis when cut short."""
    head, truncated = truncate(text, limit)
    head = head.replace("\r\n", "\n").strip()
    escaped = escape(head)
    if truncated:
        escaped += ELLIPSIS
    return escaped


def quote(markup: str) -> str:
    """Render markup as a block quote; every line needs its own '>'."""
    if not markup:
        return ""
    return "\n".join(f">{line}" for line in markup.split("\n"))


def plural(count: int, noun: str, suffix: str = "s") -> str:
    return f"{count} {noun}" if count == 1 else f"{count} {noun}{suffix}"
