"""Every renderer must produce MarkdownV2 that Telegram can parse, whatever the payload holds."""

import types
import typing

import pytest
from pydantic import BaseModel

from octogram.core.formatter import fallback_message, format_event
from octogram.github.events import EVENTS

RESERVED = set("_*[]()~`>#+-=|{}.!")
TOGGLES = ("__", "||", "*", "_", "~")

HOSTILE = "a_b*c[d](e)~f`g>h#i+j-k=l|m{n}o.p!q\\r\r\n>s https://x.io/(y) __u__ ||v||"
HOSTILE_URL = "https://example.com/a_(b)\\c`d"

ACTIONS = [
    None, "created", "deleted", "edited", "opened", "closed", "reopened", "labeled",
    "unlabeled", "assigned", "milestoned", "submitted", "dismissed", "resolved",
    "unresolved", "completed", "requested", "published", "prereleased", "renamed",
    "transferred", "added", "added_to_repository", "started", "appeared_in_branch",
    "answered", "category_changed", "review_requested", "dequeued", "typed", "fixed",
]

CHANGES = {
    "repository": {"name": {"from": HOSTILE}},
    "owner": {"from": {"user": {"login": HOSTILE}}},
    "name": {"from": HOSTILE},
    "new_repository": {"full_name": HOSTILE, "html_url": HOSTILE_URL},
    "new_discussion": {"html_url": HOSTILE_URL},
}

TIMESTAMPS = {
    "created_at": "2024-01-01T00:00:00Z",
    "started_at": "2024-01-01T00:00:00Z",
    "run_started_at": "2024-01-01T00:00:00Z",
    "updated_at": "2024-01-01T01:02:05Z",
    "completed_at": "2024-01-01T01:02:05Z",
}

# Field values that steer renderers into their less common branches.
VARIANTS = {
    "hostile": {},
    "completed": {
        "status": "completed",
        "conclusion": "failure",
        "state": "approved",
        "ref": "refs/tags/v_1.0",
        "ref_type": "tag",
        **TIMESTAMPS,
    },
    "built": {"status": "built", "state": "changes_requested", "ref_type": "branch"},
    "errored": {"status": "errored", "state": "commented", "reason": "checks_failed"},
}


def markup_error(text: str) -> str | None:
    """First reason Telegram would reject ``text`` as MarkdownV2, or None."""
    stack: list[str] = []
    i = 0
    while i < len(text):
        char = text[i]
        if char == "\\":
            if i + 1 >= len(text) or not 0 < ord(text[i + 1]) < 127:
                return f"dangling backslash at {i}"
            i += 2
            continue
        if char == "`":
            end = _closing(text, i + 1, "`")
            if end is None:
                return f"broken code span at {i}"
            i = end + 1
            continue
        if char == "[":
            stack.append("[")
            i += 1
            continue
        if char == "]":
            if not stack or stack[-1] != "[":
                return f"unmatched ']' at {i}"
            stack.pop()
            if text[i + 1:i + 2] != "(":
                return f"link text without a url at {i}"
            end = _closing(text, i + 2, ")")
            if end is None:
                return f"broken link url at {i}"
            i = end + 1
            continue
        if char == ">" and (i == 0 or text[i - 1] == "\n"):
            i += 1
            continue
        marker = next((m for m in TOGGLES if text.startswith(m, i)), None)
        if marker is not None:
            if stack and stack[-1] == marker:
                stack.pop()
            elif marker in stack:
                return f"overlapping {marker!r} at {i}"
            else:
                stack.append(marker)
            i += len(marker)
            continue
        if char in RESERVED:
            return f"unescaped {char!r} at {i}"
        i += 1
    if stack:
        return f"unclosed {stack[-1]!r}"
    return None


def _closing(text: str, start: int, closer: str) -> int | None:
    """Index of the unescaped ``closer``; only it and the backslash may be escaped."""
    i = start
    while i < len(text):
        if text[i] == "\\":
            if i + 1 >= len(text) or text[i + 1] not in (closer, "\\"):
                return None
            i += 2
            continue
        if text[i] == closer:
            return i
        i += 1
    return None


def sample(annotation: typing.Any, name: str, overrides: dict[str, str], depth: int = 0) -> typing.Any:
    if name in overrides:
        return overrides[name]
    origin = typing.get_origin(annotation)
    if origin in (typing.Union, types.UnionType):
        arms = [arg for arg in typing.get_args(annotation) if arg is not type(None)]
        return sample(arms[0], name, overrides, depth)
    if origin is list:
        (item,) = typing.get_args(annotation)
        return [sample(item, name, overrides, depth) for _ in range(2)]
    if origin is dict:
        return {}
    if isinstance(annotation, type) and issubclass(annotation, BaseModel):
        return sample_model(annotation, overrides, depth + 1)
    if annotation is bool:
        # created/deleted pushes are reported by the create and delete events
        return name not in ("created", "deleted")
    if annotation is int:
        return 3
    if annotation is float:
        return 1.5
    return HOSTILE_URL if name.endswith("url") or name == "compare" else HOSTILE


def sample_model(model: type[BaseModel], overrides: dict[str, str], depth: int = 0) -> dict[str, typing.Any]:
    if depth > 6:
        return {}
    return {
        name: sample(field.annotation, name, overrides, depth)
        for name, field in model.model_fields.items()
    }


def build_payload(event_type: str, overrides: dict[str, str], action: str | None) -> dict[str, typing.Any]:
    payload = sample_model(EVENTS[event_type], overrides)
    payload["action"] = action
    payload["changes"] = CHANGES
    return payload


class TestMarkupChecker:
    @pytest.mark.parametrize("text", [
        "plain text",
        "*bold* _italic_ __under__ ~strike~ ||spoiler||",
        "*bold _nested_*",
        "[`abc1234`](https://x.io/a\\)b)",
        "[link](https://x.io/(a\\)b) after",
        "`code \\` tick \\\\ slash`",
        ">quoted\n>more",
        "\\_\\*\\[\\]\\(\\)\\~\\`\\>\\#\\+\\-\\=\\|\\{\\}\\.\\!",
    ])
    def test_accepts_well_formed(self, text):
        assert markup_error(text) is None

    @pytest.mark.parametrize("text", [
        "a.b",
        "a-b",
        "x > y",
        "*bold",
        "*bold _italic*_",
        "_italic_ _again_x_",
        "[text]",
        "[text](https://x.io/a)b)c",
        "`unterminated",
        "`bad \\x escape`",
        "[t](https://x.io/\\q)",
        "trailing \\",
        "a|b",
    ])
    def test_rejects_malformed(self, text):
        assert markup_error(text) is not None


class TestRenderedMarkup:
    @pytest.mark.parametrize("variant", sorted(VARIANTS))
    @pytest.mark.parametrize("event_type", sorted(EVENTS))
    def test_well_formed_for_hostile_payloads(self, event_type, variant):
        for action in ACTIONS:
            message = format_event(event_type, build_payload(event_type, VARIANTS[variant], action))
            if message:
                problem = markup_error(message)
                assert problem is None, f"{event_type} ({action}): {problem}\n{message}"

    @pytest.mark.parametrize("event_type", sorted(EVENTS))
    def test_every_event_renders_something(self, event_type):
        rendered = [
            format_event(event_type, build_payload(event_type, overrides, action))
            for overrides in VARIANTS.values()
            for action in ACTIONS
        ]
        assert any(rendered)

    def test_hostile_text_survives_escaping(self):
        payload = build_payload("issues", VARIANTS["hostile"], "opened")
        message = format_event("issues", payload)
        assert "a\\_b\\*c\\[d\\]\\(e\\)\\~f\\`g\\>h\\#i" in message

    def test_fallback_notice(self):
        message = fallback_message(HOSTILE, {"repository": {"full_name": HOSTILE}})
        assert markup_error(message) is None
