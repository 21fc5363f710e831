"""Base event variant, registry and helpers shared by the event renderers."""

from __future__ import annotations

from abc import abstractmethod
from datetime import datetime, timezone
from typing import Any, ClassVar, TypeVar

from octogram.core.markdown import escape, link
from octogram.github.models import LenientModel, Organization, Repository, User

COMMENT_PREVIEW = 150
RELEASE_NOTES_PREVIEW = 200
MAX_LISTED_COMMITS = 3
UNKNOWN_ACTOR = "Someone"

_REF_PREFIXES = ("refs/heads/", "refs/tags/")


class GitHubEvent(LenientModel):
    """One webhook event kind. Subclasses set ``event_type`` and implement ``render``."""

    event_type: ClassVar[str]

    action: str | None = None
    repository: Repository | None = None
    sender: User | None = None
    organization: Organization | None = None
    changes: dict[str, Any] = {}

    @abstractmethod
    def render(self) -> str:
        """Return the MarkdownV2 message, or "" when nothing should be sent."""
        ...

    # ------------------------------------------------------------------
    # Shared fragments
    # ------------------------------------------------------------------

    def actor(self, user: User | None = None) -> str:
        user = user if user is not None else self.sender
        if user is None or not user.login:
            return escape(UNKNOWN_ACTOR)
        return link(user.login, user.html_url)

    def repo_link(self) -> str:
        repo = self.repository
        if repo is None or not repo.full_name:
            return ""
        return link(repo.full_name, repo.html_url)

    def repo_clause(self, preposition: str = "in") -> str:
        """' in <repo link>', or nothing for events without a repository."""
        repo = self.repo_link()
        return f" {preposition} {repo}" if repo else ""

    def org_clause(self, preposition: str = "in") -> str:
        org = self.organization
        if org is None or not org.login:
            return ""
        return f" {preposition} {link(org.login, org.profile_url)}"


EventT = TypeVar("EventT", bound=type[GitHubEvent])

EVENTS: dict[str, type[GitHubEvent]] = {}


def register(cls: EventT) -> EventT:
    EVENTS[cls.event_type] = cls
    return cls


# ---------------------------------------------------------------------------
# CI status
# ---------------------------------------------------------------------------

_CONCLUSION_ICONS = {
    "success": "✅",
    "failure": "❌",
    "cancelled": "🚫",
    "skipped": "⏭",
}

_STATUS_ICONS = {
    "queued": "⏳",
    "waiting": "⏳",
    "pending": "⏳",
    "in_progress": "🔄",
    "requested": "📋",
}


def status_icon(status: str | None, conclusion: str | None = None) -> str:
    if status == "completed":
        return _CONCLUSION_ICONS.get(conclusion or "", "☑️")
    return _STATUS_ICONS.get(status or "", "ℹ️")


def describe_status(status: str | None, conclusion: str | None = None) -> str:
    """Plain-text status phrase, e.g. 'completed: failure' or 'in progress'."""
    if status == "completed":
        return f"completed: {conclusion}" if conclusion else "completed"
    if not status:
        return "updated"
    return status.replace("_", " ")


# ---------------------------------------------------------------------------
# Durations
# ---------------------------------------------------------------------------

def parse_timestamp(value: Any) -> datetime | None:
    if not isinstance(value, str) or not value:
        return None
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def humanize_duration(seconds: int) -> str:
    """'1h 2m 5s' style, dropping zero-valued leading units."""
    seconds = max(int(seconds), 0)
    hours, rest = divmod(seconds, 3600)
    minutes, secs = divmod(rest, 60)
    if hours:
        return f"{hours}h {minutes}m {secs}s"
    if minutes:
        return f"{minutes}m {secs}s"
    return f"{secs}s"


def format_duration(start: Any, end: Any) -> str:
    """'(took 1m 5s)' between two ISO timestamps, or '' when it can't be known."""
    started = parse_timestamp(start)
    finished = parse_timestamp(end)
    if started is None or finished is None or finished < started:
        return ""
    return f"(took {humanize_duration(int((finished - started).total_seconds()))})"


# ---------------------------------------------------------------------------
# Small text helpers
# ---------------------------------------------------------------------------

def short_sha(sha: Any) -> str:
    return sha[:7] if isinstance(sha, str) else ""


def strip_ref(ref: Any) -> str:
    if not isinstance(ref, str):
        return ""
    for prefix in _REF_PREFIXES:
        if ref.startswith(prefix):
            return ref[len(prefix):]
    return ref


def first_line(text: Any) -> str:
    if not isinstance(text, str) or not text:
        return ""
    return text.strip().splitlines()[0] if text.strip() else ""


def subject(prefix: str, number: Any, title: Any) -> str:
    """Plain-text '#12 Title' label for issues, pull requests and friends."""
    parts = []
    if number is not None:
        parts.append(f"{prefix}{number}")
    if title:
        parts.append(str(title))
    return " ".join(parts) or "untitled"
