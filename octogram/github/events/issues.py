"""Issues, issue comments, and the action vocabulary issues share with pull requests."""

from __future__ import annotations

from typing import Any, ClassVar

from octogram.core.markdown import code, escape, link, preview, quote
from octogram.github.events.base import COMMENT_PREVIEW, GitHubEvent, register, subject
from octogram.github.models import Comment, IssueType, Label, LenientModel, Milestone, User, dig

# Templates are MarkdownV2 already: anything literal must be pre-escaped.
# Placeholders are filled with escaped markup by ``thread_parts``.
SHARED_ACTIONS: dict[str, tuple[str, str]] = {
    "opened": ("🆕", "opened {subject}"),
    "closed": ("🔴", "closed {subject}"),
    "reopened": ("🟢", "reopened {subject}"),
    "edited": ("✏️", "edited {subject}"),
    "assigned": ("👤", "assigned {assignee} to {subject}"),
    "unassigned": ("👤", "unassigned {assignee} from {subject}"),
    "labeled": ("🏷", "added label {label} to {subject}"),
    "unlabeled": ("🏷", "removed label {label} from {subject}"),
    "locked": ("🔒", "locked {subject}"),
    "unlocked": ("🔓", "unlocked {subject}"),
    "milestoned": ("🎯", "added {subject} to milestone {milestone}"),
    "demilestoned": ("🎯", "removed {subject} from milestone {milestone}"),
}

_ISSUE_ACTIONS: dict[str, tuple[str, str]] = {
    **SHARED_ACTIONS,
    "pinned": ("📌", "pinned {subject}"),
    "unpinned": ("📌", "unpinned {subject}"),
    "typed": ("🏷", "set the type of {subject} to {issue_type}"),
    "untyped": ("🏷", "removed the type {issue_type} from {subject}"),
    "transferred": ("➡️", "transferred {subject}{destination}"),
    "deleted": ("🗑", "deleted {subject}"),
}

_CLOSE_REASONS = {
    "completed": ("✅", "closed {subject} as completed"),
    "not_planned": ("⚪", "closed {subject} as not planned"),
    "duplicate": ("⚪", "closed {subject} as a duplicate"),
}


class Issue(LenientModel):
    number: int | None = None
    title: str | None = None
    html_url: str | None = None
    state: str | None = None
    state_reason: str | None = None
    user: User | None = None
    labels: list[Label] = []
    milestone: Milestone | None = None
    type: IssueType | None = None
    pull_request: dict[str, Any] | None = None

    @property
    def kind(self) -> str:
        # Comments on pull requests arrive as issue_comment with this marker
        return "pull request" if self.pull_request is not None else "issue"


def thread_parts(event: GitHubEvent, subject_markup: str, **extra: str) -> dict[str, str]:
    """Placeholder values for the action templates."""
    assignee = getattr(event, "assignee", None)
    label = getattr(event, "label", None)
    milestone = getattr(event, "milestone", None)
    parts = {
        "subject": subject_markup,
        "assignee": event.actor(assignee) if assignee is not None else "someone",
        "label": code(label.name) if label is not None and label.name else "a label",
        "milestone": (
            link(milestone.title, milestone.html_url)
            if milestone is not None and milestone.title
            else "a milestone"
        ),
    }
    parts.update(extra)
    return parts


def render_thread_action(
    event: GitHubEvent,
    actions: dict[str, tuple[str, str]],
    parts: dict[str, str],
) -> str:
    entry = actions.get(event.action or "")
    if entry is None:
        return ""
    icon, template = entry
    return f"{icon} {event.actor()} {template.format(**parts)}{event.repo_clause()}"


def render_comment(event: GitHubEvent, comment: Comment, where: str) -> str:
    """created / edited / deleted message for any kind of comment.

    ``where`` is markup naming what was commented on, e.g. 'issue #3 Title'.
    """
    actor = event.actor(comment.user if event.sender is None else None)
    if event.action == "created":
        message = f"💬 {actor} commented on {where}{event.repo_clause()}"
    elif event.action == "edited":
        message = f"✏️ {actor} edited a comment on {where}{event.repo_clause()}"
    elif event.action == "deleted":
        return f"🗑 {actor} deleted a comment on {where}{event.repo_clause()}"
    else:
        return ""
    body = preview(comment.body, COMMENT_PREVIEW)
    if body:
        message += "\n" + quote(body)
    return message


@register
class IssuesEvent(GitHubEvent):
    event_type: ClassVar[str] = "issues"

    issue: Issue = Issue()
    assignee: User | None = None
    label: Label | None = None
    milestone: Milestone | None = None
    type: IssueType | None = None

    def render(self) -> str:
        issue = self.issue
        subject_markup = link(subject("#", issue.number, issue.title), issue.html_url)
        issue_type = self.type or issue.type
        parts = thread_parts(
            self,
            subject_markup,
            issue_type=code(issue_type.name) if issue_type is not None and issue_type.name else "a type",
            destination=self._destination(),
        )
        if self.milestone is None and issue.milestone is not None:
            parts["milestone"] = link(issue.milestone.title or "a milestone", issue.milestone.html_url)

        actions = _ISSUE_ACTIONS
        if self.action == "closed" and issue.state_reason in _CLOSE_REASONS:
            actions = {**_ISSUE_ACTIONS, "closed": _CLOSE_REASONS[issue.state_reason]}
        return render_thread_action(self, actions, parts)

    def _destination(self) -> str:
        full_name = dig(self.changes, "new_repository", "full_name")
        if not isinstance(full_name, str) or not full_name:
            return ""
        return f" to {link(full_name, dig(self.changes, 'new_repository', 'html_url'))}"


@register
class IssueCommentEvent(GitHubEvent):
    event_type: ClassVar[str] = "issue_comment"

    issue: Issue = Issue()
    comment: Comment = Comment()

    def render(self) -> str:
        issue = self.issue
        target = link(
            subject("#", issue.number, issue.title),
            self.comment.html_url or issue.html_url,
        )
        return render_comment(self, self.comment, f"{escape(issue.kind)} {target}")
