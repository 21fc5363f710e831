"""Discussions and discussion comments."""

from __future__ import annotations

from typing import ClassVar

from octogram.core.markdown import bold, link
from octogram.github.events.base import GitHubEvent, register, subject
from octogram.github.events.issues import render_comment, render_thread_action, thread_parts
from octogram.github.models import Comment, Label, LenientModel, User, dig

_DISCUSSION_ACTIONS: dict[str, tuple[str, str]] = {
    "created": ("💡", "started discussion {subject}{category}"),
    "edited": ("✏️", "edited discussion {subject}"),
    "deleted": ("🗑", "deleted discussion {subject}"),
    "pinned": ("📌", "pinned discussion {subject}"),
    "unpinned": ("📌", "unpinned discussion {subject}"),
    "locked": ("🔒", "locked discussion {subject}"),
    "unlocked": ("🔓", "unlocked discussion {subject}"),
    "transferred": ("➡️", "transferred discussion {subject}{destination}"),
    "category_changed": ("🗂", "moved discussion {subject}{category}"),
    "answered": ("✅", "marked an answer for discussion {subject}"),
    "unanswered": ("↩️", "unmarked the answer for discussion {subject}"),
    "labeled": ("🏷", "added label {label} to discussion {subject}"),
    "unlabeled": ("🏷", "removed label {label} from discussion {subject}"),
}


class Category(LenientModel):
    name: str | None = None
    emoji: str | None = None


class Discussion(LenientModel):
    number: int | None = None
    title: str | None = None
    html_url: str | None = None
    state: str | None = None
    answer_html_url: str | None = None
    category: Category | None = None
    user: User | None = None


@register
class DiscussionEvent(GitHubEvent):
    event_type: ClassVar[str] = "discussion"

    discussion: Discussion = Discussion()
    label: Label | None = None
    answer: Comment | None = None

    def render(self) -> str:
        discussion = self.discussion
        url = discussion.html_url
        if self.action == "answered":
            url = (self.answer.html_url if self.answer is not None else None) or discussion.answer_html_url or url
        parts = thread_parts(
            self,
            link(subject("#", discussion.number, discussion.title), url),
            category=self._category_clause(),
            destination=self._destination(),
        )
        return render_thread_action(self, _DISCUSSION_ACTIONS, parts)

    def _category_clause(self) -> str:
        category = self.discussion.category
        if category is None or not category.name:
            return ""
        preposition = "to" if self.action == "category_changed" else "in"
        return f" {preposition} {bold(category.name)}"

    def _destination(self) -> str:
        full_name = dig(self.changes, "new_repository", "full_name")
        if not isinstance(full_name, str) or not full_name:
            return ""
        target = dig(self.changes, "new_discussion", "html_url") or dig(self.changes, "new_repository", "html_url")
        return f" to {link(full_name, target)}"


@register
class DiscussionCommentEvent(GitHubEvent):
    event_type: ClassVar[str] = "discussion_comment"

    discussion: Discussion = Discussion()
    comment: Comment = Comment()

    def render(self) -> str:
        discussion = self.discussion
        target = link(
            subject("#", discussion.number, discussion.title),
            self.comment.html_url or discussion.html_url,
        )
        return render_comment(self, self.comment, f"discussion {target}")
