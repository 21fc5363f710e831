"""Pull requests, reviews, review comments and review threads."""

from __future__ import annotations

from typing import ClassVar

from octogram.core.markdown import code, escape, link, preview, quote
from octogram.github.events.base import COMMENT_PREVIEW, GitHubEvent, register, subject
from octogram.github.events.issues import SHARED_ACTIONS, render_comment, render_thread_action, thread_parts
from octogram.github.models import Comment, Label, LenientModel, Milestone, Team, User

_PR_ACTIONS: dict[str, tuple[str, str]] = {
    **SHARED_ACTIONS,
    "closed": ("🔴", "closed {subject} without merging"),
    "review_requested": ("👀", "requested a review from {reviewer} on {subject}"),
    "review_request_removed": ("👀", "removed the review request for {reviewer} on {subject}"),
    "synchronize": ("🔄", "pushed new commits to {subject}"),
    "ready_for_review": ("✅", "marked {subject} as ready for review"),
    "converted_to_draft": ("📝", "converted {subject} to a draft"),
    "auto_merge_enabled": ("🤖", "enabled auto\\-merge for {subject}"),
    "auto_merge_disabled": ("🤖", "disabled auto\\-merge for {subject}"),
    "enqueued": ("📥", "added {subject} to the merge queue"),
    "dequeued": ("📤", "removed {subject} from the merge queue{reason}"),
}

_MERGED = ("🟣", "merged {subject}{into}")


class Branch(LenientModel):
    ref: str | None = None
    sha: str | None = None
    label: str | None = None


class PullRequest(LenientModel):
    number: int | None = None
    title: str | None = None
    html_url: str | None = None
    state: str | None = None
    merged: bool = False
    draft: bool = False
    user: User | None = None
    merged_by: User | None = None
    head: Branch | None = None
    base: Branch | None = None

    def subject_link(self, url: str | None = None) -> str:
        return link(subject("#", self.number, self.title), url or self.html_url)


@register
class PullRequestEvent(GitHubEvent):
    event_type: ClassVar[str] = "pull_request"

    number: int | None = None
    pull_request: PullRequest = PullRequest()
    assignee: User | None = None
    label: Label | None = None
    milestone: Milestone | None = None
    requested_reviewer: User | None = None
    requested_team: Team | None = None
    reason: str | None = None

    def render(self) -> str:
        pr = self.pull_request
        if pr.number is None and self.number is not None:
            pr = pr.model_copy(update={"number": self.number})

        subject_markup = pr.subject_link()
        if pr.draft and self.action == "opened":
            subject_markup = f"draft {subject_markup}"
        base = pr.base.ref if pr.base is not None else None
        parts = thread_parts(
            self,
            subject_markup,
            reviewer=self._reviewer(),
            reason=f" \\({escape(self.reason.replace('_', ' '))}\\)" if self.reason else "",
            into=f" into {code(base)}" if base else "",
        )

        actions = _PR_ACTIONS
        if self.action == "closed" and pr.merged:
            actions = {**_PR_ACTIONS, "closed": _MERGED}
        message = render_thread_action(self, actions, parts)
        if message and self.action == "opened":
            head = pr.head.ref if pr.head is not None else None
            if head and base:
                message += f"\n{code(head)} → {code(base)}"
        return message

    def _reviewer(self) -> str:
        if self.requested_reviewer is not None and self.requested_reviewer.login:
            return self.actor(self.requested_reviewer)
        team = self.requested_team
        if team is not None and team.name:
            return f"team {link(team.name, team.html_url)}"
        return "someone"


class Review(LenientModel):
    state: str | None = None
    body: str | None = None
    html_url: str | None = None
    user: User | None = None


_REVIEW_STATES = {
    "approved": ("✅", "approved {subject}"),
    "changes_requested": ("❗", "requested changes on {subject}"),
    "commented": ("💬", "reviewed {subject}"),
}


@register
class PullRequestReviewEvent(GitHubEvent):
    event_type: ClassVar[str] = "pull_request_review"

    review: Review = Review()
    pull_request: PullRequest = PullRequest()

    def render(self) -> str:
        review = self.review
        subject_markup = self.pull_request.subject_link(review.html_url)
        actor = self.actor(review.user if self.sender is None else None)

        if self.action == "dismissed":
            owner = review.user
            whose = f"{self.actor(owner)}'s review" if owner is not None and owner.login else "a review"
            return f"🚫 {actor} dismissed {whose} on {subject_markup}{self.repo_clause()}"
        if self.action != "submitted":
            return ""

        entry = _REVIEW_STATES.get((review.state or "").lower())
        if entry is None:
            return ""
        icon, template = entry
        message = f"{icon} {actor} {template.format(subject=subject_markup)}{self.repo_clause()}"
        body = preview(review.body, COMMENT_PREVIEW)
        if body:
            message += "\n" + quote(body)
        return message


@register
class PullRequestReviewCommentEvent(GitHubEvent):
    event_type: ClassVar[str] = "pull_request_review_comment"

    comment: Comment = Comment()
    pull_request: PullRequest = PullRequest()

    def render(self) -> str:
        where = f"pull request {self.pull_request.subject_link(self.comment.html_url)}"
        if self.comment.path:
            where = f"{code(self.comment.path)} in {where}"
        return render_comment(self, self.comment, where)


class ReviewThread(LenientModel):
    node_id: str | None = None
    comments: list[Comment] = []


_THREAD_ACTIONS = {
    "resolved": ("✅", "resolved"),
    "unresolved": ("↩️", "unresolved"),
}


@register
class PullRequestReviewThreadEvent(GitHubEvent):
    event_type: ClassVar[str] = "pull_request_review_thread"

    thread: ReviewThread = ReviewThread()
    pull_request: PullRequest = PullRequest()

    def render(self) -> str:
        entry = _THREAD_ACTIONS.get(self.action or "")
        if entry is None:
            return ""
        icon, verb = entry
        first = self.thread.comments[0] if self.thread.comments else None
        where = "a review thread"
        if first is not None and first.path:
            where += f" on {code(first.path)}"
        target = self.pull_request.subject_link(first.html_url if first is not None else None)
        return f"{icon} {self.actor()} {verb} {where} in {target}{self.repo_clause()}"
