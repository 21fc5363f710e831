"""Events about the contents of a repository: pushes, refs, releases, wiki."""

from __future__ import annotations

from typing import ClassVar

from octogram.core.markdown import bold, code, escape, italic, link, link_markup, plural, preview, quote, safe_url
from octogram.github.events.base import (
    COMMENT_PREVIEW,
    MAX_LISTED_COMMITS,
    RELEASE_NOTES_PREVIEW,
    GitHubEvent,
    first_line,
    register,
    short_sha,
    strip_ref,
)
from octogram.github.models import Comment, Commit, CommitAuthor, LenientModel, Repository


def _compare_suffix(url: str | None) -> str:
    target = safe_url(url)
    return f" {link('Compare changes', target)}" if target else ""


@register
class PushEvent(GitHubEvent):
    event_type: ClassVar[str] = "push"

    ref: str | None = None
    before: str | None = None
    after: str | None = None
    created: bool = False
    deleted: bool = False
    forced: bool = False
    compare: str | None = None
    commits: list[Commit] = []
    pusher: CommitAuthor | None = None

    def render(self) -> str:
        # Ref creation without commits and ref deletion are reported by the
        # create / delete events; a second message here would be a duplicate.
        if self.deleted:
            return ""
        if self.created and not self.commits and not self.forced:
            return ""

        is_tag = (self.ref or "").startswith("refs/tags/")
        target = f"{'tag' if is_tag else 'branch'} {code(strip_ref(self.ref) or 'unknown')}"
        actor = self._pusher()
        compare = _compare_suffix(self.compare)
        count = len(self.commits)

        if count == 0:
            if self.forced:
                return (
                    f"⚠️ {actor} {escape('force-pushed')} to {target}{self.repo_clause()} "
                    f"{escape('(no new commits).')}{compare}"
                )
            return (
                f"📌 {actor} pushed to {target}{self.repo_clause()} "
                f"{escape('(no commits in payload).')}{compare}"
            )

        verb = escape("force-pushed") if self.forced else "pushed"
        icon = "⚠️" if self.forced else "🚀"
        lines = [
            f"{icon} {actor} {verb} {bold(plural(count, 'commit'))} to {target}"
            f"{self.repo_clause()}\\.{compare}"
        ]
        for commit in self.commits[:MAX_LISTED_COMMITS]:
            lines.append(self._commit_line(commit))
        if count > MAX_LISTED_COMMITS:
            lines.append(f"  {escape(f'... and {count - MAX_LISTED_COMMITS} more')}")
        return "\n".join(lines)

    def _pusher(self) -> str:
        if self.sender is not None and self.sender.login:
            return self.actor()
        if self.pusher is not None and self.pusher.name:
            return escape(self.pusher.name)
        return self.actor()

    @staticmethod
    def _commit_line(commit: Commit) -> str:
        sha = link_markup(code(short_sha(commit.id) or "unknown"), commit.url)
        author = commit.author
        name = (author.name or author.username) if author is not None else None
        line = f"  • {sha} {escape(first_line(commit.message) or 'no message')}"
        if name:
            line += f" \\- {italic(name)}"
        return line


class _RefEvent(GitHubEvent):
    ref: str | None = None
    ref_type: str | None = None

    def _ref_markup(self, linked: bool) -> str:
        ref = code(self.ref or "unknown")
        repo_url = safe_url(self.repository.html_url) if self.repository else None
        if not linked or not repo_url or not self.ref:
            return ref
        path = "releases/tag" if self.ref_type == "tag" else "tree"
        return link_markup(ref, f"{repo_url}/{path}/{self.ref}")


@register
class CreateEvent(_RefEvent):
    event_type: ClassVar[str] = "create"

    def render(self) -> str:
        icon = "🏷" if self.ref_type == "tag" else "🌱"
        kind = escape(self.ref_type or "ref")
        return f"{icon} {self.actor()} created {kind} {self._ref_markup(linked=True)}{self.repo_clause()}"


@register
class DeleteEvent(_RefEvent):
    event_type: ClassVar[str] = "delete"

    def render(self) -> str:
        kind = escape(self.ref_type or "ref")
        return f"🗑 {self.actor()} deleted {kind} {self._ref_markup(linked=False)}{self.repo_clause('from')}"


class Release(LenientModel):
    tag_name: str | None = None
    name: str | None = None
    html_url: str | None = None
    body: str | None = None
    draft: bool = False
    prerelease: bool = False


_RELEASE_ACTIONS = {
    "published": ("🚀", "published"),
    "released": ("🎉", "released"),
    "prereleased": ("🧪", "pre-released"),
    "created": ("📝", "created"),
    "edited": ("✏️", "edited"),
    "unpublished": ("📦", "unpublished"),
    "deleted": ("🗑", "deleted"),
}

_RELEASE_NOTES_ACTIONS = {"published", "released", "prereleased"}


@register
class ReleaseEvent(GitHubEvent):
    event_type: ClassVar[str] = "release"

    release: Release = Release()

    def render(self) -> str:
        entry = _RELEASE_ACTIONS.get(self.action or "")
        if entry is None:
            return ""
        icon, verb = entry
        release = self.release
        tag = release.tag_name
        name = release.name or (f"Release {tag}" if tag else "untitled release")
        message = f"{icon} {self.actor()} {escape(verb)} release {link(name, release.html_url)}"
        if tag:
            message += f" \\({code(tag)}\\)"
        if release.prerelease and self.action != "prereleased":
            message += f" {escape('[pre-release]')}"
        message += self.repo_clause()
        if self.action in _RELEASE_NOTES_ACTIONS and release.body and release.body.strip():
            message += "\n" + quote(preview(release.body, RELEASE_NOTES_PREVIEW))
        return message


@register
class CommitCommentEvent(GitHubEvent):
    event_type: ClassVar[str] = "commit_comment"

    comment: Comment = Comment()

    def render(self) -> str:
        comment = self.comment
        target = link_markup(code(short_sha(comment.commit_id) or "unknown"), comment.html_url)
        actor = self.actor(comment.user if self.sender is None else None)
        if self.action in (None, "created"):
            message = f"💬 {actor} commented on commit {target}{self.repo_clause()}"
            body = preview(comment.body, COMMENT_PREVIEW)
            if body:
                message += "\n" + quote(body)
            return message
        return f"💬 {actor} {escape(self.action)} a comment on commit {target}{self.repo_clause()}"


class WikiPage(LenientModel):
    page_name: str | None = None
    title: str | None = None
    action: str | None = None
    html_url: str | None = None


@register
class GollumEvent(GitHubEvent):
    event_type: ClassVar[str] = "gollum"

    pages: list[WikiPage] = []

    def render(self) -> str:
        if not self.pages:
            return ""
        page = self.pages[0]
        title = page.title or page.page_name or "untitled"
        verb = escape(page.action or "updated")
        message = f"📖 {self.actor()} {verb} wiki page {link(title, page.html_url)}{self.repo_clause()}"
        others = len(self.pages) - 1
        if others:
            more = plural(others, "more page")
            message += f" {escape(f'(and {more})')}"
        return message


@register
class ForkEvent(GitHubEvent):
    event_type: ClassVar[str] = "fork"

    forkee: Repository | None = None

    def render(self) -> str:
        source = self.repo_link() or "a repository"
        message = f"🍴 {self.actor()} forked {source}"
        forkee = self.forkee
        if forkee is not None and forkee.full_name:
            message += f" to {link(forkee.full_name, forkee.html_url)}"
        if self.repository is not None and self.repository.forks_count is not None:
            forks = plural(self.repository.forks_count, "fork")
            message += f" {escape(f'({forks} total)')}"
        return message
