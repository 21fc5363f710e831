"""Repository administration and community events."""

from __future__ import annotations

from typing import ClassVar

from octogram.core.markdown import code, escape, italic, link, plural
from octogram.github.events.base import GitHubEvent, register
from octogram.github.models import Label, LenientModel, Milestone, User, dig

_REPOSITORY_ACTIONS = {
    "created": ("📦", "created repository {repo}"),
    "deleted": ("🗑", "deleted repository {repo}"),
    "archived": ("🗄", "archived {repo}"),
    "unarchived": ("📂", "unarchived {repo}"),
    "publicized": ("🌍", "made {repo} public"),
    "privatized": ("🔒", "made {repo} private"),
    "edited": ("✏️", "edited the settings of {repo}"),
    "renamed": ("✏️", "renamed repository {old_name} to {repo}"),
    "transferred": ("➡️", "transferred {repo}{previous_owner}"),
}


@register
class RepositoryEvent(GitHubEvent):
    event_type: ClassVar[str] = "repository"

    def render(self) -> str:
        entry = _REPOSITORY_ACTIONS.get(self.action or "")
        if entry is None:
            return ""
        icon, template = entry
        old_name = dig(self.changes, "repository", "name", "from")
        owner = dig(self.changes, "owner", "from", "user", "login") or dig(
            self.changes, "owner", "from", "organization", "login"
        )
        text = template.format(
            repo=self.repo_link() or "a repository",
            old_name=code(old_name) if isinstance(old_name, str) else "a repository",
            previous_owner=f" from {code(owner)}" if isinstance(owner, str) else "",
        )
        return f"{icon} {self.actor()} {text}"


@register
class PublicEvent(GitHubEvent):
    event_type: ClassVar[str] = "public"

    def render(self) -> str:
        return f"🌍 {self.actor()} made {self.repo_link() or 'a repository'} public"


_MEMBER_ACTIONS = {
    "added": ("🤝", "added {member} as a collaborator to {repo}"),
    "removed": ("👋", "removed collaborator {member} from {repo}"),
    "edited": ("✏️", "changed the permissions of {member} on {repo}"),
}


@register
class MemberEvent(GitHubEvent):
    event_type: ClassVar[str] = "member"

    member: User | None = None

    def render(self) -> str:
        entry = _MEMBER_ACTIONS.get(self.action or "")
        if entry is None:
            return ""
        icon, template = entry
        member = self.actor(self.member) if self.member is not None else "someone"
        text = template.format(member=member, repo=self.repo_link() or "a repository")
        return f"{icon} {self.actor()} {text}"


class ProtectionRule(LenientModel):
    name: str | None = None


_RULE_ACTIONS = {
    "created": ("🛡", "created"),
    "edited": ("🛡", "edited"),
    "deleted": ("🗑", "deleted"),
}


@register
class BranchProtectionRuleEvent(GitHubEvent):
    event_type: ClassVar[str] = "branch_protection_rule"

    rule: ProtectionRule = ProtectionRule()

    def render(self) -> str:
        entry = _RULE_ACTIONS.get(self.action or "")
        if entry is None:
            return ""
        icon, verb = entry
        pattern = code(self.rule.name or "unknown")
        return f"{icon} {self.actor()} {verb} the branch protection rule for {pattern}{self.repo_clause()}"


@register
class StarEvent(GitHubEvent):
    event_type: ClassVar[str] = "star"

    def render(self) -> str:
        if self.action == "created":
            icon, verb = "⭐", "starred"
        elif self.action == "deleted":
            icon, verb = "💔", "unstarred"
        else:
            return ""
        message = f"{icon} {self.actor()} {verb} {self.repo_link() or 'a repository'}"
        count = self.repository.stargazers_count if self.repository is not None else None
        if count is not None:
            message += f" {escape(f'({count} total)')}"
        return message


@register
class WatchEvent(GitHubEvent):
    event_type: ClassVar[str] = "watch"

    def render(self) -> str:
        # "started" is the only action GitHub sends
        if self.action != "started":
            return ""
        message = f"👀 {self.actor()} started watching {self.repo_link() or 'a repository'}"
        count = self.repository.watchers_count if self.repository is not None else None
        if count is not None:
            watchers = plural(count, "watcher")
            message += f" {escape(f'({watchers})')}"
        return message


@register
class LabelEvent(GitHubEvent):
    event_type: ClassVar[str] = "label"

    label: Label = Label()

    def render(self) -> str:
        name = code(self.label.name or "unknown")
        if self.action == "created":
            text = f"🏷 {self.actor()} created label {name}"
        elif self.action == "edited":
            old = dig(self.changes, "name", "from")
            if isinstance(old, str) and old != self.label.name:
                text = f"🏷 {self.actor()} renamed label {code(old)} to {name}"
            else:
                text = f"🏷 {self.actor()} edited label {name}"
        elif self.action == "deleted":
            text = f"🗑 {self.actor()} deleted label {name}"
        else:
            return ""
        return text + self.repo_clause()


_MILESTONE_ACTIONS = {
    "created": ("🎯", "created"),
    "opened": ("🎯", "reopened"),
    "closed": ("🏁", "closed"),
    "edited": ("✏️", "edited"),
    "deleted": ("🗑", "deleted"),
}


@register
class MilestoneEvent(GitHubEvent):
    event_type: ClassVar[str] = "milestone"

    milestone: Milestone = Milestone()

    def render(self) -> str:
        entry = _MILESTONE_ACTIONS.get(self.action or "")
        if entry is None:
            return ""
        icon, verb = entry
        target = link(self.milestone.title or "untitled", self.milestone.html_url)
        return f"{icon} {self.actor()} {verb} milestone {target}{self.repo_clause()}"


class Hook(LenientModel):
    type: str | None = None
    events: list[str] = []


@register
class PingEvent(GitHubEvent):
    event_type: ClassVar[str] = "ping"

    zen: str | None = None
    hook_id: int | None = None
    hook: Hook | None = None

    def render(self) -> str:
        where = self.repo_clause("for") or self.org_clause("for")
        lines = [f"🏓 Webhook connected{where}"]
        if self.zen:
            lines.append(italic(self.zen))
        if self.hook is not None and self.hook.events:
            lines.append("Events: " + ", ".join(code(name) for name in self.hook.events))
        return "\n".join(lines)
