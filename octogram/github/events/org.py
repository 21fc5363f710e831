"""Organization-level events: teams and packages."""

from __future__ import annotations

from typing import ClassVar

from octogram.core.markdown import code, escape, link
from octogram.github.events.base import GitHubEvent, register
from octogram.github.models import LenientModel, Team

_TEAM_ACTIONS = {
    "created": "Team {team} was created{org}",
    "deleted": "Team {team} was deleted{org}",
    "edited": "Team {team} was edited{org}",
    "added_to_repository": "Team {team} was given access to {repo}",
    "removed_from_repository": "Team {team} lost access to {repo}",
}


@register
class TeamEvent(GitHubEvent):
    """Team changes are admin housekeeping, so the actor trails the message."""

    event_type: ClassVar[str] = "team"

    team: Team = Team()

    def render(self) -> str:
        template = _TEAM_ACTIONS.get(self.action or "")
        if template is None:
            return ""
        text = template.format(
            team=link(self.team.name or self.team.slug or "unknown", self.team.html_url),
            org=self.org_clause(),
            repo=self.repo_link() or "a repository",
        )
        message = f"👥 {text}"
        if self.sender is not None and self.sender.login:
            message += f" \\(by {self.actor()}\\)"
        return message


class PackageVersion(LenientModel):
    version: str | None = None
    name: str | None = None
    html_url: str | None = None


class Package(LenientModel):
    name: str | None = None
    package_type: str | None = None
    ecosystem: str | None = None
    html_url: str | None = None
    package_version: PackageVersion | None = None


_PACKAGE_ACTIONS = {
    "published": "published",
    "updated": "updated",
}


@register
class PackageEvent(GitHubEvent):
    event_type: ClassVar[str] = "package"

    package: Package = Package()

    def render(self) -> str:
        verb = _PACKAGE_ACTIONS.get(self.action or "")
        if verb is None:
            return ""
        package = self.package
        version = package.package_version
        url = (version.html_url if version is not None else None) or package.html_url
        kind = (package.package_type or package.ecosystem or "").lower()
        message = f"📦 {self.actor()} {verb}"
        if kind:
            message += f" {escape(kind)}"
        message += f" package {link(package.name or 'unknown', url)}"
        number = (version.version or version.name) if version is not None else None
        if number:
            message += f" version {code(number)}"
        return message + (self.repo_clause() or self.org_clause())
