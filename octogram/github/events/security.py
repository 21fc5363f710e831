"""Security alerts: Dependabot and code scanning."""

from __future__ import annotations

from typing import ClassVar

from octogram.core.markdown import bold, code, escape, link
from octogram.github.events.base import GitHubEvent, register, strip_ref, subject
from octogram.github.models import LenientModel

_DEPENDABOT_ACTIONS = {
    "created": ("🚨", "New Dependabot alert {subject}"),
    "fixed": ("✅", "Dependabot alert {subject} was fixed"),
    "dismissed": ("🙈", "{actor} dismissed Dependabot alert {subject}"),
    "reopened": ("🔁", "{actor} reopened Dependabot alert {subject}"),
    "auto_dismissed": ("🤖", "Dependabot alert {subject} was auto\\-dismissed"),
    "auto_reopened": ("🤖", "Dependabot alert {subject} was auto\\-reopened"),
    "reintroduced": ("⚠️", "Dependabot alert {subject} was reintroduced"),
}

_CODE_SCANNING_ACTIONS = {
    "created": ("🔍", "New code scanning alert {subject}"),
    "fixed": ("✅", "Code scanning alert {subject} was fixed"),
    "closed_by_user": ("🙈", "{actor} closed code scanning alert {subject}"),
    "reopened_by_user": ("🔁", "{actor} reopened code scanning alert {subject}"),
    "reopened": ("🔁", "Code scanning alert {subject} was reopened"),
    "appeared_in_branch": ("🌿", "Code scanning alert {subject} appeared in branch {branch}"),
}


def _details(*pairs: tuple[str, str]) -> str:
    """'Label: value · Label: value' line from already-rendered values."""
    return " · ".join(f"{label}: {value}" for label, value in pairs if value)


class Package(LenientModel):
    name: str | None = None
    ecosystem: str | None = None


class Dependency(LenientModel):
    package: Package | None = None
    manifest_path: str | None = None


class Advisory(LenientModel):
    ghsa_id: str | None = None
    cve_id: str | None = None
    summary: str | None = None
    severity: str | None = None


class PatchedVersion(LenientModel):
    identifier: str | None = None


class Vulnerability(LenientModel):
    package: Package | None = None
    severity: str | None = None
    vulnerable_version_range: str | None = None
    first_patched_version: PatchedVersion | None = None


class DependabotAlert(LenientModel):
    number: int | None = None
    state: str | None = None
    html_url: str | None = None
    dependency: Dependency | None = None
    security_advisory: Advisory | None = None
    security_vulnerability: Vulnerability | None = None
    dismissed_reason: str | None = None


@register
class DependabotAlertEvent(GitHubEvent):
    event_type: ClassVar[str] = "dependabot_alert"

    alert: DependabotAlert = DependabotAlert()

    def render(self) -> str:
        entry = _DEPENDABOT_ACTIONS.get(self.action or "")
        if entry is None:
            return ""
        icon, template = entry
        alert = self.alert
        advisory = alert.security_advisory or Advisory()
        vulnerability = alert.security_vulnerability or Vulnerability()
        title = advisory.summary or advisory.ghsa_id or advisory.cve_id
        message = f"{icon} " + template.format(
            actor=self.actor(),
            subject=link(subject("#", alert.number, title), alert.html_url),
        )
        if self.action == "dismissed" and alert.dismissed_reason:
            message += f" \\({escape(alert.dismissed_reason)}\\)"
        message += self.repo_clause()

        package = vulnerability.package or (alert.dependency.package if alert.dependency else None)
        package_text = ""
        if package is not None and package.name:
            package_text = code(package.name)
            if package.ecosystem:
                package_text += f" \\({escape(package.ecosystem)}\\)"
        severity = vulnerability.severity or advisory.severity
        patched = vulnerability.first_patched_version
        details = _details(
            ("Package", package_text),
            ("Severity", bold(severity) if severity else ""),
            ("Fixed in", code(patched.identifier) if patched is not None and patched.identifier else ""),
        )
        if details:
            message += f"\n{details}"
        return message


class Rule(LenientModel):
    id: str | None = None
    name: str | None = None
    description: str | None = None
    severity: str | None = None
    security_severity_level: str | None = None


class Tool(LenientModel):
    name: str | None = None
    version: str | None = None


class Location(LenientModel):
    path: str | None = None
    start_line: int | None = None


class AlertInstance(LenientModel):
    ref: str | None = None
    location: Location | None = None


class CodeScanningAlert(LenientModel):
    number: int | None = None
    state: str | None = None
    html_url: str | None = None
    rule: Rule | None = None
    tool: Tool | None = None
    most_recent_instance: AlertInstance | None = None


@register
class CodeScanningAlertEvent(GitHubEvent):
    event_type: ClassVar[str] = "code_scanning_alert"

    alert: CodeScanningAlert = CodeScanningAlert()
    ref: str | None = None
    commit_oid: str | None = None

    def render(self) -> str:
        entry = _CODE_SCANNING_ACTIONS.get(self.action or "")
        if entry is None:
            return ""
        icon, template = entry
        alert = self.alert
        rule = alert.rule or Rule()
        instance = alert.most_recent_instance or AlertInstance()
        branch = strip_ref(self.ref or instance.ref) or "unknown"
        message = f"{icon} " + template.format(
            actor=self.actor(),
            subject=link(subject("#", alert.number, rule.description or rule.name or rule.id), alert.html_url),
            branch=code(branch),
        )
        message += self.repo_clause()

        severity = rule.security_severity_level or rule.severity
        location = ""
        if instance.location is not None and instance.location.path:
            path = instance.location.path
            if instance.location.start_line is not None:
                path = f"{path}:{instance.location.start_line}"
            location = code(path)
        details = _details(
            ("Tool", code(alert.tool.name) if alert.tool is not None and alert.tool.name else ""),
            ("Severity", bold(severity) if severity else ""),
            ("Location", location),
        )
        if details:
            message += f"\n{details}"
        return message
