"""CI events: Actions workflows, checks, commit statuses and Pages builds."""

from __future__ import annotations

from typing import ClassVar

from octogram.core.markdown import bold, code, escape, italic, link, link_markup, safe_url
from octogram.github.events.base import (
    GitHubEvent,
    describe_status,
    format_duration,
    humanize_duration,
    register,
    short_sha,
    status_icon,
)
from octogram.github.models import App, LenientModel, User


class _CIEvent(GitHubEvent):
    def commit_link(self, sha: str | None) -> str:
        if not sha:
            return ""
        repo_url = safe_url(self.repository.html_url) if self.repository else None
        markup = code(short_sha(sha))
        if repo_url:
            return link_markup(markup, f"{repo_url}/commit/{sha}")
        return markup

    def finish(self, message: str, branch: str | None, duration: str) -> str:
        if branch:
            message += f" on {code(branch)}"
        message += self.repo_clause()
        if duration:
            message += f" {escape(duration)}"
        return message


class WorkflowJob(LenientModel):
    name: str | None = None
    workflow_name: str | None = None
    status: str | None = None
    conclusion: str | None = None
    html_url: str | None = None
    head_branch: str | None = None
    started_at: str | None = None
    completed_at: str | None = None
    run_attempt: int | None = None
    runner_name: str | None = None


@register
class WorkflowJobEvent(_CIEvent):
    event_type: ClassVar[str] = "workflow_job"

    workflow_job: WorkflowJob = WorkflowJob()

    def render(self) -> str:
        job = self.workflow_job
        title = link(job.name or "job", job.html_url)
        if job.workflow_name:
            title = f"{escape(job.workflow_name)} / {title}"
        duration = ""
        if job.status == "completed":
            duration = format_duration(job.started_at, job.completed_at)
        message = (
            f"{status_icon(job.status, job.conclusion)} Job {title} "
            f"{escape(describe_status(job.status, job.conclusion))}"
        )
        return self.finish(message, job.head_branch, duration)


class WorkflowRun(LenientModel):
    name: str | None = None
    display_title: str | None = None
    run_number: int | None = None
    run_attempt: int | None = None
    status: str | None = None
    conclusion: str | None = None
    html_url: str | None = None
    head_branch: str | None = None
    head_sha: str | None = None
    event: str | None = None
    actor: User | None = None
    triggering_actor: User | None = None
    created_at: str | None = None
    run_started_at: str | None = None
    updated_at: str | None = None


@register
class WorkflowRunEvent(_CIEvent):
    event_type: ClassVar[str] = "workflow_run"

    workflow_run: WorkflowRun = WorkflowRun()

    def render(self) -> str:
        run = self.workflow_run
        name = run.name or "workflow"
        if run.run_number is not None:
            name = f"{name} #{run.run_number}"
        duration = ""
        if run.status == "completed":
            duration = format_duration(run.run_started_at or run.created_at, run.updated_at)
        message = (
            f"{status_icon(run.status, run.conclusion)} Workflow {link(name, run.html_url)} "
            f"{escape(describe_status(run.status, run.conclusion))}"
        )
        lines = [self.finish(message, run.head_branch, duration)]
        if run.display_title and run.display_title != run.name:
            lines.append(italic(run.display_title))
        by_line = self._by_line(run)
        if by_line:
            lines.append(by_line)
        return "\n".join(lines)

    def _by_line(self, run: WorkflowRun) -> str:
        requester = run.actor
        trigger = run.triggering_actor
        has_requester = requester is not None and bool(requester.login)
        has_trigger = trigger is not None and bool(trigger.login)
        if has_requester:
            line = f"Run by {self.actor(requester)}"
            if has_trigger and trigger.login != requester.login:
                line += f" \\(triggered by {self.actor(trigger)}\\)"
            return line
        if has_trigger:
            return f"Triggered by {self.actor(trigger)}"
        return ""


class CheckSuite(LenientModel):
    status: str | None = None
    conclusion: str | None = None
    head_branch: str | None = None
    head_sha: str | None = None
    app: App | None = None
    created_at: str | None = None
    updated_at: str | None = None


@register
class CheckSuiteEvent(_CIEvent):
    event_type: ClassVar[str] = "check_suite"

    check_suite: CheckSuite = CheckSuite()

    def render(self) -> str:
        suite = self.check_suite
        status = "requested" if self.action in ("requested", "rerequested") and not suite.status else suite.status
        message = f"{status_icon(status, suite.conclusion)} Check suite"
        if suite.app is not None and suite.app.name:
            message += f" from {bold(suite.app.name)}"
        message += f" {escape(describe_status(status, suite.conclusion))}"
        if suite.head_sha:
            message += f" for {self.commit_link(suite.head_sha)}"
        duration = ""
        if status == "completed":
            duration = format_duration(suite.created_at, suite.updated_at)
        return self.finish(message, suite.head_branch, duration)


class CheckRunSuite(LenientModel):
    head_branch: str | None = None


class CheckRun(LenientModel):
    name: str | None = None
    status: str | None = None
    conclusion: str | None = None
    html_url: str | None = None
    details_url: str | None = None
    head_sha: str | None = None
    started_at: str | None = None
    completed_at: str | None = None
    app: App | None = None
    check_suite: CheckRunSuite | None = None


@register
class CheckRunEvent(_CIEvent):
    event_type: ClassVar[str] = "check_run"

    check_run: CheckRun = CheckRun()

    def render(self) -> str:
        run = self.check_run
        title = link(run.name or "check", run.html_url or run.details_url)
        message = (
            f"{status_icon(run.status, run.conclusion)} Check {title} "
            f"{escape(describe_status(run.status, run.conclusion))}"
        )
        if run.head_sha:
            message += f" for {self.commit_link(run.head_sha)}"
        duration = ""
        if run.status == "completed":
            duration = format_duration(run.started_at, run.completed_at)
        branch = run.check_suite.head_branch if run.check_suite is not None else None
        return self.finish(message, branch, duration)


class StatusCommit(LenientModel):
    html_url: str | None = None


_STATE_ICONS = {
    "success": "✅",
    "failure": "❌",
    "error": "⚠️",
    "pending": "⏳",
}


@register
class StatusEvent(_CIEvent):
    event_type: ClassVar[str] = "status"

    sha: str | None = None
    state: str | None = None
    context: str | None = None
    description: str | None = None
    target_url: str | None = None
    commit: StatusCommit | None = None

    def render(self) -> str:
        icon = _STATE_ICONS.get(self.state or "", "ℹ️")
        commit = code(short_sha(self.sha) or "unknown")
        if self.commit is not None:
            commit = link_markup(commit, self.commit.html_url)
        message = (
            f"{icon} {code(self.context or 'status')} is {bold(self.state or 'unknown')} "
            f"for {commit}{self.repo_clause()}"
        )
        details = safe_url(self.target_url)
        if details:
            message += f" {link('Details', details)}"
        if self.description:
            message += f"\n{escape(self.description)}"
        return message


class BuildError(LenientModel):
    message: str | None = None


class PageBuild(LenientModel):
    status: str | None = None
    error: BuildError | None = None
    pusher: User | None = None
    commit: str | None = None
    duration: int | None = None  # milliseconds


@register
class PageBuildEvent(_CIEvent):
    event_type: ClassVar[str] = "page_build"

    build: PageBuild = PageBuild()

    def render(self) -> str:
        build = self.build
        where = self.repo_clause("for")
        if build.status == "building":
            message = f"🏗 GitHub Pages build started{where}"
        elif build.status == "built":
            message = f"🌐 GitHub Pages site built{where}"
            if build.duration is not None and build.duration >= 0:
                message += f" {escape(f'(took {humanize_duration(build.duration // 1000)})')}"
            site = self.pages_url()
            if site:
                message += f"\n{link('View site', site)}"
        elif build.status == "errored":
            message = f"❌ GitHub Pages build failed{where}"
            if build.error is not None and build.error.message:
                message += f"\n{escape(build.error.message)}"
        else:
            return ""
        if build.pusher is not None and build.pusher.login:
            message += f"\nPushed by {self.actor(build.pusher)}"
        return message

    def pages_url(self) -> str | None:
        """Best-effort github.io address; custom domains are not in the payload."""
        repo = self.repository
        if repo is None or repo.owner is None or not repo.owner.login or not repo.name:
            return None
        host = f"{repo.owner.login.lower()}.github.io"
        if repo.name.lower() == host:
            return f"https://{host}/"
        return f"https://{host}/{repo.name}/"
