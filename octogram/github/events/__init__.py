"""GitHub event variants, keyed by their X-GitHub-Event tag."""

from octogram.github.events.base import EVENTS, GitHubEvent, register
from octogram.github.events import ci, code, discussions, issues, org, pulls, repository, security  # noqa: F401

__all__ = ["EVENTS", "GitHubEvent", "register"]
