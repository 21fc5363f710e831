"""Typed views over the sub-structures shared by GitHub webhook payloads.

Payloads are untrusted: any field may be absent, null or of the wrong type.
``LenientModel`` swaps an unusable value for the field's default instead of
failing validation, so a single odd field only costs us that detail. List
fields are checked per element: one junk entry drops only that entry.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError, ValidationInfo, field_validator


class LenientModel(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    @field_validator("*", mode="wrap")
    @classmethod
    def _default_on_error(cls, value: Any, handler: Any, info: ValidationInfo) -> Any:
        try:
            return handler(value)
        except ValidationError:
            if isinstance(value, list):
                items = _valid_items(handler, value)
                if items is not None:
                    return items
            field = cls.model_fields.get(info.field_name or "")
            if field is None:
                return None
            return field.get_default(call_default_factory=True)


def _valid_items(handler: Any, values: list[Any]) -> list[Any] | None:
    """Validate list elements one at a time, dropping the unusable ones.

    Returns None when the field is not a list field at all.
    """
    try:
        kept = list(handler([]))
    except ValidationError:
        return None
    for value in values:
        try:
            kept.extend(handler([value]))
        except ValidationError:
            continue
    return kept


class User(LenientModel):
    login: str | None = None
    name: str | None = None
    html_url: str | None = None
    type: str | None = None


class Organization(LenientModel):
    login: str | None = None
    html_url: str | None = None

    @property
    def profile_url(self) -> str | None:
        # Organization payloads only carry API URLs
        if self.html_url:
            return self.html_url
        if self.login:
            return f"https://github.com/{self.login}"
        return None


class Repository(LenientModel):
    name: str | None = None
    full_name: str | None = None
    html_url: str | None = None
    owner: User | None = None
    private: bool | None = None
    stargazers_count: int | None = None
    watchers_count: int | None = None
    forks_count: int | None = None
    default_branch: str | None = None


class Label(LenientModel):
    name: str | None = None
    color: str | None = None
    description: str | None = None


class Milestone(LenientModel):
    number: int | None = None
    title: str | None = None
    html_url: str | None = None
    state: str | None = None
    due_on: str | None = None


class Team(LenientModel):
    name: str | None = None
    slug: str | None = None
    html_url: str | None = None
    privacy: str | None = None


class App(LenientModel):
    name: str | None = None
    slug: str | None = None
    html_url: str | None = None


class CommitAuthor(LenientModel):
    name: str | None = None
    email: str | None = None
    username: str | None = None


class Commit(LenientModel):
    id: str | None = None
    message: str | None = None
    url: str | None = None
    author: CommitAuthor | None = None


class Comment(LenientModel):
    id: int | None = None
    body: str | None = None
    html_url: str | None = None
    user: User | None = None
    commit_id: str | None = None
    path: str | None = None
    line: int | None = None


class IssueType(LenientModel):
    name: str | None = None


def dig(data: Any, *path: str) -> Any:
    """Walk nested mappings, returning None as soon as a step is missing."""
    current = data
    for key in path:
        if not isinstance(current, dict):
            return None
        current = current.get(key)
        if current is None:
            return None
    return current
