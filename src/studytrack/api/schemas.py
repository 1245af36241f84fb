"""Request and response bodies that are not domain models."""

from __future__ import annotations

from pydantic import Field

from studytrack.core.model import DomainModel


class MockExamInput(DomainModel):
    title: str = Field(min_length=1)


class NameInput(DomainModel):
    name: str = Field(min_length=1)


class LearnedInput(DomainModel):
    is_learned: bool


class FailureCountInput(DomainModel):
    """Either an absolute ``failureCount`` or a relative ``change``."""

    failure_count: int | None = Field(default=None, ge=0)
    change: int | None = None


class TrashEmptied(DomainModel):
    deleted: int


class UserInfo(DomainModel):
    id: str
    email: str | None = None
    name: str | None = None
    picture: str | None = None
