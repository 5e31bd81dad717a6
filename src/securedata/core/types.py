"""Shared types and data structures for SecureData."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, Field, field_validator

# local@domain.tld, no whitespace
EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class Role(StrEnum):
    """Principal roles understood by the access controller."""

    USER = "user"
    ADMIN = "admin"


class Stage(StrEnum):
    """Stages a credential request moves through."""

    VALIDATING = "validating"
    AUTHORIZING = "authorizing"
    CHECKING_UNIQUENESS = "checking_uniqueness"
    RESOLVING_LOGO = "resolving_logo"
    PERSISTING = "persisting"
    DONE = "done"
    ERROR = "error"


@dataclass(frozen=True)
class Principal:
    """Authenticated caller, supplied by the external identity layer."""

    id: str
    role: str = Role.USER

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


@dataclass
class Account:
    """A stored third-party login entry."""

    id: str
    owner: str
    website: str
    name: str
    username: str
    email: str
    password: str
    logo: str
    serial_number: int
    note: str | None = None
    attached_file: str | None = None
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: datetime = field(default_factory=datetime.now)


@dataclass(frozen=True)
class AccountDraft:
    """Fields needed to insert a new account."""

    owner: str
    website: str
    name: str
    username: str
    email: str
    password: str
    logo: str
    note: str | None = None
    attached_file: str | None = None


@dataclass(frozen=True)
class AccountPatch:
    """Mutable fields written by an update. Owner and id never change."""

    website: str
    name: str
    username: str
    email: str
    password: str
    logo: str
    note: str | None = None
    attached_file: str | None = None


class AccountForm(BaseModel):
    """Create/update input as submitted by the caller."""

    website: str = Field(..., min_length=1, description="Website is required")
    name: str = Field(..., min_length=1, description="Name is required")
    username: str = Field(..., min_length=1, description="Username is required")
    email: str = Field(..., description="Please include a valid email")
    password: str = Field(..., min_length=1, description="Password is required")
    note: str | None = None

    @field_validator("email")
    @classmethod
    def validate_email(cls, value: str) -> str:
        if not EMAIL_PATTERN.match(value):
            raise ValueError("Please include a valid email")
        return value

    @field_validator("note")
    @classmethod
    def empty_note_is_none(cls, value: str | None) -> str | None:
        return value or None
