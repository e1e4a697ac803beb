"""Data models for task store requests and responses.

Records mirror the store's JSON shapes. Request payloads reject unknown
fields so a typo never silently turns into a no-op update.
"""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, Field
from pydantic.config import ConfigDict

# Loose shape check only; the store enforces uniqueness
_EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


class Role(StrEnum):
    """Account roles known to the task tracker."""

    ADMIN = "ADMIN"
    USER = "USER"


class UserRecord(BaseModel):
    """A user account as returned by the store."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(description="The ID of the user")
    name: str | None = Field(default=None, description="Display name (not unique)")
    email: str = Field(description="Unique email address")
    role: Role = Field(default=Role.USER, description="Account role")

    @property
    def display_name(self) -> str:
        """Name shown to people, falling back to the email."""
        return self.name or self.email


class TaskRecord(BaseModel):
    """A task as returned by the store."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(description="The ID of the task")
    title: str = Field(description="Task title")
    description: str = Field(default="", description="Task description")
    done: bool = Field(default=False, description="Whether the task is complete")
    owner_id: str = Field(description="ID of the user owning the task")
    created_at: datetime | None = Field(default=None, description="Creation timestamp")


class TaskCreate(BaseModel):
    """Payload for creating a task."""

    model_config = ConfigDict(extra="forbid")

    title: str = Field(min_length=1, description="Task title")
    description: str = Field(default="", description="Task description")
    done: bool = Field(default=False, description="Whether the task is complete")
    owner_id: str = Field(min_length=1, description="ID of the owning user")


class TaskUpdate(BaseModel):
    """Partial update for a task; ``None`` fields are left untouched."""

    model_config = ConfigDict(extra="forbid")

    title: str | None = Field(default=None, min_length=1, description="New title")
    description: str | None = Field(default=None, description="New description")
    done: bool | None = Field(default=None, description="New completion state")
    owner_id: str | None = Field(default=None, min_length=1, description="New owner ID")


class UserCreate(BaseModel):
    """Payload for creating a user account."""

    model_config = ConfigDict(extra="forbid", use_enum_values=True)

    name: str = Field(min_length=1, description="Display name")
    email: str = Field(pattern=_EMAIL_PATTERN, description="Unique email address")
    role: Role = Field(default=Role.USER, description="Account role")


class UserUpdate(BaseModel):
    """Partial update for a user account."""

    model_config = ConfigDict(extra="forbid", use_enum_values=True)

    name: str | None = Field(default=None, min_length=1, description="New display name")
    email: str | None = Field(default=None, pattern=_EMAIL_PATTERN, description="New email address")
    role: Role | None = Field(default=None, description="New role")
