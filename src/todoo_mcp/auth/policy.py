"""Authorization policy for tasks and users.

An ``Ability`` is the set of rules an actor holds, derived only from the
actor's role and rebuilt for every request. A rule grants one action (or
``manage``, meaning every action) on one subject type, optionally under a
condition evaluated against a concrete subject.

Subjects are either a bare type tag (``"Task"`` / ``"User"``), used for
class-level questions such as "may this actor create tasks at all", or a
concrete ``TaskSubject`` / ``UserSubject``. A bare-type check passes when at
least one instance could pass, so conditional rules grant it.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from enum import StrEnum
from typing import Literal

from pydantic import BaseModel, Field
from pydantic.config import ConfigDict

from todoo_mcp.auth.errors import ForbiddenError
from todoo_mcp.store.models import Role, TaskRecord

logger = logging.getLogger(__name__)


class Action(StrEnum):
    """Actions checked by the policy."""

    CREATE = "create"
    READ = "read"
    UPDATE = "update"
    DELETE = "delete"
    MANAGE = "manage"


SubjectType = Literal["Task", "User"]


class Actor(BaseModel):
    """The authenticated identity performing one request."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1, description="ID of the acting user")
    role: Role = Field(description="Role of the acting user")

    @property
    def is_admin(self) -> bool:
        return self.role is Role.ADMIN


class TaskSubject(BaseModel):
    """A concrete task, or a task about to exist, as seen by the policy."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["Task"] = "Task"
    id: str | None = None
    owner_id: str

    @classmethod
    def from_record(cls, task: TaskRecord) -> TaskSubject:
        return cls(id=task.id, owner_id=task.owner_id)

    def with_owner(self, owner_id: str) -> TaskSubject:
        """Return the same task placed under another owner."""
        return self.model_copy(update={"owner_id": owner_id})


class UserSubject(BaseModel):
    """A concrete user account as seen by the policy."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["User"] = "User"
    id: str


Subject = SubjectType | TaskSubject | UserSubject
Condition = Callable[[TaskSubject | UserSubject], bool]


@dataclass(frozen=True, slots=True)
class Rule:
    """Grants ``action`` on ``subject_type`` when ``condition`` holds."""

    action: Action
    subject_type: SubjectType
    condition: Condition | None = None

    def grants(self, action: Action) -> bool:
        return self.action is Action.MANAGE or self.action is action

    def applies_to(self, subject: Subject) -> bool:
        if isinstance(subject, str):
            return True
        return self.condition is None or self.condition(subject)


def _subject_type(subject: Subject) -> SubjectType:
    return subject if isinstance(subject, str) else subject.kind


def _owned_by(actor_id: str) -> Condition:
    def condition(subject: TaskSubject | UserSubject) -> bool:
        return isinstance(subject, TaskSubject) and subject.owner_id == actor_id

    return condition


def _is_self(actor_id: str) -> Condition:
    def condition(subject: TaskSubject | UserSubject) -> bool:
        return isinstance(subject, UserSubject) and subject.id == actor_id

    return condition


class Ability:
    """The rules one actor holds for the duration of a request."""

    def __init__(self, rules: Iterable[Rule] = ()) -> None:
        self._rules = tuple(rules)

    @classmethod
    def for_actor(cls, actor: Actor | None) -> Ability:
        """Build the ability of ``actor``; an anonymous caller gets no rules."""
        if actor is None:
            return cls()
        if actor.role is Role.ADMIN:
            return cls(
                [
                    Rule(Action.MANAGE, "Task"),
                    Rule(Action.MANAGE, "User"),
                ]
            )
        owned = _owned_by(actor.id)
        itself = _is_self(actor.id)
        return cls(
            [
                Rule(Action.CREATE, "Task", owned),
                Rule(Action.READ, "Task", owned),
                Rule(Action.UPDATE, "Task", owned),
                Rule(Action.DELETE, "Task", owned),
                Rule(Action.READ, "User", itself),
                Rule(Action.UPDATE, "User", itself),
            ]
        )

    @property
    def rules(self) -> tuple[Rule, ...]:
        return self._rules

    def can(self, action: Action, subject: Subject) -> bool:
        subject_type = _subject_type(subject)
        return any(
            rule.subject_type == subject_type and rule.grants(action) and rule.applies_to(subject)
            for rule in self._rules
        )


def can(actor: Actor | None, action: Action, subject: Subject) -> bool:
    """Return whether ``actor`` may perform ``action`` on ``subject``."""
    return Ability.for_actor(actor).can(action, subject)


def authorize(actor: Actor | None, action: Action, subject: Subject, message: str) -> Actor:
    """Require that ``actor`` may perform ``action`` on ``subject``.

    Args:
        actor: The acting identity, None for an anonymous caller
        action: The action being attempted
        subject: Bare type tag or concrete subject
        message: User-facing refusal message

    Returns:
        Actor: The same actor, known to be authenticated

    Raises:
        ForbiddenError: When the policy denies the action
    """
    if actor is None or not can(actor, action, subject):
        logger.info(
            "Denied %s on %s for actor %s",
            action.value,
            subject if isinstance(subject, str) else subject.model_dump(),
            actor.id if actor is not None else "<anonymous>",
        )
        raise ForbiddenError(message)
    return actor
