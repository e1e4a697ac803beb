"""Turn loose, human-supplied hints into concrete users and tasks.

Resolution only finds records; it never decides whether the actor may touch
them. A resolved task can still be refused by the policy afterwards.

Hint precedence for users is id, then email, then name. Only the first hint
present is consulted; later hints are not used to narrow an ambiguous match.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import TypeVar

from pydantic import BaseModel, Field, field_validator
from pydantic.config import ConfigDict

from todoo_mcp.auth.errors import AmbiguityError, InvalidInputError, NotFoundError
from todoo_mcp.auth.policy import Actor
from todoo_mcp.store.models import TaskRecord
from todoo_mcp.store.protocols import TaskStore

logger = logging.getLogger(__name__)

_T = TypeVar("_T")


class UserHints(BaseModel):
    """Ways of pointing at a user: by id, by email or by display name."""

    model_config = ConfigDict(frozen=True)

    id: str | None = None
    email: str | None = None
    name: str | None = None

    @field_validator("id", "email", "name", mode="before")
    @classmethod
    def blank_to_none(cls, value: object) -> object:
        return None if isinstance(value, str) and not value.strip() else value

    @property
    def supplied(self) -> bool:
        return any(value is not None for value in (self.id, self.email, self.name))


class TaskHints(BaseModel):
    """Ways of pointing at a task: by id, or by exact title plus optional owner."""

    model_config = ConfigDict(frozen=True)

    id: str | None = None
    title: str | None = None
    owner: UserHints = Field(default_factory=UserHints)

    @field_validator("id", "title", mode="before")
    @classmethod
    def blank_to_none(cls, value: object) -> object:
        return None if isinstance(value, str) and not value.strip() else value


def _single(matches: Sequence[_T], *, not_found: NotFoundError, ambiguous: str) -> _T:
    if not matches:
        raise not_found
    if len(matches) > 1:
        raise AmbiguityError(ambiguous)
    return matches[0]


async def resolve_user(store: TaskStore, actor: Actor, hints: UserHints) -> str:
    """Resolve user hints to a user id.

    Non-admin actors always resolve to themselves, whatever the hints say.
    Admins resolve the first hint present (id, email, name) and default to
    themselves when no hint is given.

    Args:
        store: Store used for the lookups
        actor: The acting identity
        hints: User hints from the caller

    Returns:
        str: The resolved user id

    Raises:
        NotFoundError: The hint matched no user
        AmbiguityError: The name matched more than one user
    """
    if not actor.is_admin:
        return actor.id

    if hints.id is not None:
        user = await store.get_user(hints.id)
        if user is None:
            raise NotFoundError.user()
        return user.id

    if hints.email is not None:
        user = await store.get_user_by_email(hints.email)
        if user is None:
            raise NotFoundError.user()
        return user.id

    if hints.name is not None:
        matches = await store.find_users(name=hints.name)
        if len(matches) > 1:
            logger.debug("User name %r matched %d users", hints.name, len(matches))
        user = _single(
            matches,
            not_found=NotFoundError.user(),
            ambiguous="Nome de usuário não é único; especifique por email ou id",
        )
        return user.id

    return actor.id


async def resolve_task(store: TaskStore, actor: Actor, hints: TaskHints) -> TaskRecord:
    """Resolve task hints to a task record.

    An id is looked up directly. A title is searched among the actor's own
    tasks for non-admins. Admins search globally when no owner hint is
    given, otherwise within the resolved owner's tasks.

    Args:
        store: Store used for the lookups
        actor: The acting identity
        hints: Task hints, with owner hints for admin disambiguation

    Returns:
        TaskRecord: The single matching task

    Raises:
        InvalidInputError: Neither id nor title was given
        NotFoundError: No task (or owner) matched
        AmbiguityError: More than one task (or owner) matched
    """
    if hints.id is not None:
        task = await store.get_task(hints.id)
        if task is None:
            raise NotFoundError.task()
        return task

    if hints.title is None:
        msg = "Informe o id da tarefa ou o nome (taskName) para localizar"
        raise InvalidInputError(msg)

    if not actor.is_admin:
        matches = await store.find_tasks(title=hints.title, owner_id=actor.id)
        return _single(
            matches,
            not_found=NotFoundError.task(),
            ambiguous="Nome de tarefa não é único; especifique o id",
        )

    if not hints.owner.supplied:
        matches = await store.find_tasks(title=hints.title)
        return _single(
            matches,
            not_found=NotFoundError.task(),
            ambiguous=(
                "Nome de tarefa não é único; especifique o usuário (id/email/nome) "
                "ou o id da tarefa"
            ),
        )

    owner_id = await resolve_user(store, actor, hints.owner)
    matches = await store.find_tasks(title=hints.title, owner_id=owner_id)
    return _single(
        matches,
        not_found=NotFoundError.task(),
        ambiguous="Nome de tarefa não é único para este usuário; especifique o id",
    )
