"""Task and user operations shared by the tool bridge and the HTTP routes.

Each operation runs the same pipeline regardless of the entry point:
confirmation gate (task mutations only), class-level policy check, hint
resolution, instance-level policy check, then a single store call. Every
refusal comes back as an ``Outcome``; nothing raised by the resolvers, the
policy or the store escapes.
"""

from __future__ import annotations

import functools
import logging
from collections.abc import Awaitable, Callable, Iterable
from typing import Any, TypeVar

from pydantic import ValidationError

from todoo_mcp.auth.errors import InvalidInputError, NotFoundError, OperationError
from todoo_mcp.auth.gate import confirmation_required
from todoo_mcp.auth.outcomes import Outcome
from todoo_mcp.auth.policy import (
    Action,
    Actor,
    TaskSubject,
    UserSubject,
    authorize,
    can,
)
from todoo_mcp.auth.resolvers import TaskHints, UserHints, resolve_task, resolve_user
from todoo_mcp.store.exceptions import StoreAPIError, StoreConflictError, StoreNotFoundError
from todoo_mcp.store.models import (
    Role,
    TaskCreate,
    TaskRecord,
    TaskUpdate,
    UserCreate,
    UserRecord,
    UserUpdate,
)
from todoo_mcp.store.protocols import TaskStore

logger = logging.getLogger(__name__)

STORE_FAILURE_MESSAGE = "Falha ao acessar o armazenamento de tarefas"

_F = TypeVar("_F", bound=Callable[..., Awaitable[Outcome]])


def _describe_validation_error(error: ValidationError) -> str:
    details = []
    for item in error.errors():
        location = ".".join(str(part) for part in item.get("loc", ())) or "valor"
        details.append(f"{location}: {item.get('msg', 'inválido')}")
    return "Dados inválidos: " + "; ".join(details)


def outcome_boundary(label: str) -> Callable[[_F], _F]:
    """Convert refusals and store failures raised by an operation into outcomes."""

    def decorator(func: _F) -> _F:
        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Outcome:
            try:
                return await func(*args, **kwargs)
            except OperationError as e:
                logger.info("%s refused (%s): %s", label, e.kind.value, e.message)
                return e.to_outcome()
            except ValidationError as e:
                logger.info("%s rejected invalid input: %s", label, e)
                return Outcome.invalid_input(_describe_validation_error(e))
            except StoreNotFoundError:
                logger.warning("Record vanished from the store during %s", label)
                return Outcome.not_found("Registro não encontrado")
            except StoreAPIError:
                logger.exception("Store failure during %s", label)
                return Outcome.upstream_failure(STORE_FAILURE_MESSAGE)

        return wrapper  # type: ignore[return-value]

    return decorator


def serialize_owner(user: UserRecord) -> dict[str, Any]:
    """Owner summary embedded in task listings."""
    return {
        "id": user.id,
        "nome": user.display_name,
        "email": user.email,
        "role": user.role.value,
    }


def serialize_task(task: TaskRecord, owner: UserRecord | None = None) -> dict[str, Any]:
    """Convert a task to the response shape used by both surfaces.

    Args:
        task: The stored task
        owner: Its owner, when known

    Returns:
        dict[str, Any]: JSON-ready task
    """
    return {
        "id": task.id,
        "titulo": task.title,
        "descricao": task.description,
        "completo": task.done,
        "userId": task.owner_id,
        "owner": serialize_owner(owner) if owner is not None else None,
    }


def serialize_user(user: UserRecord) -> dict[str, Any]:
    return {
        "id": user.id,
        "nome": user.name or "",
        "email": user.email,
        "role": user.role.value,
    }


class TaskOperations:
    """List, create, update and delete tasks on behalf of an actor."""

    def __init__(self, store: TaskStore) -> None:
        self._store = store

    async def _owners(self, owner_ids: Iterable[str]) -> dict[str, UserRecord]:
        owners: dict[str, UserRecord] = {}
        for owner_id in dict.fromkeys(owner_ids):
            owner = await self._store.get_user(owner_id)
            if owner is not None:
                owners[owner_id] = owner
        return owners

    @outcome_boundary("list_tasks")
    async def list_tasks(
        self,
        actor: Actor | None,
        owner: UserHints | None = None,
        title: str | None = None,
    ) -> Outcome:
        """List the tasks the actor may read, newest first.

        Non-admins always see only their own tasks; owner hints are ignored
        for them. Admins see every task, or one owner's tasks when owner
        hints are given.

        Args:
            actor: The acting identity
            owner: Owner hints (admin filter)
            title: Exact title filter

        Returns:
            Outcome: ``ok`` with a list of serialized tasks, or a refusal
        """
        actor = authorize(actor, Action.READ, "Task", "Usuário não autorizado a listar tarefas")
        owner = owner or UserHints()
        title = title or None

        owner_id: str | None = None
        if not actor.is_admin or owner.supplied:
            owner_id = await resolve_user(self._store, actor, owner)
        tasks = await self._store.find_tasks(title=title, owner_id=owner_id)
        visible = [t for t in tasks if can(actor, Action.READ, TaskSubject.from_record(t))]
        owners = await self._owners(t.owner_id for t in visible)
        logger.debug("Listed %d tasks for actor %s", len(visible), actor.id)
        return Outcome.ok([serialize_task(t, owners.get(t.owner_id)) for t in visible])

    @confirmation_required(Action.CREATE)
    @outcome_boundary("create_task")
    async def create_task(  # noqa: PLR0913
        self,
        actor: Actor | None,
        title: str,
        description: str = "",
        done: bool = False,  # noqa: FBT001, FBT002
        owner: UserHints | None = None,
    ) -> Outcome:
        """Create a task for the actor, or for the owner an admin points at.

        Returns:
            Outcome: ``ok`` with the created task, or a refusal
        """
        denied = "Usuário não autorizado a criar tarefa para este usuário"
        actor = authorize(actor, Action.CREATE, "Task", denied)
        if not title or not title.strip():
            msg = "Informe o título da tarefa (titulo)"
            raise InvalidInputError(msg)

        owner_id = await resolve_user(self._store, actor, owner or UserHints())
        authorize(actor, Action.CREATE, TaskSubject(owner_id=owner_id), denied)

        owner_record = await self._store.get_user(owner_id)
        if owner_record is None:
            raise NotFoundError.user()

        task = await self._store.create_task(
            TaskCreate(title=title, description=description, done=done, owner_id=owner_id)
        )
        logger.info("Actor %s created task %s for %s", actor.id, task.id, owner_id)
        return Outcome.ok(serialize_task(task, owner_record), "Tarefa criada com sucesso")

    @confirmation_required(Action.UPDATE)
    @outcome_boundary("update_task")
    async def update_task(  # noqa: PLR0913
        self,
        actor: Actor | None,
        target: TaskHints,
        title: str | None = None,
        description: str | None = None,
        done: bool | None = None,  # noqa: FBT001
    ) -> Outcome:
        """Update a task, reassigning it when owner hints are given.

        The owner hints in ``target`` both narrow the task search and name the
        new owner. The actor must be allowed to update the task as it is and
        the task as it would be under the new owner.

        Returns:
            Outcome: ``ok`` with the updated task, or a refusal
        """
        actor = authorize(
            actor, Action.UPDATE, "Task", "Usuário não autorizado a atualizar esta tarefa"
        )
        if title is None and description is None and done is None and not target.owner.supplied:
            msg = "Informe ao menos um campo para atualizar (titulo, descricao ou completo)"
            raise InvalidInputError(msg)

        task = await resolve_task(self._store, actor, target)
        current = TaskSubject.from_record(task)
        authorize(actor, Action.UPDATE, current, "Usuário não autorizado a atualizar esta tarefa")

        new_owner_id = (
            await resolve_user(self._store, actor, target.owner)
            if target.owner.supplied
            else task.owner_id
        )
        authorize(
            actor,
            Action.UPDATE,
            current.with_owner(new_owner_id),
            "Usuário não autorizado a atribuir esta tarefa a outro usuário",
        )

        reassigned = new_owner_id != task.owner_id
        owner_record = await self._store.get_user(new_owner_id)
        if reassigned and owner_record is None:
            raise NotFoundError.user()

        update = TaskUpdate(
            title=title,
            description=description,
            done=done,
            owner_id=new_owner_id if reassigned else None,
        )
        updated = await self._store.update_task(task.id, update)
        logger.info(
            "Actor %s updated task %s%s",
            actor.id,
            task.id,
            f" (reassigned {task.owner_id} -> {new_owner_id})" if reassigned else "",
        )
        return Outcome.ok(serialize_task(updated, owner_record), "Tarefa atualizada com sucesso")

    @confirmation_required(Action.DELETE)
    @outcome_boundary("delete_task")
    async def delete_task(self, actor: Actor | None, target: TaskHints) -> Outcome:
        """Delete one task.

        Returns:
            Outcome: ``ok`` with the deleted task id, or a refusal
        """
        actor = authorize(
            actor, Action.DELETE, "Task", "Usuário não autorizado a remover esta tarefa"
        )
        task = await resolve_task(self._store, actor, target)
        authorize(
            actor,
            Action.DELETE,
            TaskSubject.from_record(task),
            "Usuário não autorizado a remover esta tarefa",
        )
        await self._store.delete_task(task.id)
        logger.info("Actor %s deleted task %s", actor.id, task.id)
        return Outcome.ok({"id": task.id}, "Tarefa deletada com sucesso")


class UserOperations:
    """User account reads and administration on behalf of an actor."""

    def __init__(self, store: TaskStore) -> None:
        self._store = store

    @outcome_boundary("list_users")
    async def list_users(self, actor: Actor | None) -> Outcome:
        """List the accounts the actor may read (every account for admins)."""
        actor = authorize(actor, Action.READ, "User", "Usuário não autorizado a listar usuários")
        users = await self._store.find_users()
        visible = [u for u in users if can(actor, Action.READ, UserSubject(id=u.id))]
        return Outcome.ok([serialize_user(u) for u in visible])

    @outcome_boundary("get_user")
    async def get_user(self, actor: Actor | None, user_id: str) -> Outcome:
        authorize(
            actor,
            Action.READ,
            UserSubject(id=user_id),
            "Usuário não autorizado a visualizar este usuário",
        )
        user = await self._store.get_user(user_id)
        if user is None:
            raise NotFoundError.user()
        return Outcome.ok(serialize_user(user))

    @outcome_boundary("create_user")
    async def create_user(
        self,
        actor: Actor | None,
        name: str,
        email: str,
        role: Role | str | None = None,
    ) -> Outcome:
        """Create an account; the role defaults to USER."""
        actor = authorize(
            actor, Action.CREATE, "User", "Usuário não autorizado a criar usuários"
        )
        payload = UserCreate(name=name, email=email, role=role or Role.USER)
        try:
            user = await self._store.create_user(payload)
        except StoreConflictError as e:
            msg = "Email já cadastrado"
            raise InvalidInputError(msg) from e
        logger.info("Actor %s created user %s", actor.id, user.id)
        return Outcome.ok(
            {"id": user.id, "role": user.role.value}, "Usuário criado com sucesso"
        )

    @outcome_boundary("update_user")
    async def update_user(
        self,
        actor: Actor | None,
        user_id: str,
        name: str | None = None,
        email: str | None = None,
        role: Role | str | None = None,
    ) -> Outcome:
        """Update an account; changing the role requires full user management rights."""
        subject = UserSubject(id=user_id)
        actor = authorize(
            actor, Action.UPDATE, subject, "Usuário não autorizado a atualizar este usuário"
        )
        if role is not None:
            authorize(
                actor,
                Action.MANAGE,
                subject,
                "Somente administradores podem alterar a role de um usuário",
            )
        if name is None and email is None and role is None:
            msg = "Informe ao menos um campo para atualizar (nome, email ou role)"
            raise InvalidInputError(msg)

        if await self._store.get_user(user_id) is None:
            raise NotFoundError.user()
        try:
            await self._store.update_user(user_id, UserUpdate(name=name, email=email, role=role))
        except StoreConflictError as e:
            msg = "Email já cadastrado"
            raise InvalidInputError(msg) from e
        logger.info("Actor %s updated user %s", actor.id, user_id)
        return Outcome.ok({"id": user_id}, "Usuário atualizado com sucesso")

    @outcome_boundary("delete_user")
    async def delete_user(self, actor: Actor | None, user_id: str) -> Outcome:
        actor = authorize(
            actor,
            Action.DELETE,
            UserSubject(id=user_id),
            "Somente administradores podem remover usuários",
        )
        if await self._store.get_user(user_id) is None:
            raise NotFoundError.user()
        await self._store.delete_user(user_id)
        logger.info("Actor %s deleted user %s", actor.id, user_id)
        return Outcome.ok({"id": user_id}, "Usuário deletado com sucesso")
