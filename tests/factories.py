"""Factory functions and an in-memory task store for tests.

``InMemoryStore`` implements the ``TaskStore`` protocol with the same
observable behavior as the HTTP store: keyed lookups return None for missing
records, task searches come back newest first, duplicate emails conflict and
deleting a user removes that user's tasks.
"""

from datetime import UTC, datetime, timedelta
from itertools import count

from mcp.types import RequestParams
from pytest_mock import AsyncMockType, MockerFixture

from todoo_mcp.store.exceptions import StoreConflictError, StoreNotFoundError
from todoo_mcp.store.models import (
    Role,
    TaskCreate,
    TaskRecord,
    TaskUpdate,
    UserCreate,
    UserRecord,
    UserUpdate,
)

BASE_TIME = datetime(2025, 8, 20, 10, 0, 0, tzinfo=UTC)


def make_user(
    user_id: str = "u1",
    name: str | None = "Ana",
    email: str | None = None,
    role: Role = Role.USER,
) -> UserRecord:
    """Create a UserRecord; the email defaults to ``<user_id>@example.com``."""
    return UserRecord(id=user_id, name=name, email=email or f"{user_id}@example.com", role=role)


def make_task(  # noqa: PLR0913
    task_id: str = "t1",
    title: str = "Buy milk",
    owner_id: str = "u1",
    description: str = "",
    done: bool = False,  # noqa: FBT001, FBT002
    created_at: datetime | None = None,
) -> TaskRecord:
    return TaskRecord(
        id=task_id,
        title=title,
        description=description,
        done=done,
        owner_id=owner_id,
        created_at=created_at or BASE_TIME,
    )


class InMemoryStore:
    """Dictionary-backed ``TaskStore`` for exercising the authorization core."""

    def __init__(self) -> None:
        self.users: dict[str, UserRecord] = {}
        self.tasks: dict[str, TaskRecord] = {}
        self._ids = count(1)
        self._clock = count(1)
        self.writes: list[tuple[str, str]] = []

    def _next_created_at(self) -> datetime:
        return BASE_TIME + timedelta(minutes=next(self._clock))

    def add_user(
        self,
        user_id: str,
        name: str | None = None,
        email: str | None = None,
        role: Role = Role.USER,
    ) -> UserRecord:
        user = make_user(user_id, name=name, email=email, role=role)
        self.users[user.id] = user
        return user

    def add_task(
        self,
        task_id: str,
        title: str,
        owner_id: str,
        description: str = "",
    ) -> TaskRecord:
        task = make_task(
            task_id,
            title=title,
            owner_id=owner_id,
            description=description,
            created_at=self._next_created_at(),
        )
        self.tasks[task.id] = task
        return task

    async def get_user(self, user_id: str) -> UserRecord | None:
        return self.users.get(user_id)

    async def get_user_by_email(self, email: str) -> UserRecord | None:
        return next((u for u in self.users.values() if u.email == email), None)

    async def find_users(self, *, name: str | None = None) -> list[UserRecord]:
        return [u for u in self.users.values() if name is None or u.name == name]

    async def create_user(self, user_data: UserCreate) -> UserRecord:
        if await self.get_user_by_email(user_data.email) is not None:
            raise StoreConflictError
        user = UserRecord(
            id=f"user-{next(self._ids)}",
            name=user_data.name,
            email=user_data.email,
            role=Role(user_data.role),
        )
        self.users[user.id] = user
        self.writes.append(("create_user", user.id))
        return user

    async def update_user(self, user_id: str, update: UserUpdate) -> UserRecord:
        if user_id not in self.users:
            raise StoreNotFoundError
        changes = update.model_dump(exclude_none=True)
        if "email" in changes:
            other = await self.get_user_by_email(changes["email"])
            if other is not None and other.id != user_id:
                raise StoreConflictError
        user = UserRecord.model_validate({**self.users[user_id].model_dump(), **changes})
        self.users[user_id] = user
        self.writes.append(("update_user", user_id))
        return user

    async def delete_user(self, user_id: str) -> bool:
        if self.users.pop(user_id, None) is None:
            raise StoreNotFoundError
        self.tasks = {k: t for k, t in self.tasks.items() if t.owner_id != user_id}
        self.writes.append(("delete_user", user_id))
        return True

    async def get_task(self, task_id: str) -> TaskRecord | None:
        return self.tasks.get(task_id)

    async def find_tasks(
        self, *, title: str | None = None, owner_id: str | None = None
    ) -> list[TaskRecord]:
        matches = [
            t
            for t in self.tasks.values()
            if (title is None or t.title == title) and (owner_id is None or t.owner_id == owner_id)
        ]
        return sorted(matches, key=lambda t: t.created_at or BASE_TIME, reverse=True)

    async def create_task(self, task_data: TaskCreate) -> TaskRecord:
        task = TaskRecord(
            id=f"task-{next(self._ids)}",
            created_at=self._next_created_at(),
            **task_data.model_dump(),
        )
        self.tasks[task.id] = task
        self.writes.append(("create_task", task.id))
        return task

    async def update_task(self, task_id: str, update: TaskUpdate) -> TaskRecord:
        if task_id not in self.tasks:
            raise StoreNotFoundError
        task = self.tasks[task_id].model_copy(update=update.model_dump(exclude_none=True))
        self.tasks[task_id] = task
        self.writes.append(("update_task", task_id))
        return task

    async def delete_task(self, task_id: str) -> bool:
        if self.tasks.pop(task_id, None) is None:
            raise StoreNotFoundError
        self.writes.append(("delete_task", task_id))
        return True


def ctx_for(mocker: MockerFixture, user_id: str, role: str) -> AsyncMockType:
    """Build an async MCP context mock whose request ``_meta`` names the given user."""
    mock_ctx = mocker.AsyncMock()
    meta = RequestParams.Meta.model_validate({"currentUserId": user_id, "currentUserRole": role})
    mock_ctx.request_context = mocker.Mock(meta=meta)
    return mock_ctx
