"""Protocol definitions for the task store.

``BaseClientProtocol`` lets the client mixins reach the HTTP plumbing of
``BaseClient`` without circular imports. ``TaskStore`` is the narrow surface
the authorization core depends on; the HTTP ``StoreClient`` implements it and
tests substitute an in-memory store.
"""

from typing import Any, Protocol

from todoo_mcp.store.models import (
    TaskCreate,
    TaskRecord,
    TaskUpdate,
    UserCreate,
    UserRecord,
    UserUpdate,
)


class BaseClientProtocol(Protocol):
    """Interface the client mixins depend on."""

    async def make_request(
        self,
        method: str,
        endpoint: str,
        data: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Make an authenticated request to the store API.

        Args:
            method: HTTP method (GET, POST, PATCH, DELETE)
            endpoint: API endpoint (without base URL)
            data: JSON data for request body
            params: Query parameters

        Returns:
            Dict[str, Any]: Parsed JSON response
        """
        ...


class TaskStore(Protocol):
    """Keyed and filtered lookups plus mutations over users and tasks.

    Lookups by key return ``None`` when the record does not exist. Filtered
    lookups return every match, newest first for tasks. Any other failure is
    raised as a ``StoreAPIError``.
    """

    async def get_user(self, user_id: str) -> UserRecord | None: ...

    async def get_user_by_email(self, email: str) -> UserRecord | None: ...

    async def find_users(self, *, name: str | None = None) -> list[UserRecord]: ...

    async def create_user(self, user_data: UserCreate) -> UserRecord: ...

    async def update_user(self, user_id: str, update: UserUpdate) -> UserRecord: ...

    async def delete_user(self, user_id: str) -> bool: ...

    async def get_task(self, task_id: str) -> TaskRecord | None: ...

    async def find_tasks(
        self, *, title: str | None = None, owner_id: str | None = None
    ) -> list[TaskRecord]: ...

    async def create_task(self, task_data: TaskCreate) -> TaskRecord: ...

    async def update_task(self, task_id: str, update: TaskUpdate) -> TaskRecord: ...

    async def delete_task(self, task_id: str) -> bool: ...
