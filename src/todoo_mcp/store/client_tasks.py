"""Tasks mixin for the task store client.

Provides task lookups and mutations composed into ``StoreClient`` on top of
``BaseClient.make_request``.
"""

import json
import logging
from typing import TYPE_CHECKING, Any, cast

from todoo_mcp.store.exceptions import StoreAPIError, StoreBadRequestError, StoreNotFoundError
from todoo_mcp.store.models import TaskCreate, TaskRecord, TaskUpdate

if TYPE_CHECKING:
    from todoo_mcp.store.protocols import BaseClientProtocol

logger = logging.getLogger(__name__)


class TasksClientMixin:
    """Task operations for the store client."""

    def _get_base_client(self) -> "BaseClientProtocol":
        """Get type-safe access to base client methods."""
        return cast("BaseClientProtocol", self)

    @staticmethod
    def _parse_task(response_data: dict[str, Any], endpoint: str) -> TaskRecord:
        """Parse a wrapped ``{"task": {...}}`` response."""
        try:
            return TaskRecord(**response_data["task"])
        except KeyError as e:
            logger.exception("Failed to extract task from wrapped response format")
            raise StoreAPIError.create_parse_error(endpoint, detail="missing 'task' key") from e
        except Exception as e:
            logger.exception("Failed to parse task response data")
            raise StoreAPIError.create_parse_error(endpoint) from e

    async def get_task(self, task_id: str) -> TaskRecord | None:
        """Fetch one task by ID.

        Args:
            task_id: The unique identifier of the task

        Returns:
            TaskRecord | None: The task, or None when the store has no such task

        Raises:
            StoreBadRequestError: Empty task ID
            StoreAPIError: Any other store failure
        """
        if not task_id or not task_id.strip():
            msg = "Task ID cannot be empty"
            raise StoreBadRequestError(msg)

        endpoint = f"tasks/{task_id}"
        try:
            response_data = await self._get_base_client().make_request("GET", endpoint)
        except StoreNotFoundError:
            logger.debug("Task not found in store: %s", task_id)
            return None
        return self._parse_task(response_data, endpoint)

    async def find_tasks(
        self, *, title: str | None = None, owner_id: str | None = None
    ) -> list[TaskRecord]:
        """List tasks matching an exact title and/or owner, newest first.

        Args:
            title: Exact task title to match
            owner_id: Owner user ID to match

        Returns:
            list[TaskRecord]: Every matching task; all tasks when no filter is given
        """
        params = {
            key: value
            for key, value in (("owner_id", owner_id), ("title", title))
            if value is not None
        }
        base_client = self._get_base_client()
        response_data = (
            await base_client.make_request("GET", "tasks", params=params)
            if params
            else await base_client.make_request("GET", "tasks")
        )

        task_list: list[dict[str, Any]] = response_data.get("tasks", [])
        try:
            tasks = [TaskRecord(**task_data) for task_data in task_list]
        except Exception as e:
            logger.exception("Failed to parse task list response data")
            raise StoreAPIError.create_parse_error("tasks", task_count=len(task_list)) from e
        logger.debug("Retrieved %d tasks for filters %s", len(tasks), sorted(params))
        return tasks

    async def create_task(self, task_data: TaskCreate) -> TaskRecord:
        """Insert a task.

        Args:
            task_data: The new task, owner included

        Returns:
            TaskRecord: The stored task with its assigned ID
        """
        json_data = json.loads(task_data.model_dump_json())
        response_data = await self._get_base_client().make_request("POST", "tasks", data=json_data)
        task = self._parse_task(response_data, "tasks")
        logger.debug("Created task %s for owner %s", task.id, task.owner_id)
        return task

    async def update_task(self, task_id: str, update: TaskUpdate) -> TaskRecord:
        """Apply a partial update to a task.

        Args:
            task_id: The unique identifier of the task
            update: Fields to change; None fields are not sent

        Returns:
            TaskRecord: The task after the update

        Raises:
            StoreNotFoundError: Task not found (404)
        """
        endpoint = f"tasks/{task_id}"
        json_data = json.loads(update.model_dump_json(exclude_none=True))
        response_data = await self._get_base_client().make_request(
            "PATCH", endpoint, data=json_data
        )
        task = self._parse_task(response_data, endpoint)
        logger.debug("Updated task %s", task.id)
        return task

    async def delete_task(self, task_id: str) -> bool:
        """Delete a task.

        Any 2xx answer means the task is gone; ``make_request`` raises for
        everything else.

        Args:
            task_id: The unique identifier of the task

        Returns:
            bool: True once deleted

        Raises:
            StoreNotFoundError: Task not found (404)
        """
        await self._get_base_client().make_request("DELETE", f"tasks/{task_id}")
        logger.debug("Deleted task %s", task_id)
        return True
