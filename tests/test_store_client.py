"""Tests for the task and user operations of StoreClient."""

import pytest
from pytest_mock import MockerFixture

from todoo_mcp.store.client import StoreClient
from todoo_mcp.store.exceptions import (
    StoreAPIError,
    StoreBadRequestError,
    StoreConflictError,
    StoreNotFoundError,
)
from todoo_mcp.store.models import Role, TaskCreate, TaskUpdate, UserCreate, UserUpdate

TASK_JSON = {
    "id": "task-123",
    "title": "Buy milk",
    "description": "2 liters",
    "done": False,
    "owner_id": "user-1",
    "created_at": "2025-08-20T10:00:00Z",
}
USER_JSON = {"id": "user-1", "name": "Ana", "email": "ana@example.com", "role": "USER"}


class TestStoreClientTasks:
    @pytest.mark.asyncio
    async def test_get_task_success(self, client: StoreClient, mocker: MockerFixture) -> None:
        mock_request = mocker.patch.object(
            client, "make_request", return_value={"task": TASK_JSON}
        )

        task = await client.get_task("task-123")

        assert task is not None
        assert task.id == "task-123"
        assert task.owner_id == "user-1"
        assert task.created_at is not None
        mock_request.assert_called_once_with("GET", "tasks/task-123")

    @pytest.mark.asyncio
    async def test_get_task_not_found_is_none(
        self, client: StoreClient, mocker: MockerFixture
    ) -> None:
        mocker.patch.object(client, "make_request", side_effect=StoreNotFoundError())

        assert await client.get_task("missing") is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize("task_id", ["", "   "])
    async def test_get_task_empty_id(
        self, client: StoreClient, mocker: MockerFixture, task_id: str
    ) -> None:
        mock_request = mocker.patch.object(client, "make_request")

        with pytest.raises(StoreBadRequestError, match="Task ID cannot be empty"):
            await client.get_task(task_id)
        mock_request.assert_not_called()

    @pytest.mark.asyncio
    async def test_get_task_unwrapped_response_is_parse_error(
        self, client: StoreClient, mocker: MockerFixture
    ) -> None:
        mocker.patch.object(client, "make_request", return_value=TASK_JSON)

        with pytest.raises(StoreAPIError, match="missing 'task' key"):
            await client.get_task("task-123")

    @pytest.mark.asyncio
    async def test_find_tasks_sends_only_given_filters(
        self, client: StoreClient, mocker: MockerFixture
    ) -> None:
        mock_request = mocker.patch.object(
            client, "make_request", return_value={"tasks": [TASK_JSON]}
        )

        tasks = await client.find_tasks(title="Buy milk", owner_id="user-1")

        assert [t.id for t in tasks] == ["task-123"]
        mock_request.assert_called_once_with(
            "GET", "tasks", params={"owner_id": "user-1", "title": "Buy milk"}
        )

    @pytest.mark.asyncio
    async def test_find_tasks_without_filters(
        self, client: StoreClient, mocker: MockerFixture
    ) -> None:
        mock_request = mocker.patch.object(client, "make_request", return_value={})

        assert await client.find_tasks() == []
        mock_request.assert_called_once_with("GET", "tasks")

    @pytest.mark.asyncio
    async def test_find_tasks_bad_item_is_parse_error(
        self, client: StoreClient, mocker: MockerFixture
    ) -> None:
        mocker.patch.object(client, "make_request", return_value={"tasks": [{"id": "x"}]})

        with pytest.raises(StoreAPIError, match="task_count=1"):
            await client.find_tasks(owner_id="user-1")

    @pytest.mark.asyncio
    async def test_create_task_payload(self, client: StoreClient, mocker: MockerFixture) -> None:
        mock_request = mocker.patch.object(
            client, "make_request", return_value={"task": TASK_JSON}
        )

        task = await client.create_task(
            TaskCreate(title="Buy milk", description="2 liters", owner_id="user-1")
        )

        assert task.id == "task-123"
        mock_request.assert_called_once_with(
            "POST",
            "tasks",
            data={
                "title": "Buy milk",
                "description": "2 liters",
                "done": False,
                "owner_id": "user-1",
            },
        )

    @pytest.mark.asyncio
    async def test_update_task_sends_only_set_fields(
        self, client: StoreClient, mocker: MockerFixture
    ) -> None:
        mock_request = mocker.patch.object(
            client, "make_request", return_value={"task": {**TASK_JSON, "done": True}}
        )

        task = await client.update_task("task-123", TaskUpdate(done=True))

        assert task.done is True
        mock_request.assert_called_once_with("PATCH", "tasks/task-123", data={"done": True})

    @pytest.mark.asyncio
    async def test_delete_task(self, client: StoreClient, mocker: MockerFixture) -> None:
        mock_request = mocker.patch.object(client, "make_request", return_value={})

        assert await client.delete_task("task-123") is True
        mock_request.assert_called_once_with("DELETE", "tasks/task-123")

    @pytest.mark.asyncio
    async def test_delete_missing_task_propagates(
        self, client: StoreClient, mocker: MockerFixture
    ) -> None:
        mocker.patch.object(client, "make_request", side_effect=StoreNotFoundError())

        with pytest.raises(StoreNotFoundError):
            await client.delete_task("gone")


class TestStoreClientUsers:
    @pytest.mark.asyncio
    async def test_get_user(self, client: StoreClient, mocker: MockerFixture) -> None:
        mock_request = mocker.patch.object(
            client, "make_request", return_value={"user": USER_JSON}
        )

        user = await client.get_user("user-1")

        assert user is not None
        assert user.display_name == "Ana"
        assert user.role is Role.USER
        mock_request.assert_called_once_with("GET", "users/user-1")

    @pytest.mark.asyncio
    async def test_get_user_not_found_is_none(
        self, client: StoreClient, mocker: MockerFixture
    ) -> None:
        mocker.patch.object(client, "make_request", side_effect=StoreNotFoundError())

        assert await client.get_user("ghost") is None

    @pytest.mark.asyncio
    async def test_get_user_by_email(self, client: StoreClient, mocker: MockerFixture) -> None:
        mock_request = mocker.patch.object(
            client, "make_request", return_value={"users": [USER_JSON]}
        )

        user = await client.get_user_by_email("ana@example.com")

        assert user is not None
        assert user.id == "user-1"
        mock_request.assert_called_once_with(
            "GET", "users", params={"email": "ana@example.com"}
        )

    @pytest.mark.asyncio
    async def test_get_user_by_unknown_email(
        self, client: StoreClient, mocker: MockerFixture
    ) -> None:
        mocker.patch.object(client, "make_request", return_value={"users": []})

        assert await client.get_user_by_email("nobody@example.com") is None

    @pytest.mark.asyncio
    async def test_find_users_by_name(self, client: StoreClient, mocker: MockerFixture) -> None:
        twin = {**USER_JSON, "id": "user-3", "email": "ana3@example.com"}
        mock_request = mocker.patch.object(
            client, "make_request", return_value={"users": [USER_JSON, twin]}
        )

        users = await client.find_users(name="Ana")

        assert [u.id for u in users] == ["user-1", "user-3"]
        mock_request.assert_called_once_with("GET", "users", params={"name": "Ana"})

    @pytest.mark.asyncio
    async def test_name_falls_back_to_email(
        self, client: StoreClient, mocker: MockerFixture
    ) -> None:
        mocker.patch.object(
            client, "make_request", return_value={"user": {**USER_JSON, "name": None}}
        )

        user = await client.get_user("user-1")

        assert user is not None
        assert user.display_name == "ana@example.com"

    @pytest.mark.asyncio
    async def test_create_user_payload(self, client: StoreClient, mocker: MockerFixture) -> None:
        mock_request = mocker.patch.object(
            client, "make_request", return_value={"user": USER_JSON}
        )

        await client.create_user(UserCreate(name="Ana", email="ana@example.com"))

        mock_request.assert_called_once_with(
            "POST", "users", data={"name": "Ana", "email": "ana@example.com", "role": "USER"}
        )

    @pytest.mark.asyncio
    async def test_create_user_conflict_propagates(
        self, client: StoreClient, mocker: MockerFixture
    ) -> None:
        mocker.patch.object(client, "make_request", side_effect=StoreConflictError())

        with pytest.raises(StoreConflictError):
            await client.create_user(UserCreate(name="Ana", email="ana@example.com"))

    @pytest.mark.asyncio
    async def test_update_user_role(self, client: StoreClient, mocker: MockerFixture) -> None:
        mock_request = mocker.patch.object(
            client, "make_request", return_value={"user": {**USER_JSON, "role": "ADMIN"}}
        )

        user = await client.update_user("user-1", UserUpdate(role=Role.ADMIN))

        assert user.role is Role.ADMIN
        mock_request.assert_called_once_with("PATCH", "users/user-1", data={"role": "ADMIN"})

    @pytest.mark.asyncio
    async def test_delete_user(self, client: StoreClient, mocker: MockerFixture) -> None:
        mock_request = mocker.patch.object(client, "make_request", return_value={})

        assert await client.delete_user("user-1") is True
        mock_request.assert_called_once_with("DELETE", "users/user-1")
