"""Pytest fixtures and configuration for the test suite."""

import tempfile
from collections.abc import Generator
from pathlib import Path

import pytest
from fastmcp import FastMCP
from pydantic import HttpUrl
from pytest_mock import AsyncMockType, MockerFixture

from tests.factories import InMemoryStore
from todoo_mcp.auth.policy import Actor
from todoo_mcp.auth.service import TaskOperations, UserOperations
from todoo_mcp.config import ServerConfig
from todoo_mcp.store.client import StoreClient
from todoo_mcp.store.models import Role
from todoo_mcp.tools.bridge import ToolBridge
from todoo_mcp.tools.tasks import TaskTools


@pytest.fixture
def config() -> ServerConfig:
    """Provide a ServerConfig instance for testing."""
    return ServerConfig(
        store_bearer_token="test_token",
        store_base_url=HttpUrl("https://store.todoo.app/v1/"),
    )


@pytest.fixture
def client(config: ServerConfig) -> StoreClient:
    return StoreClient(config)


@pytest.fixture
def mcp() -> FastMCP:
    return FastMCP("test-server")


@pytest.fixture
def store() -> InMemoryStore:
    """Provide the shared world used across authorization tests.

    Users:
        admin: ADMIN "Root"
        u1: USER "Ana"
        u2: USER "Bia"
        u3: USER "Ana" (same display name as u1)

    Tasks (oldest first):
        t1 "Buy milk" (u1), t2 "Buy milk" (u1), t3 "Pay rent" (u3),
        t4 "Pay rent" (u2), t5 "Walk dog" (u2)
    """
    world = InMemoryStore()
    world.add_user("admin", name="Root", role=Role.ADMIN)
    world.add_user("u1", name="Ana")
    world.add_user("u2", name="Bia")
    world.add_user("u3", name="Ana")
    world.add_task("t1", "Buy milk", "u1")
    world.add_task("t2", "Buy milk", "u1")
    world.add_task("t3", "Pay rent", "u3")
    world.add_task("t4", "Pay rent", "u2")
    world.add_task("t5", "Walk dog", "u2")
    return world


@pytest.fixture
def admin() -> Actor:
    return Actor(id="admin", role=Role.ADMIN)


@pytest.fixture
def user1() -> Actor:
    return Actor(id="u1", role=Role.USER)


@pytest.fixture
def user2() -> Actor:
    return Actor(id="u2", role=Role.USER)


@pytest.fixture
def operations(store: InMemoryStore) -> TaskOperations:
    return TaskOperations(store)


@pytest.fixture
def user_operations(store: InMemoryStore) -> UserOperations:
    return UserOperations(store)


@pytest.fixture
def bridge(operations: TaskOperations) -> ToolBridge:
    return ToolBridge(operations)


@pytest.fixture
def task_tools(mcp: FastMCP, bridge: ToolBridge) -> TaskTools:
    return TaskTools(mcp, bridge)


@pytest.fixture
def async_ctx(mocker: MockerFixture) -> AsyncMockType:
    """Provide an async context mock with no user metadata attached."""
    mock_ctx = mocker.AsyncMock()
    mock_ctx.session_id = "test-session-123"
    mock_ctx.request_context = mocker.Mock(meta=None)
    return mock_ctx


@pytest.fixture
def temp_config_file() -> Generator[str, None, None]:
    """Create a temporary TOML config file.

    Yields:
        str: Path to the file
    """
    config_content = """
store_bearer_token = "test_integration_token"
port = 8080
log_level = "INFO"
"""
    with tempfile.NamedTemporaryFile(mode="w", suffix=".toml", delete=False) as f:
        f.write(config_content)
        temp_path = f.name

    try:
        yield temp_path
    finally:
        Path(temp_path).unlink(missing_ok=True)
