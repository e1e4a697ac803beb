"""Composed task store client.

``StoreClient`` combines the base HTTP infrastructure with the task and user
mixins and satisfies the ``TaskStore`` protocol used by the authorization
core.
"""

from types import TracebackType

from todoo_mcp.store.client_base import BaseClient
from todoo_mcp.store.client_tasks import TasksClientMixin
from todoo_mcp.store.client_users import UsersClientMixin


class StoreClient(BaseClient, TasksClientMixin, UsersClientMixin):
    """Complete store API client."""

    def __str__(self) -> str:
        """Return string representation without exposing bearer token."""
        return f"StoreClient(base_url={self._base_url}, token=***redacted***)"

    def __repr__(self) -> str:
        """Return repr without exposing bearer token."""
        return f"StoreClient(base_url='{self._base_url}', token='***redacted***')"

    async def __aenter__(self) -> "StoreClient":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await super().__aexit__(exc_type, exc_val, exc_tb)


__all__ = ["StoreClient"]
