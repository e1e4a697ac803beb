"""Task management tools for the todoo MCP server.

Exposes ``list_tasks``, ``create_task``, ``update_task`` and ``delete_task``.
The acting user comes from the request ``_meta`` set by the host
application; tool arguments only ever carry hints and field values.
"""

import logging
from typing import Any

from fastmcp import FastMCP
from fastmcp.server.context import Context as ServerContext

from todoo_mcp.tools.bridge import ToolBridge
from todoo_mcp.tools.tasks_common import tool_context_from_ctx

logger = logging.getLogger(__name__)


def _arguments(**fields: Any) -> dict[str, Any]:
    return {key: value for key, value in fields.items() if value is not None}


class TaskTools:
    """Task tools registered on a FastMCP instance.

    The public ``*_tool`` methods are the handlers themselves, kept callable
    for tests; ``_register_tools`` wraps them with the signatures FastMCP
    publishes to clients.

    ``confirm`` is typed ``Any`` so FastMCP hands it over unconverted; only a
    JSON ``true`` confirms a mutation.
    """

    def __init__(self, mcp_instance: FastMCP, bridge: ToolBridge) -> None:
        """Initialize TaskTools and register the tools.

        Args:
            mcp_instance: FastMCP server instance for registering tools
            bridge: Dispatcher that runs the task operations
        """
        self.mcp = mcp_instance
        self.bridge = bridge
        self._register_tools()

    async def _call(
        self, ctx: ServerContext, name: str, arguments: dict[str, Any]
    ) -> dict[str, Any]:
        context = tool_context_from_ctx(ctx)
        try:
            outcome = await self.bridge.call_tool(name, arguments, context)
        except Exception as e:
            error_msg = f"Unexpected error in {name}: {e}"
            await ctx.error(error_msg)
            logger.exception("Unexpected error in tool %s", name)
            return {"success": False, "error": "unexpected_error", "message": error_msg}

        if outcome.success:
            await ctx.info(outcome.message or f"{name} completed")
        else:
            await ctx.error(outcome.message)
            logger.warning("%s returned %s: %s", name, outcome.kind.value, outcome.message)
        return outcome.to_dict()

    async def list_tasks_tool(  # noqa: PLR0913
        self,
        ctx: ServerContext,
        taskName: str | None = None,  # noqa: N803
        userId: str | None = None,  # noqa: N803
        userEmail: str | None = None,  # noqa: N803
        userName: str | None = None,  # noqa: N803
    ) -> dict[str, Any]:
        """List tasks visible to the current user."""
        return await self._call(
            ctx,
            "list_tasks",
            _arguments(taskName=taskName, userId=userId, userEmail=userEmail, userName=userName),
        )

    async def create_task_tool(  # noqa: PLR0913
        self,
        ctx: ServerContext,
        titulo: str,
        descricao: str | None = None,
        completo: bool | None = None,  # noqa: FBT001
        confirm: Any = None,
        userId: str | None = None,  # noqa: N803
        userEmail: str | None = None,  # noqa: N803
        userName: str | None = None,  # noqa: N803
    ) -> dict[str, Any]:
        """Create a task, for the current user or (admins only) another user."""
        return await self._call(
            ctx,
            "create_task",
            _arguments(
                titulo=titulo,
                descricao=descricao,
                completo=completo,
                confirm=confirm,
                userId=userId,
                userEmail=userEmail,
                userName=userName,
            ),
        )

    async def update_task_tool(  # noqa: PLR0913
        self,
        ctx: ServerContext,
        id: str | None = None,  # noqa: A002
        taskName: str | None = None,  # noqa: N803
        titulo: str | None = None,
        descricao: str | None = None,
        completo: bool | None = None,  # noqa: FBT001
        confirm: Any = None,
        userId: str | None = None,  # noqa: N803
        userEmail: str | None = None,  # noqa: N803
        userName: str | None = None,  # noqa: N803
    ) -> dict[str, Any]:
        """Update a task found by id or by name; user hints reassign it (admins only)."""
        return await self._call(
            ctx,
            "update_task",
            _arguments(
                id=id,
                taskName=taskName,
                titulo=titulo,
                descricao=descricao,
                completo=completo,
                confirm=confirm,
                userId=userId,
                userEmail=userEmail,
                userName=userName,
            ),
        )

    async def delete_task_tool(  # noqa: PLR0913
        self,
        ctx: ServerContext,
        id: str | None = None,  # noqa: A002
        taskName: str | None = None,  # noqa: N803
        confirm: Any = None,
        userId: str | None = None,  # noqa: N803
        userEmail: str | None = None,  # noqa: N803
        userName: str | None = None,  # noqa: N803
    ) -> dict[str, Any]:
        """Delete a task found by id or by name."""
        return await self._call(
            ctx,
            "delete_task",
            _arguments(
                id=id,
                taskName=taskName,
                confirm=confirm,
                userId=userId,
                userEmail=userEmail,
                userName=userName,
            ),
        )

    def _register_tools(self) -> None:
        """Register the task tools with the FastMCP instance."""

        async def _list_tasks(  # noqa: PLR0913
            ctx: ServerContext,
            taskName: str | None = None,  # noqa: N803
            userId: str | None = None,  # noqa: N803
            userEmail: str | None = None,  # noqa: N803
            userName: str | None = None,  # noqa: N803
        ) -> dict[str, Any]:
            """List tasks. Admins may filter by user (userId, userEmail or userName)
            and by exact task name (taskName)."""
            return await self.list_tasks_tool(ctx, taskName, userId, userEmail, userName)

        async def _create_task(  # noqa: PLR0913
            ctx: ServerContext,
            titulo: str,
            descricao: str | None = None,
            completo: bool | None = None,  # noqa: FBT001
            confirm: Any = None,
            userId: str | None = None,  # noqa: N803
            userEmail: str | None = None,  # noqa: N803
            userName: str | None = None,  # noqa: N803
        ) -> dict[str, Any]:
            """Create a task. Requires confirm=true. Admins may pick the owner with
            userId, userEmail or userName."""
            return await self.create_task_tool(
                ctx, titulo, descricao, completo, confirm, userId, userEmail, userName
            )

        async def _update_task(  # noqa: PLR0913
            ctx: ServerContext,
            id: str | None = None,  # noqa: A002
            taskName: str | None = None,  # noqa: N803
            titulo: str | None = None,
            descricao: str | None = None,
            completo: bool | None = None,  # noqa: FBT001
            confirm: Any = None,
            userId: str | None = None,  # noqa: N803
            userEmail: str | None = None,  # noqa: N803
            userName: str | None = None,  # noqa: N803
        ) -> dict[str, Any]:
            """Update a task found by id or exact name (taskName). Requires confirm=true.
            Admins may pass user hints to narrow the search and reassign the task."""
            return await self.update_task_tool(
                ctx,
                id,
                taskName,
                titulo,
                descricao,
                completo,
                confirm,
                userId,
                userEmail,
                userName,
            )

        async def _delete_task(  # noqa: PLR0913
            ctx: ServerContext,
            id: str | None = None,  # noqa: A002
            taskName: str | None = None,  # noqa: N803
            confirm: Any = None,
            userId: str | None = None,  # noqa: N803
            userEmail: str | None = None,  # noqa: N803
            userName: str | None = None,  # noqa: N803
        ) -> dict[str, Any]:
            """Delete a task found by id or exact name (taskName). Requires confirm=true."""
            return await self.delete_task_tool(
                ctx, id, taskName, confirm, userId, userEmail, userName
            )

        self.mcp.tool("list_tasks")(_list_tasks)
        self.mcp.tool("create_task")(_create_task)
        self.mcp.tool("update_task")(_update_task)
        self.mcp.tool("delete_task")(_delete_task)
