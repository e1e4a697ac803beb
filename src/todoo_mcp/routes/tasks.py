"""Direct HTTP routes for tasks.

These routes feed the same dispatcher as the MCP tools, so a request and the
equivalent tool call always produce the same outcome kind. The only thing the
HTTP surface adds is how the actor is established.
"""

import logging
from typing import Any

from fastmcp import FastMCP
from starlette.requests import Request
from starlette.responses import JSONResponse

from todoo_mcp.routes.common import (
    invalid_body_response,
    outcome_response,
    read_json_body,
    with_actor,
)
from todoo_mcp.store.protocols import TaskStore
from todoo_mcp.tools.bridge import ToolBridge

logger = logging.getLogger(__name__)

_LIST_FILTERS = ("userId", "userEmail", "userName", "taskName")


class TaskRoutes:
    """``/tasks`` endpoints registered as FastMCP custom routes."""

    def __init__(
        self,
        mcp_instance: FastMCP,
        bridge: ToolBridge,
        store: TaskStore,
        actor_header: str = "X-User-Id",
    ) -> None:
        self.mcp = mcp_instance
        self.bridge = bridge
        self.store = store
        self.actor_header = actor_header
        self._register_routes()

    async def list_tasks(self, request: Request) -> JSONResponse:
        actor = await with_actor(request, self.store, self.actor_header)
        if isinstance(actor, JSONResponse):
            return actor
        arguments = {
            key: request.query_params[key] for key in _LIST_FILTERS if key in request.query_params
        }
        outcome = await self.bridge.dispatch("list_tasks", arguments, actor)
        return outcome_response(outcome)

    async def create_task(self, request: Request) -> JSONResponse:
        actor = await with_actor(request, self.store, self.actor_header)
        if isinstance(actor, JSONResponse):
            return actor
        body = await read_json_body(request)
        if body is None:
            return invalid_body_response()
        outcome = await self.bridge.dispatch("create_task", body, actor)
        return outcome_response(outcome, created=True)

    async def update_task(self, request: Request) -> JSONResponse:
        actor = await with_actor(request, self.store, self.actor_header)
        if isinstance(actor, JSONResponse):
            return actor
        body = await read_json_body(request)
        if body is None:
            return invalid_body_response()
        arguments: dict[str, Any] = {**body, "id": request.path_params["task_id"]}
        outcome = await self.bridge.dispatch("update_task", arguments, actor)
        return outcome_response(outcome)

    async def delete_task(self, request: Request) -> JSONResponse:
        actor = await with_actor(request, self.store, self.actor_header)
        if isinstance(actor, JSONResponse):
            return actor
        arguments = {
            "id": request.path_params["task_id"],
            "confirm": request.query_params.get("confirm", "").lower() == "true",
        }
        outcome = await self.bridge.dispatch("delete_task", arguments, actor)
        return outcome_response(outcome)

    def _register_routes(self) -> None:
        self.mcp.custom_route("/tasks", methods=["GET"])(self.list_tasks)
        self.mcp.custom_route("/tasks", methods=["POST"])(self.create_task)
        self.mcp.custom_route("/tasks/{task_id}", methods=["PUT"])(self.update_task)
        self.mcp.custom_route("/tasks/{task_id}", methods=["DELETE"])(self.delete_task)
        logger.debug("Registered task routes (actor header %s)", self.actor_header)
