"""Direct HTTP routes for user accounts."""

import logging

from fastmcp import FastMCP
from starlette.requests import Request
from starlette.responses import JSONResponse

from todoo_mcp.auth.service import UserOperations
from todoo_mcp.routes.common import (
    invalid_body_response,
    outcome_response,
    read_json_body,
    with_actor,
)
from todoo_mcp.store.protocols import TaskStore

logger = logging.getLogger(__name__)


def _text(body: dict, key: str) -> str | None:
    value = body.get(key)
    return value if isinstance(value, str) else None


class UserRoutes:
    """``/users`` endpoints registered as FastMCP custom routes.

    Bodies use the same field names as the task tools: ``nome``, ``email``
    and ``role``.
    """

    def __init__(
        self,
        mcp_instance: FastMCP,
        operations: UserOperations,
        store: TaskStore,
        actor_header: str = "X-User-Id",
    ) -> None:
        self.mcp = mcp_instance
        self.operations = operations
        self.store = store
        self.actor_header = actor_header
        self._register_routes()

    async def list_users(self, request: Request) -> JSONResponse:
        actor = await with_actor(request, self.store, self.actor_header)
        if isinstance(actor, JSONResponse):
            return actor
        return outcome_response(await self.operations.list_users(actor))

    async def get_user(self, request: Request) -> JSONResponse:
        actor = await with_actor(request, self.store, self.actor_header)
        if isinstance(actor, JSONResponse):
            return actor
        outcome = await self.operations.get_user(actor, request.path_params["user_id"])
        return outcome_response(outcome)

    async def create_user(self, request: Request) -> JSONResponse:
        actor = await with_actor(request, self.store, self.actor_header)
        if isinstance(actor, JSONResponse):
            return actor
        body = await read_json_body(request)
        if body is None:
            return invalid_body_response()
        outcome = await self.operations.create_user(
            actor,
            _text(body, "nome") or "",
            _text(body, "email") or "",
            _text(body, "role"),
        )
        return outcome_response(outcome, created=True)

    async def update_user(self, request: Request) -> JSONResponse:
        actor = await with_actor(request, self.store, self.actor_header)
        if isinstance(actor, JSONResponse):
            return actor
        body = await read_json_body(request)
        if body is None:
            return invalid_body_response()
        outcome = await self.operations.update_user(
            actor,
            request.path_params["user_id"],
            name=_text(body, "nome"),
            email=_text(body, "email"),
            role=_text(body, "role"),
        )
        return outcome_response(outcome)

    async def delete_user(self, request: Request) -> JSONResponse:
        actor = await with_actor(request, self.store, self.actor_header)
        if isinstance(actor, JSONResponse):
            return actor
        outcome = await self.operations.delete_user(actor, request.path_params["user_id"])
        return outcome_response(outcome)

    def _register_routes(self) -> None:
        self.mcp.custom_route("/users", methods=["GET"])(self.list_users)
        self.mcp.custom_route("/users", methods=["POST"])(self.create_user)
        self.mcp.custom_route("/users/{user_id}", methods=["GET"])(self.get_user)
        self.mcp.custom_route("/users/{user_id}", methods=["PUT"])(self.update_user)
        self.mcp.custom_route("/users/{user_id}", methods=["DELETE"])(self.delete_user)
        logger.debug("Registered user routes (actor header %s)", self.actor_header)
