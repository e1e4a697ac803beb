"""Common helpers for task tools.

Provides the trusted tool context, the argument model shared by the tool
bridge and the HTTP routes, and the lookup of the acting user from MCP
request metadata.
"""

from __future__ import annotations

import logging
from typing import Any

from fastmcp import Context
from pydantic import BaseModel, Field, ValidationError
from pydantic.config import ConfigDict

from todoo_mcp.auth.policy import Actor
from todoo_mcp.auth.resolvers import TaskHints, UserHints
from todoo_mcp.store.models import Role

logger = logging.getLogger(__name__)


class ToolContext(BaseModel):
    """Identity attached to a tool call by the host application, never by the model."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    current_user_id: str = Field(alias="currentUserId", min_length=1)
    current_user_role: Role = Field(alias="currentUserRole")

    def to_actor(self) -> Actor:
        return Actor(id=self.current_user_id, role=self.current_user_role)


class TaskArguments(BaseModel):
    """Fields a caller may send to the task tools.

    Unknown fields are ignored. ``confirm`` is kept as received so the
    confirmation gate can require the literal ``True``.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str | None = None
    task_name: str | None = Field(default=None, alias="taskName")
    titulo: str | None = None
    descricao: str | None = None
    completo: bool | None = None
    confirm: Any = False
    user_id: str | None = Field(default=None, alias="userId")
    user_email: str | None = Field(default=None, alias="userEmail")
    user_name: str | None = Field(default=None, alias="userName")

    def owner_hints(self) -> UserHints:
        return UserHints(id=self.user_id, email=self.user_email, name=self.user_name)

    def task_hints(self) -> TaskHints:
        return TaskHints(id=self.id, title=self.task_name, owner=self.owner_hints())


def tool_context_from_meta(meta: object) -> ToolContext | None:
    """Build the tool context from MCP request ``_meta``.

    Args:
        meta: The request metadata object (extra fields allowed), or None

    Returns:
        ToolContext | None: The context, or None when it is missing or malformed
    """
    if meta is None:
        return None
    if isinstance(meta, dict):
        raw = meta
    else:
        raw = {
            "currentUserId": getattr(meta, "currentUserId", None),
            "currentUserRole": getattr(meta, "currentUserRole", None),
        }
    try:
        return ToolContext.model_validate(raw)
    except ValidationError:
        logger.warning("Tool call carried no valid user context in _meta")
        return None


def tool_context_from_ctx(ctx: Context) -> ToolContext | None:
    """Read the tool context of the current MCP request."""
    try:
        request_context = ctx.request_context
    except (AttributeError, ValueError, RuntimeError):
        return None
    return tool_context_from_meta(getattr(request_context, "meta", None))
