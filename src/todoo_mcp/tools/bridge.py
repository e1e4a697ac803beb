"""In-process dispatcher from tool calls to task operations.

The assistant loop hands every tool call to ``ToolBridge.call_tool`` with the
trusted context of the signed-in user. The model chooses the tool and its
arguments but never the identity the call runs as.
"""

import logging
from collections.abc import Awaitable, Callable, Mapping
from typing import Any

from pydantic import ValidationError

from todoo_mcp.auth.gate import check_confirmation
from todoo_mcp.auth.outcomes import Outcome
from todoo_mcp.auth.policy import Action, Actor
from todoo_mcp.auth.service import TaskOperations
from todoo_mcp.tools.tasks_common import TaskArguments, ToolContext

logger = logging.getLogger(__name__)

_Handler = Callable[[Actor | None, TaskArguments], Awaitable[Outcome]]

_MUTATIONS = {
    "create_task": Action.CREATE,
    "update_task": Action.UPDATE,
    "delete_task": Action.DELETE,
}


class ToolBridge:
    """Route ``list_tasks``, ``create_task``, ``update_task`` and ``delete_task`` calls."""

    def __init__(self, operations: TaskOperations) -> None:
        self.operations = operations
        self._handlers: dict[str, _Handler] = {
            "list_tasks": self._list_tasks,
            "create_task": self._create_task,
            "update_task": self._update_task,
            "delete_task": self._delete_task,
        }

    @property
    def tool_names(self) -> tuple[str, ...]:
        return tuple(self._handlers)

    async def call_tool(
        self,
        name: str,
        arguments: Mapping[str, Any] | None,
        context: ToolContext | None,
    ) -> Outcome:
        """Run one tool call as the user described by ``context``.

        Args:
            name: Tool name chosen by the model
            arguments: Tool arguments chosen by the model
            context: Trusted identity of the caller; None runs as anonymous

        Returns:
            Outcome: Result of the operation, never an exception
        """
        actor = context.to_actor() if context is not None else None
        return await self.dispatch(name, arguments, actor)

    async def dispatch(
        self,
        name: str,
        arguments: Mapping[str, Any] | None,
        actor: Actor | None,
    ) -> Outcome:
        """Run one tool call as an already authenticated actor (HTTP routes use this)."""
        handler = self._handlers.get(name)
        if handler is None:
            logger.warning("Unknown tool requested: %s", name)
            return Outcome.error(f"Ferramenta desconhecida: {name}")

        try:
            args = TaskArguments.model_validate(dict(arguments or {}))
        except ValidationError as e:
            logger.info("Invalid arguments for %s: %s", name, e)
            if name in _MUTATIONS:
                pending = check_confirmation(_MUTATIONS[name], (arguments or {}).get("confirm"))
                if pending is not None:
                    return pending
            return Outcome.invalid_input(f"Argumentos inválidos para {name}")

        logger.debug("Dispatching %s for actor %s", name, actor.id if actor else "<anonymous>")
        return await handler(actor, args)

    async def _list_tasks(self, actor: Actor | None, args: TaskArguments) -> Outcome:
        return await self.operations.list_tasks(actor, args.owner_hints(), args.task_name)

    async def _create_task(self, actor: Actor | None, args: TaskArguments) -> Outcome:
        return await self.operations.create_task(
            actor,
            args.titulo or "",
            args.descricao or "",
            bool(args.completo),
            args.owner_hints(),
            confirm=args.confirm,
        )

    async def _update_task(self, actor: Actor | None, args: TaskArguments) -> Outcome:
        return await self.operations.update_task(
            actor,
            args.task_hints(),
            args.titulo,
            args.descricao,
            args.completo,
            confirm=args.confirm,
        )

    async def _delete_task(self, actor: Actor | None, args: TaskArguments) -> Outcome:
        return await self.operations.delete_task(actor, args.task_hints(), confirm=args.confirm)
