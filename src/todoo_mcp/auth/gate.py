"""Confirmation gate for task mutations.

Creating, updating and deleting a task requires an explicit ``confirm=True``.
Without it the caller gets a ``requires_confirmation`` outcome and nothing
else runs: no lookups, no policy checks, no store writes. Resolution errors
therefore never reveal whether a task exists before the caller confirms.
"""

import functools
import logging
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from todoo_mcp.auth.outcomes import Outcome
from todoo_mcp.auth.policy import Action

logger = logging.getLogger(__name__)

_CONFIRMATION_PROMPTS = {
    Action.CREATE: "Confirmação necessária para criar tarefa. Confirme com confirm=true.",
    Action.UPDATE: "Confirmação necessária para atualizar tarefa. Confirme com confirm=true.",
    Action.DELETE: "Confirmação necessária para deletar tarefa. Confirme com confirm=true.",
}

_F = TypeVar("_F", bound=Callable[..., Awaitable[Outcome]])


def check_confirmation(action: Action, confirm: object) -> Outcome | None:
    """Return the pending-confirmation outcome unless ``confirm`` is exactly True.

    Args:
        action: The mutating action being attempted
        confirm: The caller's confirmation flag, as received

    Returns:
        Outcome | None: ``requires_confirmation`` outcome, or None to proceed
    """
    if confirm is True:
        return None
    logger.info("Task %s held for confirmation (confirm=%r)", action.value, confirm)
    return Outcome.requires_confirmation(_CONFIRMATION_PROMPTS[action])


def confirmation_required(action: Action) -> Callable[[_F], _F]:
    """Guard an async operation with ``check_confirmation``.

    The wrapped operation receives every argument except ``confirm``, which
    is consumed by the gate and defaults to False.
    """

    def decorator(func: _F) -> _F:
        @functools.wraps(func)
        async def wrapper(*args: Any, confirm: object = False, **kwargs: Any) -> Outcome:
            pending = check_confirmation(action, confirm)
            if pending is not None:
                return pending
            return await func(*args, **kwargs)

        return wrapper  # type: ignore[return-value]

    return decorator
