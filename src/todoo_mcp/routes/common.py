"""Shared helpers for the direct HTTP routes."""

import logging
from typing import Any

from starlette.requests import Request
from starlette.responses import JSONResponse

from todoo_mcp.auth.outcomes import Outcome, OutcomeKind
from todoo_mcp.auth.policy import Actor
from todoo_mcp.auth.service import STORE_FAILURE_MESSAGE
from todoo_mcp.store.exceptions import StoreAPIError
from todoo_mcp.store.protocols import TaskStore

logger = logging.getLogger(__name__)

STATUS_BY_KIND: dict[OutcomeKind, int] = {
    OutcomeKind.OK: 200,
    OutcomeKind.ERROR: 400,
    OutcomeKind.INVALID_INPUT: 400,
    OutcomeKind.FORBIDDEN: 403,
    OutcomeKind.NOT_FOUND: 404,
    OutcomeKind.AMBIGUOUS: 409,
    OutcomeKind.REQUIRES_CONFIRMATION: 428,
    OutcomeKind.UPSTREAM_FAILURE: 502,
}


class UnauthenticatedError(Exception):
    """No trusted user id arrived with the request, or it names no user."""


def outcome_response(outcome: Outcome, *, created: bool = False) -> JSONResponse:
    """Render an outcome with the status code matching its kind.

    Args:
        outcome: Result of the operation
        created: Use 201 instead of 200 for a successful creation

    Returns:
        JSONResponse: Response carrying ``outcome.to_dict()``
    """
    status_code = STATUS_BY_KIND[outcome.kind]
    if created and outcome.success:
        status_code = 201
    return JSONResponse(outcome.to_dict(), status_code=status_code)


def unauthenticated_response() -> JSONResponse:
    return JSONResponse(
        {"success": False, "error": "unauthenticated", "message": "Usuário não autenticado"},
        status_code=401,
    )


async def current_actor(request: Request, store: TaskStore, header: str) -> Actor:
    """Load the acting user named by the trusted identity header.

    Raises:
        UnauthenticatedError: Header missing or naming an unknown user
        StoreAPIError: The store could not be reached
    """
    user_id = request.headers.get(header, "").strip()
    if not user_id:
        msg = f"Missing {header} header"
        raise UnauthenticatedError(msg)
    user = await store.get_user(user_id)
    if user is None:
        msg = f"Unknown user {user_id}"
        raise UnauthenticatedError(msg)
    return Actor(id=user.id, role=user.role)


async def read_json_body(request: Request) -> dict[str, Any] | None:
    """Return the JSON object body, ``{}`` when empty, or None when malformed."""
    raw = await request.body()
    if not raw.strip():
        return {}
    try:
        body = await request.json()
    except ValueError:
        return None
    return body if isinstance(body, dict) else None


async def with_actor(request: Request, store: TaskStore, header: str) -> Actor | JSONResponse:
    """Resolve the actor, or the error response to send instead."""
    try:
        return await current_actor(request, store, header)
    except UnauthenticatedError as e:
        logger.info("Rejected unauthenticated request to %s: %s", request.url.path, e)
        return unauthenticated_response()
    except StoreAPIError:
        logger.exception("Failed to load the acting user")
        return outcome_response(Outcome.upstream_failure(STORE_FAILURE_MESSAGE))


def invalid_body_response() -> JSONResponse:
    return outcome_response(Outcome.invalid_input("Corpo da requisição deve ser um objeto JSON"))
