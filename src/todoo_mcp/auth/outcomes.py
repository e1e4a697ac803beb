"""Structured results shared by the tool bridge and the direct HTTP routes.

Every task and user operation ends in exactly one ``Outcome``. Refusals are
values, not exceptions, so both surfaces report the same kind for the same
input.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field
from pydantic.config import ConfigDict


class OutcomeKind(StrEnum):
    """Discriminator for ``Outcome``."""

    OK = "ok"
    ERROR = "error"
    REQUIRES_CONFIRMATION = "requires_confirmation"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"
    AMBIGUOUS = "ambiguous"
    INVALID_INPUT = "invalid_input"
    UPSTREAM_FAILURE = "upstream_failure"


class Outcome(BaseModel):
    """Result of one operation: a kind, a human-readable message and optional data."""

    model_config = ConfigDict(frozen=True)

    kind: OutcomeKind
    message: str = ""
    data: Any = Field(default=None, description="Payload of a successful outcome")

    @property
    def success(self) -> bool:
        return self.kind is OutcomeKind.OK

    @classmethod
    def ok(cls, data: Any = None, message: str = "") -> Outcome:
        return cls(kind=OutcomeKind.OK, message=message, data=data)

    @classmethod
    def error(cls, message: str) -> Outcome:
        return cls(kind=OutcomeKind.ERROR, message=message)

    @classmethod
    def requires_confirmation(cls, message: str) -> Outcome:
        return cls(kind=OutcomeKind.REQUIRES_CONFIRMATION, message=message)

    @classmethod
    def forbidden(cls, message: str) -> Outcome:
        return cls(kind=OutcomeKind.FORBIDDEN, message=message)

    @classmethod
    def not_found(cls, message: str) -> Outcome:
        return cls(kind=OutcomeKind.NOT_FOUND, message=message)

    @classmethod
    def ambiguous(cls, message: str) -> Outcome:
        return cls(kind=OutcomeKind.AMBIGUOUS, message=message)

    @classmethod
    def invalid_input(cls, message: str) -> Outcome:
        return cls(kind=OutcomeKind.INVALID_INPUT, message=message)

    @classmethod
    def upstream_failure(cls, message: str) -> Outcome:
        return cls(kind=OutcomeKind.UPSTREAM_FAILURE, message=message)

    def to_dict(self) -> dict[str, Any]:
        """Serialize in the tool response shape.

        Successful outcomes carry ``data``; refusals carry ``error`` set to the
        kind. A pending confirmation is flagged with ``requires_confirmation``.

        Returns:
            dict[str, Any]: JSON-ready response
        """
        result: dict[str, Any] = {"success": self.success, "message": self.message}
        if self.success:
            result["data"] = self.data
        else:
            result["error"] = self.kind.value
        if self.kind is OutcomeKind.REQUIRES_CONFIRMATION:
            result["requires_confirmation"] = True
        return result
