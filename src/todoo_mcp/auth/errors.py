"""Exceptions raised by the resolvers and the policy checks.

The operations layer turns each of them into the ``Outcome`` of the same
kind. Messages are user-facing and written in Portuguese, like the rest of
the task tracker.
"""

from typing import ClassVar

from todoo_mcp.auth.outcomes import Outcome, OutcomeKind


class OperationError(Exception):
    """Base exception for refused task and user operations."""

    kind: ClassVar[OutcomeKind] = OutcomeKind.ERROR

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)

    def to_outcome(self) -> Outcome:
        """Return the structured outcome reporting this refusal."""
        return Outcome(kind=self.kind, message=self.message)


class NotFoundError(OperationError):
    """A hint matched no record."""

    kind = OutcomeKind.NOT_FOUND

    @classmethod
    def user(cls) -> "NotFoundError":
        return cls("Usuário não encontrado")

    @classmethod
    def task(cls) -> "NotFoundError":
        return cls("Tarefa não encontrada")


class AmbiguityError(OperationError):
    """A non-unique hint matched more than one record."""

    kind = OutcomeKind.AMBIGUOUS


class InvalidInputError(OperationError):
    """A required hint or field is missing or malformed."""

    kind = OutcomeKind.INVALID_INPUT


class ForbiddenError(OperationError):
    """The policy denied the action."""

    kind = OutcomeKind.FORBIDDEN
