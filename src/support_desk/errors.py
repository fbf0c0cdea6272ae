"""Typed errors for support_desk operations.

Every request/response operation fails with one of these errors. The
``code`` is the stable machine-readable part an RPC transport forwards to
the dashboard or the widget; ``message`` is deliberately generic so that
ownership checks never reveal whether an entity exists.
"""

from enum import StrEnum
from typing import Any

__all__ = [
    "BadRequestError",
    "ErrorCode",
    "InternalError",
    "NotFoundError",
    "SupportDeskError",
    "UnauthorizedError",
]


class ErrorCode(StrEnum):
    """Machine-readable error kinds."""

    UNAUTHORIZED = "UNAUTHORIZED"
    NOT_FOUND = "NOT_FOUND"
    BAD_REQUEST = "BAD_REQUEST"
    INTERNAL = "INTERNAL"


class SupportDeskError(Exception):
    """Base class for all operation errors."""

    code: ErrorCode = ErrorCode.INTERNAL
    default_message = "Internal error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Serialize for an RPC transport."""
        return {"code": self.code.value, "message": self.message}

    def __repr__(self) -> str:
        return f"{type(self).__name__}(code={self.code.value!r}, message={self.message!r})"


class UnauthorizedError(SupportDeskError):
    """Caller identity or session is missing, expired, or belongs to another tenant."""

    code = ErrorCode.UNAUTHORIZED
    default_message = "Unauthorized"


class NotFoundError(SupportDeskError):
    """Target entity is absent, or ownership is masked as absence."""

    code = ErrorCode.NOT_FOUND
    default_message = "Not found"


class BadRequestError(SupportDeskError):
    """Operation not permitted in the entity's current state."""

    code = ErrorCode.BAD_REQUEST
    default_message = "Bad request"


class InternalError(SupportDeskError):
    """Collaborator failure surfaced to the caller."""

    code = ErrorCode.INTERNAL
