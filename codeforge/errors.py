"""Error kinds and exceptions raised by the code generation core.

Store and catalog lookups raise ``NotFoundError`` / ``AlreadyExistsError`` to
the immediate caller.  Request parsing raises ``InvalidRequestError`` before
any rendering starts.  Collaborator calls raise ``RemoteFailureError`` with
the operation name and HTTP status so callers can log them without looking
at transport internals.
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    """Classification shared by exceptions and result diagnostics."""
    NOT_FOUND = "not_found"
    ALREADY_EXISTS = "already_exists"
    INVALID_REQUEST = "invalid_request"
    RENDER_FAILURE = "render_failure"
    REMOTE_FAILURE = "remote_failure"
    PARTIAL_VALIDATION_FAILURE = "partial_validation_failure"


class CodeForgeError(Exception):
    """Base class for every domain error."""

    kind: ErrorKind = ErrorKind.INVALID_REQUEST

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class NotFoundError(CodeForgeError):
    """Raised when a block, template or request target id is unknown."""

    kind = ErrorKind.NOT_FOUND


class AlreadyExistsError(CodeForgeError):
    """Raised when ``create`` collides with an existing id."""

    kind = ErrorKind.ALREADY_EXISTS


class InvalidRequestError(CodeForgeError):
    """Raised for empty or unparseable element payloads."""

    kind = ErrorKind.INVALID_REQUEST

    def __init__(self, message: str, details: list[dict[str, Any]] | None = None) -> None:
        self.details = details or []
        super().__init__(message)


class RenderError(CodeForgeError):
    """Raised when a template cannot be compiled or rendered."""

    kind = ErrorKind.RENDER_FAILURE


class RemoteFailureError(CodeForgeError):
    """Raised when a collaborator is unreachable or answers non-success."""

    kind = ErrorKind.REMOTE_FAILURE

    def __init__(self, operation: str, message: str, status: int | None = None) -> None:
        self.operation = operation
        self.status = status
        status_text = f"HTTP {status}" if status is not None else "no response"
        super().__init__(f"{operation} failed ({status_text}): {message}")
