"""Application-level exception types.

Domain errors shared by the store adapters, quota services and HTTP layer.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, NotRequired, TypedDict


class ErrorDetails(TypedDict, total=False):
    """Structured error context for observability and clients."""

    code: str
    message: str
    hint: str
    key: str
    operation: str
    limit: int
    remaining: int
    request_id: str
    context: NotRequired[dict[str, Any]]


@dataclass
class AppError(Exception):
    """Base error for application/domain failures.

    Attributes:
        code: Stable, machine-readable error code.
        message: Human-readable error message.
        details: Optional structured details for debugging/observability.
    """

    code: str
    message: str
    details: ErrorDetails | None = None

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is useful in logs/tracebacks.
        super().__init__(self.message)


class ValidationAppError(AppError):
    """Raised when input/config validation fails."""


class AuthenticationAppError(AppError):
    """Raised when operator authentication fails."""


class StoreAccessError(AppError):
    """Raised by key-value adapters on any read, write or delete failure.

    Transient connection problems and undecodable payloads are not
    distinguished; callers apply one fallback policy to both.
    """

    def __init__(
        self,
        message: str,
        *,
        operation: str,
        key: str | None = None,
    ) -> None:
        details: ErrorDetails = {"operation": operation}
        if key is not None:
            details["key"] = key
        super().__init__(code="store_access_failure", message=message, details=details)


class QuotaExceededError(AppError):
    """Raised by the HTTP layer when a free user has no actions left."""
