"""Domain error taxonomy.

Every failure a service can report maps onto exactly one of these classes and
carries a stable machine-readable ``code`` plus the HTTP status the API layer
answers with.
"""

from __future__ import annotations

FieldErrors = dict[str, list[str]]


class ServiceError(RuntimeError):
    """Base class for failures returned to API callers."""

    code = "INTERNAL_ERROR"
    status_code = 500
    default_message = "An unexpected error occurred"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(ServiceError):
    code = "VALIDATION_ERROR"
    status_code = 400
    default_message = "Validation failed"

    def __init__(
        self, message: str | None = None, details: FieldErrors | None = None
    ) -> None:
        super().__init__(message)
        self.details = details or {}

    @classmethod
    def for_field(cls, field: str, message: str) -> ValidationError:
        return cls(message, {field: [message]})


class UnauthorizedError(ServiceError):
    code = "UNAUTHORIZED"
    status_code = 401
    default_message = "Authentication required"


class ForbiddenError(ServiceError):
    code = "FORBIDDEN"
    status_code = 403
    default_message = "Insufficient permissions"


class NotFoundError(ServiceError):
    code = "NOT_FOUND"
    status_code = 404
    default_message = "Resource not found"


class RateLimitError(ServiceError):
    code = "RATE_LIMIT_EXCEEDED"
    status_code = 429
    default_message = "Too many requests. Please try again later."

    def __init__(self, retry_after: int | None = None) -> None:
        super().__init__()
        self.retry_after = retry_after


class InternalError(ServiceError):
    """Storage or unexpected failure; the cause is logged, never exposed."""
