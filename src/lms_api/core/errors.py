"""
Service Error Taxonomy

Domain exceptions raised by repositories and services. Every error carries a
stable ``error_code`` and a human-readable ``message``; routers translate
them to HTTP responses without adding detail. Messages never include
passwords, password hashes or tokens.
"""

from typing import NoReturn

from fastapi import HTTPException, status


class ServiceError(Exception):
    """Base exception for service-layer errors."""

    def __init__(self, message: str, error_code: str, status_code: int = 400):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        super().__init__(message)


class InvalidInputError(ServiceError):
    """Raised when request data is malformed."""

    def __init__(self, message: str = "Invalid input."):
        super().__init__(
            message=message,
            error_code="INVALID_INPUT",
            status_code=400,
        )


class ConflictError(ServiceError):
    """Raised when a uniqueness rule would be violated."""

    def __init__(self, message: str):
        super().__init__(
            message=message,
            error_code="CONFLICT",
            status_code=409,
        )


class DuplicateKeyError(ConflictError):
    """
    Raised by a repository when the storage layer rejects a write on a unique index.

    Services translate this into the same ConflictError a pre-check produces,
    so callers see one error regardless of which path detected the conflict.
    """

    def __init__(self, entity: str, field: str = "email"):
        self.entity = entity
        self.field = field
        super().__init__(f"{entity.capitalize()} with this {field} already exists.")


class NotFoundError(ServiceError):
    """Raised when a record does not exist."""

    def __init__(self, entity: str, record_id: object | None = None):
        message = f"{entity} {record_id} not found" if record_id else f"{entity} not found"
        super().__init__(
            message=message,
            error_code="NOT_FOUND",
            status_code=404,
        )


class InvalidStateError(ServiceError):
    """Raised when a lifecycle transition is not allowed from the current state."""

    def __init__(self, message: str, current_state: str | None = None):
        self.current_state = current_state
        super().__init__(
            message=message,
            error_code="INVALID_STATE",
            status_code=409,
        )


class UnauthorizedError(ServiceError):
    """
    Raised when credentials do not match.

    Deliberately identical for "no such account" and "wrong password".
    """

    def __init__(self, message: str = "Invalid email or password."):
        super().__init__(
            message=message,
            error_code="INVALID_CREDENTIALS",
            status_code=401,
        )


class DeliveryError(ServiceError):
    """Raised when a required notification could not be delivered."""

    def __init__(self, message: str = "Failed to send email. Please try again later."):
        super().__init__(
            message=message,
            error_code="DELIVERY_FAILED",
            status_code=502,
        )


class ConfigurationError(RuntimeError):
    """Raised at startup when required configuration is missing. Fatal."""


def handle_service_error(e: ServiceError) -> NoReturn:
    """Convert a service error to an HTTPException."""
    raise HTTPException(
        status_code=e.status_code,
        detail={
            "error": e.error_code,
            "message": e.message,
        },
    ) from e


def internal_error() -> HTTPException:
    """Generic 500 for unexpected failures; details stay in the logs."""
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail={
            "error": "INTERNAL_ERROR",
            "message": "An unexpected error occurred. Please try again later.",
        },
    )


__all__ = [
    "ServiceError",
    "InvalidInputError",
    "ConflictError",
    "DuplicateKeyError",
    "NotFoundError",
    "InvalidStateError",
    "UnauthorizedError",
    "DeliveryError",
    "ConfigurationError",
    "handle_service_error",
    "internal_error",
]
