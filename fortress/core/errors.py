"""
Domain-specific exceptions for the Fortress ledger service.

These exceptions represent business logic violations and are mapped
to appropriate HTTP status codes in the API layer.
"""

from typing import Any


class FortressError(Exception):
    """Base exception for all ledger service domain errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class ValidationError(FortressError):
    """
    Raised when input data fails validation.

    Examples:
    - Non-positive amount
    - Malformed recipient wallet address
    - Sender and recipient are the same wallet

    HTTP Status: 400 Bad Request
    """

    pass


class NotFoundError(FortressError):
    """
    Raised when a requested resource does not exist.

    HTTP Status: 404 Not Found
    """

    pass


class UnauthorizedError(FortressError):
    """
    Raised when the caller lacks valid authentication.

    Examples:
    - Missing bearer token
    - Invalid or expired token

    HTTP Status: 401 Unauthorized
    """

    pass


class ForbiddenError(FortressError):
    """
    Raised when the principal is authenticated but its role lacks the permission.

    HTTP Status: 403 Forbidden
    """

    pass


class ConflictError(FortressError):
    """
    Raised when an operation conflicts with current state.

    HTTP Status: 409 Conflict
    """

    pass


class InvalidTransitionError(ConflictError):
    """
    Raised when a transaction status change is not allowed from its current status.

    The record is never modified when this is raised. Not retried.

    HTTP Status: 409 Conflict
    """

    pass


class FraudBlockedError(FortressError):
    """
    Raised when fraud screening rates a submission as high risk.

    Details carry the triggered flags and the risk level. A new explicit
    submission is required; nothing is retried automatically.

    HTTP Status: 422 Unprocessable Entity
    """

    pass


class SettlementFailedError(FortressError):
    """
    Raised when the settlement executor reports failure, times out or errors.

    The transaction has already been moved to rejected when this is raised.

    HTTP Status: 502 Bad Gateway
    """

    pass


class IntegrityViolationError(FortressError):
    """
    Raised when the audit chain does not verify.

    The audit trail must be treated as untrusted pending investigation.
    Never auto-repaired.

    HTTP Status: 500 Internal Server Error
    """

    pass


ERROR_STATUS_MAP = {
    ValidationError: 400,
    UnauthorizedError: 401,
    ForbiddenError: 403,
    NotFoundError: 404,
    ConflictError: 409,
    InvalidTransitionError: 409,
    FraudBlockedError: 422,
    SettlementFailedError: 502,
    IntegrityViolationError: 500,
}


def get_status_code(error: Exception) -> int:
    """
    Get the HTTP status code for a given exception.

    Args:
        error: The exception instance

    Returns:
        HTTP status code of the closest mapped class (defaults to 500)
    """
    for cls in type(error).__mro__:
        if cls in ERROR_STATUS_MAP:
            return ERROR_STATUS_MAP[cls]
    return 500
