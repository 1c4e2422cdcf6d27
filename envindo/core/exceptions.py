from typing import Any, Dict, Optional

from fastapi import status


class EnvindoError(Exception):
    """Base class for every error the back office reports to a caller.

    Each subclass fixes the HTTP status and the machine readable ``code``
    that ends up in the response envelope.
    """

    http_status: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str = "SERVER_ERROR"
    default_message: str = "Internal server error"

    def __init__(self, message: Optional[str] = None, errors: Optional[Dict[str, Any]] = None):
        self.message = message or self.default_message
        self.errors = errors
        super().__init__(self.message)


class UnauthenticatedError(EnvindoError):
    http_status = status.HTTP_401_UNAUTHORIZED
    code = "UNAUTHORIZED"
    default_message = "Invalid or missing token"


class ForbiddenError(EnvindoError):
    http_status = status.HTTP_403_FORBIDDEN
    code = "FORBIDDEN"
    default_message = "Access denied"


class ValidationFailedError(EnvindoError):
    http_status = status.HTTP_400_BAD_REQUEST
    code = "VALIDATION_ERROR"
    default_message = "Validation failed"


class NotFoundError(EnvindoError):
    http_status = status.HTTP_404_NOT_FOUND
    code = "NOT_FOUND"
    default_message = "Resource not found"


class ConflictError(EnvindoError):
    http_status = status.HTTP_409_CONFLICT
    code = "CONFLICT"
    default_message = "Request conflicts with the current state of the resource"


class ServerError(EnvindoError):
    pass


class IllegalTransitionError(ConflictError):
    """Requested status change is not in the entity's transition table."""

    code = "ILLEGAL_TRANSITION"

    def __init__(self, entity: str, current: str, target: str):
        super().__init__(f"{entity} cannot move from '{current}' to '{target}'")
        self.entity = entity
        self.current = current
        self.target = target


class StaleStateError(ConflictError):
    """Compare-and-swap lost: the row left the expected state before our update."""

    code = "STALE_STATE"

    def __init__(self, entity: str, entity_id: int, expected: str):
        super().__init__(
            f"{entity} {entity_id} is no longer '{expected}'; it was modified by another request"
        )
        self.entity = entity
        self.entity_id = entity_id
        self.expected = expected
