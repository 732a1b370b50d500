"""
Domain error taxonomy.

Services raise these; the handlers registered in main.py turn them into the
JSON envelope ``{"success": false, "message": ...}`` with the matching status.
"""
from fastapi import status
from sqlalchemy.exc import IntegrityError


class AppError(Exception):
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Internal server error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Validation failed"


class UnauthorizedError(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Authentication required"


class ForbiddenError(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Access denied"


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Resource not found"


class ConflictError(AppError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "Resource already exists"


# SQLSTATE codes raised by PostgreSQL; SQLite only reports them in the message
_UNIQUE_VIOLATION = "23505"
_FOREIGN_KEY_VIOLATION = "23503"


def from_integrity_error(exc: IntegrityError) -> AppError | None:
    """Map a database constraint violation to its domain error.

    Unique violations become 409, foreign-key violations 400 "Invalid
    reference".  Anything else (NOT NULL, CHECK) returns None.
    """
    orig = getattr(exc, "orig", None)
    code = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    text = str(orig)
    if code == _UNIQUE_VIOLATION or "UNIQUE constraint failed" in text:
        return ConflictError()
    if code == _FOREIGN_KEY_VIOLATION or "FOREIGN KEY constraint failed" in text:
        return ValidationError("Invalid reference")
    return None
