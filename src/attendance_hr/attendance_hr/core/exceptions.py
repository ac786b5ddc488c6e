from __future__ import annotations

from typing import Any, Optional

from .enums import ErrorKind


class DomainError(Exception):
    """Base exception for business rule violations."""

    kind = ErrorKind.VALIDATION

    def __init__(self, message: str, *, details: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict:
        return {
            "success": False,
            "error": self.kind.value,
            "message": self.message,
            "details": self.details,
        }


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""

    kind = ErrorKind.VALIDATION


class NotFoundError(DomainError):
    """Raised when a referenced entity does not exist in the organization."""

    kind = ErrorKind.NOT_FOUND


class ConflictError(DomainError):
    """Raised when a write collides with existing state (duplicates, double check-in)."""

    kind = ErrorKind.CONFLICT


class RemoteUnavailableError(DomainError):
    """Raised when the data or auth backend fails or is not configured."""

    kind = ErrorKind.REMOTE_UNAVAILABLE


class AuthenticationError(DomainError):
    """Raised when login credentials are invalid."""

    kind = ErrorKind.UNAUTHORIZED


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""

    kind = ErrorKind.UNAUTHORIZED
