"""Custom exceptions for the SchoolShelf application."""

from __future__ import annotations

from schoolshelf.core.enums import ErrorCode


class SchoolShelfError(Exception):
    """Base exception for SchoolShelf application."""

    code: ErrorCode = ErrorCode.SERVER_ERROR
    status_code: int = 500

    def __init__(self, message: str = "") -> None:
        super().__init__(message)
        self.message = message


class ValidationError(SchoolShelfError):
    """Raised when input is malformed or violates a business rule."""

    code = ErrorCode.VALIDATION
    status_code = 400


class NotFoundError(SchoolShelfError):
    """Raised when a resource is not found."""

    code = ErrorCode.NOT_FOUND
    status_code = 404


class ConflictError(SchoolShelfError):
    """Raised on duplicates and on state that forbids the operation."""

    code = ErrorCode.CONFLICT
    status_code = 409


class AuthenticationError(SchoolShelfError):
    """Raised when authentication fails."""

    code = ErrorCode.AUTH_INVALID
    status_code = 401


class TokenExpiredError(AuthenticationError):
    code = ErrorCode.AUTH_EXPIRED


class AccountRejectedError(AuthenticationError):
    """Raised for rejected memberships; the client must sign out."""


class AuthorizationError(SchoolShelfError):
    """Raised when role or tenant does not allow the operation."""

    code = ErrorCode.FORBIDDEN
    status_code = 403


class ConfigurationError(SchoolShelfError):
    """Raised when configuration is invalid."""


class TenantScopeViolation(SchoolShelfError):
    """Raised when tenant-owned rows are queried without a tenant filter."""
