"""
Errors surfaced to API callers.

Services raise these; the application turns them into JSON responses of the
form ``{"detail": message, "code": code}``.
"""

from __future__ import annotations


class OutfitsError(Exception):
    code = "INTERNAL_SERVER_ERROR"
    status_code = 500

    def __init__(self, message: str = "Something went wrong"):
        super().__init__(message)
        self.message = message

    def as_dict(self) -> dict:
        return {"detail": self.message, "code": self.code}


class ValidationError(OutfitsError):
    """Bad input, e.g. a reserved username or an unsignable image."""

    code = "BAD_REQUEST"
    status_code = 400


class NotFoundError(OutfitsError):
    code = "NOT_FOUND"
    status_code = 404


class AuthorizationError(OutfitsError):
    """Raised when a protected procedure is called without a valid session."""

    code = "UNAUTHORIZED"
    status_code = 401

    def __init__(self, message: str = "Not authenticated"):
        super().__init__(message)


class ConflictError(OutfitsError):
    code = "CONFLICT"
    status_code = 409


class InternalError(OutfitsError):
    code = "INTERNAL_SERVER_ERROR"
    status_code = 500
