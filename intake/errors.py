"""Error taxonomy shared by the service, API and web layers."""

from __future__ import annotations


class IntakeError(Exception):
    """Base class for failures surfaced to clients."""

    status_code = 500
    default_message = "Internal error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)


class InvalidCredentials(IntakeError):
    status_code = 400
    default_message = "Invalid credentials"


class MissingToken(IntakeError):
    status_code = 401
    default_message = "Access token required"


class InvalidToken(IntakeError):
    status_code = 403
    default_message = "Invalid token"


class AccessDenied(IntakeError):
    status_code = 403
    default_message = "Access denied"


class ApplicationNotFound(IntakeError):
    status_code = 404
    default_message = "Application not found"


class InvalidStatus(IntakeError):
    status_code = 400
    default_message = "Status must be one of: approved, rejected"


class InvalidTransition(IntakeError):
    """Raised when a decided application is asked to change again."""

    status_code = 409
    default_message = "Application has already been decided"


__all__ = [
    "AccessDenied",
    "ApplicationNotFound",
    "IntakeError",
    "InvalidCredentials",
    "InvalidStatus",
    "InvalidToken",
    "InvalidTransition",
    "MissingToken",
]
