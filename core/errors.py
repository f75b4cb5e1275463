"""
core/errors.py -- Application error taxonomy.

Every failure a client can observe is one of these classes. Each carries the
HTTP status, a short machine code, and a human-readable message; api/main.py
turns any AppError into a {"code", "message"} JSON body.

Messages are safe to show to clients. Internal detail (exception text, SQL,
stack traces) belongs in the server log, never in an AppError message.

Layer rule: core/ is the kernel. auth/, tasks/ and api/ import from here.
"""

from __future__ import annotations


class AppError(Exception):
    status_code: int = 500
    code: str = "internal_error"
    message: str = "An unexpected error occurred."

    def __init__(self, message: str | None = None) -> None:
        if message is not None:
            self.message = message
        super().__init__(self.message)

    @property
    def headers(self) -> dict[str, str] | None:
        return None


class ValidationError(AppError):
    """Missing or malformed input."""

    status_code = 400
    code = "validation_error"
    message = "Request validation failed."


class ConflictError(AppError):
    """The resource already exists. Reported as 400 to match the public API."""

    status_code = 400
    code = "conflict"
    message = "Resource already exists."


class AuthError(AppError):
    """Any authentication failure.

    Deliberately undifferentiated: missing token, bad token, expired token,
    vanished account and wrong password all look the same to the client.
    """

    status_code = 401
    code = "unauthorized"
    message = "Not authorized."

    @property
    def headers(self) -> dict[str, str] | None:
        return {"WWW-Authenticate": "Bearer"}


class ForbiddenError(AppError):
    """Authenticated, but not the owner of the target record."""

    status_code = 403
    code = "forbidden"
    message = "Not authorized to access this task."


class NotFoundError(AppError):
    status_code = 404
    code = "not_found"
    message = "Not found."


class InternalError(AppError):
    """Store, hashing or signing failure. The cause is logged, not returned."""

    status_code = 500
    code = "internal_error"
    message = "Internal server error."
