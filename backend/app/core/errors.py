from __future__ import annotations


class AppError(Exception):
    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str | None = None, *, field: str | None = None) -> None:
        self.message = message or self.default_message
        self.field = field
        super().__init__(self.message)

    def to_payload(self) -> dict:
        payload = {"message": self.message}
        if self.field:
            payload["field"] = self.field
        return payload


class ValidationError(AppError):
    status_code = 400
    default_message = "Invalid input"


class InvalidCredentials(AppError):
    status_code = 401
    default_message = "Invalid credentials"


class Unauthenticated(AppError):
    status_code = 401
    default_message = "Not authenticated"


class Forbidden(AppError):
    status_code = 403
    default_message = "Forbidden"


class NotFound(AppError):
    status_code = 404
    default_message = "Not found"


class Conflict(AppError):
    status_code = 409
    default_message = "Conflict"


class DuplicateUsername(Conflict):
    default_message = "Username already exists"


class DuplicateEmail(Conflict):
    default_message = "Email already registered"


class DuplicateCode(Conflict):
    default_message = "Could not allocate a unique invite code"


class InvalidTransition(Conflict):
    default_message = "Status change not allowed"
