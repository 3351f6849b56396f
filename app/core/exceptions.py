"""Typed failures raised by the service layer and rendered by the API."""

from typing import Any, Dict


class AppError(Exception):
    status_code: int = 400

    def __init__(self, message: str, status_code: int | None = None):
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(message)

    def to_payload(self) -> Dict[str, Any]:
        return {"success": False, "error": self.message}


class ValidationError(AppError):
    """Missing or malformed input."""

    status_code = 400


class NotFoundError(AppError):
    status_code = 404


class AuthorizationError(AppError):
    """Caller is not the owner of the resource."""

    status_code = 403


class ConflictError(AppError):
    """A temporal or business-rule gate failed."""

    status_code = 400


class CapacityError(AppError):
    status_code = 400

    def __init__(self, remaining: int):
        self.remaining = remaining
        super().__init__(f"Only {remaining} spots available")

    def to_payload(self) -> Dict[str, Any]:
        payload = super().to_payload()
        payload["remaining"] = self.remaining
        return payload


class PersistenceError(AppError):
    """The store rejected an otherwise valid write."""

    status_code = 500
