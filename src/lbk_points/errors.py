"""
Typed failures raised by the service layer.

Each error carries the HTTP status the API layer answers with and a plain
message that is safe to show to clients.
"""

from typing import Optional


class PointsError(Exception):
    status_code = 500
    default_message = "internal error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(PointsError):
    status_code = 400
    default_message = "invalid request"


class AuthenticationError(PointsError):
    status_code = 401
    default_message = "invalid credentials"


class NotFoundError(PointsError):
    status_code = 404
    default_message = "not found"


class ConflictError(PointsError):
    status_code = 400
    default_message = "conflict"


class InsufficientBalanceError(PointsError):
    status_code = 400
    default_message = "insufficient points"


class StorageError(PointsError):
    status_code = 500
    default_message = "database error"
