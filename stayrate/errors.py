"""
Error taxonomy shared by services and the HTTP layer.

Services raise these; ``main.py`` turns them into JSON responses. Routers
never catch them.
"""
from typing import Optional


class StayRateError(Exception):
    status_code: int = 500
    code: str = "internal"

    def __init__(self, message: str, errors: Optional[list[str]] = None):
        super().__init__(message)
        self.message = message
        self.errors = list(errors or [])

    def to_dict(self) -> dict:
        body = {"error": self.code, "message": self.message}
        if self.errors:
            body["errors"] = self.errors
        return body


class ValidationError(StayRateError):
    """Malformed or missing input; raised before any availability read."""
    status_code = 400
    code = "validation"


class NotFoundError(StayRateError):
    status_code = 404
    code = "not_found"


class CapacityError(StayRateError):
    """Requested rooms exceed availability. ``errors`` lists every offending day."""
    status_code = 409
    code = "capacity"


class ConflictError(StayRateError):
    status_code = 409
    code = "conflict"


class InternalError(StayRateError):
    status_code = 500
    code = "internal"
