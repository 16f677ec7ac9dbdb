"""Domain errors raised by the reservation core.

Every error is recoverable: the operation that raised it left no writes
behind. ``staybook.main`` maps each kind to an HTTP status.
"""

from typing import Any


class StayBookError(Exception):
    """Base class for rejected operations."""

    status_code: int = 400

    def __init__(self, message: str, **details: Any) -> None:
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict[str, Any]:
        return {"detail": self.message, **self.details}


class ValidationError(StayBookError):
    """Malformed or out-of-policy input (bad dates, guest count, rate bounds)."""

    status_code = 422


class InvalidInput(ValidationError):
    """Non-positive or out-of-range argument passed to a rate calculation."""


class ConflictError(StayBookError):
    """Date overlap or an unusable voucher; the caller should re-prompt."""

    status_code = 409


class NotFoundError(StayBookError):
    """Unknown property, booking, or voucher id."""

    status_code = 404
