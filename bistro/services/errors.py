# bistro/services/errors.py
"""
Typed rejections raised by the booking and pricing services.

Every rejection carries a stable `code` so the HTTP layer can map it to a
status and the client can show a specific message.
"""

from enum import Enum
from typing import Optional


class ErrorCode(str, Enum):
    RATE_LIMITED = "RATE_LIMITED"
    NOT_IN_FUTURE = "NOT_IN_FUTURE"
    MIN_ADVANCE_VIOLATED = "MIN_ADVANCE_VIOLATED"
    WINDOW_EXCEEDED = "WINDOW_EXCEEDED"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    ITEM_NOT_FOUND = "ITEM_NOT_FOUND"
    ITEM_UNAVAILABLE = "ITEM_UNAVAILABLE"
    SLOT_UNAVAILABLE = "SLOT_UNAVAILABLE"
    INVALID_TRANSITION = "INVALID_TRANSITION"
    CONFIG_ERROR = "CONFIG_ERROR"
    STORE_ERROR = "STORE_ERROR"


class BistroError(Exception):
    """Base class for all domain errors."""

    code: ErrorCode = ErrorCode.STORE_ERROR
    status_code: int = 500

    def __init__(
        self,
        message: str,
        code: Optional[ErrorCode] = None,
        fields: Optional[list[dict]] = None,
        item_id: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        self.fields = fields or []
        self.item_id = item_id

    def to_detail(self) -> dict:
        detail = {"code": self.code.value, "message": self.message}
        if self.fields:
            detail["fields"] = self.fields
        if self.item_id is not None:
            detail["item_id"] = self.item_id
        return detail


class BookingRejected(BistroError):
    """Booking request refused by the admission controller."""

    status_code = 400

    def __init__(self, code: ErrorCode, message: str, fields: Optional[list[dict]] = None):
        super().__init__(message, code=code, fields=fields)
        if code == ErrorCode.RATE_LIMITED:
            self.status_code = 429


class OrderRejected(BistroError):
    """Submitted order cannot be priced."""

    status_code = 400

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        fields: Optional[list[dict]] = None,
        item_id: Optional[str] = None,
    ):
        super().__init__(message, code=code, fields=fields, item_id=item_id)
        if code == ErrorCode.RATE_LIMITED:
            self.status_code = 429


class InvalidTransition(BistroError):
    code = ErrorCode.INVALID_TRANSITION
    status_code = 400


class ConfigError(BistroError):
    """Operating hours or settings cannot be interpreted."""

    code = ErrorCode.CONFIG_ERROR
    status_code = 500


class StoreError(BistroError):
    """Persistent store failed; cause is not known to the caller."""

    code = ErrorCode.STORE_ERROR
    status_code = 500


def field_error(field: str, reason: str) -> dict:
    return {"field": field, "reason": reason}


def pydantic_field_errors(exc) -> list[dict]:
    """Flatten a pydantic ValidationError into [{"field", "reason"}]."""
    fields = []
    for err in exc.errors():
        loc = ".".join(str(part) for part in err.get("loc", ()) if part != "body")
        fields.append(field_error(loc or "body", err.get("msg", "invalid")))
    return fields
