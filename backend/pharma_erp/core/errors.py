"""
Typed failures raised by the sales-document services.

Every error carries the HTTP status the API answers with, so routes never
translate them by hand; main.py installs a single handler for ErpError.
"""
from __future__ import annotations

from decimal import Decimal
from typing import Optional

from pharma_erp.core.numeric import format_quantity


class ErpError(Exception):
    status_code: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(ErpError):
    """A form field is missing or out of range. Never reaches the transaction."""

    status_code = 422

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class NotFound(ErpError):
    status_code = 404

    def __init__(self, what: str, item_id: str):
        super().__init__(f"{what} not found: {item_id}")
        self.item_id = item_id


class InsufficientStock(ErpError):
    status_code = 409

    def __init__(self, item_name: str, available: Decimal, required: Decimal):
        super().__init__(
            f"Insufficient stock for {item_name}. "
            f"Available: {format_quantity(available)}, Required: {format_quantity(required)}"
        )
        self.item_name = item_name
        self.available = available
        self.required = required


class TransientConflict(ErpError):
    """Retries exhausted on a contended record. Nothing was committed."""

    status_code = 503

    def __init__(self, attempts: int):
        super().__init__(
            f"Could not save: the records changed concurrently ({attempts} attempts). "
            "Please try again."
        )
        self.attempts = attempts


class DatabaseUnavailable(ErpError):
    status_code = 503

    def __init__(self, reason: str = ""):
        message = "Database unavailable"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class RecordDecodeError(ErpError):
    """A stored record holds a value that cannot be read back as its type."""

    status_code = 500

    def __init__(self, collection: str, record_id: str, field: str, value: object):
        super().__init__(
            f"Corrupt {collection} record {record_id}: field '{field}' = {value!r}"
        )
        self.collection = collection
        self.record_id = record_id
        self.field = field
