"""Error taxonomy for ledger operations."""

from __future__ import annotations


class LedgerError(RuntimeError):
    """Base class for failures reported back to ledger callers."""

    status_code = 500
    title = "Ledger error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFound(LedgerError):
    """Raised for an unknown player id or a ledger entry that no longer exists."""

    status_code = 404
    title = "Not found"


class InvalidDelta(LedgerError):
    """Raised for a zero delta, a non-positive count, or a total that would go negative."""

    status_code = 400
    title = "Invalid assists value"


class StorageError(LedgerError):
    """Raised when the underlying store fails; the write was rolled back."""

    status_code = 500
    title = "Database error"


class ConnectivityError(RuntimeError):
    """Raised by the widget client when the API cannot be reached."""


__all__ = [
    "ConnectivityError",
    "InvalidDelta",
    "LedgerError",
    "NotFound",
    "StorageError",
]
