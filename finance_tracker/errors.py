"""Exception types raised by the finance tracker."""

from __future__ import annotations

from typing import Any, Dict, Optional


class FinanceTrackerError(Exception):
    """Base class for all finance tracker errors."""


class ValidationError(FinanceTrackerError, ValueError):
    """Input rejected at the form or store boundary.

    ``errors`` maps field names to a human readable message so callers can
    show every problem at once.
    """

    def __init__(self, message: str, errors: Optional[Dict[str, str]] = None):
        super().__init__(message)
        self.errors: Dict[str, str] = dict(errors or {})


class NotFoundError(FinanceTrackerError, LookupError):
    """A store operation referenced an id that does not exist."""

    def __init__(self, entity: str, record_id: Any):
        super().__init__(f"{entity} {record_id} not found")
        self.entity = entity
        self.record_id = record_id


class TransportError(FinanceTrackerError):
    """Store I/O failed (database, file system or remote service)."""
