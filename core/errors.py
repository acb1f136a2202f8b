"""
Workshop Tracker Exceptions

Errors raised by the status engine and the persistence layer.
"""

from typing import Any, Optional


class WorkshopError(Exception):
    """Base class for workshop tracker errors."""


class MalformedDateError(WorkshopError, ValueError):
    """
    A date field could not be parsed into a calendar date.

    Attributes:
        field: Name of the offending field (e.g. "entry_date", "actions[2].date")
        entry_id: Id of the maintenance entry that owns the field, if known
        value: The raw value that failed to parse
    """

    def __init__(self, field: str, entry_id: Optional[str] = None, value: Any = None):
        self.field = field
        self.entry_id = entry_id
        self.value = value
        where = f" of entry '{entry_id}'" if entry_id is not None else ""
        super().__init__(f"Malformed date in field '{field}'{where}: {value!r}")


class PersistenceError(WorkshopError):
    """A read or write against the workshop database failed."""

    def __init__(self, operation: str, cause: Optional[Exception] = None):
        self.operation = operation
        self.cause = cause
        message = f"Database operation '{operation}' failed"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)
