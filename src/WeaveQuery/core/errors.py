"""Exceptions raised by WeaveQuery.

Only hard failures are exceptions. Lookups that miss, stale document versions
and gateway failures during a search are reported as `None` or an empty list.
"""

from __future__ import annotations


class WeaveQueryError(RuntimeError):
    """Base class for all WeaveQuery errors."""


class InvalidStateError(WeaveQueryError):
    """Raised when a filter is set before a valid search kind was chosen."""


class InvalidQueryError(WeaveQueryError):
    """Raised when the current search state cannot be rendered into a query."""


class ValidationError(WeaveQueryError, ValueError):
    """Raised when a document does not match its schema.

    Attributes:
        field: Name of the offending field, or None when several are missing.
    """

    def __init__(self, message: str, *, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field


class GatewayError(WeaveQueryError):
    """Raised by the gateway client when a request fails.

    Attributes:
        status_code: HTTP status code when the gateway answered at all.
    """

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
