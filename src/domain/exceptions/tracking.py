from __future__ import annotations

# PostgREST answers a single-row request that matched nothing with this code.
NO_ROWS_CODE = "PGRST116"


class TrackingError(Exception):
    """Base exception for bus tracking failures."""


class BackendError(TrackingError):
    """A query or write against the hosted backend failed."""

    def __init__(self, message: str, *, code: str | None = None) -> None:
        super().__init__(message)
        self.code = code


class NotFound(BackendError):
    """A single-row query matched no row.

    Expected for e.g. a student without a bus yet; not a user-facing failure.
    """

    def __init__(self, message: str = "No rows found", *, code: str | None = None) -> None:
        super().__init__(message, code=code or NO_ROWS_CODE)


class AssignmentError(TrackingError):
    """Replacing a student's bus assignment did not complete."""

    def __init__(self, message: str, *, removed_previous: bool) -> None:
        super().__init__(message)
        self.removed_previous = removed_previous
