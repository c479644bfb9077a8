from .tracking import (
    NO_ROWS_CODE,
    AssignmentError,
    BackendError,
    NotFound,
    TrackingError,
)

__all__ = [
    "NO_ROWS_CODE",
    "AssignmentError",
    "BackendError",
    "NotFound",
    "TrackingError",
]
