"""Domain error taxonomy for the scheduling engine.

Every error carries the HTTP status and the ``error_kind`` used in the
``{status_code, error_kind, message}`` envelope rendered by the API layer.
"""
from __future__ import annotations

from typing import Any


class ScheduleError(Exception):
    status_code = 400
    error_kind = "ScheduleError"

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(message)
        self.message = message
        self.context = context


class InvalidArgument(ScheduleError):
    status_code = 400
    error_kind = "InvalidArgument"


class InvalidRange(InvalidArgument):
    """start_time is not strictly before end_time."""


class Overlap(ScheduleError):
    status_code = 409
    error_kind = "Overlap"


class InvalidTransition(ScheduleError):
    status_code = 409
    error_kind = "InvalidTransition"


class NotFound(ScheduleError):
    # Unknown ids and ids owned by another user are reported the same way.
    status_code = 404
    error_kind = "NotFound"


class ConcurrentModification(ScheduleError):
    status_code = 409
    error_kind = "ConcurrentModification"


class OperationCancelled(ScheduleError):
    status_code = 503
    error_kind = "OperationCancelled"
