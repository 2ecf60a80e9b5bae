"""
Pathway Errors

Domain exceptions shared by the pipeline, the snapshot service and the API.
"""

from datetime import datetime
from typing import Optional


class PathwayError(Exception):
    """Base class for all Pathway errors."""
    pass


class MalformedRecordError(PathwayError):
    """Raw admission is missing mandatory identity fields."""

    def __init__(self, message: str, record_id: Optional[str] = None, missing: tuple = ()):
        super().__init__(message)
        self.record_id = record_id
        self.missing = tuple(missing)


class NoMarketersConfiguredError(PathwayError):
    """Route grouping was requested without any marketers."""

    reason_code = "no_marketers_configured"


class ExternalFetchError(PathwayError):
    """Upstream admission source is unreachable or returned invalid data."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class InvalidStatusTransitionError(PathwayError):
    """Workflow action would move a patient backwards."""

    def __init__(self, patient_id: str, current: str, target: str):
        super().__init__(f"Patient {patient_id} cannot move from {current} to {target}")
        self.patient_id = patient_id
        self.current = current
        self.target = target


class PatientNotFoundError(PathwayError):
    """No patient with the given id in the current snapshot."""
    pass


class RouteNotFoundError(PathwayError):
    """No route with the given id in the current snapshot."""
    pass


class SnapshotUnavailableError(PathwayError):
    """No successful sync has happened yet."""

    def __init__(self, message: str = "No admission snapshot loaded", last_attempt: Optional[datetime] = None):
        super().__init__(message)
        self.last_attempt = last_attempt
