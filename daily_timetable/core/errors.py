"""
Error taxonomy for the timetable service.

Routes translate these into HTTP status codes; the worker logs them.
"""
from __future__ import annotations

import uuid


class TimetableError(Exception):
    """Base class for every error raised by the service layer."""


class InvalidInputError(TimetableError):
    """Malformed request: missing fields, bad status, non-positive slot index."""


class UnauthorizedError(TimetableError):
    """Identity service denied the requester or the role check failed."""


class NotFoundError(TimetableError):
    """Identity service reports that the requester does not exist."""


class ConflictError(TimetableError):
    """Storage-level uniqueness violation not caught by validation."""


class InternalError(TimetableError):
    """Unexpected storage or identity failure."""


class AnnouncementTickError(TimetableError):
    """One or more classes failed during a single announcement tick."""

    def __init__(self, failures: dict[uuid.UUID, Exception]):
        self.failures = failures
        classes = ", ".join(str(class_id) for class_id in failures)
        super().__init__(f"Daily announcement failed for {len(failures)} class(es): {classes}")
