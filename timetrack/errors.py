"""
Error taxonomy shared by the services and the HTTP layer.

Read paths return None for a simple miss; these exceptions are raised where a
rule is broken or a write cannot complete.
"""
from typing import List, Optional


class TimetrackError(Exception):
    """Base class for every failure the core reports to its callers."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(TimetrackError):
    """Referenced timesheet, employee or token does not exist."""


class UnauthorizedError(TimetrackError):
    """Missing, invalid or revoked session token."""


class ForbiddenError(TimetrackError):
    """Authenticated, but lacking the required role, ownership or editability."""


class ValidationError(TimetrackError):
    def __init__(self, message: str, violations: Optional[List[str]] = None):
        super().__init__(message)
        self.violations = list(violations or [])


class ConflictError(TimetrackError):
    """A unique employee or timesheet key is already taken."""


class StorageError(TimetrackError):
    """The underlying transaction could not complete and was rolled back."""

    def __init__(self, operation: str, message: Optional[str] = None):
        super().__init__(message or f"{operation} failed")
        self.operation = operation
