"""Typed exception hierarchy for remote store errors.

This module defines all custom exceptions used by the Apps Script client library.
All exceptions inherit from GASError base class for easy catching and
include descriptive messages with context to help with debugging.
"""

from typing import List, Optional


class SyncError(Exception):
    """Base exception for all gas-bidir-sync errors.

    Use this to catch any application-level error from the sync tool.
    """
    pass


class GASError(SyncError):
    """Base exception for all remote store errors."""
    pass


class RemoteCallFailedError(GASError):
    """Raised when a single call to the remote store fails.

    Retries for rate limits happen in the transport before this is raised,
    so callers treat it as an opaque failed outcome for that call.
    """

    def __init__(self, message: str = "Remote call failed", operation: Optional[str] = None):
        super().__init__(message)
        self.operation = operation


class InvalidCredentialsError(RemoteCallFailedError):
    """Raised when the access token is missing, invalid or lacks permission."""

    def __init__(self, endpoint: str, reason: Optional[str] = None):
        message = f"Access token is invalid (endpoint: {endpoint})"
        if reason:
            message += f": {reason}"
        super().__init__(message)
        self.endpoint = endpoint
        self.reason = reason


class ProjectNotFoundError(RemoteCallFailedError):
    """Raised when the requested script project does not exist."""

    def __init__(self, project_id: str):
        super().__init__(f"Project {project_id} not found")
        self.project_id = project_id


class InvalidProjectIdError(RemoteCallFailedError):
    """Raised before a call when the script id could not form a valid request path."""

    def __init__(self, project_id: str, reason: str):
        super().__init__(f"Invalid project_id '{project_id}': {reason}")
        self.project_id = project_id


class APIUnreachableError(RemoteCallFailedError):
    """Raised when the Apps Script API is not available or unreachable."""

    def __init__(self, endpoint: str):
        super().__init__(f"API is not available at {endpoint}")
        self.endpoint = endpoint


class APIAccessError(RemoteCallFailedError):
    """Raised when API access fails after retries or due to access restrictions."""

    def __init__(self, message: str = "Apps Script API failure (after 3 retries)"):
        super().__init__(message)


class ReorderRejectedError(GASError):
    """Raised when a reorder list is not a permutation of the current file set."""

    def __init__(
        self,
        project_id: str,
        missing: Optional[List[str]] = None,
        unknown: Optional[List[str]] = None,
        duplicates: Optional[List[str]] = None,
    ):
        self.project_id = project_id
        self.missing = missing or []
        self.unknown = unknown or []
        self.duplicates = duplicates or []

        details = []
        if self.missing:
            details.append(f"missing {', '.join(self.missing)}")
        if self.unknown:
            details.append(f"unknown {', '.join(self.unknown)}")
        if self.duplicates:
            details.append(f"duplicated {', '.join(self.duplicates)}")
        message = f"Reorder rejected for project {project_id}"
        if details:
            message += f": {'; '.join(details)}"
        super().__init__(message)


class RemoteListingError(GASError):
    """Raised when a listing violates the dense position invariant."""

    def __init__(self, project_id: str, message: str):
        super().__init__(f"Invalid listing for project {project_id}: {message}")
        self.project_id = project_id
