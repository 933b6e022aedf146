"""Apps Script client library for bidirectional sync.

This package provides Python abstractions over the Apps Script REST API v1
project content endpoints, exposed to the sync engine as a RemoteStore handle.
"""

from .errors import (
    SyncError,
    GASError,
    RemoteCallFailedError,
    InvalidCredentialsError,
    InvalidProjectIdError,
    ProjectNotFoundError,
    APIUnreachableError,
    APIAccessError,
    ReorderRejectedError,
    RemoteListingError,
)
from .remote_store import GASRemoteStore, check_permutation

__all__ = [
    "SyncError",
    "GASError",
    "RemoteCallFailedError",
    "InvalidCredentialsError",
    "InvalidProjectIdError",
    "ProjectNotFoundError",
    "APIUnreachableError",
    "APIAccessError",
    "ReorderRejectedError",
    "RemoteListingError",
    "GASRemoteStore",
    "check_permutation",
]
