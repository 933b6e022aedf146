"""Typed exception hierarchy for the sync engine.

All exceptions inherit from SyncError so callers can catch every
sync failure in one place.
"""

from typing import Optional

from src.gas_client.errors import SyncError


class SyncEngineError(SyncError):
    """Base exception for sync engine errors."""
    pass


class ConflictDetectedError(SyncEngineError):
    """Raised when mirroring a remote file would overwrite an un-mirrored local edit.

    Non-fatal: the mirror phase turns it into a ConflictRecord and skips the write.
    """

    def __init__(self, path: str, reason: str):
        super().__init__(f"Conflict at {path}: {reason}")
        self.path = path
        self.reason = reason


class StateError(SyncEngineError):
    """Raised when state file validation fails."""

    def __init__(self, message: str, state_field: Optional[str] = None):
        if state_field:
            full_message = f"State error in field '{state_field}': {message}"
        else:
            full_message = f"State error: {message}"
        super().__init__(full_message)
        self.state_field = state_field
        self.original_message = message


class StateFilesystemError(SyncEngineError):
    """Raised when state file filesystem operations fail."""

    def __init__(self, file_path: str, operation: str, reason: Optional[str] = None):
        message = f"State file operation '{operation}' failed for {file_path}"
        if reason:
            message += f": {reason}"
        super().__init__(message)
        self.file_path = file_path
        self.operation = operation
        self.reason = reason
