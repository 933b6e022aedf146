"""Typed exception hierarchy for file mapper errors.

This module defines all custom exceptions used by the file mapper library.
All exceptions inherit from FileMapperError base class for easy catching and
include descriptive messages with context to help with debugging.
"""

from typing import Optional

from src.gas_client.errors import SyncError


class FileMapperError(SyncError):
    """Base exception for all file mapper errors."""
    pass


class FilesystemError(FileMapperError):
    """Raised when filesystem operations fail (read, write, permissions, etc)."""

    def __init__(self, file_path: str, operation: str, reason: Optional[str] = None):
        message = f"Filesystem operation '{operation}' failed for {file_path}"
        if reason:
            message += f": {reason}"
        super().__init__(message)
        self.file_path = file_path
        self.operation = operation
        self.reason = reason


class ConfigError(FileMapperError):
    """Raised when configuration validation fails."""

    def __init__(self, message: str, config_field: Optional[str] = None):
        if config_field:
            full_message = f"Configuration error in field '{config_field}': {message}"
        else:
            full_message = f"Configuration error: {message}"
        super().__init__(full_message)
        self.config_field = config_field
        self.original_message = message


class UnsupportedFileTypeError(FileMapperError):
    """Raised when a path or remote type has no registered mapping.

    Fatal to the single file only; orchestrators catch it and continue.
    """

    def __init__(self, subject: str, file_type: Optional[str] = None):
        if file_type:
            message = f"Unsupported file type '{file_type}' for {subject}"
        else:
            message = f"Unsupported file type for {subject}"
        super().__init__(message)
        self.subject = subject
        self.file_type = file_type


class ManifestUnreadableError(FileMapperError):
    """Raised when the order manifest exists but cannot be read or parsed."""

    def __init__(self, manifest_path: str, reason: str):
        super().__init__(f"Order manifest {manifest_path} is unreadable: {reason}")
        self.manifest_path = manifest_path
        self.reason = reason
