"""Data models for remote script files."""

from src.models.remote_file import (
    FileType,
    RemoteFile,
    files_from_api,
    has_dense_positions,
    sort_by_position,
)

__all__ = [
    'FileType',
    'RemoteFile',
    'files_from_api',
    'has_dense_positions',
    'sort_by_position',
]
