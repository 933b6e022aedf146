"""Data models for file mapper.

This module defines all data models used by the file mapper library.
All models use dataclasses for clean, type-safe data structures.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import List


@dataclass
class LocalFile:
    """A file in the local mirror tree.

    Attributes:
        path: Path relative to the mirror root, '/'-separated, with extension
        content: File content
        modified_at: Last modification time from the filesystem
    """
    path: str
    content: str
    modified_at: datetime


@dataclass
class OrderManifest:
    """Desired remote execution order, persisted at the mirror root.

    Attributes:
        project_id: Remote project the order applies to
        root_marker: Root directory marker recorded with the order
        file_push_order: Local paths in desired execution order
    """
    project_id: str
    root_marker: str = "."
    file_push_order: List[str] = field(default_factory=list)


@dataclass
class SyncConfig:
    """Sync configuration loaded from .gas-sync/config.yaml.

    Attributes:
        project_id: Remote script project id
        local_path: Mirror root directory
        vcs_marker: Directory name marking a version-controlled subtree
        manifest_file: Order manifest file name at the mirror root
        exclude_patterns: fnmatch patterns (relative paths) left out of scans
    """
    project_id: str
    local_path: str
    vcs_marker: str = ".git"
    manifest_file: str = ".clasp.json"
    exclude_patterns: List[str] = field(default_factory=list)
