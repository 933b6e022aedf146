"""Data models for the three-phase sync run.

Phase results are plain dataclasses; the engine folds them into a
RunSummary that the CLI renders and maps to an exit code.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional


@dataclass
class ConflictRecord:
    """A remote file that was not mirrored because the local copy has edits.

    Produced by the mirror phase for reporting only; never persisted.
    """
    path: str
    reason: str


@dataclass
class FileError:
    """A per-file failure that did not abort its phase."""
    path: str
    reason: str


@dataclass
class MirrorResult:
    """Result of Phase 1 (remote -> local).

    Attributes:
        written: Local paths whose content was written from the remote
        unchanged: Local paths already identical to the remote
        conflicts: Files skipped to preserve local edits
        errors: Per-file failures (translation, write)
        error: Run-level failure of the listing call, if any
        unreachable: Whether that failure was the API being unreachable
        manifest_saved: Whether the order manifest was rebuilt
    """
    written: List[str] = field(default_factory=list)
    unchanged: List[str] = field(default_factory=list)
    conflicts: List[ConflictRecord] = field(default_factory=list)
    errors: List[FileError] = field(default_factory=list)
    error: Optional[str] = None
    unreachable: bool = False
    manifest_saved: bool = False

    @property
    def skipped(self) -> int:
        return len(self.conflicts) + len(self.errors)


@dataclass
class PushResult:
    """Result of Phase 3 (local -> remote, then reorder).

    Attributes:
        dirty: Local paths detected as changed since the last sync
        pushed: Local paths the remote confirmed in its update echo
        failures: Per-file push failures
        reordered: Whether the reorder call succeeded
        reorder_warning: Why reordering was skipped or rejected
        manifest_regenerated: Whether the manifest was rebuilt after the push
        order: Remote identifiers submitted to reorder
    """
    dirty: List[str] = field(default_factory=list)
    pushed: List[str] = field(default_factory=list)
    failures: List[FileError] = field(default_factory=list)
    reordered: bool = False
    reorder_warning: Optional[str] = None
    manifest_regenerated: bool = False
    order: List[str] = field(default_factory=list)


@dataclass
class RunSummary:
    """Structured summary of one sync run.

    Example:
        >>> summary = engine.run()
        >>> print(f"Pulled {summary.pulled}, pushed {summary.pushed}")
    """
    pulled: int = 0
    skipped_conflicts: List[str] = field(default_factory=list)
    pending_push: List[str] = field(default_factory=list)
    vc_subtrees: int = 0
    pushed: int = 0
    push_failures: List[FileError] = field(default_factory=list)
    reordered: bool = False
    reorder_warning: Optional[str] = None
    vc_failures: List[FileError] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    cancelled: bool = False
    unreachable: bool = False
    dry_run: bool = False
    would_push: List[str] = field(default_factory=list)
    pulled_paths: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not (self.push_failures or self.errors)


@dataclass
class SignatureState:
    """Persisted change signatures, one content hash per local path.

    Attributes:
        last_synced: ISO 8601 timestamp of the last completed run
        signatures: Dict mapping local path to content signature
    """
    last_synced: Optional[str] = None
    signatures: Dict[str, str] = field(default_factory=dict)
