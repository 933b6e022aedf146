"""Three-phase reconciliation between a local mirror and a remote script project.

Phase 1 mirrors remote files locally (preserving local edits), Phase 2 runs
the version-control pass, Phase 3 pushes local changes and restores the
remote execution order from the order manifest.
"""

from .change_detector import ChangeDetector
from .conflict_detector import ConflictDetector
from .engine import SyncEngine
from .errors import (
    SyncEngineError,
    ConflictDetectedError,
    StateError,
    StateFilesystemError,
)
from .mirror_orchestrator import MirrorOrchestrator
from .models import (
    ConflictRecord,
    FileError,
    MirrorResult,
    PushResult,
    RunSummary,
    SignatureState,
)
from .push_orchestrator import PushOrchestrator
from .signature_store import SignatureStore, compute_signature

__all__ = [
    'ChangeDetector',
    'ConflictDetector',
    'SyncEngine',
    'SyncEngineError',
    'ConflictDetectedError',
    'StateError',
    'StateFilesystemError',
    'MirrorOrchestrator',
    'ConflictRecord',
    'FileError',
    'MirrorResult',
    'PushResult',
    'RunSummary',
    'SignatureState',
    'PushOrchestrator',
    'SignatureStore',
    'compute_signature',
]
