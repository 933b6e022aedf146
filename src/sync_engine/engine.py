"""Three-phase sync run.

SyncEngine runs Phase 1 (mirror), Phase 2 (version control) and Phase 3
(push and reorder) strictly in that order and folds their results into a
RunSummary. Cancellation is honoured only between phases.
"""

import logging
import threading
from datetime import datetime, timezone
from typing import Optional

from src.file_mapper.local_scanner import LocalScanner
from src.file_mapper.manifest_store import ManifestStore
from src.file_mapper.models import SyncConfig
from src.git_integration.vcs_pass import VersionControlPass

from .conflict_detector import REASON_PENDING_PUSH
from .mirror_orchestrator import MirrorOrchestrator
from .models import FileError, MirrorResult, PushResult, RunSummary
from .push_orchestrator import PushOrchestrator
from .signature_store import SignatureStore

logger = logging.getLogger(__name__)


class SyncEngine:
    """Coordinates one sync run against an injected remote store.

    Args:
        store: Remote store handle (list, update, reorder)
        config: Sync configuration
        state_path: Signature state file (default .gas-sync/state.yaml)
        vcs: Version-control pass (default: git with the configured marker)
        dry_run: Report what would change without writing, committing or pushing
        pull_only: Stop after the version-control pass
        cancel_event: When set, remaining phases are skipped

    Example:
        >>> with GASRemoteStore.from_environment() as store:
        ...     summary = SyncEngine(store, config).run()
    """

    def __init__(
        self,
        store,
        config: SyncConfig,
        state_path: Optional[str] = None,
        vcs: Optional[VersionControlPass] = None,
        dry_run: bool = False,
        pull_only: bool = False,
        cancel_event: Optional[threading.Event] = None,
    ):
        self.store = store
        self.config = config
        self.state_path = state_path or SignatureStore.default_path()
        self.vcs = vcs or VersionControlPass(marker=config.vcs_marker)
        self.dry_run = dry_run
        self.pull_only = pull_only
        self.cancel_event = cancel_event or threading.Event()

        self.manifest_store = ManifestStore(config.local_path, config.manifest_file)
        self.scanner = LocalScanner(
            config.local_path,
            manifest_file=config.manifest_file,
            vcs_marker=config.vcs_marker,
            exclude_patterns=config.exclude_patterns,
        )

    def _cancelled(self, summary: RunSummary, next_phase: str) -> bool:
        if self.cancel_event.is_set():
            logger.warning(f"Cancellation requested, skipping {next_phase}")
            summary.cancelled = True
            return True
        return False

    def run(self) -> RunSummary:
        """Run all phases and return the summary.

        Raises:
            StateError: If the signature state file is malformed
            StateFilesystemError: If the state file cannot be read or written
            InvalidCredentialsError: If the remote rejects the credentials
        """
        state = SignatureStore.load(self.state_path)
        summary = RunSummary(dry_run=self.dry_run)

        if self._cancelled(summary, "mirror phase"):
            return summary

        logger.info("Phase 1: mirroring remote project")
        mirror = MirrorOrchestrator(
            self.store,
            self.config.project_id,
            self.config.local_path,
            self.manifest_store,
            state.signatures,
            dry_run=self.dry_run,
        ).run()
        self._apply_mirror(summary, mirror)
        self._save_state(state)

        if self._cancelled(summary, "version control pass"):
            return summary

        held_back = None
        if self.dry_run:
            logger.info("Phase 2: skipped in dry-run mode")
        else:
            logger.info("Phase 2: version control pass")
            vcs_result = self.vcs.run(self.config.local_path)
            summary.vc_subtrees = len(vcs_result.subtrees)
            summary.vc_failures = [
                FileError(path=path, reason=outcome.detail or "failed")
                for path, outcome in vcs_result.failures.items()
            ]
            held_back = vcs_result.blocking_subtree

        if self.pull_only:
            logger.info("Phase 3: skipped (pull only)")
            return summary

        if self._cancelled(summary, "push phase"):
            return summary

        logger.info("Phase 3: pushing local changes")
        push = PushOrchestrator(
            self.store,
            self.config.project_id,
            self.scanner,
            self.manifest_store,
            state.signatures,
            dry_run=self.dry_run,
            held_back=held_back,
        ).run()
        self._apply_push(summary, push)

        state.last_synced = datetime.now(timezone.utc).isoformat()
        self._save_state(state)
        return summary

    @staticmethod
    def _apply_mirror(summary: RunSummary, mirror: MirrorResult) -> None:
        summary.pulled = len(mirror.written)
        summary.pulled_paths = list(mirror.written)
        for conflict in mirror.conflicts:
            if conflict.reason == REASON_PENDING_PUSH:
                summary.pending_push.append(conflict.path)
            else:
                summary.skipped_conflicts.append(conflict.path)
        summary.errors.extend(f"{e.path}: {e.reason}" for e in mirror.errors)
        if mirror.error:
            summary.errors.append(f"Remote listing failed: {mirror.error}")
            summary.unreachable = mirror.unreachable

    @staticmethod
    def _apply_push(summary: RunSummary, push: PushResult) -> None:
        summary.pushed = len(push.pushed)
        summary.push_failures = list(push.failures)
        summary.reordered = push.reordered
        summary.reorder_warning = push.reorder_warning
        summary.would_push = list(push.dirty) if summary.dry_run else []

    def _save_state(self, state) -> None:
        if not self.dry_run:
            SignatureStore.save(self.state_path, state)
