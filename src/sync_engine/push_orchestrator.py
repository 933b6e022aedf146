"""Phase 3: push local changes and restore the execution order.

The phase has two independent halves. The content push submits every dirty
file in one batched update. The reorder step then brings the remote
execution order in line with the order manifest, regenerating the manifest
first when the remote file count no longer matches it. Ordering is
best-effort: every problem there becomes a warning, never a failed push.
"""

import logging
from typing import Callable, Dict, List, Optional, Set, Tuple

from src.file_mapper.errors import (
    FilesystemError,
    ManifestUnreadableError,
    UnsupportedFileTypeError,
)
from src.file_mapper.local_scanner import LocalScanner
from src.file_mapper.manifest_store import ManifestStore
from src.file_mapper.models import LocalFile, OrderManifest
from src.file_mapper.module_wrapper import wrap_for_remote
from src.file_mapper.path_translator import PathTranslator
from src.gas_client.errors import InvalidCredentialsError, ReorderRejectedError, SyncError
from src.gas_client.remote_store import check_permutation
from src.models.remote_file import RemoteFile, sort_by_position

from .change_detector import ChangeDetector
from .models import FileError, PushResult
from .signature_store import compute_signature

logger = logging.getLogger(__name__)


class PushOrchestrator:
    """Pushes dirty local files, then reorders the remote project.

    Signatures of files the remote confirmed are updated in place. Files for
    which held_back names a subtree (one left with an unresolved merge) are
    reported as failures instead of being pushed.

    Example:
        >>> push = PushOrchestrator(store, "1AbC...", scanner, manifest_store, state.signatures)
        >>> result = push.run()
        >>> if result.reorder_warning:
        ...     print(result.reorder_warning)
    """

    def __init__(
        self,
        store,
        project_id: str,
        scanner: LocalScanner,
        manifest_store: ManifestStore,
        signatures: Dict[str, str],
        dry_run: bool = False,
        held_back: Optional[Callable[[str], Optional[str]]] = None,
    ):
        self.store = store
        self.project_id = project_id
        self.scanner = scanner
        self.manifest_store = manifest_store
        self.signatures = signatures
        self.dry_run = dry_run
        self.held_back = held_back
        self.local_paths: Dict[str, str] = {}

    def run(self) -> PushResult:
        """Run the push phase.

        Raises:
            InvalidCredentialsError: If the remote rejects the credentials
        """
        result = PushResult()

        local_files = list(self.scanner.scan())
        self.local_paths = self._paths_by_name(local_files)
        dirty = ChangeDetector(self.signatures).find_dirty(local_files)
        result.dirty = [f.path for f in dirty]

        if self.dry_run:
            for path in result.dirty:
                logger.info(f"[dry-run] Would push {path}")
            return result

        dirty = self._without_held_back(dirty, result)
        if dirty:
            self._push(dirty, result)

        self._reorder(result)
        return result

    def _without_held_back(self, dirty: List[LocalFile], result: PushResult) -> List[LocalFile]:
        if self.held_back is None:
            return dirty
        kept = []
        for local_file in dirty:
            subtree = self.held_back(local_file.path)
            if subtree is None:
                kept.append(local_file)
                continue
            logger.warning(f"{local_file.path}: not pushed, unresolved merge in '{subtree}'")
            result.failures.append(FileError(
                path=local_file.path,
                reason=f"unresolved merge in version-controlled subtree '{subtree}'",
            ))
        return kept

    def _build_batch(self, dirty: List[LocalFile], result: PushResult) -> Tuple[Dict[str, LocalFile], List[RemoteFile]]:
        """Translate and wrap dirty files, keyed by remote identifier."""
        batch: Dict[str, LocalFile] = {}
        payload: List[RemoteFile] = []
        for local_file in dirty:
            try:
                name = PathTranslator.to_remote(local_file.path)
                file_type = PathTranslator.file_type_for(local_file.path)
            except UnsupportedFileTypeError as e:
                result.failures.append(FileError(path=local_file.path, reason=str(e)))
                continue

            if name in batch:
                result.failures.append(FileError(
                    path=local_file.path,
                    reason=f"remote identifier '{name}' already used by {batch[name].path}",
                ))
                continue

            batch[name] = local_file
            payload.append(RemoteFile(
                name=name,
                type=file_type,
                content=wrap_for_remote(local_file.content, name, file_type),
            ))
        return batch, payload

    def _push(self, dirty: List[LocalFile], result: PushResult) -> None:
        batch, payload = self._build_batch(dirty, result)
        if not batch:
            return

        logger.info(f"Pushing {len(batch)} file(s) to project {self.project_id}")
        try:
            applied = self.store.update(self.project_id, payload)
        except InvalidCredentialsError:
            raise
        except SyncError as e:
            logger.error(f"Update call failed: {e}")
            for local_file in batch.values():
                result.failures.append(FileError(path=local_file.path, reason=str(e)))
            return

        applied_names: Set[str] = {f.name for f in applied}
        for name, local_file in batch.items():
            if name in applied_names:
                result.pushed.append(local_file.path)
                self.signatures[local_file.path] = compute_signature(local_file.content)
            else:
                logger.warning(f"{local_file.path}: not applied by the remote")
                result.failures.append(FileError(path=local_file.path, reason="not applied by the remote"))

    def _reorder(self, result: PushResult) -> None:
        try:
            manifest = self.manifest_store.load()
        except ManifestUnreadableError as e:
            self._warn(result, f"Order manifest unreadable, skipping reorder: {e.reason}")
            return
        if manifest is None:
            self._warn(result, "No order manifest, skipping reorder")
            return

        try:
            current = self.store.list(self.project_id)
        except InvalidCredentialsError:
            raise
        except SyncError as e:
            self._warn(result, f"Could not list remote files for reorder: {e}")
            return

        # Files without a local extension never appear in the manifest
        ordered = [f for f in current if f.type in PathTranslator.CANONICAL_EXTENSIONS]
        if len(ordered) != len(manifest.file_push_order):
            manifest = self._regenerate(manifest, ordered, result)

        try:
            identifiers = [PathTranslator.to_remote(path) for path in manifest.file_push_order]
        except UnsupportedFileTypeError as e:
            self._warn(result, f"Order manifest has an untranslatable entry, skipping reorder: {e}")
            return

        try:
            check_permutation(self.project_id, [f.name for f in ordered], identifiers)
        except ReorderRejectedError as e:
            self._warn(result, f"Order manifest does not match the remote file set, skipping reorder: {e}")
            return

        identifiers = self._with_fixed_positions(current, identifiers)

        try:
            self.store.reorder(self.project_id, identifiers)
        except InvalidCredentialsError:
            raise
        except ReorderRejectedError as e:
            self._warn(result, f"Reorder rejected: {e}")
            return
        except SyncError as e:
            self._warn(result, f"Reorder failed: {e}")
            return

        result.reordered = True
        result.order = identifiers
        logger.info(f"Reordered {len(identifiers)} remote file(s)")

    @staticmethod
    def _with_fixed_positions(current: List[RemoteFile], identifiers: List[str]) -> List[str]:
        """Full order: unsupported files stay in their slots, the rest follow identifiers."""
        manifest_order = iter(identifiers)
        full = []
        for remote_file in sort_by_position(current):
            if remote_file.type in PathTranslator.CANONICAL_EXTENSIONS:
                full.append(next(manifest_order))
            else:
                full.append(remote_file.name)
        return full

    def _regenerate(
        self,
        manifest: OrderManifest,
        current: List[RemoteFile],
        result: PushResult,
    ) -> OrderManifest:
        """Keep entries still present remotely, append new remote files by position."""
        current_names = {f.name for f in current}

        order: List[str] = []
        seen: Set[str] = set()
        for path in manifest.file_push_order:
            name = self._remote_name(path)
            if name is not None and name in current_names and name not in seen:
                order.append(path)
                seen.add(name)

        for remote_file in sort_by_position(current):
            if remote_file.name in seen:
                continue
            local_path = self.local_paths.get(remote_file.name)
            if local_path is None:
                local_path = PathTranslator.to_local(remote_file.name, remote_file.type)
            order.append(local_path)
            seen.add(remote_file.name)

        regenerated = OrderManifest(
            project_id=manifest.project_id,
            root_marker=manifest.root_marker,
            file_push_order=order,
        )
        logger.info(
            f"Remote has {len(current)} orderable file(s), manifest had {len(manifest.file_push_order)}: "
            f"regenerated order with {len(order)} entries"
        )
        try:
            self.manifest_store.save(regenerated)
        except FilesystemError as e:
            logger.warning(f"Failed to save regenerated order manifest: {e}")
        result.manifest_regenerated = True
        return regenerated

    @classmethod
    def _paths_by_name(cls, local_files: List[LocalFile]) -> Dict[str, str]:
        """Local path per remote identifier, the canonical extension winning over aliases."""
        paths: Dict[str, str] = {}
        for local_file in local_files:
            name = cls._remote_name(local_file.path)
            if name is None:
                continue
            canonical = PathTranslator.to_local(name, PathTranslator.file_type_for(local_file.path))
            if name not in paths or local_file.path == canonical:
                paths[name] = local_file.path
        return paths

    @staticmethod
    def _remote_name(path: str) -> Optional[str]:
        try:
            return PathTranslator.to_remote(path)
        except UnsupportedFileTypeError:
            return None

    @staticmethod
    def _warn(result: PushResult, message: str) -> None:
        logger.warning(message)
        result.reorder_warning = message
