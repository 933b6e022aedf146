"""Phase 1: mirror the remote project into the local tree.

Every remote file is written to its translated local path unless a local
copy with different content already exists; those are reported as
conflicts and left untouched. Code files are stored locally without their
module envelope. Afterwards the order manifest is rebuilt from the
listing's positions.
"""

import logging
import os
import posixpath
from typing import Dict, List, Optional

from src.file_mapper.errors import FilesystemError, UnsupportedFileTypeError
from src.file_mapper.manifest_store import ManifestStore
from src.file_mapper.models import OrderManifest
from src.file_mapper.module_wrapper import unwrap_from_remote
from src.file_mapper.path_translator import PathTranslator
from src.gas_client.errors import APIUnreachableError, InvalidCredentialsError, SyncError
from src.models.remote_file import RemoteFile, sort_by_position

from .conflict_detector import ConflictDetector
from .errors import ConflictDetectedError
from .models import ConflictRecord, FileError, MirrorResult
from .signature_store import compute_signature

logger = logging.getLogger(__name__)


class MirrorOrchestrator:
    """Pulls all remote files into the mirror root.

    The signatures dict is updated in place for every file whose local copy
    ends the phase identical to the remote.

    Example:
        >>> mirror = MirrorOrchestrator(store, "1AbC...", "./my-project",
        ...                             ManifestStore("./my-project"), state.signatures)
        >>> result = mirror.run()
        >>> print(f"{len(result.written)} written, {len(result.conflicts)} conflicts")
    """

    def __init__(
        self,
        store,
        project_id: str,
        root: str,
        manifest_store: ManifestStore,
        signatures: Dict[str, str],
        dry_run: bool = False,
    ):
        self.store = store
        self.project_id = project_id
        self.root = root
        self.manifest_store = manifest_store
        self.signatures = signatures
        self.dry_run = dry_run
        self.detector = ConflictDetector(signatures)

    def run(self) -> MirrorResult:
        """Run the mirror phase.

        Raises:
            InvalidCredentialsError: If the remote rejects the credentials
        """
        result = MirrorResult()

        try:
            remote_files = self.store.list(self.project_id)
        except InvalidCredentialsError:
            raise
        except SyncError as e:
            logger.error(f"Failed to list remote project {self.project_id}: {e}")
            result.error = str(e)
            result.unreachable = isinstance(e, APIUnreachableError)
            return result

        logger.info(f"Mirroring {len(remote_files)} remote file(s) into {self.root}")

        for remote_file in remote_files:
            self._mirror_file(remote_file, result)

        if not self.dry_run:
            self._save_manifest(remote_files, result)

        logger.info(
            f"Mirror complete: {len(result.written)} written, "
            f"{len(result.unchanged)} unchanged, {len(result.conflicts)} conflicts, "
            f"{len(result.errors)} errors"
        )
        return result

    def _mirror_file(self, remote_file: RemoteFile, result: MirrorResult) -> None:
        try:
            path = self._local_path(remote_file)
            full_path = self._resolve(path)
        except (UnsupportedFileTypeError, ValueError) as e:
            logger.warning(f"Skipping remote file '{remote_file.name}': {e}")
            result.errors.append(FileError(path=remote_file.name, reason=str(e)))
            return

        content = unwrap_from_remote(remote_file.content, remote_file.name, remote_file.type)

        try:
            local_content = self._read_existing(full_path)
        except FilesystemError as e:
            logger.warning(f"Conflict: {path} - {e}")
            result.conflicts.append(ConflictRecord(path=path, reason=f"local file is unreadable: {e.reason}"))
            return

        if local_content is not None:
            try:
                write = self.detector.should_write(path, local_content, content)
            except ConflictDetectedError as e:
                logger.warning(f"Conflict: {e.path} - {e.reason}")
                result.conflicts.append(ConflictRecord(path=e.path, reason=e.reason))
                return
            if not write:
                logger.debug(f"{path}: already up to date")
                result.unchanged.append(path)
                self._record(path, content)
                return

        if self.dry_run:
            logger.info(f"[dry-run] Would write {path}")
            result.written.append(path)
            return

        try:
            self._write(full_path, content)
        except FilesystemError as e:
            logger.error(str(e))
            result.errors.append(FileError(path=path, reason=str(e)))
            return

        logger.debug(f"Wrote {path}")
        result.written.append(path)
        self._record(path, content)

    def _local_path(self, remote_file: RemoteFile) -> str:
        """Canonical path, or an existing alias file when the canonical one is absent.

        Raises:
            UnsupportedFileTypeError: If the remote type has no local extension
            ValueError: If the remote name would escape the mirror root
        """
        path = PathTranslator.to_local(remote_file.name, remote_file.type)
        if os.path.exists(self._resolve(path)):
            return path
        for alias in PathTranslator.alias_paths(remote_file.name, remote_file.type):
            if os.path.isfile(self._resolve(alias)):
                logger.debug(f"{remote_file.name}: using existing {alias}")
                return alias
        return path

    def _resolve(self, path: str) -> str:
        """Map a translated path to a filesystem path inside the root.

        Raises:
            ValueError: If the remote name would escape the mirror root
        """
        normalized = posixpath.normpath(path)
        if posixpath.isabs(normalized) or normalized == '..' or normalized.startswith('../'):
            raise ValueError(f"path '{path}' escapes the mirror root")
        return os.path.join(self.root, *normalized.split('/'))

    def _record(self, path: str, content: str) -> None:
        if not self.dry_run:
            self.signatures[path] = compute_signature(content)

    @staticmethod
    def _read_existing(full_path: str) -> Optional[str]:
        if not os.path.isfile(full_path):
            return None
        try:
            with open(full_path, 'r', encoding='utf-8', newline='') as f:
                return f.read()
        except (OSError, UnicodeDecodeError) as e:
            raise FilesystemError(full_path, 'read', str(e))

    @staticmethod
    def _write(full_path: str, content: str) -> None:
        try:
            parent = os.path.dirname(full_path)
            if parent:
                os.makedirs(parent, exist_ok=True)
            with open(full_path, 'w', encoding='utf-8', newline='') as f:
                f.write(content)
        except OSError as e:
            raise FilesystemError(full_path, 'write', str(e))

    def _save_manifest(self, remote_files: List[RemoteFile], result: MirrorResult) -> None:
        order = []
        for remote_file in sort_by_position(remote_files):
            try:
                order.append(self._local_path(remote_file))
            except (UnsupportedFileTypeError, ValueError):
                continue

        manifest = OrderManifest(project_id=self.project_id, file_push_order=order)
        try:
            self.manifest_store.save(manifest)
        except FilesystemError as e:
            logger.error(f"Failed to save order manifest: {e}")
            result.errors.append(FileError(path=self.manifest_store.file_name, reason=str(e)))
            return
        result.manifest_saved = True
