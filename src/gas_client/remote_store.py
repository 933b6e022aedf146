"""Remote store handle used by the sync engine.

GASRemoteStore exposes the three operations the reconciliation engine needs
(list, update, reorder) on top of APIWrapper. It is an explicit handle with
its own construction and teardown; the engine receives it by injection so
tests can substitute an in-memory store with the same methods.
"""

import logging
from collections import Counter
from typing import List, Optional

from src.models.remote_file import RemoteFile, files_from_api, has_dense_positions

from .api_wrapper import APIWrapper
from .auth import Authenticator
from .errors import ReorderRejectedError, RemoteListingError

logger = logging.getLogger(__name__)


def check_permutation(project_id: str, current: List[str], identifiers: List[str]) -> None:
    """Verify identifiers is exactly a permutation of current.

    Raises:
        ReorderRejectedError: listing what is missing, unknown or duplicated
    """
    counts = Counter(identifiers)
    duplicates = sorted(name for name, count in counts.items() if count > 1)
    current_set = set(current)
    missing = sorted(current_set - set(identifiers))
    unknown = sorted(set(identifiers) - current_set)
    if duplicates or missing or unknown:
        raise ReorderRejectedError(
            project_id,
            missing=missing,
            unknown=unknown,
            duplicates=duplicates,
        )


class GASRemoteStore:
    """Apps Script project content as a flat, ordered file store.

    The Apps Script API only offers whole-project replacement, so update and
    reorder read the current content and write back a complete file list.

    Example:
        >>> with GASRemoteStore.from_environment() as store:
        ...     files = store.list("1AbCdEfGhIjKlMnOp")
    """

    def __init__(self, api: APIWrapper):
        self._api = api

    @classmethod
    def from_environment(cls, authenticator: Optional[Authenticator] = None) -> 'GASRemoteStore':
        """Build a store whose credentials come from the environment."""
        return cls(APIWrapper(authenticator or Authenticator()))

    def __enter__(self) -> 'GASRemoteStore':
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        """Release the HTTP session."""
        self._api.close()

    def list(self, project_id: str) -> List[RemoteFile]:
        """List all files with positions 0..N-1 in execution order.

        Raises:
            RemoteCallFailedError: If the call fails
            RemoteListingError: If the listing contains duplicate names
        """
        files = files_from_api(self._api.get_content(project_id))
        names = [f.name for f in files]
        if len(set(names)) != len(names):
            raise RemoteListingError(project_id, "duplicate file names")
        if not has_dense_positions(files):
            raise RemoteListingError(project_id, "positions are not contiguous")
        return files

    def update(self, project_id: str, files: List[RemoteFile]) -> List[RemoteFile]:
        """Create or replace the given files, keeping every other file in place.

        Existing files keep their position; new files are appended in the
        order given.

        Returns:
            The submitted files as applied by the remote (matched by name)
        """
        current = self.list(project_id)
        incoming = {f.name: f for f in files}

        merged = []
        for existing in current:
            merged.append(incoming.pop(existing.name, existing))
        for f in files:
            if f.name in incoming:
                merged.append(f)

        echoed = files_from_api(self._api.update_content(project_id, [f.to_api() for f in merged]))
        submitted = {f.name for f in files}
        applied = [f for f in echoed if f.name in submitted]
        logger.info(f"Updated {len(applied)}/{len(files)} files in project {project_id}")
        return applied

    def reorder(self, project_id: str, identifiers: List[str]) -> List[RemoteFile]:
        """Apply a full execution order.

        Raises:
            ReorderRejectedError: If identifiers is not a permutation of the
                current remote identifier set
        """
        current = self.list(project_id)
        check_permutation(project_id, [f.name for f in current], identifiers)

        by_name = {f.name: f for f in current}
        ordered = [by_name[name] for name in identifiers]
        echoed = files_from_api(self._api.update_content(project_id, [f.to_api() for f in ordered]))
        logger.info(f"Reordered {len(echoed)} files in project {project_id}")
        return echoed
