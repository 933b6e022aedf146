"""Conflict detection for the mirror phase.

An existing local file whose content differs from the incoming remote file
is never overwritten. The signature recorded at the last sync only decides
how the conflict is described:

    local == remote              -> nothing to do
    no recorded signature        -> conflict (never synced)
    local matches signature      -> conflict (remote changed, local copy kept)
    remote matches signature     -> conflict (local edit waiting for the push)
    neither matches              -> conflict (both sides changed)
"""

import logging
from typing import Dict, Optional

from .errors import ConflictDetectedError
from .models import ConflictRecord
from .signature_store import compute_signature

logger = logging.getLogger(__name__)

REASON_UNTRACKED = "local file differs from remote and has never been synced"
REASON_REMOTE_CHANGED = "remote changed since the last sync; delete the local copy to take it"
REASON_PENDING_PUSH = "local edit not yet pushed; remote unchanged since the last sync"
REASON_DIVERGED = "local and remote both changed since the last sync"


class ConflictDetector:
    """Decides whether mirroring a remote file is safe.

    Example:
        >>> detector = ConflictDetector(state.signatures)
        >>> if detector.should_write("main.js", local_content, remote_content):
        ...     write(remote_content)
    """

    def __init__(self, signatures: Optional[Dict[str, str]] = None):
        self.signatures = signatures if signatures is not None else {}

    def should_write(self, path: str, local_content: Optional[str], remote_content: str) -> bool:
        """Return True if the remote content may replace the local copy.

        Only a missing local file is ever replaced, so for an existing copy
        this returns False (identical) or raises.

        Raises:
            ConflictDetectedError: If the local copy differs from the remote
        """
        if local_content is None:
            return True
        if local_content == remote_content:
            return False
        raise ConflictDetectedError(path, self.reason_for(path, local_content, remote_content))

    def reason_for(self, path: str, local_content: str, remote_content: str) -> str:
        recorded = self.signatures.get(path)
        if recorded is None:
            return REASON_UNTRACKED
        if compute_signature(local_content) == recorded:
            logger.debug(f"{path}: remote changed, local copy unchanged since last sync")
            return REASON_REMOTE_CHANGED
        if compute_signature(remote_content) == recorded:
            return REASON_PENDING_PUSH
        return REASON_DIVERGED

    def detect(self, path: str, local_content: str, remote_content: str) -> Optional[ConflictRecord]:
        """Return a ConflictRecord instead of raising."""
        try:
            self.should_write(path, local_content, remote_content)
        except ConflictDetectedError as e:
            return ConflictRecord(path=e.path, reason=e.reason)
        return None
