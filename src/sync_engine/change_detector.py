"""Signature-based change detection for the push phase."""

import logging
from typing import Dict, Iterable, List

from src.file_mapper.models import LocalFile

from .signature_store import compute_signature

logger = logging.getLogger(__name__)


class ChangeDetector:
    """Finds local files changed since their last recorded signature.

    A file is dirty when it has no recorded signature or its current
    signature differs from the recorded one.
    """

    def __init__(self, signatures: Dict[str, str]):
        self.signatures = signatures

    def is_dirty(self, local_file: LocalFile) -> bool:
        recorded = self.signatures.get(local_file.path)
        if recorded is None:
            logger.debug(f"{local_file.path}: no recorded signature -> dirty")
            return True
        if compute_signature(local_file.content) != recorded:
            logger.debug(f"{local_file.path}: signature changed -> dirty")
            return True
        return False

    def find_dirty(self, local_files: Iterable[LocalFile]) -> List[LocalFile]:
        dirty = [f for f in local_files if self.is_dirty(f)]
        logger.info(f"Change detection: {len(dirty)} dirty file(s)")
        return dirty
