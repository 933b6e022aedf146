"""Local mirror tree scanning.

Walks the mirror root and yields the files that take part in sync, skipping
version-control metadata, the order manifest, editor/dependency directories
and anything whose extension has no remote file type.
"""

import fnmatch
import logging
import os
from datetime import datetime
from typing import Iterator, List, Optional

from .errors import FilesystemError
from .models import LocalFile
from .path_translator import PathTranslator

logger = logging.getLogger(__name__)

# Maximum file size to read (10 MB)
MAX_FILE_SIZE = 10 * 1024 * 1024

EXCLUDED_DIRS = {'.git', 'node_modules', '.idea', '.vscode', '.gas-sync'}

EXCLUDED_FILES = {'.clasp.json', '.claspignore', '.gitignore'}

# The only JSON file that is pushed is the project manifest at the root
REMOTE_MANIFEST_PATH = 'appsscript.json'


class LocalScanner:
    """Enumerates syncable files under a mirror root.

    Example:
        >>> scanner = LocalScanner("./my-project", manifest_file=".clasp.json")
        >>> for local_file in scanner.scan():
        ...     print(local_file.path)
    """

    def __init__(
        self,
        root: str,
        manifest_file: str = '.clasp.json',
        vcs_marker: str = '.git',
        exclude_patterns: Optional[List[str]] = None,
    ):
        self.root = root
        self.manifest_file = manifest_file
        self.excluded_dirs = EXCLUDED_DIRS | {vcs_marker}
        self.excluded_files = EXCLUDED_FILES | {manifest_file}
        self.exclude_patterns = list(exclude_patterns or [])

    def is_syncable(self, rel_path: str) -> bool:
        """Decide whether a root-relative path takes part in sync."""
        rel_path = PathTranslator.normalize(rel_path)
        parts = rel_path.split('/')
        if any(part in self.excluded_dirs for part in parts[:-1]):
            return False
        if parts[-1] in self.excluded_files or rel_path == self.manifest_file:
            return False
        if any(fnmatch.fnmatch(rel_path, pattern) for pattern in self.exclude_patterns):
            return False
        if not PathTranslator.is_supported(rel_path):
            return False
        if rel_path.lower().endswith('.json') and rel_path != REMOTE_MANIFEST_PATH:
            return False
        return True

    def scan(self) -> Iterator[LocalFile]:
        """Yield LocalFile entries in a stable (sorted) order.

        Unreadable files are logged and skipped.

        Raises:
            FilesystemError: If the root exists but is not a directory
        """
        if not os.path.exists(self.root):
            logger.info(f"Local path {self.root} does not exist - treating as empty")
            return

        if not os.path.isdir(self.root):
            raise FilesystemError(self.root, 'read', 'Path exists but is not a directory')

        for dirpath, dirnames, filenames in os.walk(self.root):
            dirnames[:] = sorted(d for d in dirnames if d not in self.excluded_dirs)
            for filename in sorted(filenames):
                full_path = os.path.join(dirpath, filename)
                rel_path = PathTranslator.normalize(os.path.relpath(full_path, self.root))
                if not self.is_syncable(rel_path):
                    continue
                try:
                    yield self.read(rel_path)
                except FilesystemError as e:
                    logger.warning(f"{e} - skipping")

    def read(self, rel_path: str) -> LocalFile:
        """Read one file relative to the root.

        Raises:
            FilesystemError: If the file is too large or cannot be read
        """
        full_path = os.path.join(self.root, *rel_path.split('/'))
        try:
            stat = os.stat(full_path)
            if stat.st_size > MAX_FILE_SIZE:
                raise FilesystemError(
                    full_path,
                    'read',
                    f"File size ({stat.st_size} bytes) exceeds maximum allowed size"
                )
            with open(full_path, 'r', encoding='utf-8', newline='') as f:
                content = f.read()
        except FilesystemError:
            raise
        except (OSError, UnicodeDecodeError) as e:
            raise FilesystemError(full_path, 'read', str(e))

        return LocalFile(
            path=rel_path,
            content=content,
            modified_at=datetime.fromtimestamp(stat.st_mtime),
        )
