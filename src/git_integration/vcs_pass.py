"""Phase 2: version-control pass over the mirror tree.

Every directory under the mirror root that contains the VCS marker is
treated as an independent working tree. Each one is reconciled through
GitRepository; failures are collected and never stop the pass.
"""

import logging
import os
from typing import Callable, List, Optional

from src.git_integration.git_repository import GitRepository
from src.git_integration.models import ReconcileResult, VCSPassResult

logger = logging.getLogger(__name__)

# Never searched for nested working trees
SKIPPED_DIRS = {'node_modules', '.idea', '.vscode', '.gas-sync'}


class VersionControlPass:
    """Discovers marked subtrees and reconciles each of them.

    Nested working trees are added to the enclosing tree's .gitignore so the
    parent never records them as embedded repositories.

    Example:
        >>> vcs = VersionControlPass(marker=".git")
        >>> result = vcs.run("./my-project")
        >>> for path, failure in result.failures.items():
        ...     print(path, failure.detail)
    """

    def __init__(
        self,
        marker: str = '.git',
        repository_factory: Callable[[str], GitRepository] = GitRepository,
        commit_message: Optional[str] = None,
    ):
        self.marker = marker
        self.repository_factory = repository_factory
        self.commit_message = commit_message

    def discover(self, root: str) -> List[str]:
        """Return root-relative paths of marked subtrees, parents before children."""
        if not os.path.isdir(root):
            return []

        subtrees = []
        for dirpath, dirnames, filenames in os.walk(root):
            if self.marker in dirnames or self.marker in filenames:
                rel = os.path.relpath(dirpath, root).replace(os.sep, '/')
                subtrees.append(rel)
            dirnames[:] = sorted(
                d for d in dirnames if d != self.marker and d not in SKIPPED_DIRS
            )
        return subtrees

    def run(self, root: str) -> VCSPassResult:
        result = VCSPassResult(subtrees=self.discover(root))
        if not result.subtrees:
            logger.info(f"No '{self.marker}' subtrees under {root}")
            return result

        for subtree in result.subtrees:
            parent = self._enclosing(subtree, result.subtrees)
            if parent is not None:
                self._ignore_nested(root, parent, subtree)

        # Children first so each parent commits after its nested trees settle
        for subtree in sorted(result.subtrees, key=lambda p: p.count('/') + (p != '.'), reverse=True):
            path = os.path.join(root, *subtree.split('/')) if subtree != '.' else root
            try:
                outcome = self.repository_factory(path).reconcile(self.commit_message)
            except Exception as e:
                logger.exception(f"Unexpected error reconciling {subtree}")
                outcome = ReconcileResult(ok=False, detail=str(e), blocked=True)
            result.results[subtree] = outcome
            if not outcome.ok:
                logger.warning(f"Version control failed for {subtree}: {outcome.detail}")

        logger.info(
            f"Version control pass: {len(result.subtrees)} subtree(s), "
            f"{len(result.failures)} failure(s)"
        )
        return result

    @staticmethod
    def _enclosing(subtree: str, subtrees: List[str]) -> Optional[str]:
        """Nearest marked ancestor of subtree, if any."""
        if subtree == '.':
            return None
        best = None
        for candidate in subtrees:
            if candidate == subtree:
                continue
            if candidate == '.' or subtree.startswith(candidate + '/'):
                if best is None or best == '.' or len(candidate) > len(best):
                    best = candidate
        return best

    def _ignore_nested(self, root: str, parent: str, subtree: str) -> None:
        """Append the nested tree to the parent's .gitignore if not listed."""
        relative = subtree if parent == '.' else subtree[len(parent) + 1:]
        entry = f"/{relative}/"
        parent_dir = root if parent == '.' else os.path.join(root, *parent.split('/'))
        gitignore = os.path.join(parent_dir, '.gitignore')

        existing = ''
        try:
            with open(gitignore, 'r', encoding='utf-8') as f:
                existing = f.read()
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning(f"Cannot read {gitignore}: {e}")
            return

        listed = {line.strip() for line in existing.splitlines()}
        if {entry, entry.rstrip('/'), relative, f"{relative}/"} & listed:
            return

        try:
            with open(gitignore, 'a', encoding='utf-8') as f:
                if existing and not existing.endswith('\n'):
                    f.write('\n')
                f.write(f"{entry}\n")
        except OSError as e:
            logger.warning(f"Cannot update {gitignore}: {e}")
            return
        logger.info(f"Added nested repository {entry} to {gitignore}")
