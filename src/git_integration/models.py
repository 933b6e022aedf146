"""Data models for the version-control pass."""

from dataclasses import dataclass, field
from typing import Dict, List, Optional


@dataclass
class ReconcileResult:
    """Outcome of reconciling one version-controlled subtree.

    Attributes:
        ok: Whether staging, committing and pulling all succeeded
        detail: What happened, or why it failed
        committed: Whether a new commit was created
        blocked: Whether the tree was left mid-rebase or with unmerged paths
    """

    ok: bool
    detail: Optional[str] = None
    committed: bool = False
    blocked: bool = False


@dataclass
class VCSPassResult:
    """Result of Phase 2 across every marked subtree.

    Attributes:
        subtrees: Subtree paths relative to the mirror root ('.' for the root)
        results: ReconcileResult per subtree
    """

    subtrees: List[str] = field(default_factory=list)
    results: Dict[str, ReconcileResult] = field(default_factory=dict)

    @property
    def failures(self) -> Dict[str, ReconcileResult]:
        return {path: r for path, r in self.results.items() if not r.ok}

    def owner(self, path: str) -> Optional[str]:
        """Nearest subtree containing the root-relative path, if any."""
        best = None
        for subtree in self.subtrees:
            if subtree == '.' or path.startswith(subtree + '/'):
                if best is None or best == '.' or len(subtree) > len(best):
                    best = subtree
        return best

    def blocking_subtree(self, path: str) -> Optional[str]:
        """The subtree holding path if that subtree is blocked, else None."""
        subtree = self.owner(path)
        if subtree is None:
            return None
        outcome = self.results.get(subtree)
        if outcome is not None and outcome.blocked:
            return subtree
        return None
