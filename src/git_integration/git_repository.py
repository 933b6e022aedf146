"""Git repository access for version-controlled mirror subtrees.

This module provides the GitRepository class that stages, commits and
reconciles one working tree. It uses subprocess to execute git commands;
merging and rebasing are entirely delegated to git.
"""

import logging
import os
import subprocess
from typing import List, Optional

from src.git_integration.errors import GitRepositoryError
from src.git_integration.models import ReconcileResult

logger = logging.getLogger(__name__)

# Git command timeout in seconds
GIT_TIMEOUT = 10

# Network operations get a longer budget
GIT_NETWORK_TIMEOUT = 60

DEFAULT_COMMIT_MESSAGE = "gas-sync: mirror remote project"


class GitRepository:
    """Manages one git working tree inside the mirror.

    Example:
        >>> repo = GitRepository("./my-project")
        >>> result = repo.reconcile()
        >>> print(result.ok, result.detail)
    """

    def __init__(self, repo_path: str):
        """Initialize git repository manager.

        Args:
            repo_path: Path to the working tree root
        """
        self.repo_path = repo_path
        self._ensure_absolute_path()

    def _ensure_absolute_path(self) -> None:
        """Convert repo_path to absolute path if relative."""
        if not os.path.isabs(self.repo_path):
            self.repo_path = os.path.abspath(self.repo_path)

    def _run(self, args: List[str], timeout: int = GIT_TIMEOUT) -> subprocess.CompletedProcess:
        """Run a git command in the working tree.

        Raises:
            GitRepositoryError: If git is missing or the command times out
        """
        try:
            return subprocess.run(
                ["git", *args],
                cwd=self.repo_path,
                capture_output=True,
                text=True,
                timeout=timeout,
            )
        except subprocess.TimeoutExpired:
            raise GitRepositoryError(
                repo_path=self.repo_path,
                message=f"git {args[0]} timed out after {timeout} seconds",
            )
        except FileNotFoundError:
            raise GitRepositoryError(
                repo_path=self.repo_path,
                message="Git command not found. Please install git.",
            )

    def _check(self, args: List[str], failure: str, timeout: int = GIT_TIMEOUT) -> str:
        result = self._run(args, timeout=timeout)
        if result.returncode != 0:
            raise GitRepositoryError(
                repo_path=self.repo_path,
                message=failure,
                git_output=result.stderr,
            )
        return result.stdout

    def is_repo(self) -> bool:
        """Check whether the path is the top of a git working tree."""
        try:
            result = self._run(["rev-parse", "--show-toplevel"])
        except GitRepositoryError:
            return False
        if result.returncode != 0:
            return False
        return os.path.realpath(result.stdout.strip()) == os.path.realpath(self.repo_path)

    def stage_all(self) -> None:
        """Stage every change in the working tree.

        Raises:
            GitRepositoryError: If git add fails
        """
        self._check(["add", "-A"], "Failed to stage changes")

    def has_staged_changes(self) -> bool:
        """Return True if the index differs from HEAD."""
        result = self._run(["diff", "--cached", "--quiet"])
        if result.returncode == 0:
            return False
        if result.returncode == 1:
            return True
        raise GitRepositoryError(
            repo_path=self.repo_path,
            message="Failed to inspect staged changes",
            git_output=result.stderr,
        )

    def commit(self, message: str = DEFAULT_COMMIT_MESSAGE) -> str:
        """Commit staged changes.

        Returns:
            Commit SHA

        Raises:
            GitRepositoryError: If commit fails
        """
        self._check(["commit", "-m", message], "Failed to commit")
        sha = self._get_head_sha()
        logger.info(f"Committed {self.repo_path}: {sha[:8]}")
        return sha

    def _get_head_sha(self) -> str:
        """Get current HEAD commit SHA.

        Raises:
            GitRepositoryError: If git command fails
        """
        return self._check(["rev-parse", "HEAD"], "Failed to get HEAD SHA").strip()

    def has_upstream(self) -> bool:
        """Return True if the current branch tracks an upstream branch."""
        result = self._run(["rev-parse", "--abbrev-ref", "--symbolic-full-name", "@{u}"])
        return result.returncode == 0 and bool(result.stdout.strip())

    def pull_rebase(self) -> None:
        """Rebase local commits onto the upstream branch.

        Raises:
            GitRepositoryError: If the pull fails (including rebase conflicts)
        """
        self._check(
            ["pull", "--rebase", "--autostash"],
            "Failed to pull --rebase from upstream",
            timeout=GIT_NETWORK_TIMEOUT,
        )

    def is_rebasing(self) -> bool:
        """Return True if a rebase is stopped in this working tree."""
        for state_dir in ("rebase-merge", "rebase-apply"):
            result = self._run(["rev-parse", "--git-path", state_dir])
            path = result.stdout.strip()
            if result.returncode == 0 and path and os.path.isdir(os.path.join(self.repo_path, path)):
                return True
        return False

    def abort_rebase(self) -> None:
        """Abandon a stopped rebase, restoring the pre-rebase commit.

        Raises:
            GitRepositoryError: If git rebase --abort fails
        """
        self._check(["rebase", "--abort"], "Failed to abort rebase")
        logger.info(f"Aborted rebase in {self.repo_path}")

    def unmerged_paths(self) -> List[str]:
        """Paths with unresolved merge conflicts, relative to the working tree."""
        output = self._check(["diff", "--name-only", "--diff-filter=U"], "Failed to list unmerged paths")
        return [line.strip() for line in output.splitlines() if line.strip()]

    def is_blocked(self) -> bool:
        """True if the tree is mid-rebase or holds unmerged paths.

        A tree whose state cannot be read counts as blocked.
        """
        try:
            return self.is_rebasing() or bool(self.unmerged_paths())
        except GitRepositoryError as e:
            logger.warning(f"Cannot inspect merge state of {self.repo_path}: {e}")
            return True

    @staticmethod
    def _describe(error: GitRepositoryError) -> str:
        detail = error.message
        if error.git_output.strip():
            detail += f": {error.git_output.strip().splitlines()[-1]}"
        return detail

    def _recover_from_pull(self, error: GitRepositoryError, committed: bool) -> ReconcileResult:
        """Undo a rebase the pull left stopped; the failure is still reported."""
        logger.warning(f"{error}\n{error.git_output}".rstrip())
        detail = self._describe(error)
        try:
            if self.is_rebasing():
                self.abort_rebase()
                detail += " (rebase aborted)"
        except GitRepositoryError as abort_error:
            logger.error(f"{abort_error}\n{abort_error.git_output}".rstrip())
            detail += f"; {abort_error.message}"
        return ReconcileResult(ok=False, detail=detail, committed=committed, blocked=self.is_blocked())

    def reconcile(self, message: Optional[str] = None) -> ReconcileResult:
        """Stage, commit if needed, and rebase onto upstream if one is configured.

        A tree already mid-rebase is reported without being staged. Never
        raises; failures are reported on the result.
        """
        committed = False
        try:
            if self.is_rebasing():
                logger.warning(f"Rebase in progress in {self.repo_path}, not staging")
                return ReconcileResult(
                    ok=False,
                    detail="Rebase in progress; finish or abort it before syncing",
                    blocked=True,
                )

            self.stage_all()
            if self.has_staged_changes():
                self.commit(message or DEFAULT_COMMIT_MESSAGE)
                committed = True

            if self.has_upstream():
                try:
                    self.pull_rebase()
                except GitRepositoryError as e:
                    return self._recover_from_pull(e, committed)
                detail = "committed and rebased onto upstream" if committed else "rebased onto upstream"
            else:
                detail = "committed" if committed else "nothing to commit"
        except GitRepositoryError as e:
            logger.warning(f"{e}\n{e.git_output}".rstrip())
            return ReconcileResult(ok=False, detail=self._describe(e), committed=committed)

        logger.debug(f"Reconciled {self.repo_path}: {detail}")
        return ReconcileResult(ok=True, detail=detail, committed=committed)
