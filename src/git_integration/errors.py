"""Typed exception hierarchy for git integration errors.

All exceptions inherit from SyncError and include the repository path
and git output to help with debugging.
"""

from src.gas_client.errors import SyncError


class GitRepositoryError(SyncError):
    """Raised when git repository operations fail.

    Attributes:
        repo_path: Path to git repository
        message: Error description
        git_output: Git command stderr output
    """

    def __init__(self, repo_path: str, message: str, git_output: str = ""):
        super().__init__(f"Git repository error at {repo_path}: {message}")
        self.repo_path = repo_path
        self.message = message
        self.git_output = git_output
