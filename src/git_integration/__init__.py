"""Git integration for the version-control pass of a sync run.

This package discovers version-controlled subtrees of the mirror and
reconciles each one with git (stage, commit, rebase onto upstream).
"""

from src.git_integration.errors import GitRepositoryError
from src.git_integration.git_repository import GitRepository
from src.git_integration.models import ReconcileResult, VCSPassResult
from src.git_integration.vcs_pass import VersionControlPass

__all__ = [
    'GitRepositoryError',
    'GitRepository',
    'ReconcileResult',
    'VCSPassResult',
    'VersionControlPass',
]
