"""Test fixtures for sync engine tests.

This module provides test fixtures for:
- An in-memory remote store with the list/update/reorder surface
- Git repository fixtures for version-control pass testing
"""

from .fake_remote_store import FakeRemoteStore, code_file, html_file, json_file
from .git_test_repos import empty_git_repo, git_available

__all__ = [
    'FakeRemoteStore',
    'code_file',
    'html_file',
    'json_file',
    'empty_git_repo',
    'git_available',
]
