"""Version control pass against real git working trees.

Skipped when no git executable is available.
"""

import os
import subprocess

import pytest

from src.file_mapper.module_wrapper import unwrap_module
from src.git_integration.git_repository import DEFAULT_COMMIT_MESSAGE
from src.sync_engine.engine import SyncEngine

from tests.fixtures.fake_remote_store import FakeRemoteStore, code_file
from tests.fixtures.git_test_repos import empty_git_repo, get_commit_count, get_tracked_files, git_available
from tests.helpers.mirror_test_utils import make_config, write_tree

pytestmark = [
    pytest.mark.git,
    pytest.mark.skipif(not git_available(), reason="git executable not available"),
]


@pytest.fixture(autouse=True)
def git_identity(monkeypatch):
    """Commits made by clones and the sync itself need an identity."""
    monkeypatch.setenv("GIT_AUTHOR_NAME", "Test User")
    monkeypatch.setenv("GIT_AUTHOR_EMAIL", "test@example.com")
    monkeypatch.setenv("GIT_COMMITTER_NAME", "Test User")
    monkeypatch.setenv("GIT_COMMITTER_EMAIL", "test@example.com")
    monkeypatch.setenv("GIT_CONFIG_NOSYSTEM", "1")
    monkeypatch.setenv("GIT_CONFIG_GLOBAL", os.devnull)


def _git(cwd, *args):
    return subprocess.run(["git", *args], cwd=cwd, check=True, capture_output=True, text=True).stdout


def _last_message(repo_path):
    return _git(repo_path, "log", "-1", "--format=%s").strip()


@pytest.fixture
def store():
    return FakeRemoteStore(files=[
        code_file("main", "function run() {}\n"),
        code_file("lib/util", "exports.x = 1;\n"),
    ])


def _sync(store, root, tmp_path):
    return SyncEngine(store, make_config(root), state_path=str(tmp_path / "state.yaml")).run()


class TestMirrorCommit:
    """Phase 2 commits what Phase 1 mirrored."""

    def test_mirrored_files_are_committed(self, store, tmp_path):
        with empty_git_repo(tmp_path / "mirror") as root:
            summary = _sync(store, root, tmp_path)

            assert summary.vc_subtrees == 1
            assert summary.vc_failures == []
            assert get_commit_count(root) == 2
            assert _last_message(root) == DEFAULT_COMMIT_MESSAGE
            assert get_tracked_files(root) == [".clasp.json", "lib/util.js", "main.js"]

    def test_unchanged_run_makes_no_commit(self, store, tmp_path):
        with empty_git_repo(tmp_path / "mirror") as root:
            _sync(store, root, tmp_path)
            _sync(store, root, tmp_path)

            assert get_commit_count(root) == 2

    def test_nested_repository_commits_separately(self, store, tmp_path):
        with empty_git_repo(tmp_path / "mirror") as root:
            with empty_git_repo(root / "lib") as nested:
                summary = _sync(store, root, tmp_path)

                assert summary.vc_subtrees == 2
                assert get_tracked_files(nested) == ["util.js"]
                assert "lib/util.js" not in get_tracked_files(root)
                assert ".gitignore" in get_tracked_files(root)
                assert (root / ".gitignore").read_text() == "/lib/\n"


class TestUpstreamRebase:
    """With an upstream configured the mirror commit is rebased onto it."""

    def test_upstream_changes_are_pulled(self, store, tmp_path):
        origin = tmp_path / "origin.git"
        _git(tmp_path, "init", "--bare", str(origin))

        with empty_git_repo(tmp_path / "seed") as seed:
            write_tree(seed, {"README.md": "notes\n"})
            _git(seed, "add", "-A")
            _git(seed, "commit", "-m", "seed")
            _git(seed, "push", str(origin), "HEAD:refs/heads/main")

        root = tmp_path / "mirror"
        _git(tmp_path, "clone", "--branch", "main", str(origin), str(root))

        other = tmp_path / "other"
        _git(tmp_path, "clone", "--branch", "main", str(origin), str(other))
        write_tree(other, {"CHANGELOG.md": "upstream\n"})
        _git(other, "add", "-A")
        _git(other, "commit", "-m", "upstream change")
        _git(other, "push", "origin", "HEAD:main")

        summary = _sync(store, root, tmp_path)

        assert summary.vc_failures == []
        assert (root / "CHANGELOG.md").read_text() == "upstream\n"
        assert _last_message(root) == DEFAULT_COMMIT_MESSAGE
        assert "main.js" in get_tracked_files(root)


class TestRebaseConflict:
    """A pull that cannot be rebased is undone before anything is pushed."""

    def _diverge(self, tmp_path):
        """Mirror A.js, publish it, then edit it both upstream and locally."""
        store = FakeRemoteStore(files=[code_file("A", "var a = 1;\n")])
        origin = tmp_path / "origin.git"
        _git(tmp_path, "init", "--bare", str(origin))
        with empty_git_repo(tmp_path / "seed") as seed:
            write_tree(seed, {"README.md": "notes\n"})
            _git(seed, "add", "-A")
            _git(seed, "commit", "-m", "seed")
            _git(seed, "push", str(origin), "HEAD:refs/heads/main")

        root = tmp_path / "mirror"
        _git(tmp_path, "clone", "--branch", "main", str(origin), str(root))
        _sync(store, root, tmp_path)
        _git(root, "push", "origin", "HEAD:main")

        other = tmp_path / "other"
        _git(tmp_path, "clone", "--branch", "main", str(origin), str(other))
        write_tree(other, {"A.js": "var a = 'teammate';\n"})
        _git(other, "commit", "-am", "teammate edit")
        _git(other, "push", "origin", "HEAD:main")

        write_tree(root, {"A.js": "var a = 'mine';\n"})
        return store, root

    def test_failed_rebase_is_aborted_and_local_edit_pushed(self, tmp_path):
        store, root = self._diverge(tmp_path)

        summary = _sync(store, root, tmp_path)

        assert [f.path for f in summary.vc_failures] == ["."]
        assert "rebase aborted" in summary.vc_failures[0].reason
        assert not (root / ".git" / "rebase-merge").exists()
        assert (root / "A.js").read_text() == "var a = 'mine';\n"
        assert "<<<<<<<" not in store.content_of("A")
        assert unwrap_module(store.content_of("A")) == "var a = 'mine';\n"
        assert summary.push_failures == []

    def test_next_run_is_not_stuck_mid_rebase(self, tmp_path):
        store, root = self._diverge(tmp_path)
        _sync(store, root, tmp_path)

        summary = _sync(store, root, tmp_path)

        assert "Rebase in progress" not in summary.vc_failures[0].reason
        assert summary.push_failures == []
        assert "<<<<<<<" not in store.content_of("A")
