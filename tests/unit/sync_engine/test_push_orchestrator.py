"""Unit tests for sync_engine.push_orchestrator module."""

import json

import pytest

from src.file_mapper.local_scanner import LocalScanner
from src.file_mapper.manifest_store import ManifestStore
from src.file_mapper.models import OrderManifest
from src.file_mapper.module_wrapper import is_wrapped
from src.gas_client.errors import (
    APIAccessError,
    InvalidCredentialsError,
    ReorderRejectedError,
)
from src.models.remote_file import FileType, RemoteFile
from src.sync_engine.push_orchestrator import PushOrchestrator
from src.sync_engine.signature_store import compute_signature

from tests.fixtures.fake_remote_store import PROJECT_ID, FakeRemoteStore, code_file
from tests.helpers.mirror_test_utils import write_tree

SYNCED = {
    "A.js": "var a = 1;\n",
    "B.js": "var b = 1;\n",
    "C.js": "var c = 1;\n",
}


def _signatures(files):
    return {path: compute_signature(content) for path, content in files.items()}


def _push(store, root, signatures, dry_run=False):
    orchestrator = PushOrchestrator(
        store,
        PROJECT_ID,
        LocalScanner(str(root)),
        ManifestStore(str(root)),
        signatures,
        dry_run=dry_run,
    )
    return orchestrator.run()


@pytest.fixture
def store():
    return FakeRemoteStore(files=[
        code_file("A", "var a = 1;\n"),
        code_file("B", "var b = 1;\n"),
        code_file("C", "var c = 1;\n"),
    ])


@pytest.fixture
def synced_tree(tmp_path):
    write_tree(tmp_path, SYNCED)
    ManifestStore(str(tmp_path)).save(
        OrderManifest(project_id=PROJECT_ID, file_push_order=["A.js", "B.js", "C.js"])
    )
    return tmp_path


class TestContentPush:
    """Dirty files go to the remote in one batched update."""

    def test_nothing_dirty_means_no_update(self, store, synced_tree):
        result = _push(store, synced_tree, _signatures(SYNCED))

        assert result.dirty == []
        assert store.update_calls == []
        assert result.reordered is True

    def test_edited_file_is_pushed_wrapped(self, store, synced_tree):
        write_tree(synced_tree, {"B.js": "var b = 2;\n"})
        signatures = _signatures(SYNCED)

        result = _push(store, synced_tree, signatures)

        assert len(store.update_calls) == 1
        batch = store.update_calls[0]
        assert [f.name for f in batch] == ["B"]
        assert is_wrapped(batch[0].content)
        assert "__defineModule__(_main, 'B');" in batch[0].content
        assert result.pushed == ["B.js"]
        assert signatures["B.js"] == compute_signature("var b = 2;\n")

    def test_html_and_manifest_are_not_wrapped(self, store, synced_tree):
        write_tree(synced_tree, {"ui/page.html": "<p>hi</p>\n", "appsscript.json": "{}\n"})

        _push(store, synced_tree, _signatures(SYNCED))

        batch = {f.name: f for f in store.update_calls[0]}
        assert batch["ui/page"].content == "<p>hi</p>\n"
        assert batch["appsscript"].content == "{}\n"

    def test_colliding_remote_identifiers_fail_one_file(self, store, synced_tree):
        write_tree(synced_tree, {"D.js": "var d;\n", "D.gs": "var d2;\n"})

        result = _push(store, synced_tree, _signatures(SYNCED))

        assert [f.name for f in store.update_calls[0]] == ["D"]
        assert len(result.failures) == 1
        assert "already used" in result.failures[0].reason

    def test_update_failure_marks_batch_failed(self, store, synced_tree):
        write_tree(synced_tree, {"B.js": "var b = 2;\n", "D.js": "var d;\n"})
        store.update_error = APIAccessError()
        signatures = _signatures(SYNCED)

        result = _push(store, synced_tree, signatures)

        assert sorted(f.path for f in result.failures) == ["B.js", "D.js"]
        assert result.pushed == []
        assert signatures["B.js"] == compute_signature(SYNCED["B.js"])

    def test_files_not_echoed_are_failures(self, store, synced_tree):
        write_tree(synced_tree, {"B.js": "var b = 2;\n", "D.js": "var d;\n"})
        store.dropped_on_update = {"D"}
        signatures = _signatures(SYNCED)

        result = _push(store, synced_tree, signatures)

        assert result.pushed == ["B.js"]
        assert [(f.path, f.reason) for f in result.failures] == [("D.js", "not applied by the remote")]
        assert "D.js" not in signatures

    def test_invalid_credentials_propagate(self, store, synced_tree):
        write_tree(synced_tree, {"B.js": "var b = 2;\n"})
        store.update_error = InvalidCredentialsError("https://script.googleapis.com/v1")

        with pytest.raises(InvalidCredentialsError):
            _push(store, synced_tree, _signatures(SYNCED))


class TestReorder:
    """The manifest order is applied after the content push."""

    def test_new_file_regenerates_manifest_and_reorders(self, store, synced_tree):
        write_tree(synced_tree, {"D.js": "var d = 1;\n"})

        result = _push(store, synced_tree, _signatures(SYNCED))

        assert [[f.name for f in call] for call in store.update_calls] == [["D"]]
        assert result.manifest_regenerated is True
        data = json.loads((synced_tree / ".clasp.json").read_text())
        assert data["filePushOrder"] == ["A.js", "B.js", "C.js", "D.js"]
        assert store.reorder_calls == [["A", "B", "C", "D"]]
        assert result.order == ["A", "B", "C", "D"]

    def test_manifest_order_is_restored(self, store, synced_tree):
        ManifestStore(str(synced_tree)).save(
            OrderManifest(project_id=PROJECT_ID, file_push_order=["C.js", "A.js", "B.js"])
        )

        result = _push(store, synced_tree, _signatures(SYNCED))

        assert result.manifest_regenerated is False
        assert store.names == ["C", "A", "B"]

    def test_missing_manifest_skips_reorder(self, store, tmp_path):
        write_tree(tmp_path, SYNCED)

        result = _push(store, tmp_path, _signatures(SYNCED))

        assert result.reordered is False
        assert "No order manifest" in result.reorder_warning
        assert store.reorder_calls == []

    def test_corrupt_manifest_still_pushes(self, store, synced_tree):
        (synced_tree / ".clasp.json").write_text("{corrupt")
        write_tree(synced_tree, {"B.js": "var b = 2;\n"})

        result = _push(store, synced_tree, _signatures(SYNCED))

        assert result.pushed == ["B.js"]
        assert result.reordered is False
        assert "unreadable" in result.reorder_warning
        assert store.reorder_calls == []

    def test_non_permutation_manifest_skips_reorder(self, store, synced_tree):
        ManifestStore(str(synced_tree)).save(
            OrderManifest(project_id=PROJECT_ID, file_push_order=["A.js", "A.js", "B.js"])
        )

        result = _push(store, synced_tree, _signatures(SYNCED))

        assert result.reordered is False
        assert "does not match" in result.reorder_warning
        assert store.reorder_calls == []

    def test_rejected_reorder_is_a_warning(self, store, synced_tree):
        write_tree(synced_tree, {"B.js": "var b = 2;\n"})
        store.reorder_error = ReorderRejectedError(PROJECT_ID, missing=["C"])

        result = _push(store, synced_tree, _signatures(SYNCED))

        assert result.pushed == ["B.js"]
        assert result.failures == []
        assert result.reordered is False
        assert "Reorder rejected" in result.reorder_warning

    def test_listing_failure_before_reorder_is_a_warning(self, store, synced_tree):
        store.list_error = APIAccessError()

        result = _push(store, synced_tree, _signatures(SYNCED))

        assert result.reordered is False
        assert "Could not list" in result.reorder_warning

    def test_remote_only_files_are_appended_on_regeneration(self, synced_tree):
        store = FakeRemoteStore(files=[
            code_file("X", "var x;\n"),
            code_file("A", "var a = 1;\n"),
            code_file("B", "var b = 1;\n"),
            code_file("C", "var c = 1;\n"),
        ])

        result = _push(store, synced_tree, _signatures(SYNCED))

        assert result.manifest_regenerated is True
        assert store.reorder_calls == [["A", "B", "C", "X"]]

    def test_stale_entries_are_dropped_on_regeneration(self, synced_tree):
        store = FakeRemoteStore(files=[code_file("A", "var a = 1;\n"), code_file("C", "var c = 1;\n")])
        (synced_tree / "B.js").unlink()

        result = _push(store, synced_tree, _signatures(SYNCED))

        assert result.manifest_regenerated is True
        assert store.reorder_calls == [["A", "C"]]

    def test_unsupported_remote_file_keeps_its_slot(self, synced_tree):
        store = FakeRemoteStore(files=[
            code_file("B", "var b = 1;\n"),
            RemoteFile(name="legacy", type=FileType.UNSUPPORTED, content="x", raw_type="OTHER"),
            code_file("A", "var a = 1;\n"),
            code_file("C", "var c = 1;\n"),
        ])

        result = _push(store, synced_tree, _signatures(SYNCED))

        assert result.reorder_warning is None
        assert result.manifest_regenerated is False
        assert store.reorder_calls == [["A", "legacy", "B", "C"]]
        assert result.order == ["A", "legacy", "B", "C"]

    def test_regeneration_uses_existing_alias_path(self, store, synced_tree):
        write_tree(synced_tree, {"D.gs": "var d;\n"})

        result = _push(store, synced_tree, _signatures(SYNCED))

        assert result.pushed == ["D.gs"]
        assert result.manifest_regenerated is True
        assert ManifestStore(str(synced_tree)).load().file_push_order == ["A.js", "B.js", "C.js", "D.gs"]
        assert store.reorder_calls == [["A", "B", "C", "D"]]


class TestDryRun:
    """Dry run lists dirty files and touches nothing."""

    def test_reports_dirty_only(self, store, synced_tree):
        write_tree(synced_tree, {"B.js": "var b = 2;\n", "D.js": "var d;\n"})

        result = _push(store, synced_tree, _signatures(SYNCED), dry_run=True)

        assert result.dirty == ["B.js", "D.js"]
        assert store.update_calls == []
        assert store.reorder_calls == []
        assert store.list_calls == 0
