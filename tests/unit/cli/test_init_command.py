"""Unit tests for cli.init_command module."""

from unittest.mock import MagicMock

import pytest

from src.cli.errors import InitError
from src.cli.init_command import InitCommand
from src.file_mapper.config_loader import ConfigLoader
from src.gas_client.errors import (
    APIAccessError,
    InvalidCredentialsError,
)

from tests.fixtures.fake_remote_store import PROJECT_ID, FakeRemoteStore, code_file


@pytest.fixture
def config_path(tmp_path):
    return str(tmp_path / ".gas-sync" / "config.yaml")


def _command(config_path, store=None):
    store = store or FakeRemoteStore(files=[code_file("main")])
    return InitCommand(store_factory=lambda: store, config_path=config_path)


class TestParseProject:
    """Test cases for InitCommand._parse_project."""

    @pytest.mark.parametrize("project", [
        PROJECT_ID,
        f"  {PROJECT_ID}  ",
        f"https://script.google.com/home/projects/{PROJECT_ID}/edit",
        f"https://script.google.com/d/{PROJECT_ID}/edit?usp=sharing",
    ])
    def test_accepts_id_or_editor_url(self, config_path, project):
        assert _command(config_path)._parse_project(project) == PROJECT_ID

    @pytest.mark.parametrize("project", [
        "",
        "   ",
        "short",
        "has spaces in the middle",
        "https://example.com/no/id/here",
    ])
    def test_rejects_invalid_input(self, config_path, project):
        with pytest.raises(InitError):
            _command(config_path)._parse_project(project)


class TestInitCommandRun:
    """Test cases for InitCommand.run."""

    def test_writes_config_and_creates_folder(self, config_path, tmp_path):
        local = tmp_path / "my-project"

        config = _command(config_path).run(project=PROJECT_ID, local_path=str(local))

        assert local.is_dir()
        assert config.project_id == PROJECT_ID
        assert ConfigLoader.load(config_path) == config

    def test_skips_validation_when_asked(self, config_path, tmp_path):
        store = MagicMock()
        cmd = InitCommand(store_factory=lambda: store, config_path=config_path)

        cmd.run(project=PROJECT_ID, local_path=str(tmp_path / "p"), validate=False)

        store.list.assert_not_called()

    def test_existing_config_is_refused(self, config_path, tmp_path):
        _command(config_path).run(project=PROJECT_ID, local_path=str(tmp_path / "p"))

        with pytest.raises(InitError) as exc_info:
            _command(config_path).run(project=PROJECT_ID, local_path=str(tmp_path / "p"))
        assert "already exists" in str(exc_info.value)

    @pytest.mark.parametrize("error,message", [
        (InvalidCredentialsError("https://script.googleapis.com/v1"), "Authentication failed"),
        (APIAccessError(), "Failed to validate"),
    ])
    def test_validation_failures(self, config_path, tmp_path, error, message):
        store = FakeRemoteStore()
        store.list_error = error

        with pytest.raises(InitError) as exc_info:
            _command(config_path, store).run(project=PROJECT_ID, local_path=str(tmp_path / "p"))

        assert message in str(exc_info.value)
        assert not (tmp_path / ".gas-sync" / "config.yaml").exists()

    def test_unknown_project(self, config_path, tmp_path):
        store = FakeRemoteStore(project_id="0OtherProjectIdXyz")

        with pytest.raises(InitError) as exc_info:
            _command(config_path, store).run(project=PROJECT_ID, local_path=str(tmp_path / "p"))
        assert "not found" in str(exc_info.value)

    def test_local_path_blocked_by_file(self, config_path, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("file")

        with pytest.raises(InitError):
            _command(config_path).run(project=PROJECT_ID, local_path=str(blocker / "p"), validate=False)

    def test_exclude_patterns_are_saved(self, config_path, tmp_path):
        _command(config_path).run(
            project=PROJECT_ID,
            local_path=str(tmp_path / "p"),
            exclude_patterns=["drafts/*"],
        )

        assert ConfigLoader.load(config_path).exclude_patterns == ["drafts/*"]
