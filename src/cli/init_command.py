"""InitCommand for configuration initialization.

This module implements the --init command that binds a remote script
project to a local mirror directory and writes .gas-sync/config.yaml.
"""

import logging
import os
import re
from typing import Callable, List, Optional
from urllib.parse import urlparse

from src.file_mapper.config_loader import ConfigLoader
from src.file_mapper.errors import FilesystemError
from src.file_mapper.models import SyncConfig
from src.gas_client.errors import (
    InvalidCredentialsError,
    ProjectNotFoundError,
    SyncError,
)
from src.gas_client.remote_store import GASRemoteStore
from src.models.remote_file import PROJECT_ID_PATTERN
from .errors import InitError

logger = logging.getLogger(__name__)


class InitCommand:
    """Handles initialization of sync configuration.

    Accepts either a bare script id or an editor URL
    (https://script.google.com/home/projects/<id>/edit), optionally checks
    that the project can be listed, and writes the configuration file.

    Example:
        >>> init = InitCommand()
        >>> init.run(project="1AbCdEfGhIjKlMnOp", local_path="./my-project")
    """

    DEFAULT_CONFIG_PATH = ".gas-sync/config.yaml"

    # /home/projects/<id>/edit or /d/<id>/edit
    EDITOR_URL = re.compile(r'/(?:home/projects|d)/([A-Za-z0-9_-]+)')

    def __init__(
        self,
        store_factory: Optional[Callable[[], GASRemoteStore]] = None,
        config_path: Optional[str] = None,
    ):
        """Initialize the init command.

        Args:
            store_factory: Builds the remote store used for validation
            config_path: Optional config file path (defaults to .gas-sync/config.yaml)
        """
        self.store_factory = store_factory or GASRemoteStore.from_environment
        self.config_path = config_path or self.DEFAULT_CONFIG_PATH

    def _parse_project(self, project: str) -> str:
        """Extract the script id from an id or editor URL.

        Raises:
            InitError: If no valid script id can be found
        """
        if not project or not project.strip():
            raise InitError("Project id cannot be empty")

        project = project.strip()
        if project.startswith(('http://', 'https://')):
            match = self.EDITOR_URL.search(urlparse(project).path)
            if not match:
                raise InitError(
                    f"Cannot find a script id in URL: {project}\n"
                    "Expected https://script.google.com/home/projects/<id>/edit"
                )
            project = match.group(1)

        if not PROJECT_ID_PATTERN.match(project):
            raise InitError(f"Invalid script id: {project}")
        return project

    def _validate_project(self, project_id: str) -> int:
        """List the project to prove it exists and the credentials work.

        Returns:
            Number of remote files

        Raises:
            InitError: If the project cannot be listed
        """
        try:
            with self.store_factory() as store:
                return len(store.list(project_id))
        except InvalidCredentialsError as e:
            raise InitError(
                f"Authentication failed: {e}\n"
                "Check the GAS_ACCESS_TOKEN environment variable"
            )
        except ProjectNotFoundError:
            raise InitError(f"Script project {project_id} not found")
        except SyncError as e:
            raise InitError(f"Failed to validate project {project_id}: {e}")

    def _check_config_exists(self) -> None:
        """Raises InitError if the config file already exists."""
        if os.path.exists(self.config_path):
            raise InitError(
                f"Configuration file already exists at {self.config_path}\n"
                "Please delete it first if you want to reinitialize."
            )

    def _create_directories(self, local_path: str) -> None:
        try:
            os.makedirs(local_path, exist_ok=True)
            logger.info(f"Created local sync directory: {local_path}")
        except OSError as e:
            raise InitError(
                f"Failed to create local directory {local_path}: {str(e)}"
            )

    def run(
        self,
        project: str,
        local_path: str,
        validate: bool = True,
        exclude_patterns: Optional[List[str]] = None,
    ) -> SyncConfig:
        """Run the init command to create sync configuration.

        Args:
            project: Script id or editor URL
            local_path: Mirror root directory
            validate: List the project before writing the configuration
            exclude_patterns: fnmatch patterns stored in the configuration

        Returns:
            The saved SyncConfig

        Raises:
            InitError: If initialization fails at any step
        """
        self._check_config_exists()

        project_id = self._parse_project(project)
        logger.info(f"Parsed project id: {project_id}")

        if validate:
            count = self._validate_project(project_id)
            logger.info(f"Project {project_id} has {count} file(s)")

        local_path = os.path.normpath(local_path)
        self._create_directories(local_path)

        sync_config = SyncConfig(
            project_id=project_id,
            local_path=local_path,
            exclude_patterns=list(exclude_patterns or []),
        )
        try:
            ConfigLoader.save(self.config_path, sync_config)
        except FilesystemError as e:
            raise InitError(f"Failed to save configuration: {str(e)}")

        logger.info(f"Configuration saved to {self.config_path}")
        return sync_config
