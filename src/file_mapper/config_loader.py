"""YAML configuration loading and validation.

A configuration binds one remote script project to one local mirror root:

    project_id: "1AbCdEfGhIjKlMnOp"
    local_path: "./my-project"
    vcs_marker: ".git"
    manifest_file: ".clasp.json"
    exclude_patterns: ["drafts/*"]
"""

import os
from typing import Any, Dict, List

import yaml

from src.models.remote_file import PROJECT_ID_PATTERN

from .errors import ConfigError, FilesystemError
from .models import SyncConfig


class ConfigLoader:
    """Loads, validates and saves SyncConfig as YAML."""

    DEFAULT_CONFIG_PATH = '.gas-sync/config.yaml'

    REQUIRED_FIELDS = ('project_id', 'local_path')

    # Optional string fields and their defaults
    DEFAULTS = {
        'vcs_marker': '.git',
        'manifest_file': '.clasp.json',
    }

    # Fields naming a single entry at the mirror root
    PLAIN_NAMES = ('vcs_marker', 'manifest_file')

    @classmethod
    def load(cls, config_path: str) -> SyncConfig:
        """Load and validate a configuration file.

        Raises:
            FilesystemError: If file cannot be read
            ConfigError: If configuration is invalid or malformed
        """
        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                content = f.read()
        except FileNotFoundError:
            raise FilesystemError(config_path, 'read', 'Configuration file not found')
        except OSError as e:
            raise FilesystemError(config_path, 'read', e.strerror or str(e))

        try:
            data = yaml.safe_load(content)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML syntax: {e}")

        if data is None:
            raise ConfigError("Configuration file is empty")
        if not isinstance(data, dict):
            raise ConfigError(
                f"Configuration must be a YAML dictionary, got {type(data).__name__}"
            )
        return cls._parse_config(data)

    @classmethod
    def save(cls, config_path: str, sync_config: SyncConfig) -> None:
        """Write the configuration, creating its directory if needed.

        Raises:
            FilesystemError: If file cannot be written
        """
        data: Dict[str, Any] = {
            'project_id': sync_config.project_id,
            'local_path': sync_config.local_path,
            'vcs_marker': sync_config.vcs_marker,
            'manifest_file': sync_config.manifest_file,
        }
        if sync_config.exclude_patterns:
            data['exclude_patterns'] = list(sync_config.exclude_patterns)

        config_dir = os.path.dirname(config_path)
        try:
            if config_dir:
                os.makedirs(config_dir, exist_ok=True)
            with open(config_path, 'w', encoding='utf-8') as f:
                yaml.safe_dump(data, f, default_flow_style=False, allow_unicode=True, sort_keys=False)
        except OSError as e:
            raise FilesystemError(config_path, 'write', e.strerror or str(e))

    @classmethod
    def _string_field(cls, data: Dict[str, Any], name: str) -> str:
        raw = data.get(name, cls.DEFAULTS.get(name))
        if raw is None or isinstance(raw, (list, dict)):
            raise ConfigError(f"Field '{name}' must be a string", name)
        value = str(raw).strip()
        if not value:
            raise ConfigError(f"Field '{name}' cannot be empty", name)
        if name in cls.PLAIN_NAMES and ('/' in value or '\\' in value):
            raise ConfigError(f"Field '{name}' must be a plain file name", name)
        return value

    @classmethod
    def _parse_config(cls, data: Dict[str, Any]) -> SyncConfig:
        """Validate a parsed YAML mapping.

        Raises:
            ConfigError: If configuration is invalid
        """
        missing = [name for name in cls.REQUIRED_FIELDS if name not in data]
        if missing:
            raise ConfigError(f"Missing required fields: {', '.join(missing)}")

        exclude_raw = data.get('exclude_patterns') or []
        if not isinstance(exclude_raw, list):
            raise ConfigError("Field 'exclude_patterns' must be a list", 'exclude_patterns')
        exclude_patterns: List[str] = [str(pattern) for pattern in exclude_raw]

        project_id = cls._string_field(data, 'project_id')
        if not PROJECT_ID_PATTERN.match(project_id):
            raise ConfigError(
                f"Invalid project_id '{project_id}': script ids contain only letters, digits, '-' and '_'",
                'project_id',
            )

        return SyncConfig(
            project_id=project_id,
            local_path=cls._string_field(data, 'local_path'),
            vcs_marker=cls._string_field(data, 'vcs_marker'),
            manifest_file=cls._string_field(data, 'manifest_file'),
            exclude_patterns=exclude_patterns,
        )
