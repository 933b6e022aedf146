"""Change signature state.

Signatures record what each local file looked like the last time it was
mirrored from or pushed to the remote. A signature is the git blob hash of
the file content after normalizing line endings and dropping a leading BOM,
so the same text hashes identically on every platform and matches
`git hash-object` for LF files.

State file structure:
    last_synced: "2024-01-15T10:30:00+00:00"
    signatures:
      main.js: "e69de29bb2d1d6434b8b29ae775ad8c2e48c5391"
      utils/helper.js: "..."
"""

import hashlib
import os
from typing import Any, Dict

import yaml

from .errors import StateError, StateFilesystemError
from .models import SignatureState

BOM = '\ufeff'


def normalize_content(content: str) -> str:
    if content.startswith(BOM):
        content = content[1:]
    return content.replace('\r\n', '\n')


def compute_signature(content: str) -> str:
    """Git-compatible SHA-1 of the normalized content."""
    data = normalize_content(content).encode('utf-8')
    header = f"blob {len(data)}\0".encode('ascii')
    return hashlib.sha1(header + data).hexdigest()


class SignatureStore:
    """Handles state file loading, validation, and saving.

    If the file is missing or empty, it's treated as a fresh state
    (never synced) with no signatures.
    """

    DEFAULT_STATE_DIR = '.gas-sync'
    DEFAULT_STATE_FILE = 'state.yaml'

    @classmethod
    def default_path(cls) -> str:
        return os.path.join(cls.DEFAULT_STATE_DIR, cls.DEFAULT_STATE_FILE)

    @classmethod
    def load(cls, state_path: str) -> SignatureState:
        """Load and parse state from a YAML file.

        Raises:
            StateFilesystemError: If file cannot be read (except FileNotFoundError)
            StateError: If state file is invalid or malformed
        """
        try:
            with open(state_path, 'r', encoding='utf-8') as f:
                content = f.read()
        except FileNotFoundError:
            # Missing state file is normal for first sync
            return SignatureState()
        except PermissionError:
            raise StateFilesystemError(state_path, 'read', 'Permission denied')
        except OSError as e:
            raise StateFilesystemError(state_path, 'read', str(e))

        if not content.strip():
            return SignatureState()

        try:
            state_dict = yaml.safe_load(content)
        except yaml.YAMLError as e:
            raise StateError(f"Invalid YAML syntax: {str(e)}")

        if state_dict is None:
            return SignatureState()

        if not isinstance(state_dict, dict):
            raise StateError(
                f"State must be a YAML dictionary, got {type(state_dict).__name__}"
            )

        return cls._parse_state(state_dict)

    @classmethod
    def save(cls, state_path: str, state: SignatureState) -> None:
        """Save state to a YAML file.

        Raises:
            StateFilesystemError: If file cannot be written
        """
        state_dict = {
            'last_synced': state.last_synced,
            'signatures': dict(sorted(state.signatures.items())),
        }

        yaml_str = yaml.safe_dump(
            state_dict,
            default_flow_style=False,
            allow_unicode=True,
            sort_keys=False
        )

        state_dir = os.path.dirname(state_path)
        if state_dir:
            try:
                os.makedirs(state_dir, exist_ok=True)
            except OSError as e:
                raise StateFilesystemError(state_dir, 'create_directory', str(e))

        try:
            with open(state_path, 'w', encoding='utf-8') as f:
                f.write(yaml_str)
        except PermissionError:
            raise StateFilesystemError(state_path, 'write', 'Permission denied')
        except OSError as e:
            raise StateFilesystemError(state_path, 'write', str(e))

    @classmethod
    def _parse_state(cls, state_dict: Dict[str, Any]) -> SignatureState:
        last_synced = state_dict.get('last_synced')
        if last_synced is not None:
            if not isinstance(last_synced, str):
                raise StateError(
                    f"Field 'last_synced' must be a string (ISO 8601 timestamp), got {type(last_synced).__name__}",
                    'last_synced'
                )
            if not last_synced.strip():
                raise StateError("Field 'last_synced' cannot be empty", 'last_synced')
            last_synced = last_synced.strip()

        signatures = state_dict.get('signatures') or {}
        if not isinstance(signatures, dict):
            raise StateError(
                f"Field 'signatures' must be a dictionary, got {type(signatures).__name__}",
                'signatures'
            )
        for path, signature in signatures.items():
            if not isinstance(path, str) or not isinstance(signature, str):
                raise StateError(
                    "Field 'signatures' must map string paths to string hashes",
                    'signatures'
                )

        return SignatureState(last_synced=last_synced, signatures=dict(signatures))
