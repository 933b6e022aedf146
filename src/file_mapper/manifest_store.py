"""Order manifest persistence.

The manifest is a clasp-compatible JSON file at the mirror root:

    {
      "scriptId": "1AbC...",
      "rootDir": ".",
      "filePushOrder": ["CommonJS.js", "utils/helper.js", "main.js"]
    }

A missing manifest is a normal state (load returns None). A manifest that
exists but cannot be parsed raises ManifestUnreadableError so callers can
degrade to skipping the reorder step.
"""

import json
import logging
import os
from typing import Any, Dict, Optional

from .errors import FilesystemError, ManifestUnreadableError
from .models import OrderManifest

logger = logging.getLogger(__name__)


class ManifestStore:
    """Reads and writes the OrderManifest file."""

    DEFAULT_FILE = '.clasp.json'

    def __init__(self, root: str, file_name: str = DEFAULT_FILE):
        self.root = root
        self.file_name = file_name

    @property
    def path(self) -> str:
        return os.path.join(self.root, self.file_name)

    def load(self) -> Optional[OrderManifest]:
        """Load the manifest.

        Returns:
            OrderManifest, or None if the file does not exist

        Raises:
            ManifestUnreadableError: If the file cannot be read or is malformed
        """
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                content = f.read()
        except FileNotFoundError:
            return None
        except OSError as e:
            raise ManifestUnreadableError(self.path, str(e))

        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            raise ManifestUnreadableError(self.path, f"invalid JSON: {e}")

        return self._parse(data)

    def _parse(self, data: Any) -> OrderManifest:
        if not isinstance(data, dict):
            raise ManifestUnreadableError(
                self.path, f"expected a JSON object, got {type(data).__name__}"
            )

        project_id = data.get('scriptId')
        if not isinstance(project_id, str) or not project_id.strip():
            raise ManifestUnreadableError(self.path, "field 'scriptId' must be a non-empty string")

        root_marker = data.get('rootDir', '.')
        if not isinstance(root_marker, str):
            raise ManifestUnreadableError(self.path, "field 'rootDir' must be a string")

        order = data.get('filePushOrder', [])
        if not isinstance(order, list) or not all(isinstance(p, str) for p in order):
            raise ManifestUnreadableError(self.path, "field 'filePushOrder' must be a list of strings")

        return OrderManifest(project_id=project_id, root_marker=root_marker, file_push_order=order)

    def save(self, manifest: OrderManifest) -> None:
        """Write the manifest, preserving unrelated keys already in the file.

        Raises:
            FilesystemError: If the file cannot be written
        """
        data: Dict[str, Any] = {}
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                existing = json.load(f)
            if isinstance(existing, dict):
                data = existing
        except (OSError, ValueError):
            # Missing or corrupt file is replaced
            pass

        data['scriptId'] = manifest.project_id
        data['rootDir'] = manifest.root_marker
        data['filePushOrder'] = list(manifest.file_push_order)

        try:
            os.makedirs(self.root, exist_ok=True)
            with open(self.path, 'w', encoding='utf-8') as f:
                json.dump(data, f, indent=2)
                f.write('\n')
        except OSError as e:
            raise FilesystemError(self.path, 'write', str(e))

        logger.debug(f"Saved order manifest with {len(manifest.file_push_order)} entries")
