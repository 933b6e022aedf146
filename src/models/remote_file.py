"""Remote file data model.

Raw Apps Script API payloads are loosely typed dictionaries. They are mapped
into RemoteFile records here, at the boundary, so that the reconciliation
core only ever handles the closed FileType set.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, List

# Script ids are URL path segments: letters, digits, "-" and "_"
PROJECT_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]{10,128}$")


class FileType(Enum):
    """Remote file types understood by the sync engine."""

    SERVER_JS = "SERVER_JS"  # Code
    HTML = "HTML"  # Markup
    JSON = "JSON"  # Manifest
    UNSUPPORTED = "UNSUPPORTED"

    @classmethod
    def from_api(cls, value: Any) -> 'FileType':
        """Map an API type string to a FileType (UNSUPPORTED if unknown)."""
        for member in cls:
            if member is not cls.UNSUPPORTED and member.value == value:
                return member
        return cls.UNSUPPORTED


@dataclass
class RemoteFile:
    """A named content unit in the remote flat namespace.

    Attributes:
        name: Remote identifier, extension-free, may contain '/'
        type: File type tag
        content: File source
        position: Execution order index (dense 0..N-1 within a listing)
        raw_type: Type string as returned by the API, echoed back on update
    """
    name: str
    type: FileType
    content: str
    position: int = 0
    raw_type: str = ""

    def __post_init__(self):
        if not self.raw_type:
            self.raw_type = self.type.value

    @classmethod
    def from_api(cls, payload: Dict[str, Any], position: int) -> 'RemoteFile':
        """Build a RemoteFile from one entry of a project content response."""
        raw_type = str(payload.get('type') or '')
        return cls(
            name=str(payload.get('name', '')),
            type=FileType.from_api(raw_type),
            content=payload.get('source') or '',
            position=position,
            raw_type=raw_type,
        )

    def to_api(self) -> Dict[str, str]:
        """Serialize to the payload shape accepted by updateContent."""
        return {
            'name': self.name,
            'type': self.raw_type,
            'source': self.content,
        }


def files_from_api(payloads: Iterable[Dict[str, Any]]) -> List[RemoteFile]:
    """Map a content response into RemoteFiles, positions taken from array order."""
    return [RemoteFile.from_api(payload, index) for index, payload in enumerate(payloads)]


def sort_by_position(files: Iterable[RemoteFile]) -> List[RemoteFile]:
    """Sort files by position; ties keep their listing order."""
    return sorted(files, key=lambda f: f.position)


def has_dense_positions(files: List[RemoteFile]) -> bool:
    """True when positions are exactly 0..N-1 with no gaps or duplicates."""
    return sorted(f.position for f in files) == list(range(len(files)))
