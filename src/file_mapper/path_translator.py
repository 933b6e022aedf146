"""Bidirectional mapping between local paths and remote identifiers.

Remote identifiers are extension-free and keep directory segments as literal
'/' separators, so 'utils/helper.js' and the remote name 'utils/helper' refer
to the same file. The extension on the local side carries the file type.
"""

import posixpath
from typing import Dict, List, Tuple

from src.models.remote_file import FileType

from .errors import UnsupportedFileTypeError


class PathTranslator:
    """Translates between local relative paths and remote identifiers.

    to_remote and to_local are strict inverses for canonical extensions:
        to_local(to_remote(p), file_type_for(p)) == p

    Examples:
        >>> PathTranslator.to_remote("utils/helper.js")
        'utils/helper'
        >>> PathTranslator.to_local("utils/helper", FileType.SERVER_JS)
        'utils/helper.js'
        >>> PathTranslator.to_local("index", FileType.HTML)
        'index.html'
    """

    CANONICAL_EXTENSIONS: Dict[FileType, str] = {
        FileType.SERVER_JS: '.js',
        FileType.HTML: '.html',
        FileType.JSON: '.json',
    }

    # Accepted on the local side; .gs is the legacy Apps Script extension
    EXTENSION_TYPES: Dict[str, FileType] = {
        '.js': FileType.SERVER_JS,
        '.gs': FileType.SERVER_JS,
        '.html': FileType.HTML,
        '.json': FileType.JSON,
    }

    ALIAS_EXTENSIONS: Dict[FileType, Tuple[str, ...]] = {
        FileType.SERVER_JS: ('.gs',),
    }

    @staticmethod
    def normalize(path: str) -> str:
        """Convert OS separators to '/' and drop leading './'."""
        normalized = path.replace('\\', '/')
        while normalized.startswith('./'):
            normalized = normalized[2:]
        return normalized

    @classmethod
    def _split(cls, path: str):
        normalized = cls.normalize(path)
        stem, ext = posixpath.splitext(normalized)
        if not stem or posixpath.basename(stem) == '' or ext.lower() not in cls.EXTENSION_TYPES:
            raise UnsupportedFileTypeError(path, ext or None)
        return stem, ext.lower()

    @classmethod
    def file_type_for(cls, path: str) -> FileType:
        """Return the remote type registered for a local path's extension.

        Raises:
            UnsupportedFileTypeError: If the extension is not registered
        """
        _, ext = cls._split(path)
        return cls.EXTENSION_TYPES[ext]

    @classmethod
    def to_remote(cls, path: str) -> str:
        """Strip the trailing extension; directory segments pass through.

        Raises:
            UnsupportedFileTypeError: If the extension is not registered
        """
        stem, _ = cls._split(path)
        return stem

    @classmethod
    def to_local(cls, name: str, file_type: FileType) -> str:
        """Append the canonical extension registered for file_type.

        Raises:
            UnsupportedFileTypeError: If file_type has no registered extension
        """
        extension = cls.CANONICAL_EXTENSIONS.get(file_type)
        if extension is None:
            raise UnsupportedFileTypeError(name, getattr(file_type, 'value', str(file_type)))
        return f"{name}{extension}"

    @classmethod
    def is_supported(cls, path: str) -> bool:
        """True if the path's extension maps to a remote type."""
        try:
            cls._split(path)
        except UnsupportedFileTypeError:
            return False
        return True

    @classmethod
    def alias_paths(cls, name: str, file_type: FileType) -> List[str]:
        """Local paths that also map to name, other than the canonical one."""
        return [f"{name}{extension}" for extension in cls.ALIAS_EXTENSIONS.get(file_type, ())]
