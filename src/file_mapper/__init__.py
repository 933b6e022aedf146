"""File mapper library for bidirectional Apps Script sync.

This package maps between the remote flat namespace and the local mirror
tree: path translation, tree scanning, the order manifest, the module
envelope applied to Code files, and the YAML configuration.
"""

from .models import LocalFile, OrderManifest, SyncConfig
from .errors import (
    FileMapperError,
    FilesystemError,
    ConfigError,
    UnsupportedFileTypeError,
    ManifestUnreadableError,
)
from .config_loader import ConfigLoader
from .local_scanner import LocalScanner
from .manifest_store import ManifestStore
from .path_translator import PathTranslator

__all__ = [
    'LocalFile',
    'OrderManifest',
    'SyncConfig',
    'FileMapperError',
    'FilesystemError',
    'ConfigError',
    'UnsupportedFileTypeError',
    'ManifestUnreadableError',
    'ConfigLoader',
    'LocalScanner',
    'ManifestStore',
    'PathTranslator',
]
