"""Shared helpers for filesystem-based sync tests."""

from .mirror_test_utils import make_config, read_tree, write_tree

__all__ = ['make_config', 'read_tree', 'write_tree']
