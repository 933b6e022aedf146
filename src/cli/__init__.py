"""Command-line interface for bidirectional Apps Script sync.

This package provides the `gas-sync` CLI tool that runs the three-phase
sync between a remote script project and a local git-tracked folder, with
progress indication and exit codes for scripting.
"""

from .sync_command import SyncCommand
from .init_command import InitCommand
from .models import ExitCode
from .errors import (
    CLIError,
    InitError,
)

__all__ = [
    'SyncCommand',
    'InitCommand',
    'ExitCode',
    'CLIError',
    'InitError',
]
