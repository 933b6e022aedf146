"""Sync command orchestration for CLI.

This module provides the SyncCommand class that loads the configuration,
builds the remote store, runs the three-phase SyncEngine and turns the run
summary (or a run-level failure) into an exit code.
"""

import logging
import os
import signal
import threading
from typing import Callable, Optional

from src.cli.errors import CLIError
from src.cli.models import ExitCode
from src.cli.output import OutputHandler
from src.file_mapper.config_loader import ConfigLoader
from src.file_mapper.errors import ConfigError, FilesystemError
from src.gas_client.errors import (
    APIAccessError,
    APIUnreachableError,
    InvalidCredentialsError,
)
from src.gas_client.remote_store import GASRemoteStore
from src.sync_engine.engine import SyncEngine
from src.sync_engine.errors import StateError, StateFilesystemError
from src.sync_engine.models import RunSummary

logger = logging.getLogger(__name__)


class SyncCommand:
    """Runs one sync for the CLI.

    The sync workflow:
        1. Load configuration
        2. Build the remote store from environment credentials
        3. Run mirror, version control and push phases
        4. Display the summary and return an exit code

    Example:
        >>> output = OutputHandler(verbosity=1)
        >>> sync_cmd = SyncCommand(output_handler=output)
        >>> exit_code = sync_cmd.run(dry_run=False)
        >>> sys.exit(exit_code)
    """

    def __init__(
        self,
        config_path: str = ".gas-sync/config.yaml",
        state_path: str = ".gas-sync/state.yaml",
        output_handler: Optional[OutputHandler] = None,
        store_factory: Optional[Callable[[], GASRemoteStore]] = None,
        engine_factory: Callable[..., SyncEngine] = SyncEngine,
    ):
        """Initialize sync command with dependencies.

        Args:
            config_path: Path to configuration YAML file
            state_path: Path to signature state YAML file
            output_handler: OutputHandler for terminal output (optional)
            store_factory: Builds the remote store (defaults to environment credentials)
            engine_factory: Builds the SyncEngine (replaceable in tests)
        """
        self.config_path = config_path
        self.state_path = state_path
        self.output_handler = output_handler or OutputHandler()
        self.store_factory = store_factory or GASRemoteStore.from_environment
        self.engine_factory = engine_factory
        self.cancel_event = threading.Event()

    def _print_getting_started(self) -> None:
        self.output_handler.print("No sync configuration found.\n")
        self.output_handler.print("To get started, initialize with your script project:\n")
        self.output_handler.print("  gas-sync --init --project <script_id> --local ./my-project\n")
        self.output_handler.print("Required environment variables:")
        self.output_handler.print("  GAS_ACCESS_TOKEN   - OAuth access token with script.projects scope")
        self.output_handler.print("  GAS_API_URL        - Optional API base URL\n")
        self.output_handler.print("Run 'gas-sync --help' for more options.")

    def _install_interrupt_handler(self):
        """Turn the first Ctrl-C into a cancellation at the next phase boundary."""
        if threading.current_thread() is not threading.main_thread():
            return None

        def _handler(signum, frame):
            if self.cancel_event.is_set():
                raise KeyboardInterrupt
            self.output_handler.warning("Cancelling after the current phase (Ctrl-C again to abort)")
            self.cancel_event.set()

        return signal.signal(signal.SIGINT, _handler)

    def run(self, dry_run: bool = False, pull_only: bool = False) -> ExitCode:
        """Execute a sync run.

        Args:
            dry_run: Report what would change without applying it
            pull_only: Mirror and commit only, skip the push phase

        Returns:
            ExitCode indicating success or specific failure type
        """
        try:
            logger.info(f"Loading configuration from {self.config_path}")
            self.output_handler.info(f"Loading configuration from {self.config_path}")

            if not os.path.exists(self.config_path):
                self._print_getting_started()
                return ExitCode.GENERAL_ERROR

            config = ConfigLoader.load(self.config_path)
            logger.info(f"Project {config.project_id} <-> {config.local_path}")

            previous_handler = self._install_interrupt_handler()
            try:
                with self.store_factory() as store:
                    engine = self.engine_factory(
                        store,
                        config,
                        state_path=self.state_path,
                        dry_run=dry_run,
                        pull_only=pull_only,
                        cancel_event=self.cancel_event,
                    )
                    with self.output_handler.spinner("Syncing script project..."):
                        summary = engine.run()
            finally:
                if previous_handler is not None:
                    signal.signal(signal.SIGINT, previous_handler)

            if dry_run:
                self.output_handler.print_dryrun_summary(
                    to_pull=summary.pulled_paths,
                    to_push=summary.would_push,
                    conflicts=summary.skipped_conflicts,
                )
            else:
                self.output_handler.print_run_summary(summary)

            return self.exit_code_for(summary)

        except InvalidCredentialsError as e:
            logger.error(f"Authentication failed: {e}")
            self.output_handler.error(f"Authentication failed: {e}")
            self.output_handler.info("Check the GAS_ACCESS_TOKEN environment variable")
            return ExitCode.AUTH_ERROR

        except (APIUnreachableError, APIAccessError) as e:
            logger.error(f"API error: {e}")
            self.output_handler.error(f"API error: {e}")
            self.output_handler.info("Check your internet connection and try again")
            return ExitCode.NETWORK_ERROR

        except (ConfigError, FilesystemError) as e:
            logger.error(f"Configuration error: {e}")
            self.output_handler.error(f"Configuration error: {e}")
            return ExitCode.GENERAL_ERROR

        except (StateError, StateFilesystemError) as e:
            logger.error(f"State error: {e}")
            self.output_handler.error(f"State error: {e}")
            return ExitCode.GENERAL_ERROR

        except CLIError as e:
            logger.error(f"CLI error: {e}")
            self.output_handler.error(f"Error: {e}")
            return ExitCode.GENERAL_ERROR

        except Exception as e:
            logger.exception("Unexpected error during sync")
            self.output_handler.error(f"Unexpected error: {e}")
            return ExitCode.GENERAL_ERROR

    @staticmethod
    def exit_code_for(summary: RunSummary) -> ExitCode:
        """Map a run summary to an exit code.

        Network failures win over other errors, errors over conflicts.
        Pending local edits over an unchanged remote are not conflicts.
        Version-control failures and reorder warnings are reported but do not
        fail the run.
        """
        if summary.unreachable:
            return ExitCode.NETWORK_ERROR
        if summary.errors or summary.push_failures:
            return ExitCode.GENERAL_ERROR
        if summary.skipped_conflicts:
            return ExitCode.CONFLICTS
        return ExitCode.SUCCESS
