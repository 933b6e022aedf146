"""gas-sync command line.

A single Typer command whose options select the mode: --init writes the
configuration, everything else runs one sync (optionally dry-run or
pull-only) and exits with the code derived from the run summary.
"""

import logging
import os
import sys
from datetime import datetime
from pathlib import Path
from typing import List, Optional

import typer

from src.cli.errors import InitError
from src.cli.init_command import InitCommand
from src.cli.models import ExitCode
from src.cli.output import OutputHandler
from src.cli.sync_command import SyncCommand

__version__ = "0.1.0"

app = typer.Typer(
    name="gas-sync",
    help="Bidirectional sync between an Apps Script project and a local git-tracked folder.",
    add_completion=False,
    rich_markup_mode=None,
    no_args_is_help=False,
)

logger = logging.getLogger(__name__)

INIT_EXAMPLE = "gas-sync --init --project 1AbCdEfGhIjKlMnOpQrStUvWxYz --local ./my-project"

GETTING_STARTED_MESSAGE = f"""No .gas-sync/config.yaml here yet.

  --init --project <script_id> --local <folder>   Bind a script project to a folder
  --dry-run                                       Preview a sync
  --pull-only                                     Mirror and commit, no push
  --help                                          All options

Example:
  {INIT_EXAMPLE}

Credentials: set GAS_ACCESS_TOKEN (environment or .env)."""


VERBOSITY_LEVELS = {0: logging.WARNING, 1: logging.INFO}

CONSOLE_FORMAT = "%(asctime)s [%(levelname)8s] %(message)s"
FILE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _formatted(handler: logging.Handler, level: int, fmt: str) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt, datefmt=DATE_FORMAT))
    return handler


def _configure_logging(verbosity: int, logdir: Optional[str] = None) -> None:
    """Attach console and optional file handlers to the 'src' logger.

    Only the application namespace is configured; the root logger (and with
    it requests/urllib3) keeps its defaults.

    Args:
        verbosity: 0=WARNING, 1=INFO, 2 or more=DEBUG
        logdir: Directory for a timestamped gas-sync_<time>.log file
    """
    level = VERBOSITY_LEVELS.get(verbosity, logging.DEBUG)

    app_logger = logging.getLogger("src")
    app_logger.setLevel(level)
    app_logger.addHandler(_formatted(logging.StreamHandler(sys.stderr), level, CONSOLE_FORMAT))

    if not logdir:
        return

    log_dir = Path(logdir)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / f"gas-sync_{datetime.now():%Y%m%d_%H%M%S}.log"
    app_logger.addHandler(
        _formatted(logging.FileHandler(log_file, encoding="utf-8"), level, FILE_FORMAT)
    )
    logger.info(f"Logging to file: {log_file}")


def _missing_init_options(init: bool, project: Optional[str], local_folder: Optional[str]) -> List[str]:
    """Options that must accompany --init (or --init itself, if a partner was given)."""
    required = {"--init": init, "--project": project is not None, "--local": local_folder is not None}
    return [option for option, given in required.items() if not given]


def _run_init(
    project: str,
    local_folder: str,
    exclude: List[str],
    validate: bool,
    verbosity: int,
    no_color: bool
) -> None:
    _configure_logging(verbosity)
    output = OutputHandler(verbosity=verbosity, no_color=no_color)
    init_cmd = InitCommand()

    output.info("Initializing sync configuration...")
    output.info(f"  Script project: {project}")
    output.info(f"  Local folder: {local_folder}")

    try:
        if validate:
            with output.spinner("Listing script project..."):
                config = init_cmd.run(project, local_folder, validate=True, exclude_patterns=exclude)
        else:
            config = init_cmd.run(project, local_folder, validate=False, exclude_patterns=exclude)
    except InitError as e:
        logger.error(f"Initialization failed: {e}")
        output.error(f"Initialization failed: {e}")
        raise typer.Exit(ExitCode.GENERAL_ERROR)
    except Exception as e:
        logger.exception("Unexpected error during initialization")
        output.error(f"Unexpected error: {e}")
        raise typer.Exit(ExitCode.GENERAL_ERROR)

    output.success(f"Bound project {config.project_id} to {config.local_path}")
    output.info(f"  Config file: {init_cmd.config_path}")
    output.info("Run 'gas-sync' to mirror the project and start syncing")
    raise typer.Exit(ExitCode.SUCCESS)


def _run_sync(
    dry_run: bool,
    pull_only: bool,
    logdir: Optional[str],
    verbosity: int,
    no_color: bool
) -> None:
    _configure_logging(verbosity, logdir)
    output = OutputHandler(verbosity=verbosity, no_color=no_color)

    sync_cmd = SyncCommand(output_handler=output)
    exit_code = sync_cmd.run(dry_run=dry_run, pull_only=pull_only)
    raise typer.Exit(exit_code)


@app.command()
def main_command(
    init: bool = typer.Option(
        False,
        "--init",
        help="Bind a script project to a local folder (requires --project and --local)",
    ),
    project: Optional[str] = typer.Option(
        None,
        "--project",
        help="Script id or editor URL (used with --init)",
        metavar="SCRIPT_ID",
    ),
    local_folder: Optional[str] = typer.Option(
        None,
        "--local",
        help="Mirror root folder (used with --init)",
        metavar="FOLDER",
    ),
    exclude: Optional[List[str]] = typer.Option(
        None,
        "--exclude",
        help="With --init: relative path pattern left out of pushes (repeatable)",
        metavar="PATTERN",
    ),
    no_validate: bool = typer.Option(
        False,
        "--no-validate",
        help="With --init: write the configuration without listing the project",
    ),
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        "--dryrun",
        help="Report what would be pulled and pushed without changing anything",
    ),
    pull_only: bool = typer.Option(
        False,
        "--pull-only",
        help="Mirror remote files and commit, but do not push or reorder",
    ),
    logdir: Optional[str] = typer.Option(
        None,
        "--logdir",
        help="Directory for a timestamped log file",
    ),
    verbosity: int = typer.Option(
        0,
        "--verbosity",
        "-v",
        help="0=summary, 1=info, 2=debug",
    ),
    no_color: bool = typer.Option(
        False,
        "--no-color",
        help="Plain output without colors",
    ),
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        help="Print the version and exit",
    ),
) -> None:
    """Bidirectional sync between an Apps Script project and a local folder.

    \b
    QUICK START:
      gas-sync                                                  # Pull, commit, push, reorder
      gas-sync --init --project <script_id> --local <folder>    # Initialize
      gas-sync --dry-run                                        # Preview changes
      gas-sync --pull-only                                      # Remote -> local only
    """
    if version:
        typer.echo(f"gas-sync version {__version__}")
        raise typer.Exit()

    if init or project is not None or local_folder is not None:
        missing = _missing_init_options(init, project, local_folder)
        if missing:
            typer.echo(f"Error: Missing required option(s): {', '.join(missing)}", err=True)
            typer.echo(f"\nExample:\n  {INIT_EXAMPLE}")
            raise typer.Exit(ExitCode.GENERAL_ERROR)
        _run_init(project, local_folder, exclude or [], not no_validate, verbosity, no_color)
        return

    if exclude or no_validate:
        typer.echo("Error: --exclude and --no-validate only apply to --init", err=True)
        raise typer.Exit(ExitCode.GENERAL_ERROR)

    if dry_run and pull_only:
        typer.echo("Error: --dry-run and --pull-only cannot be combined", err=True)
        raise typer.Exit(ExitCode.GENERAL_ERROR)

    # A bare invocation outside an initialized folder prints usage instead of failing
    bare = not (dry_run or pull_only or logdir or verbosity or no_color)
    if bare and not os.path.exists(InitCommand.DEFAULT_CONFIG_PATH):
        typer.echo(GETTING_STARTED_MESSAGE)
        raise typer.Exit()

    _run_sync(dry_run, pull_only, logdir, verbosity, no_color)


def main() -> None:
    """Main entry point for the CLI application."""
    app()


if __name__ == "__main__":
    main()
