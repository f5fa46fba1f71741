"""CLI for bitrot."""

import logging
import os
import sys
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console

from .config import load_config, resolve_state_dir
from .constants import BITROT_VERSION
from .errors import BitrotError, DecodeError
from .ops import run_check
from .status_display import display_check_result
from .store import StateStore


app = typer.Typer(help="""\
Detect silent data corruption (bitrot) in a directory tree. Each run
fingerprints every file under DIRECTORY and compares the result with the
previous run, reporting new, removed and changed files.""")

console = Console()

LOG_FORMAT = "%(levelname)s: %(message)s"

# Exit code when --fail-on-change is set and a checksum changed
EXIT_CHANGED = 3


def configure_logging(verbose: bool = False, stream=None) -> logging.Handler:
    """Attach a single stream handler to the bitrot logger.

    Called once per invocation from the CLI entrypoint. A handler installed
    by an earlier call is replaced rather than duplicated.
    """
    pkg_logger = logging.getLogger("bitrot")
    for handler in list(pkg_logger.handlers):
        if getattr(handler, "_bitrot_cli", False):
            pkg_logger.removeHandler(handler)

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler._bitrot_cli = True
    pkg_logger.addHandler(handler)
    pkg_logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    return handler


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"bitrot {BITROT_VERSION}")
        raise typer.Exit()


@app.command()
def check(
    directory: Path = typer.Argument(..., help="Directory tree to check"),
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Verbose mode"),
    exclude: Optional[List[str]] = typer.Option(
        None, "-e", "--exclude", help="Path (absolute or relative to DIRECTORY) to leave out; repeatable"
    ),
    ignore: Optional[List[str]] = typer.Option(
        None, "--ignore", help="Gitignore-style pattern to leave out; repeatable"
    ),
    state_dir: Optional[Path] = typer.Option(
        None, "--state-dir", help="State directory (default: $BITROT_STATE_DIR or ~/.bitrot)"
    ),
    dry_run: bool = typer.Option(False, "--dry-run", help="Compare and report without saving state"),
    reset: bool = typer.Option(
        False, "--reset", help="Discard the stored state for DIRECTORY and record a new baseline"
    ),
    fail_on_change: bool = typer.Option(
        False, "--fail-on-change", help=f"Exit with status {EXIT_CHANGED} if any checksum changed"
    ),
    version: bool = typer.Option(
        False, "--version", callback=_version_callback, is_eager=True, help="Show version and exit"
    ),
):
    """Check DIRECTORY for files whose content changed since the last run.

    The first run records a baseline. Later runs report every file whose
    checksum differs; whether that is an intentional edit or corruption is
    for you to judge.

    Examples:
        bitrot ~/Photos                      # Check and update the baseline
        bitrot -v ~/Photos                   # Also log unchanged files
        bitrot -e cache ~/Photos             # Leave out ~/Photos/cache
        bitrot --dry-run ~/Photos            # Report without saving
    """
    configure_logging(verbose)

    # Normalized absolute path; symlinks in it are not resolved
    root = Path(os.path.abspath(os.path.expanduser(str(directory))))

    try:
        store = StateStore(resolve_state_dir(state_dir))
        config = load_config(store.state_dir)
        result = run_check(
            root,
            store,
            config,
            exclude=exclude or [],
            ignore=ignore or [],
            dry_run=dry_run,
            reset=reset,
        )
    except DecodeError as e:
        console.print(f"[red]✗[/red] Error loading state DB: {e}")
        console.print()
        console.print("[dim]The state file was left untouched so it can be inspected.[/dim]")
        console.print("To discard it and record a new baseline, run:")
        console.print(f"  [cyan]bitrot --reset {root}[/cyan]")
        raise typer.Exit(1)
    except BitrotError as e:
        console.print(f"[red]✗[/red] {e}")
        raise typer.Exit(1)

    display_check_result(result, console, verbose=verbose)

    if fail_on_change and result.diff.has_corruption_candidates:
        raise typer.Exit(EXIT_CHANGED)


def main():
    """Entry point for CLI."""
    app()


if __name__ == "__main__":
    main()
