"""
Command-line entry point for Lake.

    lake [--file FILE] [--verbose] [TASK] [ARGS]...

Options go before TASK; everything after TASK is forwarded to the task
handler verbatim, including strings that look like options.
"""

import logging
import sys
from pathlib import Path
from typing import List, Optional

import typer

from lake import __version__
from lake.core.config import settings
from lake.core.discovery import find_build_file
from lake.core.errors import LakeError, format_error_chain
from lake.engines import run_lake

_log = logging.getLogger(__name__)

app = typer.Typer(
    name="lake",
    help="Lake - a build tool with restricted Python build scripts",
    add_completion=False,
)


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.getLevelName(settings.LOG_LEVEL)
    if not isinstance(level, int):
        level = logging.INFO
    logging.basicConfig(
        stream=sys.stderr,
        format="[%(levelname)s] %(name)s: %(message)s",
    )
    logging.getLogger("lake").setLevel(level)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"lake version {__version__}")
        raise typer.Exit()


@app.command(context_settings={"allow_interspersed_args": False, "ignore_unknown_options": True})
def main(
    task: Optional[str] = typer.Argument(None, help="Task to execute (default: 'default')"),
    args: Optional[List[str]] = typer.Argument(None, help="Arguments forwarded to the task"),
    file: Optional[Path] = typer.Option(
        None, "--file", "-f", help="Path to build.lake (default: search upward from cwd)"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
    version: bool = typer.Option(
        False, "--version", callback=_version_callback, is_eager=True, help="Show version and exit"
    ),
) -> None:
    """Run TASK from the build file with ARGS."""
    _setup_logging(verbose)
    try:
        build_file = file if file is not None else find_build_file()
        run_lake(build_file, task, args or [])
    except LakeError as e:
        typer.echo(f"Error: {format_error_chain(e)}", err=True)
        _log.debug("Lake failed", exc_info=True)
        raise typer.Exit(1)


def run() -> None:
    """Console-script entry point."""
    app()


if __name__ == "__main__":
    run()
