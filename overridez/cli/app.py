"""Core CLI app definition and global state."""

import logging
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.logging import RichHandler

app = typer.Typer(
    name="overridez",
    help="Manage project-local package overrides for a Nix build.",
    no_args_is_help=True,
)

console = Console()
err_console = Console(stderr=True)

# Global state (set by callback)
_json_mode = False
_project_dir: Path | None = None


def get_json_mode() -> bool:
    """Get current JSON mode state."""
    return _json_mode


def get_project_dir() -> Path:
    """Get the project directory from --project-dir, defaulting to cwd."""
    return _project_dir if _project_dir is not None else Path.cwd()


def get_project_context():
    """Get the project context for the current invocation."""
    from .project import ProjectContext

    return ProjectContext(get_project_dir())


def setup_logging(verbose: bool = False, debug: bool = False) -> None:
    """Route log records through rich at the requested level."""
    level = logging.WARNING
    if verbose:
        level = logging.INFO
    if debug:
        level = logging.DEBUG

    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False, markup=False)],
        force=True,
    )
    logging.getLogger("overridez").setLevel(level)


def _version_callback(value: bool) -> None:
    if value:
        from .. import __version__

        print(f"overridez {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    json_output: Annotated[
        bool,
        typer.Option(
            "--json",
            help="Output machine-readable JSON instead of human-friendly text",
            is_eager=True,
        ),
    ] = False,
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            help="Show version and exit",
            callback=_version_callback,
            is_eager=True,
        ),
    ] = False,
    project_dir: Annotated[
        Path | None,
        typer.Option(
            "--project-dir",
            "-p",
            help="Project directory holding the override store (default: cwd)",
        ),
    ] = None,
    verbose: Annotated[
        bool, typer.Option("--verbose", "-v", help="Log progress")
    ] = False,
    debug: Annotated[
        bool, typer.Option("--debug", help="Log every discovered override")
    ] = False,
):
    """overridez: save package overrides and compose them for the build.

    Use --json for machine-readable output suitable for scripting.
    Use --project-dir to operate on a project other than the current directory.
    """
    global _json_mode, _project_dir
    _json_mode = json_output
    _project_dir = project_dir
    setup_logging(verbose=verbose, debug=debug)


# Import commands to register them with the app
from .commands import (  # noqa: E402, F401
    add,
    list_cmd,
    delete,
    flags,
    check,
    config_cmd,
)
