"""Main CLI callback: global options shared by every command."""

from pathlib import Path
from typing import Optional

import typer

from versiontrail import __version__
from versiontrail.cli.utils import configure_logging


def main_command(
    ctx: typer.Context,
    workspace: Optional[list[Path]] = typer.Option(
        None,
        "--workspace",
        "-w",
        help="Workspace folder to search for a repository (repeatable, default: current directory)",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Show debug logging, including every git command run",
    ),
    show_version: bool = typer.Option(
        False,
        "--version",
        help="Show the versiontrail version and exit",
    ),
) -> None:
    """Browse your project's history and restore earlier versions safely."""
    if show_version:
        typer.echo(f"versiontrail {__version__}")
        raise typer.Exit(0)

    configure_logging(verbose)

    obj = ctx.ensure_object(dict)
    obj["workspace"] = [folder.resolve() for folder in workspace] if workspace else [Path.cwd()]

    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
