"""CLI commands for setting up and finding repositories: init, repos."""

from pathlib import Path
from typing import Optional

import typer

from versiontrail.cli.utils import get_trail
from versiontrail.git.exceptions import GitError, NoRepositoryFoundError


def init_command(
    ctx: typer.Context,
    path: Optional[Path] = typer.Argument(
        None,
        help="Folder to set up (default: first workspace folder)",
        file_okay=False,
    ),
) -> None:
    """Set up version tracking in a folder."""
    trail = get_trail(ctx)
    typer.echo("Setting up version tracking...", err=True)
    try:
        root = trail.create_repository(path)
    except GitError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)
    typer.echo(f"Your project at {root} is now set up for version tracking.")
    typer.echo("Run 'versiontrail history' to see your versions.")


def repos_command(ctx: typer.Context) -> None:
    """Show the active repository and every repository in the workspace."""
    trail = get_trail(ctx)
    try:
        active = trail.locate_repository()
    except NoRepositoryFoundError as e:
        typer.echo(f"Error: {e}", err=True)
        typer.echo("Run 'versiontrail init' to set up version tracking.", err=True)
        raise typer.Exit(1)
    except GitError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    typer.echo(f"Active repository: {active}")
    others = [repo for repo in trail.find_repositories() if repo != active]
    if others:
        typer.echo()
        typer.echo("Other repositories in the workspace:")
        for repo in others:
            typer.echo(f"  {repo}")
