"""Shared utility functions for CLI commands."""

import logging
from pathlib import Path
from typing import Optional, Sequence

import typer

from versiontrail.config import ConfigError, load_settings
from versiontrail.git.models import UncommittedChange
from versiontrail.service import VersionTrail


def configure_logging(verbose: bool) -> None:
    """Send library logs to stderr; DEBUG with --verbose, WARNING otherwise."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def build_trail(workspace_folders: Sequence[Path]) -> VersionTrail:
    """Create a VersionTrail for the given workspace folders.

    Repository-level configuration is read from the first workspace folder.
    """
    repo_hint: Optional[Path] = workspace_folders[0] if workspace_folders else None
    settings = load_settings(repo_hint)
    return VersionTrail(workspace_folders=list(workspace_folders), settings=settings)


def get_trail(ctx: typer.Context) -> VersionTrail:
    """Get (and memoize on the context) the VersionTrail for this invocation.

    A broken config file ends the command with an error message and exit code 1.
    """
    obj = ctx.ensure_object(dict)
    if obj.get("trail") is None:
        try:
            obj["trail"] = build_trail(obj.get("workspace") or [Path.cwd()])
        except ConfigError as e:
            typer.echo(f"Error: {e}", err=True)
            raise typer.Exit(1)
    return obj["trail"]


def format_changes(files: Sequence[UncommittedChange]) -> list[str]:
    """Format uncommitted changes as 'kind  path' lines."""
    return [f"  {change.change_kind:<20} {change.file_name}" for change in files]


def confirm_discard(files: Sequence[UncommittedChange]) -> bool:
    """Show what will be lost and ask before discarding it."""
    typer.echo(f"You have {len(files)} uncommitted change(s) that will be lost:")
    for line in format_changes(files):
        typer.echo(line)
    return typer.confirm("Discard these changes?", default=False)
