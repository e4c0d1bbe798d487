"""CLI commands for backup branch management."""

from typing import Optional

import typer

from versiontrail.cli.utils import get_trail
from versiontrail.git.exceptions import GitError

# Subcommand group for backup branches
backups_app = typer.Typer(
    name="backups",
    help="Manage the backup branches created before each restore",
    add_completion=False,
)


@backups_app.command("list")
def backups_list(ctx: typer.Context) -> None:
    """List backup branches, newest first."""
    try:
        backups = get_trail(ctx).list_backups()
    except GitError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    if not backups:
        typer.echo("No backup branches.")
        return

    for backup in backups:
        typer.echo(f"  {backup.name}  ({backup.created_at.isoformat()})")
    typer.echo()
    typer.echo(f"{len(backups)} backup branch(es)")


@backups_app.command("cleanup")
def backups_cleanup(
    ctx: typer.Context,
    days: Optional[int] = typer.Option(
        None,
        "--days",
        "-d",
        min=0,
        help="Keep backups newer than this many days (default: from config)",
    ),
) -> None:
    """Delete old backup branches."""
    typer.echo("Cleaning up old backups...", err=True)
    try:
        deleted = get_trail(ctx).cleanup_backups(days)
    except GitError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    if not deleted:
        typer.echo("Nothing to clean up.")
        return
    for name in deleted:
        typer.echo(f"  deleted {name}")
    typer.echo(f"Removed {len(deleted)} backup branch(es).")
