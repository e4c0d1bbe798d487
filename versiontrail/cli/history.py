"""CLI commands for reading history: history, show, status."""

from typing import Optional

import typer

from versiontrail.cli.utils import format_changes, get_trail
from versiontrail.git.exceptions import GitError


def history_command(
    ctx: typer.Context,
    offset: int = typer.Option(0, "--offset", "-o", min=0, help="Number of newest versions to skip"),
    limit: Optional[int] = typer.Option(None, "--limit", "-n", min=1, help="Number of versions to show"),
) -> None:
    """List versions, newest first."""
    try:
        page = get_trail(ctx).list_commits(offset, limit)
    except GitError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    if not page.commits:
        typer.echo("No commits found in this repository.")
        return

    for commit in page.commits:
        typer.echo(
            f"v{commit.sequence_version:<5} {commit.hash}  {commit.timestamp}  "
            f"{commit.author}: {commit.subject}"
        )

    typer.echo()
    typer.echo(f"Showing {len(page.commits)} of {page.total_count} version(s)")
    if page.has_more:
        typer.echo(f"More: versiontrail history --offset {page.next_offset}")


def show_command(
    ctx: typer.Context,
    commit_hash: str = typer.Argument(..., help="Commit to show"),
) -> None:
    """Show full details of one version."""
    try:
        details = get_trail(ctx).get_commit_details(commit_hash)
    except GitError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)
    typer.echo(details)


def status_command(ctx: typer.Context) -> None:
    """Show uncommitted changes."""
    try:
        changes = get_trail(ctx).inspect_uncommitted_changes()
    except GitError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    if not changes.has_changes:
        typer.echo("No uncommitted changes.")
        return

    typer.echo(f"{len(changes.files)} uncommitted change(s):")
    for line in format_changes(changes.files):
        typer.echo(line)
    typer.echo()
    typer.echo(changes.summary)
