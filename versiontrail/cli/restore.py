"""CLI commands that change the repository: restore, save, discard."""

import typer

from versiontrail.cli.utils import confirm_discard, get_trail
from versiontrail.git.exceptions import (
    GitError,
    NoUncommittedChangesError,
    RestoreFailedError,
)


def restore_command(
    ctx: typer.Context,
    commit_hash: str = typer.Argument(..., help="Commit whose files should be restored"),
    yes: bool = typer.Option(
        False,
        "--yes",
        "-y",
        help="Discard uncommitted changes without asking",
    ),
) -> None:
    """Restore an earlier version as a new commit. History is never rewritten."""
    trail = get_trail(ctx)
    typer.echo("Restoring version...", err=True)

    try:
        result = trail.restore_to_version(commit_hash, pre_confirmed=yes, confirm=confirm_discard)
    except RestoreFailedError as e:
        typer.echo(f"Error: {e}", err=True)
        if e.rolled_back:
            typer.echo("Your repository was returned to its previous state.", err=True)
        else:
            typer.echo("Automatic recovery did not complete. Check 'versiontrail backups list'.", err=True)
        raise typer.Exit(1)
    except GitError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    if not result.success:
        typer.echo(result.message or "Restore cancelled.")
        raise typer.Exit(0)

    typer.echo(f"{result.message} as {result.new_commit_hash} on {result.branch_name}")
    typer.echo(f"Previous commit: {result.previous_commit_hash}")
    if result.backup_branch:
        typer.echo(f"Backup branch: {result.backup_branch}")


def save_command(
    ctx: typer.Context,
    message: str = typer.Argument(..., help="Commit message"),
) -> None:
    """Save all uncommitted changes as a new version."""
    typer.echo("Saving changes...", err=True)
    try:
        new_hash = get_trail(ctx).save_all_changes(message)
    except NoUncommittedChangesError as e:
        typer.echo(str(e))
        raise typer.Exit(0)
    except GitError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)
    typer.echo(f"Changes saved successfully! ({new_hash})")


def discard_command(
    ctx: typer.Context,
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
) -> None:
    """Discard all uncommitted changes, including untracked files."""
    trail = get_trail(ctx)
    try:
        changes = trail.inspect_uncommitted_changes()
        if not changes.has_changes:
            typer.echo("No uncommitted changes.")
            return
        if not yes and not confirm_discard(changes.files):
            typer.echo("Discard cancelled.")
            raise typer.Exit(0)
        trail.discard_all_changes()
    except GitError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)
    typer.echo(f"Discarded {len(changes.files)} change(s).")
