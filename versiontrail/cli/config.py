"""CLI commands for configuration."""

import typer

from versiontrail import config as vt_config

# Subcommand group for configuration
config_app = typer.Typer(
    name="config",
    help="Show versiontrail configuration (~/.versiontrail/ and <repo>/.versiontrail/)",
    add_completion=False,
)


@config_app.command("show")
def config_show(ctx: typer.Context) -> None:
    """Show the effective configuration and where it comes from."""
    workspace = ctx.ensure_object(dict).get("workspace") or []
    repo_root = workspace[0] if workspace else None

    try:
        settings = vt_config.load_settings(repo_root)
    except vt_config.ConfigError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    typer.echo("Current versiontrail configuration:")
    typer.echo()
    for key, value in settings.model_dump().items():
        typer.echo(f"  {key}: {value}")
    typer.echo()

    user_file = vt_config.get_config_file_path()
    typer.echo(f"  User config: {user_file}{'' if user_file.exists() else ' (not found)'}")
    if repo_root is not None:
        repo_file = vt_config.get_repo_config_file(repo_root)
        typer.echo(f"  Repo config: {repo_file}{'' if repo_file.exists() else ' (not found)'}")
