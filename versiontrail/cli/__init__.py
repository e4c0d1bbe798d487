"""CLI entry point for versiontrail.

This module provides the main CLI application that combines all commands
and subcommands into a single unified interface.
"""

import typer

from versiontrail.cli.backups import backups_app
from versiontrail.cli.config import config_app
from versiontrail.cli.history import history_command, show_command, status_command
from versiontrail.cli.init import init_command, repos_command
from versiontrail.cli.main import main_command
from versiontrail.cli.restore import discard_command, restore_command, save_command

# Main application
app = typer.Typer(
    name="versiontrail",
    help="versiontrail: browse history and restore earlier versions without rewriting it",
    add_completion=False,
)

# Add subcommand groups
app.add_typer(backups_app, name="backups")
app.add_typer(config_app, name="config")

# Add individual commands
app.command("history")(history_command)
app.command("show")(show_command)
app.command("status")(status_command)
app.command("restore")(restore_command)
app.command("save")(save_command)
app.command("discard")(discard_command)
app.command("init")(init_command)
app.command("repos")(repos_command)

# Global options (--workspace, --verbose, --version)
app.callback(invoke_without_command=True)(main_command)


__all__ = [
    "app",
    "backups_app",
    "config_app",
    "main_command",
    "history_command",
    "show_command",
    "status_command",
    "restore_command",
    "save_command",
    "discard_command",
    "init_command",
    "repos_command",
]
