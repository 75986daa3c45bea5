"""Configuration check CLI command."""

import os

import typer

from ..lib.config import CONFIG_VARIABLES, load_settings
from ..lib.errors import ConfigurationError


def check_config_command() -> None:
    """Report which environment variables are set, hiding secrets."""
    typer.echo("=" * 60)
    typer.echo("Dark City map configuration")
    typer.echo("=" * 60)

    for name, secret in CONFIG_VARIABLES.items():
        value = os.getenv(name)
        if not value:
            typer.echo(f"  {name}: NOT SET")
        elif secret:
            typer.echo(f"  {name}: ***SET*** (hidden)")
        else:
            typer.echo(f"  {name}: {value}")

    settings = load_settings()
    problems = []
    for check in (settings.require_mongodb_uri, settings.require_oauth, settings.require_guild,
                  settings.resolve_session_secret):
        try:
            check()
        except ConfigurationError as e:
            problems.append(str(e))

    typer.echo("")
    if problems:
        for problem in problems:
            typer.echo(f"  ! {problem}")
        raise typer.Exit(code=1)
    typer.echo("All required variables are set.")
