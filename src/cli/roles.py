"""Role lookup CLI command."""

import json

import typer

from ..lib.config import load_settings
from ..lib.errors import ConfigurationError, DiscordAPIError
from ..services.permission_checker import create_permission_checker
from ..services.role_resolver import create_role_resolver


def resolve_role_command(user_id: str, output_format: str = "text") -> None:
    """
    Print a user's resolved role and permissions.

    Args:
        user_id: Discord user ID
        output_format: text or json
    """
    resolver = create_role_resolver(load_settings())
    checker = create_permission_checker()
    try:
        role = resolver.resolve_role(user_id)
    except (ConfigurationError, DiscordAPIError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)

    permissions = checker.list_permissions(role)
    if output_format == "json":
        typer.echo(json.dumps({"user_id": user_id, "role": role.value, "permissions": permissions}))
        return

    typer.echo(f"User {user_id}: {role.value}")
    for permission in permissions:
        typer.echo(f"  - {permission}")
