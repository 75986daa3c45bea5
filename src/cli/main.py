"""Main CLI entry point for the Dark City map server."""

import typer
from pathlib import Path

from ..lib.config import PORT
from .check_config import check_config_command
from .roles import resolve_role_command
from .upload_glb import upload_glb_command
from .web import web_command

app = typer.Typer(
    name="dark-city-map",
    help="Dark City 3D map server: districts, pins and Discord roles"
)


@app.command()
def web(
    host: str = typer.Option("0.0.0.0", "--host", help="Host to bind to"),
    port: int = typer.Option(PORT, "--port", envvar="PORT", help="Port to listen on"),
    reload: bool = typer.Option(False, "--reload", help="Enable auto-reload for development")
):
    """Start the web server."""
    web_command(host=host, port=port, reload=reload)


@app.command("upload-glb")
def upload_glb(
    path: Path = typer.Argument(..., help="Path to the map .glb file")
):
    """Upload the map model to GridFS, replacing the previous one."""
    upload_glb_command(path)


@app.command("resolve-role")
def resolve_role(
    user_id: str = typer.Argument(..., help="Discord user ID"),
    output_format: str = typer.Option("text", "--output-format", help="Output format: text or json")
):
    """Resolve a user's role from their Discord guild roles."""
    resolve_role_command(user_id, output_format=output_format)


@app.command("check-config")
def check_config():
    """Check that required environment variables are set."""
    check_config_command()


if __name__ == "__main__":
    app()
