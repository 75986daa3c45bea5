"""Web server CLI command."""

import typer
from ..lib.config import PORT
from ..web.app import run_server


def web_command(
    host: str = "0.0.0.0",
    port: int = PORT,
    reload: bool = False
):
    """Start the FastAPI web server."""
    typer.echo(f"Starting Dark City map server on http://{host}:{port}")
    typer.echo("Press CTRL+C to stop")
    run_server(host=host, port=port, reload=reload)
