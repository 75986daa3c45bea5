"""Upload the map model (GLB) to GridFS."""

from pathlib import Path

import typer

from ..lib.config import load_settings
from ..lib.errors import ConfigurationError
from ..lib.logging import get_logger
from ..services.database import close_client, get_database
from ..services.map_asset_store import create_map_asset_store

logger = get_logger(__name__)


def upload_glb_command(path: Path) -> None:
    """
    Replace the stored map model with a local .glb file.

    Args:
        path: Path to the .glb file
    """
    path = path.resolve()
    if not path.is_file():
        typer.echo(f"Error: file not found: {path}", err=True)
        raise typer.Exit(code=1)

    settings = load_settings()
    try:
        database = get_database(settings)
    except ConfigurationError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)

    store = create_map_asset_store(database, settings.gridfs_bucket, settings.map_glb_filename)
    try:
        file_id = store.upload(path)
    finally:
        close_client()

    typer.echo(
        f"Uploaded {path} to GridFS as {settings.map_glb_filename} "
        f"(bucket: {settings.gridfs_bucket}, id: {file_id})"
    )
