"""Map model (GLB) storage in MongoDB GridFS."""

from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterator, Optional

from gridfs import GridFSBucket
from gridfs.errors import NoFile
from pymongo.database import Database

from ..lib.logging import get_logger

logger = get_logger(__name__)

GLB_CONTENT_TYPE = "model/gltf-binary"
CHUNK_SIZE = 256 * 1024


@dataclass
class MapAsset:
    """An opened map model: metadata plus a readable stream."""

    filename: str
    length: int
    upload_date: datetime
    file_id: str
    stream: Any
    content_type: str = GLB_CONTENT_TYPE

    @property
    def etag(self) -> str:
        return f'"{self.file_id}-{self.length}"'

    @property
    def last_modified(self) -> datetime:
        if self.upload_date.tzinfo is None:
            return self.upload_date.replace(tzinfo=timezone.utc)
        return self.upload_date.astimezone(timezone.utc)

    def iter_chunks(self) -> Iterator[bytes]:
        try:
            while True:
                chunk = self.stream.read(CHUNK_SIZE)
                if not chunk:
                    break
                yield chunk
        finally:
            self.close()

    def close(self) -> None:
        close = getattr(self.stream, "close", None)
        if close is not None:
            close()


class MapAssetStore:
    """Reads and replaces the map model stored in a GridFS bucket."""

    def __init__(self, database: Database, bucket_name: str, filename: str):
        """
        Initialize map asset store.

        Args:
            database: MongoDB database
            bucket_name: GridFS bucket name
            filename: GridFS filename of the map model
        """
        self.database = database
        self.bucket_name = bucket_name
        self.filename = filename

    def _bucket(self) -> GridFSBucket:
        return GridFSBucket(self.database, bucket_name=self.bucket_name)

    def open(self) -> Optional[MapAsset]:
        """
        Open the latest revision of the map model.

        Returns:
            MapAsset, or None if no file with the configured name exists
        """
        try:
            grid_out = self._bucket().open_download_stream_by_name(self.filename)
        except NoFile:
            logger.warning("map_asset_missing", bucket=self.bucket_name, filename=self.filename)
            return None

        return MapAsset(
            filename=self.filename,
            length=grid_out.length,
            upload_date=grid_out.upload_date,
            file_id=str(grid_out._id),
            stream=grid_out,
        )

    def upload(self, path: Path) -> str:
        """
        Replace the stored map model with a local file.

        Args:
            path: Path to the .glb file

        Returns:
            GridFS id of the uploaded file
        """
        path = Path(path).resolve()
        bucket = self._bucket()

        existing = list(bucket.find({"filename": self.filename}))
        for grid_out in existing:
            bucket.delete(grid_out._id)

        with open(path, "rb") as f:
            file_id = bucket.upload_from_stream(
                self.filename,
                f,
                metadata={"contentType": GLB_CONTENT_TYPE, "source": path.name},
            )

        logger.info(
            "map_asset_uploaded",
            path=str(path),
            bucket=self.bucket_name,
            filename=self.filename,
            replaced=len(existing),
        )
        return str(file_id)


def create_map_asset_store(database: Database, bucket_name: str, filename: str) -> MapAssetStore:
    return MapAssetStore(database, bucket_name, filename)
