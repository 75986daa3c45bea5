"""MongoDB connection handling."""

from typing import Optional

from pymongo import MongoClient
from pymongo.database import Database

from ..lib.config import DEFAULT_DB_NAME, Settings
from ..lib.logging import get_logger

logger = get_logger(__name__)

PINS_COLLECTION = "pins"
MAP_CONFIG_COLLECTION = "map_config"
SESSIONS_COLLECTION = "sessions"

_client: Optional[MongoClient] = None


def get_client(settings: Settings) -> MongoClient:
    """
    Get the shared MongoDB client, creating it on first use.

    Raises:
        ConfigurationError: If MONGODB_URI is not set
    """
    global _client
    if _client is None:
        uri = settings.require_mongodb_uri()
        _client = MongoClient(uri, serverSelectionTimeoutMS=10000)
        logger.info("mongodb_client_created")
    return _client


def get_database(settings: Settings, client: Optional[MongoClient] = None) -> Database:
    """
    Get the application database.

    Uses MONGODB_DB when set, else the database named in the URI, else
    the default name.
    """
    client = client or get_client(settings)
    if settings.mongodb_db:
        return client[settings.mongodb_db]
    return client.get_default_database(DEFAULT_DB_NAME)


def close_client() -> None:
    global _client
    if _client is not None:
        _client.close()
        _client = None
        logger.info("mongodb_client_closed")
