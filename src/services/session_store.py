"""Server-side session store in the ``sessions`` collection."""

from datetime import datetime, timedelta, timezone
from typing import Callable, Optional
import secrets

from pymongo import ASCENDING
from pymongo.collection import Collection

from ..models.base import utcnow
from ..models.discord_user import DiscordUser
from ..lib.logging import get_logger
from .database import SESSIONS_COLLECTION

logger = get_logger(__name__)


def _as_utc(value: datetime) -> datetime:
    # pymongo hands back naive UTC datetimes
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class SessionStore:
    """
    Sessions keyed by a random id.

    The browser only holds the id (in a signed cookie); the Discord
    profile stays server-side. Expiry is enforced on read and by a MongoDB
    TTL index.
    """

    def __init__(
        self,
        collection: Collection,
        ttl_seconds: int,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.collection = collection
        self.ttl_seconds = ttl_seconds
        self._clock = clock

    def ensure_indexes(self) -> None:
        self.collection.create_index([("expires_at", ASCENDING)], expireAfterSeconds=0)

    def create(self, user: DiscordUser) -> str:
        """
        Create a session for a logged-in user.

        Returns:
            New session id
        """
        session_id = secrets.token_urlsafe(32)
        now = self._clock()
        self.collection.insert_one(
            {
                "_id": session_id,
                "user": user.model_dump(),
                "created_at": now,
                "expires_at": now + timedelta(seconds=self.ttl_seconds),
            }
        )
        logger.info("session_created", user_id=user.user_id)
        return session_id

    def get(self, session_id: str) -> Optional[DiscordUser]:
        """
        Get the user of a live session.

        Returns:
            DiscordUser, or None if the session is unknown or expired
        """
        if not session_id:
            return None
        doc = self.collection.find_one({"_id": session_id})
        if doc is None:
            return None
        if _as_utc(doc["expires_at"]) <= self._clock():
            self.collection.delete_one({"_id": session_id})
            return None
        return DiscordUser(**doc["user"])

    def delete(self, session_id: str) -> None:
        if session_id:
            self.collection.delete_one({"_id": session_id})


def create_session_store(database, ttl_seconds: int) -> SessionStore:
    return SessionStore(database[SESSIONS_COLLECTION], ttl_seconds)
