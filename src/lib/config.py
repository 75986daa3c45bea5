"""Configuration management for the Dark City map server."""

import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field

from .errors import ConfigurationError

# Load .env from the working directory without overriding real environment
load_dotenv(override=False)

BASE_DIR = Path(__file__).resolve().parent.parent
STATIC_DIR = BASE_DIR / "web" / "static"

APP_ENV: str = os.getenv("APP_ENV", "development")

# Document database
MONGODB_URI: Optional[str] = os.getenv("MONGODB_URI")
MONGODB_DB: Optional[str] = os.getenv("MONGODB_DB")
DEFAULT_DB_NAME = "dark_city"
GRIDFS_BUCKET: str = os.getenv("GRIDFS_BUCKET", "darkCityAssets")
MAP_GLB_FILENAME: str = os.getenv("MAP_GLB_FILENAME", "dark.city.map.glb")

# Discord OAuth
DISCORD_CLIENT_ID: Optional[str] = os.getenv("DISCORD_CLIENT_ID")
DISCORD_CLIENT_SECRET: Optional[str] = os.getenv("DISCORD_CLIENT_SECRET")
DISCORD_CALLBACK_URL: Optional[str] = os.getenv("DISCORD_CALLBACK_URL")

# Discord guild role sync
DISCORD_GUILD_ID: Optional[str] = os.getenv("DISCORD_GUILD_ID")
DISCORD_BOT_TOKEN: Optional[str] = os.getenv("DISCORD_BOT_TOKEN")
DISCORD_ADMIN_ROLE_ID: str = os.getenv("DISCORD_ADMIN_ROLE_ID", "1261095707494842519")
DISCORD_MODERATOR_ROLE_ID: str = os.getenv("DISCORD_MODERATOR_ROLE_ID", "1261096385277722666")
DISCORD_WRITER_ROLE_ID: str = (
    os.getenv("WRITER_ROLE_ID") or os.getenv("DISCORD_WRITER_ROLE_ID") or "1277450947664150538"
)
DISCORD_READER_ROLE_ID: str = os.getenv("DISCORD_READER_ROLE_ID", "1261096495860682873")

# Role cache
ROLE_CACHE_TTL_SECONDS: int = 10 * 60
ROLE_CACHE_DENIED_TTL_SECONDS: int = 2 * 60
ROLE_CACHE_MAX_ENTRIES: int = int(os.getenv("ROLE_CACHE_MAX_ENTRIES", "1024"))

# Sessions
SESSION_SECRET: Optional[str] = os.getenv("SESSION_SECRET")
DEV_SESSION_SECRET = "dark-city-dev-session-secret"
SESSION_TTL_SECONDS: int = int(os.getenv("SESSION_TTL_SECONDS", str(7 * 24 * 3600)))
SESSION_COOKIE_NAME = "dark_city_session"

# Telemetry (optional)
TELEMETRY_URL: Optional[str] = os.getenv("TELEMETRY_URL")
TELEMETRY_TOKEN: Optional[str] = os.getenv("TELEMETRY_TOKEN")

# Server
PORT: int = int(os.getenv("PORT", "3000"))


class Settings(BaseModel):
    """
    Resolved application settings.

    Built from the environment by ``load_settings()``; tests construct it
    directly. Required values are checked by the ``require_*`` helpers at
    first use rather than at construction, so a server without OAuth
    credentials can still serve the public map.
    """

    app_env: str = Field("development", description="Deployment environment name")
    mongodb_uri: Optional[str] = Field(None, description="MongoDB connection string")
    mongodb_db: Optional[str] = Field(None, description="Database name override")
    gridfs_bucket: str = Field(GRIDFS_BUCKET, description="GridFS bucket holding the map model")
    map_glb_filename: str = Field(MAP_GLB_FILENAME, description="GridFS filename of the map model")

    discord_client_id: Optional[str] = None
    discord_client_secret: Optional[str] = None
    discord_callback_url: Optional[str] = None

    discord_guild_id: Optional[str] = None
    discord_bot_token: Optional[str] = None
    admin_role_id: str = DISCORD_ADMIN_ROLE_ID
    moderator_role_id: str = DISCORD_MODERATOR_ROLE_ID
    writer_role_id: str = DISCORD_WRITER_ROLE_ID
    reader_role_id: str = DISCORD_READER_ROLE_ID

    role_cache_max_entries: int = Field(ROLE_CACHE_MAX_ENTRIES, ge=1)
    role_cache_ttl_seconds: int = Field(ROLE_CACHE_TTL_SECONDS, ge=1)
    role_cache_denied_ttl_seconds: int = Field(ROLE_CACHE_DENIED_TTL_SECONDS, ge=1)

    session_secret: Optional[str] = None
    session_ttl_seconds: int = Field(SESSION_TTL_SECONDS, ge=60)

    telemetry_url: Optional[str] = None
    telemetry_token: Optional[str] = None

    @property
    def is_production(self) -> bool:
        return self.app_env.lower() == "production"

    def require_mongodb_uri(self) -> str:
        if not self.mongodb_uri:
            raise ConfigurationError(
                "MONGODB_URI environment variable is required. "
                "Set it in your environment or .env file."
            )
        return self.mongodb_uri

    def require_oauth(self) -> tuple[str, str, str]:
        """
        Get Discord OAuth client credentials.

        Returns:
            Tuple of (client_id, client_secret, callback_url)

        Raises:
            ConfigurationError: If any value is not configured
        """
        missing = [
            name
            for name, value in (
                ("DISCORD_CLIENT_ID", self.discord_client_id),
                ("DISCORD_CLIENT_SECRET", self.discord_client_secret),
                ("DISCORD_CALLBACK_URL", self.discord_callback_url),
            )
            if not value
        ]
        if missing:
            raise ConfigurationError(f"Discord OAuth is not configured: missing {', '.join(missing)}")
        return self.discord_client_id, self.discord_client_secret, self.discord_callback_url

    def require_guild(self) -> tuple[str, str]:
        if not self.discord_guild_id or not self.discord_bot_token:
            raise ConfigurationError(
                "Discord configuration incomplete: DISCORD_GUILD_ID and DISCORD_BOT_TOKEN are required"
            )
        return self.discord_guild_id, self.discord_bot_token

    def resolve_session_secret(self) -> str:
        """
        Get the cookie signing secret.

        Outside production a fixed development secret is used when none is
        configured; in production a missing secret is an error.
        """
        if self.session_secret:
            return self.session_secret
        if self.is_production:
            raise ConfigurationError("SESSION_SECRET environment variable is required in production")
        return DEV_SESSION_SECRET


def load_settings() -> Settings:
    """
    Build settings from environment variables.

    Returns:
        Settings instance
    """
    return Settings(
        app_env=APP_ENV,
        mongodb_uri=MONGODB_URI,
        mongodb_db=MONGODB_DB,
        gridfs_bucket=GRIDFS_BUCKET,
        map_glb_filename=MAP_GLB_FILENAME,
        discord_client_id=DISCORD_CLIENT_ID,
        discord_client_secret=DISCORD_CLIENT_SECRET,
        discord_callback_url=DISCORD_CALLBACK_URL,
        discord_guild_id=DISCORD_GUILD_ID,
        discord_bot_token=DISCORD_BOT_TOKEN,
        admin_role_id=DISCORD_ADMIN_ROLE_ID,
        moderator_role_id=DISCORD_MODERATOR_ROLE_ID,
        writer_role_id=DISCORD_WRITER_ROLE_ID,
        reader_role_id=DISCORD_READER_ROLE_ID,
        role_cache_max_entries=ROLE_CACHE_MAX_ENTRIES,
        role_cache_ttl_seconds=ROLE_CACHE_TTL_SECONDS,
        role_cache_denied_ttl_seconds=ROLE_CACHE_DENIED_TTL_SECONDS,
        session_secret=SESSION_SECRET,
        session_ttl_seconds=SESSION_TTL_SECONDS,
        telemetry_url=TELEMETRY_URL,
        telemetry_token=TELEMETRY_TOKEN,
    )


# Variables reported by `dark-city-map check-config`; True marks secrets
CONFIG_VARIABLES: dict[str, bool] = {
    "MONGODB_URI": True,
    "MONGODB_DB": False,
    "GRIDFS_BUCKET": False,
    "MAP_GLB_FILENAME": False,
    "DISCORD_CLIENT_ID": False,
    "DISCORD_CLIENT_SECRET": True,
    "DISCORD_CALLBACK_URL": False,
    "DISCORD_GUILD_ID": False,
    "DISCORD_BOT_TOKEN": True,
    "SESSION_SECRET": True,
    "TELEMETRY_URL": False,
    "TELEMETRY_TOKEN": True,
}
