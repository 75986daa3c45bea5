"""Resolve a user's map role from their Discord guild membership."""

from typing import List, Optional, Sequence, Tuple

import requests

from ..lib.config import Settings
from ..lib.errors import ConfigurationError, DiscordAPIError
from ..lib.logging import get_logger
from ..models.role import Role
from .role_cache import RoleCache

logger = get_logger(__name__)

DISCORD_API_BASE = "https://discord.com/api/v10"
DISCORD_TIMEOUT_SECONDS = 10


class DiscordRoleResolver:
    """
    Looks up guild members through the Discord REST API with a bot token.

    Results are cached: a resolved role for ``success_ttl`` seconds, a
    soft-denied lookup (non-member, unknown user) for ``denied_ttl``
    seconds. Transient and credential failures raise ``DiscordAPIError``
    and are not cached, so they are never mistaken for "no permission".
    """

    def __init__(
        self,
        guild_id: Optional[str],
        bot_token: Optional[str],
        role_ids: Sequence[Tuple[Role, str]],
        cache: Optional[RoleCache] = None,
        http: Optional[requests.Session] = None,
        success_ttl: float = 600,
        denied_ttl: float = 120,
        api_base: str = DISCORD_API_BASE,
    ):
        """
        Initialize role resolver.

        Args:
            guild_id: Discord guild (server) ID
            bot_token: Bot token with access to guild members
            role_ids: (role, discord role id) pairs in precedence order, highest first
            cache: Optional role cache (creates new if not provided)
            http: Optional requests session
            success_ttl: Seconds a resolved role stays cached
            denied_ttl: Seconds a soft-denied lookup stays cached
            api_base: Discord API base URL
        """
        self.guild_id = guild_id
        self.bot_token = bot_token
        self.role_ids: List[Tuple[Role, str]] = list(role_ids)
        self.cache: RoleCache = cache if cache is not None else RoleCache()
        self.http = http or requests.Session()
        self.success_ttl = success_ttl
        self.denied_ttl = denied_ttl
        self.api_base = api_base.rstrip("/")

    @staticmethod
    def cache_key(user_id: str) -> str:
        return f"role:{user_id}"

    def resolve_role(self, user_id: str) -> Role:
        """
        Get the user's highest-precedence role.

        Args:
            user_id: Discord user ID

        Returns:
            Resolved Role (PUBLIC if the user holds none of the known roles)

        Raises:
            ConfigurationError: If guild id or bot token is missing
            DiscordAPIError: On transport errors, 429, 5xx, 401 or 403
        """
        if not user_id:
            raise ValueError("user_id is required")
        if not self.guild_id or not self.bot_token:
            raise ConfigurationError("Discord configuration incomplete")

        key = self.cache_key(user_id)
        cached = self.cache.get(key)
        if cached is not None:
            logger.debug("role_cache_hit", user_id=user_id, role=cached.value)
            return cached

        member_roles = self._fetch_member_roles(user_id)
        if member_roles is None:
            self.cache.set(key, Role.PUBLIC, self.denied_ttl)
            return Role.PUBLIC

        role = self.highest_role(member_roles)
        self.cache.set(key, role, self.success_ttl)
        logger.info("role_resolved", user_id=user_id, role=role.value)
        return role

    def highest_role(self, member_roles: Sequence[str]) -> Role:
        """First configured role (in precedence order) present in ``member_roles``."""
        held = set(member_roles)
        for role, discord_role_id in self.role_ids:
            if discord_role_id in held:
                return role
        return Role.PUBLIC

    def clear_user(self, user_id: str) -> int:
        """Drop the cached role of one user (e.g. after their roles changed)."""
        removed = 1 if self.cache.delete(self.cache_key(str(user_id))) else 0
        logger.info("role_cache_cleared", user_id=user_id, removed=removed)
        return removed

    def _fetch_member_roles(self, user_id: str) -> Optional[List[str]]:
        """
        Fetch the member's role ids.

        Returns:
            List of role ids, or None for a soft-denied lookup
        """
        url = f"{self.api_base}/guilds/{self.guild_id}/members/{user_id}"
        try:
            response = self.http.get(
                url,
                headers={"Authorization": f"Bot {self.bot_token}"},
                timeout=DISCORD_TIMEOUT_SECONDS,
            )
        except requests.RequestException as e:
            logger.error("discord_request_failed", user_id=user_id, error=str(e))
            raise DiscordAPIError(f"Discord API request failed: {e}") from e

        status = response.status_code
        if status == 429 or status >= 500:
            logger.warning("discord_api_unavailable", user_id=user_id, status=status)
            raise DiscordAPIError(f"Discord API error: {status}", status_code=status)
        if status in (401, 403):
            logger.error("discord_credentials_rejected", status=status, guild_id=self.guild_id)
            raise DiscordAPIError(
                f"Discord rejected bot credentials ({status}); check DISCORD_BOT_TOKEN and guild access",
                status_code=status,
            )
        if not 200 <= status < 300:
            logger.info("discord_member_not_found", user_id=user_id, status=status)
            return None

        try:
            data = response.json()
        except ValueError as e:
            raise DiscordAPIError("Discord API returned invalid JSON", status_code=status) from e

        roles = data.get("roles") if isinstance(data, dict) else None
        return [str(r) for r in roles] if isinstance(roles, list) else []


def create_role_resolver(
    settings: Settings,
    http: Optional[requests.Session] = None,
) -> DiscordRoleResolver:
    """
    Create a role resolver from settings.

    Args:
        settings: Application settings
        http: Optional requests session

    Returns:
        DiscordRoleResolver instance
    """
    return DiscordRoleResolver(
        guild_id=settings.discord_guild_id,
        bot_token=settings.discord_bot_token,
        role_ids=[
            (Role.ADMIN, settings.admin_role_id),
            (Role.MODERATOR, settings.moderator_role_id),
            (Role.WRITER, settings.writer_role_id),
            (Role.READER, settings.reader_role_id),
        ],
        cache=RoleCache(max_entries=settings.role_cache_max_entries),
        http=http,
        success_ttl=settings.role_cache_ttl_seconds,
        denied_ttl=settings.role_cache_denied_ttl_seconds,
    )
