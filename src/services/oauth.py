"""Discord OAuth2 login (authorization code flow)."""

from typing import Optional, Tuple

from authlib.integrations.requests_client import OAuth2Session

from ..lib.config import Settings
from ..lib.errors import DiscordAPIError
from ..lib.logging import get_logger
from ..models.discord_user import DiscordUser

logger = get_logger(__name__)

DISCORD_AUTHORIZE_URL = "https://discord.com/oauth2/authorize"
DISCORD_TOKEN_URL = "https://discord.com/api/oauth2/token"
DISCORD_USER_URL = "https://discord.com/api/v10/users/@me"
DISCORD_SCOPE = "identify"


class DiscordOAuthClient:
    """Builds the Discord authorize URL and turns a callback code into a profile."""

    def __init__(self, client_id: str, client_secret: str, redirect_uri: str, scope: str = DISCORD_SCOPE):
        self.client_id = client_id
        self.client_secret = client_secret
        self.redirect_uri = redirect_uri
        self.scope = scope

    def _session(self, state: Optional[str] = None) -> OAuth2Session:
        return OAuth2Session(
            self.client_id,
            self.client_secret,
            scope=self.scope,
            redirect_uri=self.redirect_uri,
            state=state,
        )

    def authorization_url(self) -> Tuple[str, str]:
        """
        Start a login.

        Returns:
            Tuple of (url to redirect the browser to, state to remember)
        """
        url, state = self._session().create_authorization_url(DISCORD_AUTHORIZE_URL, prompt="none")
        return url, state

    def fetch_user(self, code: str, state: str) -> DiscordUser:
        """
        Exchange the callback code and fetch the Discord profile.

        Raises:
            DiscordAPIError: If Discord rejects the code or the profile request
        """
        with self._session(state=state) as session:
            try:
                session.fetch_token(DISCORD_TOKEN_URL, code=code)
                response = session.get(DISCORD_USER_URL, timeout=10)
            except Exception as e:
                logger.error("discord_oauth_exchange_failed", error=str(e))
                raise DiscordAPIError(f"Discord OAuth exchange failed: {e}") from e

        if response.status_code != 200:
            raise DiscordAPIError(
                f"Discord profile request failed: {response.status_code}",
                status_code=response.status_code,
            )
        return DiscordUser.from_discord_profile(response.json())


def create_oauth_client(settings: Settings) -> DiscordOAuthClient:
    """
    Create an OAuth client from settings.

    Raises:
        ConfigurationError: If client id, secret or callback URL is missing
    """
    client_id, client_secret, callback_url = settings.require_oauth()
    return DiscordOAuthClient(client_id, client_secret, callback_url)
