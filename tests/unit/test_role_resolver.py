"""Unit tests for Discord role resolution."""

from unittest.mock import Mock

import pytest
import requests

from src.lib.errors import ConfigurationError, DiscordAPIError
from src.models.role import Role
from src.services.role_cache import RoleCache
from src.services.role_resolver import DiscordRoleResolver

GUILD_ID = "900000000000000001"
USER_ID = "100000000000000042"

ROLE_IDS = [
    (Role.ADMIN, "r-admin"),
    (Role.MODERATOR, "r-mod"),
    (Role.WRITER, "r-writer"),
    (Role.READER, "r-reader"),
]


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


def _response(status_code, payload=None):
    response = Mock()
    response.status_code = status_code
    response.json.return_value = payload if payload is not None else {}
    return response


class TestDiscordRoleResolver:
    @pytest.fixture
    def clock(self):
        return FakeClock()

    @pytest.fixture
    def http(self):
        return Mock()

    @pytest.fixture
    def resolver(self, http, clock):
        return DiscordRoleResolver(
            guild_id=GUILD_ID,
            bot_token="bot-token",
            role_ids=ROLE_IDS,
            cache=RoleCache(max_entries=10, clock=clock),
            http=http,
            success_ttl=600,
            denied_ttl=120,
            api_base="https://discord.test/api",
        )

    def test_highest_role_wins(self, resolver, http):
        http.get.return_value = _response(200, {"roles": ["r-reader", "other", "r-mod", "r-writer"]})

        assert resolver.resolve_role(USER_ID) == Role.MODERATOR

        http.get.assert_called_once()
        args, kwargs = http.get.call_args
        assert args[0] == f"https://discord.test/api/guilds/{GUILD_ID}/members/{USER_ID}"
        assert kwargs["headers"] == {"Authorization": "Bot bot-token"}
        assert kwargs["timeout"] == 10

    def test_member_without_known_roles_is_public(self, resolver, http):
        http.get.return_value = _response(200, {"roles": ["something-else"]})
        assert resolver.resolve_role(USER_ID) == Role.PUBLIC

    def test_missing_roles_field_is_public(self, resolver, http):
        http.get.return_value = _response(200, {"user": {"id": USER_ID}})
        assert resolver.resolve_role(USER_ID) == Role.PUBLIC

    def test_success_cached_until_ttl(self, resolver, http, clock):
        http.get.return_value = _response(200, {"roles": ["r-writer"]})

        assert resolver.resolve_role(USER_ID) == Role.WRITER
        clock.now = 599
        assert resolver.resolve_role(USER_ID) == Role.WRITER
        assert http.get.call_count == 1

        http.get.return_value = _response(200, {"roles": ["r-admin"]})
        clock.now = 600
        assert resolver.resolve_role(USER_ID) == Role.ADMIN
        assert http.get.call_count == 2

    def test_non_member_soft_denied_and_cached_shorter(self, resolver, http, clock):
        http.get.return_value = _response(404, {"message": "Unknown Member"})

        assert resolver.resolve_role(USER_ID) == Role.PUBLIC
        clock.now = 119
        assert resolver.resolve_role(USER_ID) == Role.PUBLIC
        assert http.get.call_count == 1

        http.get.return_value = _response(200, {"roles": ["r-reader"]})
        clock.now = 120
        assert resolver.resolve_role(USER_ID) == Role.READER
        assert http.get.call_count == 2

    @pytest.mark.parametrize("status", [401, 403, 429, 500, 502, 503])
    def test_untrusted_statuses_raise_and_are_not_cached(self, resolver, http, status):
        http.get.return_value = _response(status)

        with pytest.raises(DiscordAPIError) as exc_info:
            resolver.resolve_role(USER_ID)
        assert exc_info.value.status_code == status

        http.get.return_value = _response(200, {"roles": ["r-writer"]})
        assert resolver.resolve_role(USER_ID) == Role.WRITER
        assert http.get.call_count == 2

    def test_transport_error_raises(self, resolver, http):
        http.get.side_effect = requests.ConnectionError("connection refused")

        with pytest.raises(DiscordAPIError):
            resolver.resolve_role(USER_ID)
        assert len(resolver.cache) == 0

    def test_invalid_json_raises(self, resolver, http):
        response = _response(200)
        response.json.side_effect = ValueError("not json")
        http.get.return_value = response

        with pytest.raises(DiscordAPIError):
            resolver.resolve_role(USER_ID)

    @pytest.mark.parametrize("guild_id, token", [(None, "bot-token"), (GUILD_ID, None), ("", "")])
    def test_missing_configuration(self, http, guild_id, token):
        resolver = DiscordRoleResolver(guild_id, token, ROLE_IDS, http=http)

        with pytest.raises(ConfigurationError):
            resolver.resolve_role(USER_ID)
        http.get.assert_not_called()

    def test_empty_user_id(self, resolver):
        with pytest.raises(ValueError):
            resolver.resolve_role("")

    def test_clear_user_forces_lookup(self, resolver, http):
        http.get.return_value = _response(200, {"roles": ["r-reader"]})
        resolver.resolve_role(USER_ID)

        assert resolver.clear_user(USER_ID) == 1

        http.get.return_value = _response(200, {"roles": ["r-admin"]})
        assert resolver.resolve_role(USER_ID) == Role.ADMIN
        assert http.get.call_count == 2

    def test_clear_user_leaves_other_ids_alone(self, resolver, http):
        http.get.return_value = _response(200, {"roles": ["r-writer"]})
        resolver.resolve_role("12")
        resolver.resolve_role("123")

        assert resolver.clear_user("12") == 1
        assert resolver.clear_user("12") == 0

        assert resolver.resolve_role("123") == Role.WRITER
        assert http.get.call_count == 2

    def test_highest_role_precedence(self, resolver):
        assert resolver.highest_role(["r-reader", "r-admin"]) == Role.ADMIN
        assert resolver.highest_role([]) == Role.PUBLIC
