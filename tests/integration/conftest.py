"""Shared fixtures for API integration tests."""

from datetime import datetime, timezone

import mongomock
import pytest
from fastapi.testclient import TestClient

from src.lib.config import Settings
from src.models.role import Role
from src.web.app import create_app
from tests.integration.fakes import (
    ADMIN_ID,
    BROKEN_ID,
    MODERATOR_ID,
    OTHER_WRITER_ID,
    READER_ID,
    WRITER_ID,
    FakeAssetStore,
    FakeOAuthClient,
    FakeRoleResolver,
)


@pytest.fixture
def settings():
    """Test settings."""
    return Settings(session_secret="test-session-secret")


@pytest.fixture
def database():
    """In-memory MongoDB database."""
    return mongomock.MongoClient().dark_city_test


@pytest.fixture
def role_resolver():
    return FakeRoleResolver(
        {
            ADMIN_ID: Role.ADMIN,
            MODERATOR_ID: Role.MODERATOR,
            WRITER_ID: Role.WRITER,
            OTHER_WRITER_ID: Role.WRITER,
            READER_ID: Role.READER,
            BROKEN_ID: Role.WRITER,
        },
        failing={BROKEN_ID},
    )


@pytest.fixture
def asset_store():
    return FakeAssetStore(b"glTF" + b"\x00" * 60, datetime(2024, 3, 15, 10, 0, 0, tzinfo=timezone.utc))


@pytest.fixture
def app(settings, database, role_resolver, asset_store):
    oauth = FakeOAuthClient()
    return create_app(
        settings,
        database=database,
        role_resolver=role_resolver,
        oauth_client_factory=lambda: oauth,
        asset_store=asset_store,
    )


@pytest.fixture
def client(app):
    """Anonymous test client."""
    return TestClient(app)


def login(client: TestClient, user_id: str) -> TestClient:
    """Run the OAuth redirect/callback flow for ``user_id``."""
    response = client.get("/auth/discord", follow_redirects=False)
    assert response.status_code == 302
    state = response.headers["location"].split("state=")[1]
    response = client.get(
        f"/auth/discord/callback?code={user_id}&state={state}",
        follow_redirects=False,
    )
    assert response.status_code == 302
    return client


@pytest.fixture
def client_for(app):
    """Factory for clients logged in as a given user id."""
    def make(user_id: str) -> TestClient:
        return login(TestClient(app), user_id)
    return make
