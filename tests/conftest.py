import os

import pytest

from restpager.clients.oauth import OAuthConfig
from restpager.settings import reset_settings


@pytest.fixture(autouse=True)
def clear_test_env(monkeypatch):
    """Clear restpager environment variables and the settings cache."""
    for key in list(os.environ):
        if key.startswith("RESTPAGER_"):
            monkeypatch.delenv(key, raising=False)
    # Keep a developer's .env out of the tests
    monkeypatch.chdir(os.path.dirname(__file__))
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def oauth_config():
    """Fixture for a confidential OAuth client."""
    return OAuthConfig(
        client_id="client-id",
        client_secret="client-secret",
        redirect_uri="http://localhost:8888/callback",
        scopes={"user-read", "library-read"},
        token_url="https://auth.test/api/token",
        authorize_url="https://auth.test/authorize",
    )
