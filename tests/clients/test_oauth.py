"""Tests for the OAuth2 token provider."""

import asyncio
import base64
from datetime import datetime, timedelta, timezone
from urllib.parse import parse_qs, urlparse

import httpx
import pytest

from restpager.clients.oauth import OAuthConfig, TokenProvider
from restpager.models.token import Token
from restpager.utils.errors import AuthenticationError


class TokenEndpoint:
    """Mock token endpoint recording submitted forms."""

    def __init__(self, status_code: int = 200, payload: dict | None = None):
        self.status_code = status_code
        self.payload = payload
        self.requests: list[httpx.Request] = []
        self.forms: list[dict[str, str]] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        form = {k: v[0] for k, v in parse_qs(request.content.decode()).items()}
        self.forms.append(form)
        payload = self.payload
        if payload is None:
            payload = {
                "access_token": f"access-{len(self.forms)}",
                "token_type": "Bearer",
                "expires_in": 3600,
                "scope": "user-read library-read",
            }
        return httpx.Response(self.status_code, json=payload)


def make_provider(config: OAuthConfig, endpoint: TokenEndpoint, token: Token | None = None):
    client = httpx.AsyncClient(transport=httpx.MockTransport(endpoint))
    return TokenProvider(config, http_client=client, token=token)


def expired_token(refresh_token: str | None = "refresh-1") -> Token:
    return Token(
        access_token="stale",
        expires_at=datetime.now(timezone.utc) - timedelta(minutes=1),
        refresh_token=refresh_token,
    )


def test_get_authorize_url(oauth_config):
    provider = TokenProvider(oauth_config)

    url = provider.get_authorize_url(state="xyz", show_dialog=True)

    parsed = urlparse(url)
    query = {k: v[0] for k, v in parse_qs(parsed.query).items()}
    assert url.startswith("https://auth.test/authorize?")
    assert query == {
        "response_type": "code",
        "client_id": "client-id",
        "redirect_uri": "http://localhost:8888/callback",
        "state": "xyz",
        "scope": "library-read user-read",
        "show_dialog": "true",
    }


def test_get_authorize_url_generates_state(oauth_config):
    provider = TokenProvider(oauth_config)

    query = parse_qs(urlparse(provider.get_authorize_url()).query)

    assert query["state"][0]
    assert "show_dialog" not in query


def test_get_authorize_url_requires_redirect_uri(oauth_config):
    config = oauth_config.model_copy(update={"redirect_uri": None})

    with pytest.raises(AuthenticationError):
        TokenProvider(config).get_authorize_url()


@pytest.mark.asyncio
async def test_request_token_exchanges_code(oauth_config):
    endpoint = TokenEndpoint(
        payload={
            "access_token": "abc",
            "expires_in": 60,
            "refresh_token": "refresh-abc",
            "scope": "user-read",
        }
    )
    provider = make_provider(oauth_config, endpoint)

    token = await provider.request_token(" the-code ")

    assert token.access_token == "abc"
    assert token.refresh_token == "refresh-abc"
    assert token.scopes == {"user-read"}
    assert await provider.get_token() == token
    assert endpoint.forms[0] == {
        "grant_type": "authorization_code",
        "code": "the-code",
        "redirect_uri": "http://localhost:8888/callback",
    }
    expected_auth = base64.b64encode(b"client-id:client-secret").decode()
    assert endpoint.requests[0].headers["Authorization"] == f"Basic {expected_auth}"


@pytest.mark.asyncio
async def test_public_client_sends_client_id_in_form(oauth_config):
    config = oauth_config.model_copy(update={"client_secret": None})
    endpoint = TokenEndpoint()
    provider = make_provider(config, endpoint)

    await provider.request_token("code")

    assert endpoint.forms[0]["client_id"] == "client-id"
    assert "Authorization" not in endpoint.requests[0].headers


@pytest.mark.asyncio
async def test_request_client_token(oauth_config):
    endpoint = TokenEndpoint()
    provider = make_provider(oauth_config, endpoint)

    token = await provider.request_client_token()

    assert token.access_token == "access-1"
    assert endpoint.forms[0] == {
        "grant_type": "client_credentials",
        "scope": "library-read user-read",
    }


@pytest.mark.asyncio
async def test_refresh_keeps_previous_refresh_token(oauth_config):
    endpoint = TokenEndpoint()
    provider = make_provider(oauth_config, endpoint, token=expired_token())

    token = await provider.refresh_token()

    assert token.access_token == "access-1"
    assert token.refresh_token == "refresh-1"
    assert endpoint.forms[0] == {
        "grant_type": "refresh_token",
        "refresh_token": "refresh-1",
    }


@pytest.mark.asyncio
async def test_refresh_with_explicit_refresh_token(oauth_config):
    endpoint = TokenEndpoint()
    provider = make_provider(oauth_config, endpoint)

    token = await provider.refresh_token("saved-refresh")

    assert token.refresh_token == "saved-refresh"
    assert endpoint.forms[0]["refresh_token"] == "saved-refresh"


@pytest.mark.asyncio
async def test_refresh_without_refresh_token_fails(oauth_config):
    provider = make_provider(oauth_config, TokenEndpoint())

    with pytest.raises(AuthenticationError, match="No refresh token"):
        await provider.refresh_token()


@pytest.mark.asyncio
async def test_get_access_token_returns_valid_token_without_request(oauth_config):
    endpoint = TokenEndpoint()
    token = Token(access_token="fresh", expires_in=3600)
    provider = make_provider(oauth_config, endpoint, token=token)

    assert await provider.get_access_token() == "fresh"
    assert endpoint.forms == []


@pytest.mark.asyncio
async def test_get_access_token_refreshes_expired_token(oauth_config):
    endpoint = TokenEndpoint()
    provider = make_provider(oauth_config, endpoint, token=expired_token())

    assert await provider.get_access_token() == "access-1"
    assert endpoint.forms[0]["grant_type"] == "refresh_token"
    assert (await provider.get_token()).refresh_token == "refresh-1"


@pytest.mark.asyncio
async def test_get_access_token_falls_back_to_client_credentials(oauth_config):
    endpoint = TokenEndpoint()
    provider = make_provider(oauth_config, endpoint)

    assert await provider.get_access_token() == "access-1"
    assert endpoint.forms[0]["grant_type"] == "client_credentials"


@pytest.mark.asyncio
async def test_get_access_token_without_any_grant_fails(oauth_config):
    config = oauth_config.model_copy(update={"client_secret": None})
    provider = make_provider(config, TokenEndpoint(), token=expired_token(None))

    with pytest.raises(AuthenticationError):
        await provider.get_access_token()


@pytest.mark.asyncio
async def test_concurrent_callers_refresh_once(oauth_config):
    endpoint = TokenEndpoint()
    provider = make_provider(oauth_config, endpoint, token=expired_token())

    tokens = await asyncio.gather(*(provider.get_access_token() for _ in range(5)))

    assert tokens == ["access-1"] * 5
    assert len(endpoint.forms) == 1


@pytest.mark.asyncio
async def test_token_endpoint_error_raises_authentication_error(oauth_config):
    endpoint = TokenEndpoint(
        status_code=400,
        payload={"error": "invalid_grant", "error_description": "Invalid refresh token"},
    )
    provider = make_provider(oauth_config, endpoint, token=expired_token())

    with pytest.raises(AuthenticationError, match="Invalid refresh token"):
        await provider.refresh_token()


@pytest.mark.asyncio
async def test_token_response_without_access_token(oauth_config):
    provider = make_provider(oauth_config, TokenEndpoint(payload={"token_type": "Bearer"}))

    with pytest.raises(AuthenticationError, match="no access_token"):
        await provider.request_client_token()


@pytest.mark.asyncio
async def test_aclose_keeps_shared_client_open(oauth_config):
    client = httpx.AsyncClient(transport=httpx.MockTransport(TokenEndpoint()))
    provider = TokenProvider(oauth_config, http_client=client)

    await provider.aclose()

    assert not client.is_closed
    await client.aclose()
