"""
OAuth2 token provider.

Obtains, stores and refreshes bearer tokens for the API client. The current
token lives in a slot guarded by an ``asyncio.Lock`` so that several
paginators sharing one provider refresh an expired token only once.
"""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass
import logging
import secrets
from typing import Any
from urllib.parse import urlencode

import httpx
from pydantic import BaseModel, Field

from restpager.models.token import Token
from restpager.utils.errors import AuthenticationError

logger = logging.getLogger(__name__)

# Request timeout in seconds for the token endpoint
REQUEST_TIMEOUT = 30.0


class OAuthConfig(BaseModel):
    """OAuth2 client registration."""

    client_id: str = Field(..., min_length=1)
    client_secret: str | None = Field(default=None)
    redirect_uri: str | None = Field(default=None)
    scopes: set[str] = Field(default_factory=set)
    token_url: str
    authorize_url: str

    @property
    def scope_string(self) -> str:
        return " ".join(sorted(self.scopes))


@dataclass
class TokenSlot:
    """Mutable holder for the current token."""

    token: Token | None = None


class TokenProvider:
    """
    Supplies valid access tokens, refreshing them when they expire.

    Supports the authorization-code, client-credentials and refresh-token
    grants. Driving the user through the authorization page is left to the
    caller: build the URL with :meth:`get_authorize_url` and pass the
    returned code to :meth:`request_token`.
    """

    def __init__(
        self,
        config: OAuthConfig,
        http_client: httpx.AsyncClient | None = None,
        token: Token | None = None,
    ):
        """
        Initialize the token provider.

        Args:
            config: OAuth client registration
            http_client: Optional shared HTTP client (not closed by aclose)
            token: Previously obtained token to start from
        """
        self.config = config
        self._client = http_client
        self._owns_client = http_client is None
        self._lock = asyncio.Lock()
        self._slot = TokenSlot(token)

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=REQUEST_TIMEOUT)
            self._owns_client = True
        return self._client

    async def aclose(self) -> None:
        """Close the HTTP client if this provider created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    @asynccontextmanager
    async def token_slot(self) -> AsyncIterator[TokenSlot]:
        """Hold the token lock and expose the slot for reading or writing."""
        async with self._lock:
            yield self._slot

    async def get_token(self) -> Token | None:
        async with self.token_slot() as slot:
            return slot.token

    async def set_token(self, token: Token | None) -> None:
        async with self.token_slot() as slot:
            slot.token = token

    def get_authorize_url(self, state: str | None = None, show_dialog: bool = False) -> str:
        """Build the authorization-code grant URL."""
        if not self.config.redirect_uri:
            raise AuthenticationError(
                "Redirect URI is required for the authorization code flow"
            )
        params = {
            "response_type": "code",
            "client_id": self.config.client_id,
            "redirect_uri": self.config.redirect_uri,
            "state": state or secrets.token_urlsafe(16),
        }
        if self.config.scopes:
            params["scope"] = self.config.scope_string
        if show_dialog:
            params["show_dialog"] = "true"
        return f"{self.config.authorize_url}?{urlencode(params)}"

    async def request_token(self, code: str) -> Token:
        """Exchange an authorization code for a token and store it."""
        if not code.strip():
            raise AuthenticationError("Authorization code is required")
        token = await self._post_token(
            {
                "grant_type": "authorization_code",
                "code": code.strip(),
                "redirect_uri": self.config.redirect_uri or "",
            }
        )
        await self.set_token(token)
        logger.info("Obtained access token from authorization code")
        return token

    async def request_client_token(self) -> Token:
        """Run the client-credentials grant and store the token."""
        async with self.token_slot() as slot:
            slot.token = await self._client_credentials_grant()
            return slot.token

    async def refresh_token(self, refresh_token: str | None = None) -> Token:
        """
        Refresh the access token and store the result.

        Args:
            refresh_token: Refresh token obtained in an earlier session;
                defaults to the one held by the stored token
        """
        async with self.token_slot() as slot:
            if refresh_token is None and slot.token is not None:
                refresh_token = slot.token.refresh_token
            if not refresh_token:
                raise AuthenticationError(
                    "No refresh token available",
                    "Authenticate with the authorization code flow first",
                )
            slot.token = await self._refresh_grant(refresh_token)
            return slot.token

    async def get_access_token(self) -> str:
        """
        Return a valid access token, refreshing it when expired.

        Raises:
            AuthenticationError: If no token can be obtained
        """
        async with self.token_slot() as slot:
            token = slot.token
            if token is not None and not token.is_expired:
                return token.access_token

            if token is not None and token.refresh_token:
                logger.debug("Access token expired, refreshing")
                token = await self._refresh_grant(token.refresh_token)
            elif self.config.client_secret:
                logger.debug("No usable token, requesting client credentials token")
                token = await self._client_credentials_grant()
            else:
                raise AuthenticationError(
                    "No valid access token and no way to obtain one",
                    "Configure a client secret or authenticate first",
                )

            slot.token = token
            return token.access_token

    async def _client_credentials_grant(self) -> Token:
        if not self.config.client_secret:
            raise AuthenticationError(
                "Client secret is required for the client credentials flow"
            )
        data = {"grant_type": "client_credentials"}
        if self.config.scopes:
            data["scope"] = self.config.scope_string
        return await self._post_token(data)

    async def _refresh_grant(self, refresh_token: str) -> Token:
        token = await self._post_token(
            {"grant_type": "refresh_token", "refresh_token": refresh_token}
        )
        # Servers may omit the refresh token when it is unchanged
        if token.refresh_token is None:
            token = token.model_copy(update={"refresh_token": refresh_token})
        logger.info("Refreshed access token")
        return token

    async def _post_token(self, data: dict[str, str]) -> Token:
        """POST to the token endpoint and parse the response."""
        client = self._get_client()
        auth: tuple[str, str] | None = None
        if self.config.client_secret:
            auth = (self.config.client_id, self.config.client_secret)
        else:
            data = {**data, "client_id": self.config.client_id}

        try:
            response = await client.post(self.config.token_url, data=data, auth=auth)
        except httpx.HTTPError as e:
            raise AuthenticationError(f"Token request failed: {e}") from e

        payload = _json_or_empty(response)
        if response.is_error:
            detail = payload.get("error_description") or payload.get("error")
            raise AuthenticationError(
                f"Token endpoint returned HTTP {response.status_code}"
                + (f": {detail}" if detail else "")
            )
        if not payload.get("access_token"):
            raise AuthenticationError("Token endpoint response has no access_token")

        return Token.from_response(payload)


def _json_or_empty(response: httpx.Response) -> dict[str, Any]:
    try:
        payload = response.json()
    except ValueError:
        return {}
    return payload if isinstance(payload, dict) else {}
