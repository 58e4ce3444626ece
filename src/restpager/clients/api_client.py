"""
REST API client with bearer authentication and automatic pagination.

Every request asks the token provider for a valid access token first, so
expired tokens are refreshed transparently, including between the page
fetches of a running paginator.
"""

import logging
from typing import Any, TypeVar

import httpx
from pydantic import ValidationError

from restpager.clients.oauth import TokenProvider
from restpager.models.page import Page
from restpager.services.common.pagination import Paginator, paginate_with_context
from restpager.services.common.retry import async_retry_with_backoff
from restpager.settings import get_settings
from restpager.utils.errors import ApiError, RateLimitError, RestPagerError

T = TypeVar("T")

logger = logging.getLogger(__name__)

# Delay before the first retry when the server sends no Retry-After
RETRY_BASE_DELAY = 1.0


class ApiClient:
    """Async client for a paginated, OAuth2-protected REST API."""

    def __init__(
        self,
        token_provider: TokenProvider,
        base_url: str | None = None,
        timeout: float | None = None,
        max_retries: int | None = None,
        http_client: httpx.AsyncClient | None = None,
    ):
        """
        Initialize the API client.

        Args:
            token_provider: Source of access tokens
            base_url: API root (defaults to settings)
            timeout: Request timeout in seconds (defaults to settings)
            max_retries: Attempts per request on rate limits (defaults to settings)
            http_client: Optional preconfigured HTTP client
        """
        settings = get_settings()
        self.token_provider = token_provider
        self.base_url = base_url or settings.api_base_url
        self.timeout = timeout or settings.timeout
        self.max_retries = max_retries or settings.max_retries
        self.default_page_size = settings.page_size
        self._client = http_client

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def request_json(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        json: Any = None,
    ) -> Any:
        """
        Send an authenticated request and decode the JSON body.

        Rate-limited requests are retried up to ``max_retries`` attempts.

        Raises:
            RateLimitError: If the API keeps answering 429
            ApiError: For any other non-success status
        """

        async def send() -> Any:
            return await self._send(method, path, params=params, json=json)

        return await async_retry_with_backoff(
            send,
            max_retries=self.max_retries,
            base_delay=RETRY_BASE_DELAY,
            description=f"{method} {path}",
        )

    async def _send(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        json: Any = None,
    ) -> Any:
        access_token = await self.token_provider.get_access_token()
        client = self._get_client()
        response = await client.request(
            method,
            path,
            params=params,
            json=json,
            headers={"Authorization": f"Bearer {access_token}"},
        )

        if response.status_code == 429:
            raise RateLimitError(
                retry_after=_parse_retry_after(response.headers.get("Retry-After")),
                message=response.text,
            )
        if response.is_error:
            logger.error(f"API error {response.status_code} for {method} {path}")
            raise ApiError(response.status_code, response.text)

        if not response.content:
            return None
        return response.json()

    async def get_page(
        self,
        path: str,
        item_model: type[T],
        limit: int,
        offset: int,
        params: dict[str, Any] | None = None,
    ) -> Page[T]:
        """
        Fetch one page of ``path`` and validate it as ``Page[item_model]``.

        Args:
            path: Endpoint path relative to the API root
            item_model: Type of the page items (pydantic model or builtin)
            limit: Page size
            offset: Index of the first item
            params: Extra query parameters
        """
        query = {**(params or {}), "limit": limit, "offset": offset}
        payload = await self.request_json("GET", path, params=query)
        try:
            return Page[item_model].model_validate(payload)
        except ValidationError as e:
            raise RestPagerError(f"Malformed page returned by {path}: {e}") from e

    def paginate(
        self,
        path: str,
        item_model: type[T],
        page_size: int | None = None,
        params: dict[str, Any] | None = None,
    ) -> Paginator[T]:
        """
        Iterate every item of a paginated endpoint.

        Example:
            >>> async for track in client.paginate("/me/tracks", Track):
            ...     print(track.name)
        """

        async def fetch(client: "ApiClient", limit: int, offset: int) -> Page[T]:
            return await client.get_page(path, item_model, limit, offset, params)

        return paginate_with_context(self, fetch, page_size or self.default_page_size)


def _parse_retry_after(value: str | None) -> float | None:
    if value is None:
        return None
    try:
        return max(float(value), 0.0)
    except ValueError:
        return None
