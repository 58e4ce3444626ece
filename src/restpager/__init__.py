"""
restpager.

Client library for paginated, OAuth2-protected REST APIs with automatic
offset pagination.
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("restpager")
except PackageNotFoundError:
    __version__ = "unknown"

from .clients import ApiClient, OAuthConfig, TokenProvider
from .models import Page, Token
from .services.common.pagination import (
    Paginator,
    SyncPaginator,
    paginate,
    paginate_sync,
    paginate_sync_with_context,
    paginate_with_context,
)
from .utils.errors import PageFetchError, PaginationError, StalledPaginationError

__all__ = [
    "__version__",
    "ApiClient",
    "OAuthConfig",
    "TokenProvider",
    "Page",
    "Token",
    "Paginator",
    "SyncPaginator",
    "paginate",
    "paginate_sync",
    "paginate_sync_with_context",
    "paginate_with_context",
    "PaginationError",
    "PageFetchError",
    "StalledPaginationError",
]
