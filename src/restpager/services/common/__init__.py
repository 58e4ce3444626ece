"""Common utilities shared across services."""

from .pagination import (
    Paginator,
    SyncPaginator,
    paginate,
    paginate_sync,
    paginate_sync_with_context,
    paginate_with_context,
)
from .retry import async_retry_with_backoff

__all__ = [
    "Paginator",
    "SyncPaginator",
    "paginate",
    "paginate_sync",
    "paginate_sync_with_context",
    "paginate_with_context",
    "async_retry_with_backoff",
]
