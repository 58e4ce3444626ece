"""Automatic offset pagination over page-fetch functions.

A request function fetches one page of up to ``page_size`` items starting at
``offset``. The paginators below turn it into a lazy sequence of items: a new
page is requested only once the consumer has drained the previous one, the
offset advances by the number of items actually received, and the sequence
ends after the first page whose ``next`` marker is ``None``.

A failed fetch is raised once as :class:`PageFetchError` (chained to the
original exception); the paginator is exhausted afterwards.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
import logging
from typing import Any, Generic, TypeVar

from restpager.models.page import Page
from restpager.utils.errors import PageFetchError, StalledPaginationError

T = TypeVar("T")
C = TypeVar("C")

RequestFn = Callable[[int, int], Awaitable[Page[T]]]
ContextRequestFn = Callable[[C, int, int], Awaitable[Page[T]]]
SyncRequestFn = Callable[[int, int], Page[T]]
SyncContextRequestFn = Callable[[C, int, int], Page[T]]

logger = logging.getLogger(__name__)

# Marks paginators whose request function takes no context argument
_NO_CONTEXT: Any = object()


class _PaginatorState(Generic[T]):
    """Cursor state shared by the async and blocking paginators.

    Holds at most one buffered page. ``_last`` is set once the final page has
    been buffered, ``_done`` once nothing more will ever be produced.
    """

    def __init__(
        self,
        request_fn: Callable[..., Any],
        page_size: int,
        context: Any = _NO_CONTEXT,
    ):
        self._request_fn: Callable[..., Any] | None = request_fn
        self._context = context
        self._page_size = page_size
        self._offset = 0
        self._items: list[T] = []
        self._index = 0
        self._last = False
        self._done = False

    @property
    def done(self) -> bool:
        return self._done

    def _call_request(self) -> Any:
        assert self._request_fn is not None
        if self._context is _NO_CONTEXT:
            return self._request_fn(self._page_size, self._offset)
        return self._request_fn(self._context, self._page_size, self._offset)

    def _has_buffered(self) -> bool:
        return self._index < len(self._items)

    def _take(self) -> T:
        item = self._items[self._index]
        self._index += 1
        return item

    def _accept(self, page: Page[T]) -> None:
        """Buffer a freshly fetched page and advance the offset.

        A value that does not read as a page counts as a failed fetch.
        """
        try:
            items = list(page.items)
            is_last = page.is_last
        except Exception as e:
            raise self._fetch_failed(e) from e
        logger.debug(
            f"Fetched page at offset {self._offset} "
            f"(page_size={self._page_size}, items={len(items)}, last={is_last})"
        )
        if not items and not is_last:
            offset = self._offset
            self._release()
            logger.warning(f"Pagination stalled at offset {offset}")
            raise StalledPaginationError(offset)

        self._items = items
        self._index = 0
        self._offset += len(items)
        self._last = is_last

    def _fetch_failed(self, error: Exception) -> PageFetchError:
        offset = self._offset
        self._release()
        logger.warning(f"Page fetch failed at offset {offset}: {error}")
        return PageFetchError(offset, error)

    def _release(self) -> None:
        """Mark the paginator exhausted and drop everything it holds."""
        self._done = True
        self._request_fn = None
        self._context = None
        self._items = []
        self._index = 0


class Paginator(_PaginatorState[T]):
    """Lazy async sequence of items spanning several pages.

    Consume it with ``async for``. Single pass: once exhausted, or after
    :meth:`aclose`, it produces nothing more.
    """

    def __aiter__(self) -> "Paginator[T]":
        return self

    async def __anext__(self) -> T:
        while True:
            if self._done:
                raise StopAsyncIteration
            if self._has_buffered():
                return self._take()
            if self._last:
                self._release()
                raise StopAsyncIteration
            await self._fetch_next_page()

    async def _fetch_next_page(self) -> None:
        try:
            page = await self._call_request()
        except asyncio.CancelledError:
            self._release()
            raise
        except Exception as e:
            raise self._fetch_failed(e) from e
        self._accept(page)

    async def aclose(self) -> None:
        """Stop paginating and release the request function."""
        self._release()


class SyncPaginator(_PaginatorState[T]):
    """Blocking counterpart of :class:`Paginator` for synchronous fetchers."""

    def __iter__(self) -> "SyncPaginator[T]":
        return self

    def __next__(self) -> T:
        while True:
            if self._done:
                raise StopIteration
            if self._has_buffered():
                return self._take()
            if self._last:
                self._release()
                raise StopIteration
            try:
                page = self._call_request()
            except Exception as e:
                raise self._fetch_failed(e) from e
            self._accept(page)

    def close(self) -> None:
        """Stop paginating and release the request function."""
        self._release()


def paginate(request_fn: RequestFn[T], page_size: int) -> Paginator[T]:
    """
    Paginate over an async ``request_fn(page_size, offset)``.

    Args:
        request_fn: Coroutine function returning one ``Page``
        page_size: Items requested per page, passed through unchecked

    Returns:
        A fresh paginator starting at offset 0
    """
    return Paginator(request_fn, page_size)


def paginate_with_context(
    context: C,
    request_fn: ContextRequestFn[C, T],
    page_size: int,
) -> Paginator[T]:
    """
    Paginate over an async ``request_fn(context, page_size, offset)``.

    The same ``context`` object is passed to every call. Any locking it needs
    is up to its owner.
    """
    return Paginator(request_fn, page_size, context=context)


def paginate_sync(request_fn: SyncRequestFn[T], page_size: int) -> SyncPaginator[T]:
    """Blocking variant of :func:`paginate`."""
    return SyncPaginator(request_fn, page_size)


def paginate_sync_with_context(
    context: C,
    request_fn: SyncContextRequestFn[C, T],
    page_size: int,
) -> SyncPaginator[T]:
    """Blocking variant of :func:`paginate_with_context`."""
    return SyncPaginator(request_fn, page_size, context=context)
