"""Cursor pagination engine.

Turns a search endpoint paginated by sort-key continuation (``search_after``)
into a single lazy sequence of items.

Architecture:
    A CursorStream drives one run of the PageState machine:

        FETCHING --empty page--> DONE
        FETCHING --items-------> FLATTENING --derive_next--> FETCHING
        any      --error-------> FAILED (error propagates to the consumer)

    Termination depends on page emptiness only: a page holding exactly
    ``size`` items is not taken as the last one, because the upstream
    total may change between requests.

    The next page is requested only when the consumer asks for the item
    after the last one of the current page, so no fetch runs ahead of
    consumption. Stopping the iteration (break, ``aclose()`` or task
    cancellation) cancels a fetch in flight before its result is used.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Iterable

from ...core.descriptor import DEFAULT_UNIQUE_KEYS, RequestDescriptor, derive_next, ensure_total_order
from ...core.exceptions import AdminError, DescriptorError
from ...core.session import AuthenticatedSession
from ..rest.executor import Executor
from .definitions import PagedItem, PageResult, PageState, advance
from .telemetry import log_page_error, log_page_fetched, log_pagination_complete


def check_cursor_descriptor(
    descriptor: RequestDescriptor,
    unique_keys: Iterable[str] = DEFAULT_UNIQUE_KEYS,
) -> None:
    """Validate that ``descriptor`` can be cursor-paginated.

    Raises:
        DescriptorError: If the body has no page size >= 1
        StagnationRiskError: If the sort has no unique tie-breaker
    """
    size = descriptor.page_size
    if isinstance(size, bool) or not isinstance(size, int) or size < 1:
        raise DescriptorError(f"Cursor pagination requires a page size >= 1, got {size!r}")
    ensure_total_order(descriptor.body.get("sort"), unique_keys)


class CursorStream:
    """One lazy, forward-only run of cursor pagination.

    Iterate it once with ``async for``; it cannot be restarted.

    Attributes:
        state: Current PageState
        pages_fetched: Pages fetched so far, including the final empty one
        items_emitted: Items handed to the consumer so far
    """

    def __init__(
        self,
        executor: Executor,
        descriptor: RequestDescriptor,
        session: AuthenticatedSession | None = None,
    ) -> None:
        self._executor = executor
        self._descriptor = descriptor
        self._session = session
        self._iterator: AsyncIterator[PagedItem] | None = None
        self.state = PageState.FETCHING
        self.pages_fetched = 0
        self.items_emitted = 0

    def __aiter__(self) -> AsyncIterator[PagedItem]:
        if self._iterator is not None:
            raise RuntimeError("CursorStream cannot be restarted")
        self._iterator = self._run()
        return self._iterator

    async def aclose(self) -> None:
        if self._iterator is not None:
            await self._iterator.aclose()

    async def _fetch(self, descriptor: RequestDescriptor) -> PageResult:
        try:
            response = await self._executor.execute(descriptor, session=self._session)
            page = PageResult.from_search_response(descriptor, response)
        except AdminError as e:
            self.state = advance(self.state, error=e)
            log_page_error(path=descriptor.path, page_index=self.pages_fetched, error=e)
            raise
        log_page_fetched(path=descriptor.path, page_index=self.pages_fetched, page=page)
        self.pages_fetched += 1
        return page

    async def _run(self) -> AsyncIterator[PagedItem]:
        current = self._descriptor
        page: PageResult | None = None

        while not self.state.is_terminal:
            if self.state is PageState.FETCHING:
                page = await self._fetch(current)
                self.state = advance(self.state, page=page)
                continue

            assert page is not None
            for item in page.items:
                self.items_emitted += 1
                yield PagedItem(item=item, meta=page.meta)
            try:
                current = derive_next(page.descriptor, page.last_item)
            except AdminError as e:
                self.state = advance(self.state, error=e)
                log_page_error(path=current.path, page_index=self.pages_fetched, error=e)
                raise
            self.state = advance(self.state)

        log_pagination_complete(
            path=self._descriptor.path,
            pages=self.pages_fetched,
            items=self.items_emitted,
        )


class CursorPaginator:
    """Factory of CursorStreams over one executor."""

    def __init__(
        self,
        executor: Executor,
        unique_keys: Iterable[str] = DEFAULT_UNIQUE_KEYS,
    ) -> None:
        self._executor = executor
        self._unique_keys = frozenset(unique_keys)

    def paginate(
        self,
        descriptor: RequestDescriptor,
        session: AuthenticatedSession | None = None,
        unique_keys: Iterable[str] = (),
    ) -> CursorStream:
        """Start a pagination run from ``descriptor``.

        The descriptor is validated immediately, before any request.
        ``unique_keys`` adds keys known to be unique for this run only.
        """
        check_cursor_descriptor(descriptor, self._unique_keys | frozenset(unique_keys))
        return CursorStream(self._executor, descriptor, session)
