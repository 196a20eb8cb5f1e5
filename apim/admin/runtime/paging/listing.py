"""Throttled listing engine.

For endpoints without a cursor: either one full array per call, or numbered
pages. Items are emitted one by one with a minimum delay between emissions
so a consumer issuing one follow-up request per item does not flood the
target system.

Filter predicates run after fetch and before emission, and before the
delay is spent: throttling is only paid for items actually surfaced.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator, Awaitable, Callable, Iterable, Mapping, Sequence
from typing import Any

from ...core.descriptor import RequestDescriptor
from ...core.exceptions import DescriptorError, ResponseFormatError
from ...core.session import AuthenticatedSession
from ..rest.executor import Executor
from .telemetry import log_listing_complete

DEFAULT_DELAY = 0.05  # seconds

Predicate = Callable[[Any], bool]
Sleep = Callable[[float], Awaitable[Any]]


def _require(response: Any, key: str) -> Any:
    if not isinstance(response, Mapping) or key not in response:
        raise ResponseFormatError(f"Response has no {key!r} field")
    return response[key]


def _as_list(value: Any, what: str) -> list[Any]:
    if not isinstance(value, list):
        raise ResponseFormatError(f"Expected a list of {what}, got {type(value).__name__}")
    return value


class PageNumbering(ABC):
    """How a numbered-page endpoint exposes its items and its next page.

    Attributes:
        request_delay: Delay (seconds) before each request after the first
    """

    request_delay: float = 0.0

    @abstractmethod
    def items(self, response: Any) -> list[Any]:
        """Items carried by ``response``."""

    @abstractmethod
    def next_descriptor(
        self, descriptor: RequestDescriptor, response: Any
    ) -> RequestDescriptor | None:
        """Descriptor of the next page, or None when ``response`` was the last."""


class PageCountNumbering(PageNumbering):
    """``{page: {current, total_pages}, data: [...]}`` responses.

    Fetching continues while the current page is not the last one.
    """

    def __init__(self, *, page_param: str = "page", items_key: str = "data") -> None:
        self.page_param = page_param
        self.items_key = items_key

    def items(self, response: Any) -> list[Any]:
        return _as_list(_require(response, self.items_key), self.items_key)

    def next_descriptor(
        self, descriptor: RequestDescriptor, response: Any
    ) -> RequestDescriptor | None:
        page = _require(response, "page")
        if not isinstance(page, Mapping):
            raise ResponseFormatError(f"Page info is not an object: {page!r}")
        current, total_pages = page.get("current"), page.get("total_pages")
        if current is None or total_pages is None:
            raise ResponseFormatError("Page info lacks 'current' or 'total_pages'")
        # >= also stops on an empty result (total_pages == 0)
        if current >= total_pages:
            return None
        return descriptor.with_params(**{self.page_param: current + 1})


class TotalCountNumbering(PageNumbering):
    """``{total, <items_key>: [...]}`` responses paged by number and size.

    The page number and size are read from the descriptor's query
    parameters. Fetching stops once ``total - size * page <= 0``.
    """

    def __init__(
        self,
        *,
        items_key: str,
        page_param: str = "page",
        size_param: str = "size",
    ) -> None:
        self.items_key = items_key
        self.page_param = page_param
        self.size_param = size_param

    def items(self, response: Any) -> list[Any]:
        return _as_list(_require(response, self.items_key), self.items_key)

    def next_descriptor(
        self, descriptor: RequestDescriptor, response: Any
    ) -> RequestDescriptor | None:
        params = descriptor.params or {}
        if self.size_param not in params:
            raise DescriptorError(f"Total-count paging needs a {self.size_param!r} parameter")
        page = int(params.get(self.page_param, 1))
        size = int(params[self.size_param])
        total = int(_require(response, "total"))
        if total - size * page <= 0:
            return None
        return descriptor.with_params(**{self.page_param: page + 1})


class EmptyPageNumbering(PageNumbering):
    """``{<items_key>: [...]}`` responses; the first empty page ends the listing."""

    def __init__(
        self,
        *,
        items_key: str = "content",
        page_param: str = "page",
        request_delay: float = 0.0,
    ) -> None:
        if request_delay < 0:
            raise ValueError("request_delay cannot be negative")
        self.items_key = items_key
        self.page_param = page_param
        self.request_delay = request_delay

    def items(self, response: Any) -> list[Any]:
        return _as_list(_require(response, self.items_key), self.items_key)

    def next_descriptor(
        self, descriptor: RequestDescriptor, response: Any
    ) -> RequestDescriptor | None:
        if not self.items(response):
            return None
        page = int((descriptor.params or {}).get(self.page_param, 1))
        return descriptor.with_params(**{self.page_param: page + 1})


class ThrottledLister:
    """Emit listed items one by one, spaced by at least ``delay`` seconds.

    The delay is a scheduled resumption (``sleep``), never a busy wait.
    ``delay == 0`` emits synchronously without calling ``sleep`` at all.
    ``sleep`` is injectable so a virtual clock can be used in tests.
    """

    def __init__(
        self,
        executor: Executor,
        delay: float = DEFAULT_DELAY,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        if delay < 0:
            raise ValueError("delay cannot be negative")
        self._executor = executor
        self._delay = delay
        self._sleep = sleep

    @property
    def delay(self) -> float:
        return self._delay

    def _resolve_delay(self, delay: float | None) -> float:
        if delay is None:
            return self._delay
        if delay < 0:
            raise ValueError("delay cannot be negative")
        return delay

    async def _emit(
        self,
        items: Iterable[Any],
        predicates: Sequence[Predicate],
        delay: float,
    ) -> AsyncIterator[Any]:
        for item in items:
            if not all(predicate(item) for predicate in predicates):
                continue
            if delay > 0:
                await self._sleep(delay)
            yield item

    async def list_all(
        self,
        descriptor: RequestDescriptor,
        predicates: Sequence[Predicate] = (),
        delay: float | None = None,
        session: AuthenticatedSession | None = None,
        extract: Callable[[Any], list[Any]] | None = None,
    ) -> AsyncIterator[Any]:
        """List an endpoint returning its whole result set in one array.

        Args:
            descriptor: Request to execute
            predicates: Filters an item must pass to be emitted
            delay: Override of the lister's delay (seconds)
            session: Authenticated session, if the endpoint needs one
            extract: Pulls the item list out of the response (default: the
                response itself must be the list)
        """
        delay = self._resolve_delay(delay)
        response = await self._executor.execute(descriptor, session=session)
        items = _as_list(extract(response) if extract else response, "items")
        emitted = 0
        async for item in self._emit(items, predicates, delay):
            emitted += 1
            yield item
        log_listing_complete(path=descriptor.path, pages=1, fetched=len(items), emitted=emitted)

    async def list_pages(
        self,
        descriptor: RequestDescriptor,
        numbering: PageNumbering,
        predicates: Sequence[Predicate] = (),
        delay: float | None = None,
        session: AuthenticatedSession | None = None,
    ) -> AsyncIterator[Any]:
        """List a numbered-page endpoint, starting from ``descriptor``.

        Pages are fetched sequentially; the next page is only requested
        once every item of the current one has been consumed.
        """
        delay = self._resolve_delay(delay)
        current: RequestDescriptor | None = descriptor
        pages = fetched = emitted = 0

        while current is not None:
            if pages and numbering.request_delay > 0:
                await self._sleep(numbering.request_delay)
            response = await self._executor.execute(current, session=session)
            pages += 1
            items = numbering.items(response)
            fetched += len(items)
            async for item in self._emit(items, predicates, delay):
                emitted += 1
                yield item
            current = numbering.next_descriptor(current, response)

        log_listing_complete(path=descriptor.path, pages=pages, fetched=fetched, emitted=emitted)
