"""Paging data structures and the pagination state machine.

This module defines the page-level values produced by the paging engines
(PageResult, PageMeta, PagedItem) and the single transition function that
drives cursor pagination.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from ...core.descriptor import SORT_VALUES_KEY, RequestDescriptor
from ...core.exceptions import ResponseFormatError


class PageState(Enum):
    """States of a cursor pagination run."""

    FETCHING = "fetching"
    FLATTENING = "flattening"
    DONE = "done"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (PageState.DONE, PageState.FAILED)


@dataclass(frozen=True)
class PageMeta:
    """Aggregate metadata of a page, captured at fetch time.

    Attributes:
        total: Total match count reported by the server (approximate: the
            dataset may change between two page fetches)
        relation: ``"eq"`` or ``"gte"`` when the server says whether
            ``total`` is exact
    """

    total: int | None = None
    relation: str | None = None


@dataclass(frozen=True)
class PageResult:
    """A descriptor paired with the response it produced."""

    descriptor: RequestDescriptor
    response: Any
    items: tuple[Any, ...] = ()
    meta: PageMeta = field(default_factory=PageMeta)

    @property
    def is_empty(self) -> bool:
        return not self.items

    @property
    def last_item(self) -> Any:
        return self.items[-1] if self.items else None

    @property
    def continuation(self) -> list[Any] | None:
        """Sort values of the last item, or None for an empty page."""
        last = self.last_item
        if isinstance(last, Mapping):
            return last.get(SORT_VALUES_KEY)
        return None

    @classmethod
    def from_search_response(cls, descriptor: RequestDescriptor, response: Any) -> PageResult:
        """Wrap a ``{hits: {total, hits: [...]}}`` search response.

        Raises:
            ResponseFormatError: If the response has no ``hits.hits`` list
        """
        hits = response.get("hits") if isinstance(response, Mapping) else None
        if not isinstance(hits, Mapping) or not isinstance(hits.get("hits"), list):
            raise ResponseFormatError("Search response has no 'hits.hits' list")
        return cls(
            descriptor=descriptor,
            response=response,
            items=tuple(hits["hits"]),
            meta=_extract_meta(hits.get("total")),
        )


def _extract_meta(total: Any) -> PageMeta:
    # Older servers report an int, newer ones {"value": n, "relation": "eq"}
    if isinstance(total, Mapping):
        return PageMeta(total=total.get("value"), relation=total.get("relation"))
    if isinstance(total, int):
        return PageMeta(total=total, relation="eq")
    return PageMeta()


@dataclass(frozen=True)
class PagedItem:
    """One item of a flattened page sequence, tagged with its page metadata."""

    item: Any
    meta: PageMeta

    @property
    def hit(self) -> Any:
        return self.item


def advance(
    state: PageState,
    *,
    page: PageResult | None = None,
    error: BaseException | None = None,
) -> PageState:
    """Compute the next pagination state.

    FETCHING  -> FAILED on error, DONE on an empty page, FLATTENING otherwise
    FLATTENING -> FAILED on error, FETCHING otherwise
    DONE and FAILED are terminal.
    """
    if state.is_terminal:
        raise ValueError(f"No transition out of terminal state {state.value!r}")
    if error is not None:
        return PageState.FAILED
    if state is PageState.FETCHING:
        if page is None:
            raise ValueError("Leaving FETCHING requires a page or an error")
        return PageState.DONE if page.is_empty else PageState.FLATTENING
    return PageState.FETCHING
