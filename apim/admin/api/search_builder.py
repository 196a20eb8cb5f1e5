"""Search builder for fluent Search construction.

This module provides a fluent API for constructing Search values, the
validated input of every Elasticsearch call (cursor search, aggregation,
delete-by-query).

Design Decisions:
    - Fluent API: method chaining keeps option-driven callers readable
    - Immutable result: build() returns a frozen Search
    - Fail fast: the sort tie-breaker is checked in build(), so a search
      that could stagnate while paginating never reaches the network

Example:
    >>> search = (SearchBuilder()
    ...     .index("gravitee-request-*")
    ...     .term("api", api_id)
    ...     .time_range("now-1d", "now")
    ...     .build())
    >>> descriptor = search.to_descriptor(page_size=500)
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from ..core.descriptor import RequestDescriptor, SortField, SortOrder, SortSpec
from ..core.exceptions import DescriptorError

__all__ = [
    "DEFAULT_INDEX",
    "DEFAULT_PAGE_SIZE",
    "Search",
    "SearchBuilder",
]

DEFAULT_INDEX = "gravitee-request-*"
DEFAULT_TIME_KEY = "@timestamp"
DEFAULT_TIEBREAKER = "_id"
DEFAULT_FROM = "now-1M"
DEFAULT_TO = "now"
DEFAULT_PAGE_SIZE = 100
WILDCARD_INDEX_SUFFIX = "-*"


@dataclass(frozen=True)
class Search:
    """A validated search: index, query and sort keys.

    Without an explicit ``sort``, hits are ordered by ``time_key`` with
    ``_id`` as tie-breaker.
    """

    index_name: str
    query: Mapping[str, Any]
    time_key: str = DEFAULT_TIME_KEY
    sort: SortSpec | None = None

    def __post_init__(self) -> None:
        if self.sort is None:
            object.__setattr__(self, "sort", SortSpec.time_ordered(self.time_key, DEFAULT_TIEBREAKER))

    def unique_keys(self) -> frozenset[str]:
        """Sort keys declared unique by this search."""
        assert self.sort is not None and self.sort.tiebreaker is not None
        return frozenset({self.sort.tiebreaker.key})

    def to_descriptor(
        self,
        page_size: int = DEFAULT_PAGE_SIZE,
        timeout: float | None = None,
    ) -> RequestDescriptor:
        """Descriptor of the first page of a cursor-paginated search."""
        if page_size < 1:
            raise DescriptorError(f"Page size must be >= 1, got {page_size}")
        return RequestDescriptor(
            method="GET",
            path=f"{self.index_name}/_search",
            body={
                "size": page_size,
                "query": self.query,
                "sort": self.sort.clauses() if self.sort else [],
            },
            timeout=timeout,
        )

    def aggregation_descriptor(
        self,
        aggregation: Mapping[str, Any],
        timeout: float | None = None,
    ) -> RequestDescriptor:
        """Descriptor of a hit-less search computing ``aggregation``."""
        return RequestDescriptor(
            method="GET",
            path=f"{self.index_name}/_search",
            body={"size": 0, "query": self.query, "aggs": dict(aggregation)},
            timeout=timeout,
        )

    def delete_by_query_descriptor(self, timeout: float | None = None) -> RequestDescriptor:
        """Descriptor deleting every document matched by the query."""
        return RequestDescriptor(
            method="POST",
            path=f"{self.index_name}/_delete_by_query",
            body={"query": self.query},
            timeout=timeout,
        )


class SearchBuilder:
    """Fluent builder of Search values.

    Term filters become ``{"term": {key: {"value": value}}}`` clauses. The
    time range clause is only added on time-partitioned (wildcard) indexes,
    whose names end with ``-*``.
    """

    def __init__(self) -> None:
        self._index = DEFAULT_INDEX
        self._terms: list[tuple[str, Any]] = []
        self._from = DEFAULT_FROM
        self._to = DEFAULT_TO
        self._time_key = DEFAULT_TIME_KEY
        self._tiebreaker: str | None = DEFAULT_TIEBREAKER

    def index(self, index_name: str) -> SearchBuilder:
        self._index = index_name
        return self

    def term(self, key: str, value: Any) -> SearchBuilder:
        self._terms.append((key, value))
        return self

    def terms(self, pairs: Iterable[tuple[str, Any]] | Mapping[str, Any]) -> SearchBuilder:
        items = pairs.items() if isinstance(pairs, Mapping) else pairs
        for key, value in items:
            self.term(key, value)
        return self

    def time_range(self, from_: str, to: str = DEFAULT_TO) -> SearchBuilder:
        self._from = from_
        self._to = to
        return self

    def time_key(self, key: str) -> SearchBuilder:
        self._time_key = key
        return self

    def tiebreaker(self, key: str | None) -> SearchBuilder:
        """Set the unique key used to order hits sharing a time value."""
        self._tiebreaker = key
        return self

    def build(self) -> Search:
        """Build the Search.

        Raises:
            DescriptorError: If the index or time key is empty
            StagnationRiskError: If no unique tie-breaker key is set
        """
        if not self._index:
            raise DescriptorError("index is required")
        if not self._time_key:
            raise DescriptorError("time_key is required")

        tiebreaker = None
        if self._tiebreaker:
            tiebreaker = SortField(self._tiebreaker, SortOrder.DESC, unique=True)
        sort = SortSpec(primary=SortField(self._time_key, SortOrder.ASC), tiebreaker=tiebreaker)

        must: list[dict[str, Any]] = [
            {"term": {key: {"value": value}}} for key, value in self._terms
        ]
        if self._index.endswith(WILDCARD_INDEX_SUFFIX):
            must.append({"range": {self._time_key: {"gte": self._from, "lte": self._to}}})

        return Search(
            index_name=self._index,
            query={"bool": {"must": must}},
            time_key=self._time_key,
            sort=sort,
        )

    # --- Convenience factory methods for common patterns --------------------

    @classmethod
    def for_api_requests(
        cls,
        api_id: str,
        *,
        index: str = DEFAULT_INDEX,
        from_: str = DEFAULT_FROM,
        to: str = DEFAULT_TO,
    ) -> SearchBuilder:
        """Builder pre-configured for the requests of one API."""
        return cls().index(index).term("_type", "request").term("api", api_id).time_range(from_, to)

    @classmethod
    def for_api_logs(
        cls,
        api_id: str,
        *,
        index: str = "gravitee-log-*",
        from_: str = DEFAULT_FROM,
        to: str = DEFAULT_TO,
    ) -> SearchBuilder:
        """Builder pre-configured for the request logs of one API."""
        return cls().index(index).term("_type", "log").term("api", api_id).time_range(from_, to)
