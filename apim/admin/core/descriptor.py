"""Request descriptors and sort specifications.

A RequestDescriptor is the declarative, immutable description of one HTTP
call. Paginating engines never mutate a dispatched descriptor: the next
page's descriptor is a shallow copy with only the continuation field
replaced (see ``derive_next``).

Sort specifications used for cursor pagination must totally order the
results: a time-like primary key ascending plus a unique tie-breaker key
descending. This is checked here, when descriptors are built, rather than
discovered while paginating.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field, replace
from enum import Enum
from types import MappingProxyType
from typing import Any
from urllib.parse import quote

from .exceptions import DescriptorError, ResponseFormatError, StagnationRiskError

HTTP_METHODS = frozenset({"GET", "POST", "PUT", "PATCH", "DELETE", "HEAD"})
CONTINUATION_FIELD = "search_after"
SORT_VALUES_KEY = "sort"
DEFAULT_UNIQUE_KEYS = frozenset({"_id", "_uid"})


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"


@dataclass(frozen=True)
class SortField:
    """One sort clause.

    Attributes:
        key: Field to sort on
        order: Sort direction
        unique: Whether the field's values are unique across the index
    """

    key: str
    order: SortOrder = SortOrder.ASC
    unique: bool = False

    def __post_init__(self) -> None:
        if not self.key:
            raise DescriptorError("Sort field key cannot be empty")
        object.__setattr__(self, "order", SortOrder(self.order))

    def to_clause(self) -> dict[str, str]:
        return {self.key: self.order.value}


@dataclass(frozen=True)
class SortSpec:
    """Sort specification with a mandatory unique tie-breaker.

    Examples:
        SortSpec.time_ordered("@timestamp")
        # -> [{"@timestamp": "asc"}, {"_id": "desc"}]
    """

    primary: SortField
    tiebreaker: SortField | None

    def __post_init__(self) -> None:
        if self.tiebreaker is None:
            raise StagnationRiskError(
                f"Sort on {self.primary.key!r} has no unique tie-breaker key"
            )
        if not self.tiebreaker.unique:
            raise StagnationRiskError(
                f"Tie-breaker {self.tiebreaker.key!r} is not declared unique"
            )
        if self.tiebreaker.key == self.primary.key:
            raise StagnationRiskError("Tie-breaker must differ from the primary sort key")

    @classmethod
    def time_ordered(cls, time_key: str, unique_key: str = "_id") -> SortSpec:
        return cls(
            primary=SortField(time_key, SortOrder.ASC),
            tiebreaker=SortField(unique_key, SortOrder.DESC, unique=True),
        )

    def clauses(self) -> list[dict[str, str]]:
        assert self.tiebreaker is not None
        return [self.primary.to_clause(), self.tiebreaker.to_clause()]


def ensure_total_order(
    sort: Sequence[Mapping[str, Any]] | None,
    unique_keys: Iterable[str] = DEFAULT_UNIQUE_KEYS,
) -> None:
    """Check that raw sort clauses end with a unique tie-breaker.

    Used for descriptors that were not built from a SortSpec.

    Raises:
        StagnationRiskError: If the clauses cannot guarantee forward progress
    """
    if not sort or len(sort) < 2:
        raise StagnationRiskError(
            "Cursor pagination requires a primary sort key and a unique tie-breaker"
        )
    last = sort[-1]
    if not isinstance(last, Mapping) or len(last) != 1:
        raise StagnationRiskError(f"Malformed tie-breaker sort clause: {last!r}")
    (key,) = last.keys()
    if key not in set(unique_keys):
        raise StagnationRiskError(f"Last sort key {key!r} is not a unique key")
    leading = {k for clause in sort[:-1] if isinstance(clause, Mapping) for k in clause}
    if key in leading:
        raise StagnationRiskError(f"Tie-breaker {key!r} repeats an earlier sort key")


def build_path(template: str, **identifiers: Any) -> str:
    """Substitute URL-quoted identifiers into a path template.

    Example:
        build_path("/apis/{api_id}/health/logs", api_id="a b")
        # -> "/apis/a%20b/health/logs"
    """
    try:
        return template.format(**{k: quote(str(v), safe="") for k, v in identifiers.items()})
    except KeyError as e:
        raise DescriptorError(f"Missing identifier {e.args[0]!r} for path {template!r}") from e


def _frozen(mapping: Mapping[str, Any] | None) -> Mapping[str, Any] | None:
    if mapping is None:
        return None
    return MappingProxyType(dict(mapping))


@dataclass(frozen=True)
class RequestDescriptor:
    """Immutable description of one HTTP request.

    ``None`` for ``timeout`` and ``verify_tls`` means "use the client
    settings default"; the executor fills them in at dispatch time.
    """

    method: str
    path: str
    body: Mapping[str, Any] | None = None
    data: str | None = None
    params: Mapping[str, Any] | None = None
    headers: Mapping[str, str] = field(default_factory=dict)
    auth: tuple[str, str] | None = None
    timeout: float | None = None
    verify_tls: bool | None = None

    def __post_init__(self) -> None:
        method = str(self.method).upper()
        if method not in HTTP_METHODS:
            raise DescriptorError(f"Unsupported HTTP method: {self.method!r}")
        if not self.path:
            raise DescriptorError("Request path cannot be empty")
        if self.body is not None and self.data is not None:
            raise DescriptorError("A request cannot carry both a JSON body and raw data")
        if self.timeout is not None and self.timeout <= 0:
            raise DescriptorError(f"Timeout must be positive, got {self.timeout}")
        object.__setattr__(self, "method", method)
        object.__setattr__(self, "body", _frozen(self.body))
        object.__setattr__(self, "params", _frozen(self.params))
        object.__setattr__(self, "headers", _frozen(self.headers))

    @property
    def continuation(self) -> list[Any] | None:
        if self.body is None:
            return None
        return self.body.get(CONTINUATION_FIELD)

    @property
    def page_size(self) -> int | None:
        if self.body is None:
            return None
        return self.body.get("size")

    def json_body(self) -> dict[str, Any] | None:
        """Plain dict copy of the body, ready for JSON encoding."""
        return dict(self.body) if self.body is not None else None

    def with_continuation(self, sort_values: Sequence[Any]) -> RequestDescriptor:
        """Copy with the continuation field set to ``sort_values``."""
        if self.body is None:
            raise DescriptorError("Cannot continue a request that has no body")
        body = dict(self.body)
        body[CONTINUATION_FIELD] = list(sort_values)
        return replace(self, body=body)

    def with_params(self, **params: Any) -> RequestDescriptor:
        """Copy with the given query parameters merged over the current ones."""
        merged = dict(self.params or {})
        merged.update(params)
        return replace(self, params=merged)


def derive_next(previous: RequestDescriptor, last_item: Mapping[str, Any]) -> RequestDescriptor:
    """Build the descriptor of the page following ``previous``.

    Args:
        previous: Descriptor that produced the page
        last_item: Last item of that page, in the page's own order

    Raises:
        ResponseFormatError: If the item carries no sort values
    """
    sort_values = last_item.get(SORT_VALUES_KEY) if isinstance(last_item, Mapping) else None
    if not sort_values:
        raise ResponseFormatError("Last item of the page has no sort values to continue from")
    return previous.with_continuation(sort_values)
