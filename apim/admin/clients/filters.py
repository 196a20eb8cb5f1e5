"""Listing filters.

Filters are plain values turned into predicates for the throttled lister.
Text filters are regular expressions searched anywhere in the field,
case-insensitively unless stated otherwise.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterator, Mapping
from dataclasses import dataclass
from typing import Any

Predicate = Callable[[Any], bool]


def matches(text: Any, pattern: str, flags: int = 0) -> bool:
    """True if ``pattern`` is found anywhere in ``text``."""
    if text is None:
        return False
    return re.search(pattern, str(text), flags) is not None


def case_insensitive_matches(text: Any, pattern: str) -> bool:
    return matches(text, pattern, re.IGNORECASE)


def _field(item: Any, key: str) -> Any:
    return item.get(key) if isinstance(item, Mapping) else None


def _owner_matches(item: Any, pattern: str | None) -> bool:
    owner = _field(item, "owner")
    if not isinstance(owner, Mapping):
        return False
    if pattern is None:
        return True
    return case_insensitive_matches(owner.get("displayName"), pattern) or (
        owner.get("email") is not None and case_insensitive_matches(owner["email"], pattern)
    )


def _list_field(item: Any, key: str) -> list[Any]:
    value = _field(item, key)
    return value if isinstance(value, list) else []


def _details(api: Any) -> Any:
    return _field(api, "details")


def _groups(api: Any) -> list[Any]:
    return _list_field(_field(_details(api), "proxy"), "groups")


def _endpoints(api: Any) -> Iterator[Any]:
    for group in _groups(api):
        yield from _list_field(group, "endpoints")


def _policies(api: Any) -> Iterator[str]:
    """Technical names of the policies configured on every path of ``api``."""
    paths = _field(_details(api), "paths")
    if not isinstance(paths, Mapping):
        return
    for rules in paths.values():
        for rule in rules if isinstance(rules, list) else ():
            if isinstance(rule, Mapping):
                yield from rule.keys()


@dataclass(frozen=True)
class ApiFilters:
    """Filters of an API listing.

    The first group applies to the basic API listing. The ``by_endpoint_*``,
    ``by_plan_name`` and ``by_policy_technical_name`` filters need the API
    export and only apply to detailed listings.

    Attributes:
        by_id: Exact API id
        by_name: Pattern on the API name
        by_context_path: Pattern on the context path
        by_primary_owner: Pattern on the owner's display name or email
        by_portal_visibility: Accepted visibilities (``public``, ``private``)
        by_endpoint_group_name: Pattern on an endpoint group name
        by_endpoint_name: Pattern on an endpoint name
        by_endpoint_target: Pattern on an endpoint target URL
        by_plan_name: Pattern on a plan name
        by_policy_technical_name: Pattern on a policy id used by any path
    """

    by_id: str | None = None
    by_name: str | None = None
    by_context_path: str | None = None
    by_primary_owner: str | None = None
    by_portal_visibility: tuple[str, ...] = ()
    by_endpoint_group_name: str | None = None
    by_endpoint_name: str | None = None
    by_endpoint_target: str | None = None
    by_plan_name: str | None = None
    by_policy_technical_name: str | None = None

    def predicates(self) -> list[Predicate]:
        predicates: list[Predicate] = []
        if self.by_id:
            predicates.append(lambda api: _field(api, "id") == self.by_id)
        if self.by_name:
            predicates.append(lambda api: case_insensitive_matches(_field(api, "name"), self.by_name))
        if self.by_context_path:
            predicates.append(
                lambda api: case_insensitive_matches(_field(api, "context_path"), self.by_context_path)
            )
        # APIs without an owner are never listed
        predicates.append(lambda api: _owner_matches(api, self.by_primary_owner))
        if self.by_portal_visibility:
            predicates.append(lambda api: _field(api, "visibility") in self.by_portal_visibility)
        return predicates

    def detail_predicates(self) -> list[Predicate]:
        """Predicates on an API carrying its export under ``details``."""
        predicates: list[Predicate] = []
        if self.by_endpoint_group_name:
            predicates.append(
                lambda api: any(
                    case_insensitive_matches(_field(group, "name"), self.by_endpoint_group_name)
                    for group in _groups(api)
                )
            )
        if self.by_endpoint_name or self.by_endpoint_target:
            predicates.append(lambda api: any(self._endpoint_matches(e) for e in _endpoints(api)))
        if self.by_plan_name:
            predicates.append(
                lambda api: any(
                    case_insensitive_matches(_field(plan, "name"), self.by_plan_name)
                    for plan in _list_field(_details(api), "plans")
                )
            )
        if self.by_policy_technical_name:
            predicates.append(
                lambda api: any(
                    case_insensitive_matches(policy, self.by_policy_technical_name)
                    for policy in _policies(api)
                )
            )
        return predicates

    def _endpoint_matches(self, endpoint: Any) -> bool:
        if self.by_endpoint_name and not case_insensitive_matches(
            _field(endpoint, "name"), self.by_endpoint_name
        ):
            return False
        if self.by_endpoint_target and not case_insensitive_matches(
            _field(endpoint, "target"), self.by_endpoint_target
        ):
            return False
        return True


@dataclass(frozen=True)
class ApplicationFilters:
    """Filters of an application listing.

    ``by_id`` is a case-sensitive pattern, the others are case-insensitive.
    """

    by_id: str | None = None
    by_name: str | None = None
    by_primary_owner: str | None = None

    def predicates(self) -> list[Predicate]:
        predicates: list[Predicate] = []
        if self.by_id:
            predicates.append(lambda app: matches(_field(app, "id"), self.by_id))
        if self.by_name:
            predicates.append(lambda app: case_insensitive_matches(_field(app, "name"), self.by_name))
        predicates.append(lambda app: _owner_matches(app, self.by_primary_owner))
        return predicates


@dataclass(frozen=True)
class PageFilters:
    """Filters of an API's documentation pages."""

    by_name: str | None = None
    by_type: str | None = None

    def predicates(self) -> list[Predicate]:
        predicates: list[Predicate] = []
        if self.by_name:
            predicates.append(lambda page: case_insensitive_matches(_field(page, "name"), self.by_name))
        if self.by_type:
            predicates.append(lambda page: case_insensitive_matches(_field(page, "type"), self.by_type))
        return predicates
