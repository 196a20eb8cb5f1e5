"""Shared fixtures for paging engine tests."""

from __future__ import annotations

from typing import Any

import pytest

from apim.admin.core import RequestDescriptor, TransportError


class FakeSearchExecutor:
    """In-memory search endpoint honouring ``size`` and ``search_after``.

    Hits are ordered by ``sort = [ts, id]`` with ts ascending and id
    descending, the order produced by ``SortSpec.time_ordered``.
    """

    def __init__(self, hits: list[dict[str, Any]], fail_on_call: int | None = None) -> None:
        self.hits = sorted(sorted(hits, key=lambda h: h["_id"], reverse=True), key=lambda h: h["sort"][0])
        self.fail_on_call = fail_on_call
        self.calls: list[RequestDescriptor] = []

    @staticmethod
    def _after(hit: dict[str, Any], key: list[Any]) -> bool:
        ts, doc_id = hit["sort"]
        return ts > key[0] or (ts == key[0] and doc_id < key[1])

    async def execute(self, descriptor: RequestDescriptor, session=None) -> dict[str, Any]:
        self.calls.append(descriptor)
        if self.fail_on_call == len(self.calls):
            raise TransportError("search failed", status_code=503)
        key = descriptor.body.get("search_after")
        remaining = [h for h in self.hits if key is None or self._after(h, key)]
        return {
            "hits": {
                "total": {"value": len(self.hits), "relation": "eq"},
                "hits": remaining[: descriptor.body["size"]],
            }
        }

    async def close(self) -> None:
        pass


def make_hit(ts: int, doc_id: str) -> dict[str, Any]:
    return {"_id": doc_id, "_source": {"@timestamp": ts}, "sort": [ts, doc_id]}


@pytest.fixture
def fake_search():
    """Factory of FakeSearchExecutor instances."""
    return FakeSearchExecutor


@pytest.fixture
def hit():
    """Factory of search hits carrying their sort values."""
    return make_hit


class VirtualClock:
    """Sleep replacement advancing a virtual time instead of waiting."""

    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: list[float] = []

    async def sleep(self, delay: float) -> None:
        self.sleeps.append(delay)
        self.now += delay


@pytest.fixture
def clock() -> VirtualClock:
    return VirtualClock()
