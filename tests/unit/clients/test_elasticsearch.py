"""Unit tests for ElasticsearchClient."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from apim.admin.api import SearchBuilder
from apim.admin.clients import ElasticsearchClient
from apim.admin.core import DescriptorError, ElasticsearchSettings, TransportError


@pytest.fixture
def executor() -> MagicMock:
    executor = MagicMock()
    executor.execute = AsyncMock()
    executor.close = AsyncMock()
    return executor


@pytest.fixture
def client(executor) -> ElasticsearchClient:
    return ElasticsearchClient(ElasticsearchSettings(base_url="https://es.local:9200"), executor=executor)


def search_page(*ids, total=2) -> dict:
    return {
        "hits": {
            "total": total,
            "hits": [{"_id": doc_id, "sort": [i, doc_id]} for i, doc_id in enumerate(ids)],
        }
    }


class TestSearchHits:
    @pytest.mark.asyncio
    async def test_paginates_until_empty_page(self, client, executor):
        executor.execute.side_effect = [search_page("a", "b"), search_page()]
        search = SearchBuilder.for_api_requests("api-1").build()

        hits = [paged async for paged in client.search_hits(search, page_size=2)]

        assert [paged.hit["_id"] for paged in hits] == ["a", "b"]
        assert hits[0].meta.total == 2
        first, second = [call.args[0] for call in executor.execute.call_args_list]
        assert first.path == "gravitee-request-*/_search"
        assert first.body["size"] == 2
        assert second.continuation == [1, "b"]

    @pytest.mark.asyncio
    async def test_custom_tiebreaker(self, client, executor):
        executor.execute.side_effect = [search_page("r1", "r2"), search_page()]
        search = SearchBuilder().index("logs").tiebreaker("request_id").build()

        hits = [paged async for paged in client.search_hits(search, page_size=2)]

        assert [paged.hit["_id"] for paged in hits] == ["r1", "r2"]
        first = executor.execute.call_args_list[0].args[0]
        assert first.body["sort"] == [{"@timestamp": "asc"}, {"request_id": "desc"}]

    def test_invalid_page_size(self, client):
        with pytest.raises(DescriptorError):
            client.search_hits(SearchBuilder().build(), page_size=0)


class TestSingleCalls:
    @pytest.mark.asyncio
    async def test_aggregate_hits(self, client, executor):
        executor.execute.return_value = {"aggregations": {"by_api": {"buckets": []}}}
        aggregation = {"by_api": {"terms": {"field": "api"}}}

        result = await client.aggregate_hits(SearchBuilder().build(), aggregation)

        assert result == {"aggregations": {"by_api": {"buckets": []}}}
        descriptor = executor.execute.call_args.args[0]
        assert descriptor.body["size"] == 0
        assert descriptor.body["aggs"] == aggregation
        assert descriptor.timeout == 10.0

    @pytest.mark.asyncio
    async def test_delete_by_query(self, client, executor):
        executor.execute.return_value = {"deleted": 12, "failures": []}
        search = SearchBuilder.for_api_logs("api-1").build()

        result = await client.delete_by_query(search)

        assert result["deleted"] == 12
        descriptor = executor.execute.call_args.args[0]
        assert descriptor.method == "POST"
        assert descriptor.path == "gravitee-log-*/_delete_by_query"


class TestDeletions:
    @pytest.mark.asyncio
    async def test_bulk_delete(self, client, executor):
        executor.execute.return_value = {
            "items": [{"delete": {"_id": "a", "status": 200}}, {"delete": {"_id": "b", "status": 200}}]
        }

        outcomes = [o async for o in client.bulk_delete(["a", "b"], "gravitee-log-2024.01.01", "log")]

        assert [o.id for o in outcomes] == ["a", "b"]
        assert executor.execute.await_count == 1

    @pytest.mark.asyncio
    async def test_delete_doc_lenient_by_default(self, client, executor):
        executor.execute.side_effect = TransportError("missing", status_code=404)

        assert [i async for i in client.delete_doc("idx", "log", "a")] == []

    @pytest.mark.asyncio
    async def test_delete_doc_strict(self, client, executor):
        executor.execute.side_effect = TransportError("missing", status_code=404)

        with pytest.raises(TransportError):
            [i async for i in client.delete_doc("idx", "log", "a", fail_on_error=True)]


@pytest.mark.asyncio
async def test_context_manager_closes_executor(client, executor):
    async with client as es:
        assert es.settings.timeout == 10.0
    executor.close.assert_awaited_once()
