"""Unit tests for the search builder.

This module tests SearchBuilder and Search, ensuring the built queries
match what Elasticsearch expects and that sorts unsafe for cursor
pagination are refused before any request.
"""

import pytest

from apim.admin.api import DEFAULT_INDEX, Search, SearchBuilder
from apim.admin.core import DescriptorError, StagnationRiskError
from apim.admin.runtime.paging import check_cursor_descriptor


class TestSearchBuilder:
    """Test SearchBuilder defaults and fluent configuration."""

    def test_builder_with_defaults(self):
        """Default index is time-partitioned, so the range is added."""
        search = SearchBuilder().build()
        assert search.index_name == DEFAULT_INDEX
        assert search.time_key == "@timestamp"
        assert search.query == {
            "bool": {"must": [{"range": {"@timestamp": {"gte": "now-1M", "lte": "now"}}}]}
        }

    def test_terms_become_term_clauses(self):
        search = (
            SearchBuilder()
            .term("api", "api-1")
            .terms({"_type": "request", "status": 502})
            .time_range("now-1d")
            .build()
        )
        assert search.query["bool"]["must"] == [
            {"term": {"api": {"value": "api-1"}}},
            {"term": {"_type": {"value": "request"}}},
            {"term": {"status": {"value": 502}}},
            {"range": {"@timestamp": {"gte": "now-1d", "lte": "now"}}},
        ]

    def test_concrete_index_has_no_range(self):
        """Only wildcard indexes ending with -* get the time range."""
        search = SearchBuilder().index("gravitee-request-2024.01.01").term("api", "a").build()
        assert search.query["bool"]["must"] == [{"term": {"api": {"value": "a"}}}]

    def test_custom_time_key_drives_range_and_sort(self):
        search = SearchBuilder().time_key("date").build()
        assert search.query["bool"]["must"][-1] == {
            "range": {"date": {"gte": "now-1M", "lte": "now"}}
        }
        assert search.sort.clauses() == [{"date": "asc"}, {"_id": "desc"}]

    def test_missing_tiebreaker_refused_at_build(self):
        with pytest.raises(StagnationRiskError):
            SearchBuilder().tiebreaker(None).build()

    def test_tiebreaker_equal_to_time_key_refused(self):
        with pytest.raises(StagnationRiskError):
            SearchBuilder().time_key("_id").build()

    def test_empty_index_refused(self):
        with pytest.raises(DescriptorError):
            SearchBuilder().index("").build()

    def test_for_api_requests(self):
        search = SearchBuilder.for_api_requests("api-1", from_="now-2h").build()
        must = search.query["bool"]["must"]
        assert {"term": {"_type": {"value": "request"}}} in must
        assert {"term": {"api": {"value": "api-1"}}} in must
        assert must[-1]["range"]["@timestamp"]["gte"] == "now-2h"

    def test_for_api_logs(self):
        search = SearchBuilder.for_api_logs("api-1").build()
        assert search.index_name == "gravitee-log-*"
        assert {"term": {"_type": {"value": "log"}}} in search.query["bool"]["must"]


class TestSearchDescriptors:
    """Test descriptors produced from a Search."""

    def test_cursor_descriptor(self):
        search = SearchBuilder().index("idx-*").build()
        descriptor = search.to_descriptor(page_size=500, timeout=5.0)

        assert descriptor.method == "GET"
        assert descriptor.path == "idx-*/_search"
        assert descriptor.body["size"] == 500
        assert descriptor.body["sort"] == [{"@timestamp": "asc"}, {"_id": "desc"}]
        assert descriptor.body["query"] == search.query
        assert descriptor.timeout == 5.0
        assert descriptor.continuation is None
        check_cursor_descriptor(descriptor)

    @pytest.mark.parametrize("page_size", [0, -1])
    def test_invalid_page_size(self, page_size):
        with pytest.raises(DescriptorError):
            SearchBuilder().build().to_descriptor(page_size=page_size)

    def test_aggregation_descriptor(self):
        search = SearchBuilder().build()
        aggregation = {"by_api": {"terms": {"field": "api"}}}
        descriptor = search.aggregation_descriptor(aggregation, timeout=10.0)

        assert descriptor.body["size"] == 0
        assert descriptor.body["aggs"] == aggregation
        assert "sort" not in descriptor.body
        assert descriptor.timeout == 10.0

    def test_delete_by_query_descriptor(self):
        search = SearchBuilder().index("gravitee-log-*").build()
        descriptor = search.delete_by_query_descriptor()
        assert descriptor.method == "POST"
        assert descriptor.path == "gravitee-log-*/_delete_by_query"
        assert dict(descriptor.body) == {"query": search.query}

    def test_default_sort_follows_time_key(self):
        search = Search(index_name="idx", query={}, time_key="timestamp")

        assert search.to_descriptor().body["sort"] == [{"timestamp": "asc"}, {"_id": "desc"}]
        assert search.unique_keys() == frozenset({"_id"})

    def test_custom_tiebreaker_is_a_unique_key(self):
        search = SearchBuilder().tiebreaker("request_id").build()

        assert search.unique_keys() == frozenset({"request_id"})
        check_cursor_descriptor(search.to_descriptor(), search.unique_keys())

    def test_search_is_immutable(self):
        search = SearchBuilder().build()
        assert isinstance(search, Search)
        with pytest.raises(AttributeError):
            search.index_name = "other"
