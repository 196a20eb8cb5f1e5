"""Unit tests for request descriptors, sort specs and derive_next."""

from __future__ import annotations

import pytest

from apim.admin.core import (
    CONTINUATION_FIELD,
    DescriptorError,
    RequestDescriptor,
    ResponseFormatError,
    SortField,
    SortOrder,
    SortSpec,
    StagnationRiskError,
    build_path,
    derive_next,
    ensure_total_order,
)


def search_descriptor(**overrides) -> RequestDescriptor:
    body = {
        "size": 2,
        "query": {"bool": {"must": []}},
        "sort": [{"@timestamp": "asc"}, {"_id": "desc"}],
    }
    body.update(overrides)
    return RequestDescriptor(method="get", path="idx/_search", body=body)


class TestRequestDescriptorValidation:
    def test_method_is_normalized(self):
        assert search_descriptor().method == "GET"

    def test_unknown_method_rejected(self):
        with pytest.raises(DescriptorError):
            RequestDescriptor(method="FETCH", path="/apis")

    def test_empty_path_rejected(self):
        with pytest.raises(DescriptorError):
            RequestDescriptor(method="GET", path="")

    def test_body_and_data_are_exclusive(self):
        with pytest.raises(DescriptorError):
            RequestDescriptor(method="POST", path="idx/_bulk", body={"a": 1}, data="{}\n")

    @pytest.mark.parametrize("timeout", [0, -1.5])
    def test_non_positive_timeout_rejected(self, timeout):
        with pytest.raises(DescriptorError):
            RequestDescriptor(method="GET", path="/apis", timeout=timeout)

    def test_body_is_read_only(self):
        descriptor = search_descriptor()
        with pytest.raises(TypeError):
            descriptor.body["size"] = 10

    def test_caller_dict_changes_do_not_leak(self):
        params = {"page": 1}
        descriptor = RequestDescriptor(method="GET", path="/users", params=params)
        params["page"] = 2
        assert descriptor.params["page"] == 1

    def test_page_size_and_continuation(self):
        descriptor = search_descriptor()
        assert descriptor.page_size == 2
        assert descriptor.continuation is None
        assert RequestDescriptor(method="GET", path="/apis").page_size is None


class TestDerivedDescriptors:
    def test_with_continuation_returns_fresh_copy(self):
        first = search_descriptor()
        second = first.with_continuation([1000, "b"])

        assert second is not first
        assert second.continuation == [1000, "b"]
        assert first.continuation is None
        assert CONTINUATION_FIELD not in first.body
        assert second.body["sort"] == first.body["sort"]
        assert second.body["query"] == first.body["query"]

    def test_with_continuation_requires_body(self):
        with pytest.raises(DescriptorError):
            RequestDescriptor(method="GET", path="/apis").with_continuation([1])

    def test_with_params_merges(self):
        descriptor = RequestDescriptor(method="GET", path="/users", params={"page": 1, "size": 10})
        following = descriptor.with_params(page=2)
        assert dict(following.params) == {"page": 2, "size": 10}
        assert descriptor.params["page"] == 1

    def test_json_body_is_a_plain_dict(self):
        body = search_descriptor().json_body()
        assert type(body) is dict
        body["size"] = 99  # does not touch the descriptor

    def test_derive_next_uses_last_item_sort_values(self):
        previous = search_descriptor()
        nxt = derive_next(previous, {"_id": "b", "sort": [1000, "b"]})
        assert nxt.continuation == [1000, "b"]
        assert nxt.method == previous.method
        assert nxt.path == previous.path

    def test_derive_next_replaces_previous_continuation(self):
        previous = search_descriptor().with_continuation([1, "z"])
        nxt = derive_next(previous, {"sort": [2, "a"]})
        assert nxt.continuation == [2, "a"]

    @pytest.mark.parametrize("item", [{"_id": "a"}, {"_id": "a", "sort": []}, None])
    def test_derive_next_without_sort_values(self, item):
        with pytest.raises(ResponseFormatError):
            derive_next(search_descriptor(), item)


class TestSortSpec:
    def test_time_ordered_clauses(self):
        assert SortSpec.time_ordered("@timestamp").clauses() == [
            {"@timestamp": "asc"},
            {"_id": "desc"},
        ]

    def test_missing_tiebreaker_raises(self):
        with pytest.raises(StagnationRiskError):
            SortSpec(primary=SortField("@timestamp"), tiebreaker=None)

    def test_non_unique_tiebreaker_raises(self):
        with pytest.raises(StagnationRiskError):
            SortSpec(primary=SortField("@timestamp"), tiebreaker=SortField("api", SortOrder.DESC))

    def test_tiebreaker_equal_to_primary_raises(self):
        with pytest.raises(StagnationRiskError):
            SortSpec(primary=SortField("_id"), tiebreaker=SortField("_id", unique=True))

    def test_sort_order_accepts_strings(self):
        assert SortField("ts", "desc").order is SortOrder.DESC


class TestEnsureTotalOrder:
    def test_valid_sort(self):
        ensure_total_order([{"@timestamp": "asc"}, {"_id": "desc"}])

    @pytest.mark.parametrize(
        "sort",
        [
            None,
            [],
            [{"@timestamp": "asc"}],
            [{"@timestamp": "asc"}, {"api": "desc"}],
            [{"@timestamp": "asc"}, {"_id": "desc", "api": "asc"}],
            [{"_id": "asc"}, {"_id": "desc"}],
        ],
    )
    def test_invalid_sort(self, sort):
        with pytest.raises(StagnationRiskError):
            ensure_total_order(sort)

    def test_custom_unique_keys(self):
        ensure_total_order([{"ts": "asc"}, {"request_id": "desc"}], unique_keys={"request_id"})


class TestBuildPath:
    def test_identifiers_are_quoted(self):
        assert build_path("/apis/{api_id}/pages", api_id="a b/c") == "/apis/a%20b%2Fc/pages"

    def test_missing_identifier(self):
        with pytest.raises(DescriptorError):
            build_path("/apis/{api_id}/pages")
