"""
Search Planner Tests

Strategy selection, fallback behaviour, sorting, projection and store
failure handling, run against in-memory and mocked stores.
"""

from unittest.mock import AsyncMock

import pytest

from collection_search.core.errors import ConfigurationError, StoreError
from collection_search.search.models import Document, SearchConfig, SearchRequest, SortHint
from collection_search.search.planner import (
    STRATEGY_BOUNDED,
    STRATEGY_FALLBACK,
    STRATEGY_OPTIMIZED,
    SearchPlanner,
    prefix_upper_bound,
)
from collection_search.search.store import InMemoryDocumentStore


USERS = [
    {"id": "u1", "name": "John Doe"},
    {"id": "u2", "name": "Jane Roe"},
]


@pytest.fixture
def users_store():
    return InMemoryDocumentStore({"users": USERS})


def _config(**overrides):
    values = {"searchable_fields": ("name",), "fuzzy_enabled": True, "typo_tolerance": 4}
    values.update(overrides)
    return SearchConfig(**values)


def _request(search_value, **overrides):
    values = {"collection": "users", "search_value": search_value, "limit": 10}
    values.update(overrides)
    return SearchRequest(**values)


def _mock_store(scan=None, range_scan=None):
    store = AsyncMock()
    store.scan.return_value = scan or []
    store.range_scan.return_value = range_scan or []
    return store


def test_prefix_upper_bound():
    assert prefix_upper_bound("Joh") == "Joi"
    assert prefix_upper_bound("az") == "a{"


class TestEndToEnd:

    async def test_fuzzy_match_within_tolerance(self, users_store):
        outcome = await SearchPlanner(users_store, _config()).search(_request("jahn"))
        assert outcome.matches == [{"id": "u1", "name": "John Doe"}]
        assert outcome.total_results == 1
        assert outcome.strategy == STRATEGY_BOUNDED

    async def test_no_results_is_not_an_error(self, users_store):
        outcome = await SearchPlanner(users_store, _config()).search(_request("zzzzz"))
        assert outcome.matches == []
        assert outcome.total_results == 0

    async def test_exact_substring_case_insensitive(self, users_store):
        planner = SearchPlanner(users_store, _config(fuzzy_enabled=False))
        outcome = await planner.search(_request("ROE"))
        assert [m["id"] for m in outcome.matches] == ["u2"]

    @pytest.mark.parametrize("value", ["jahn", "zzzzz", "a"])
    async def test_empty_searchable_fields_is_a_configuration_error(self, users_store, value):
        planner = SearchPlanner(users_store, _config(searchable_fields=()))
        with pytest.raises(ConfigurationError):
            await planner.search(_request(value))


class TestStrategySelection:

    async def test_optimized_scan_for_exact_case_sensitive_search(self, users_store):
        planner = SearchPlanner(users_store, _config(fuzzy_enabled=False))
        outcome = await planner.search(_request("John", case_sensitive=True))
        assert outcome.strategy == STRATEGY_OPTIMIZED
        assert [m["id"] for m in outcome.matches] == ["u1"]

    @pytest.mark.parametrize(
        "fuzzy,case_sensitive,value",
        [
            (True, True, "John"),
            (False, False, "John"),
            (False, True, "Jo"),
        ],
    )
    async def test_optimized_scan_preconditions(self, fuzzy, case_sensitive, value):
        store = _mock_store(scan=[Document("u1", {"name": "John Doe"})])
        planner = SearchPlanner(store, _config(fuzzy_enabled=fuzzy))
        outcome = await planner.search(_request(value, case_sensitive=case_sensitive))
        store.range_scan.assert_not_called()
        assert outcome.strategy == STRATEGY_BOUNDED

    async def test_optimized_fetch_arguments(self):
        store = _mock_store(range_scan=[Document("u1", {"name": "John Doe"})])
        planner = SearchPlanner(store, _config(fuzzy_enabled=False, searchable_fields=("name", "email")))
        await planner.search(
            _request("John", case_sensitive=True, limit=7, sort_by="age", direction="desc")
        )
        store.range_scan.assert_awaited_once_with(
            "users", "name", "John", "Joho", 14, SortHint(field="age", descending=True)
        )
        store.scan.assert_not_called()

    @pytest.mark.parametrize("limit,expected", [(10, 50), (100, 500), (1000, 500)])
    async def test_bounded_fetch_size(self, limit, expected):
        store = _mock_store()
        await SearchPlanner(store, _config()).search(_request("john", limit=limit))
        store.scan.assert_awaited_once_with("users", expected, None)

    async def test_bounded_scan_passes_sort_hint(self):
        store = _mock_store()
        await SearchPlanner(store, _config()).search(_request("john", sort_by="name"))
        store.scan.assert_awaited_once_with("users", 50, SortHint(field="name", descending=False))


class TestFallback:

    async def test_fallback_recovers_matches_missed_by_range_query(self, users_store):
        planner = SearchPlanner(
            users_store, _config(fuzzy_enabled=False, searchable_fields=("name",))
        )
        # "Doe" is not a prefix of any name, but is a substring of "John Doe".
        outcome = await planner.search(_request("Doe", case_sensitive=True))
        assert outcome.strategy == STRATEGY_FALLBACK
        assert [m["id"] for m in outcome.matches] == ["u1"]

    @pytest.mark.parametrize("limit,expected", [(10, 30), (50, 100)])
    async def test_single_bounded_fallback(self, limit, expected):
        store = _mock_store(range_scan=[])
        planner = SearchPlanner(store, _config(fuzzy_enabled=False))
        outcome = await planner.search(_request("Doe", case_sensitive=True, limit=limit))
        store.scan.assert_awaited_once_with("users", expected, None)
        assert outcome.matches == []
        assert outcome.strategy == STRATEGY_FALLBACK

    async def test_no_fallback_after_bounded_scan(self):
        store = _mock_store(scan=[])
        await SearchPlanner(store, _config()).search(_request("nothing"))
        assert store.scan.await_count == 1

    async def test_failed_range_query_downgrades_to_bounded_scan(self):
        store = _mock_store(scan=[Document("u1", {"name": "John Doe"})])
        store.range_scan.side_effect = StoreError("index missing")
        planner = SearchPlanner(store, _config(fuzzy_enabled=False))

        outcome = await planner.search(_request("John", case_sensitive=True))

        assert outcome.strategy == STRATEGY_BOUNDED
        assert [m["id"] for m in outcome.matches] == ["u1"]
        store.scan.assert_awaited_once_with("users", 50, None)

    async def test_bounded_scan_failure_propagates(self):
        store = _mock_store()
        store.scan.side_effect = RuntimeError("connection reset")
        with pytest.raises(StoreError):
            await SearchPlanner(store, _config()).search(_request("john"))

    async def test_fallback_failure_propagates(self):
        store = _mock_store(range_scan=[])
        store.scan.side_effect = StoreError("unavailable")
        planner = SearchPlanner(store, _config(fuzzy_enabled=False))
        with pytest.raises(StoreError):
            await planner.search(_request("Doe", case_sensitive=True))


class TestFilteringAndOutput:

    async def test_scan_stops_at_limit(self):
        store = InMemoryDocumentStore(
            {"users": [{"id": f"u{i}", "name": f"John {i}"} for i in range(5)]}
        )
        outcome = await SearchPlanner(store, _config()).search(_request("john", limit=2))
        assert [m["id"] for m in outcome.matches] == ["u0", "u1"]

    async def test_any_searchable_field_can_match(self):
        store = InMemoryDocumentStore({
            "users": [
                {"id": "u1", "name": "John", "profile": {"city": "Oslo"}},
                {"id": "u2", "name": "Jane"},
            ]
        })
        planner = SearchPlanner(store, _config(searchable_fields=("name", "profile.city")))
        outcome = await planner.search(_request("oslo"))
        assert [m["id"] for m in outcome.matches] == ["u1"]

    async def test_non_string_fields_are_searched_by_projection(self):
        store = InMemoryDocumentStore({"items": [{"id": "i1", "sku": 123456}]})
        planner = SearchPlanner(store, _config(searchable_fields=("sku",), fuzzy_enabled=False))
        outcome = await planner.search(_request("3456", collection="items"))
        assert [m["id"] for m in outcome.matches] == ["i1"]

    async def test_sort_uses_raw_values_and_output_is_normalized(self):
        store = InMemoryDocumentStore({
            "events": [
                {"id": "e1", "title": "Launch", "at": {"seconds": 300, "nanoseconds": 0}},
                {"id": "e2", "title": "Launch party"},
                {"id": "e3", "title": "Launch review", "at": {"seconds": 100, "nanoseconds": 0}},
            ]
        })
        planner = SearchPlanner(store, _config(searchable_fields=("title",)))
        outcome = await planner.search(
            _request("launch", collection="events", sort_by="at", direction="desc")
        )
        assert [m["id"] for m in outcome.matches] == ["e1", "e3", "e2"]
        assert outcome.matches[0]["at"] == "1970-01-01T00:05:00.000Z"

    async def test_numeric_sort_is_not_lexicographic(self):
        store = InMemoryDocumentStore({
            "users": [
                {"id": "a", "name": "John", "age": 9},
                {"id": "b", "name": "Johnny", "age": 10},
                {"id": "c", "name": "Johan", "age": 100},
            ]
        })
        planner = SearchPlanner(store, _config(fuzzy_enabled=False))
        outcome = await planner.search(_request("joh", sort_by="age"))
        assert [m["id"] for m in outcome.matches] == ["a", "b", "c"]

    async def test_return_field_projection(self):
        store = InMemoryDocumentStore({
            "users": [
                {
                    "id": "u1",
                    "name": "John Doe",
                    "email": "john@example.com",
                    "profile": {"age": 30, "city": "Oslo"},
                },
            ]
        })
        planner = SearchPlanner(
            store,
            _config(return_fields=("name", "profile.age", "profile.phone")),
        )
        outcome = await planner.search(_request("john"))
        assert outcome.matches == [
            {"id": "u1", "name": "John Doe", "profile": {"age": 30, "phone": None}}
        ]

    async def test_projection_does_not_mutate_store_documents(self):
        store = InMemoryDocumentStore({
            "users": [{"id": "u1", "name": "John", "profile": {"age": 30}}]
        })
        planner = SearchPlanner(store, _config(return_fields=("profile", "profile.city")))
        await planner.search(_request("john"))
        docs = await store.scan("users", 10)
        assert docs[0].fields["profile"] == {"age": 30}

    async def test_document_id_wins_over_id_field(self):
        store = InMemoryDocumentStore()
        store.add("users", Document("u1", {"id": "legacy-7", "name": "John"}))
        outcome = await SearchPlanner(store, _config()).search(_request("john"))
        assert outcome.matches == [{"id": "u1", "name": "John"}]

    async def test_references_are_normalized_in_output(self):
        store = InMemoryDocumentStore({
            "posts": [
                {"id": "p1", "title": "Hello", "author": {"_path": {"segments": ["users", "u1"]}}},
            ]
        })
        planner = SearchPlanner(store, _config(searchable_fields=("title",)))
        outcome = await planner.search(_request("hello", collection="posts"))
        assert outcome.matches == [{"id": "p1", "title": "Hello", "author": "users/u1"}]

    async def test_unrepresentable_timestamp_does_not_fail_search(self):
        far_future = {"seconds": 253402300800, "nanoseconds": 0}
        store = InMemoryDocumentStore({
            "events": [
                {"id": "e1", "title": "Launch", "at": far_future},
                {"id": "e2", "title": "Launch review", "at": {"seconds": 100, "nanoseconds": 0}},
            ]
        })
        planner = SearchPlanner(store, _config(searchable_fields=("at", "title")))
        outcome = await planner.search(
            _request("launch", collection="events", sort_by="at", direction="desc")
        )
        assert [m["id"] for m in outcome.matches] == ["e1", "e2"]
        assert outcome.matches[0]["at"] == far_future
        assert outcome.matches[1]["at"] == "1970-01-01T00:01:40.000Z"
