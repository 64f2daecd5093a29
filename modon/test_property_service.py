"""
modon/test_property_service.py

Behavioural tests for PropertyService.

Tests cover:
- Input validation and normalization into SearchCriteria
- Sort key resolution and pagination normalization
- Facet fallbacks for missing, failing or malformed store capabilities
- Slug sanitization, visibility and the detached view-count increment
- Required-operation failures surfacing as InternalError

Fake stores implement only the capabilities each test needs.

Run: pytest modon/test_property_service.py -v
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta
from typing import Any, List, Optional

import pytest

from domains.property.models.property import Property, PropertyStatus
from domains.property.models.search import SearchCriteria, SortSpec
from modon.errors import InternalError, ValidationError
from modon.property_service import FACET_TYPES, PropertyService, resolve_sort, sanitize_slug
from modon.store_memory import MemoryPropertyStore
from modon.stores import PaginatedResult, build_pagination


# ========================================================================
# HELPERS
# ========================================================================

def make_property(i: int, **overrides: Any) -> Property:
    data = {
        "id": f"p-{i:03d}",
        "slug": f"listing-{i}",
        "title": f"Listing number {i}",
        "type": "villa",
        "listing_type": "sale",
        "status": "published",
        "location": {"city": "Marbella", "country": "Spain"},
        "price": {"amount": 500_000 + i * 20_000},
        "created_at": datetime(2026, 1, 1) + timedelta(days=i),
    }
    data.update(overrides)
    return Property.model_validate(data)


class RecordingStore:
    """Required interface only; records every call."""

    def __init__(self, properties: Optional[List[Property]] = None, pagination: Optional[dict] = None):
        self.properties = properties or []
        self.pagination = pagination
        self.calls: List[tuple] = []

    async def find_all(self, criteria: SearchCriteria) -> PaginatedResult:
        self.calls.append(("find_all", criteria))
        if self.pagination is not None:
            return PaginatedResult(data=list(self.properties), pagination=self.pagination)
        return PaginatedResult(
            data=list(self.properties),
            pagination=build_pagination(criteria.page, criteria.limit, len(self.properties)),
        )

    async def find_by_slug(self, slug: str) -> Optional[Property]:
        self.calls.append(("find_by_slug", slug))
        return next((p for p in self.properties if p.slug == slug), None)

    async def find_featured(self, limit: int) -> List[Property]:
        self.calls.append(("find_featured", limit))
        return self.properties[:limit]

    async def find_similar(self, property_id: str, limit: int) -> List[Property]:
        self.calls.append(("find_similar", property_id, limit))
        return [p for p in self.properties if p.id != property_id][:limit]

    async def find_by_agent(self, agent_id: str, page: int, limit: int) -> PaginatedResult:
        self.calls.append(("find_by_agent", agent_id, page, limit))
        return PaginatedResult(data=[], pagination=build_pagination(page, limit, 0))


class FailingStore(RecordingStore):
    async def find_all(self, criteria: SearchCriteria) -> PaginatedResult:
        raise ConnectionError("database unreachable")

    async def find_featured(self, limit: int) -> List[Property]:
        raise TimeoutError("query timed out")


class ViewsStore(RecordingStore):
    """Only the secondary increment name."""

    async def increment_views(self, property_id: str) -> None:
        self.calls.append(("increment_views", property_id))


class BrokenViewCountStore(RecordingStore):
    async def increment_view_count(self, property_id: str) -> None:
        raise RuntimeError("counter table locked")


class FlakyFacetStore(RecordingStore):
    """Price range fails, counts work, one type count fails."""

    async def get_price_range(self, status: PropertyStatus) -> dict:
        raise ConnectionError("aggregate failed")

    async def count_by_type(self, property_type: str) -> int:
        if property_type == "land":
            raise RuntimeError("count failed")
        return 3

    async def count_by_city(self) -> dict:
        return {"Marbella": 2}


class CityFailStore(RecordingStore):
    """Every facet works except the city counts."""

    async def get_price_range(self, status: PropertyStatus) -> dict:
        return {"min": 250_000, "max": 900_000}

    async def count_by_type(self, property_type: str) -> int:
        return 2 if property_type == "villa" else 0

    async def count_by_city(self) -> dict:
        raise ConnectionError("group by failed")


class JunkCountStore(RecordingStore):
    """Counts come back in shapes a loosely typed backend might produce."""

    async def count_by_type(self, property_type: str) -> Any:
        if property_type == "villa":
            return "n/a"
        if property_type == "apartment":
            return "4"
        return None

    async def count_by_city(self) -> dict:
        return {"Dubai": None}


class Sink:
    def __init__(self):
        self.reports: List[tuple] = []

    def __call__(self, label: str, exc: BaseException) -> None:
        self.reports.append((label, exc))


def run_search(service: PropertyService, raw: Any = None):
    return asyncio.run(service.search(raw or {}))


def lookup_and_drain(service: PropertyService, slug: Any, **kwargs: Any):
    async def scenario():
        found = await service.get_by_slug(slug, **kwargs)
        await service.drain()
        return found

    return asyncio.run(scenario())


# ========================================================================
# SEARCH: VALIDATION AND NORMALIZATION
# ========================================================================

class TestSearchInput:
    """Validation and normalization of raw search input."""

    def test_search_price_desc_page_two_of_three(self):
        """25 matching listings, 10 per page, price descending: page 2 holds entries 11-20."""
        listings = [make_property(i) for i in range(25)]
        listings.append(make_property(90, price={"amount": 2_500_000}))  # outside range
        listings.append(make_property(91, status="draft"))  # not published
        service = PropertyService(MemoryPropertyStore(listings))

        result = run_search(service, {
            "minPrice": 500000, "maxPrice": 1000000, "sortBy": "price_desc", "page": 2, "limit": 10,
        })

        assert result.pagination.page == 2
        assert result.pagination.limit == 10
        assert result.pagination.total == 25
        assert result.pagination.total_pages == 3
        assert result.pagination.has_next is True
        assert result.pagination.has_prev is True

        prices = [p.price.amount for p in result.properties]
        assert len(prices) == 10
        assert prices == sorted(prices, reverse=True)
        # Descending order: index 10 is listing 14, index 19 is listing 5
        assert [p.id for p in result.properties] == [f"p-{i:03d}" for i in range(14, 4, -1)]

    def test_search_forces_published_status(self):
        store = RecordingStore()
        service = PropertyService(store)

        run_search(service, {"status": "draft"})

        _, criteria = store.calls[0]
        assert criteria.status == PropertyStatus.published

    def test_search_defaults_for_empty_input(self):
        store = RecordingStore()
        service = PropertyService(store)

        asyncio.run(service.search(None))

        _, criteria = store.calls[0]
        assert criteria.page == 1
        assert criteria.limit == 20
        assert criteria.sort is None

    def test_unknown_sort_key_means_no_sort(self):
        store = RecordingStore()
        service = PropertyService(store)

        run_search(service, {"sortBy": "cheapest_first"})

        _, criteria = store.calls[0]
        assert criteria.sort is None

    @pytest.mark.parametrize("key,field,direction", [
        ("price_asc", "price.amount", "asc"),
        ("price_desc", "price.amount", "desc"),
        ("newest", "created_at", "desc"),
        ("oldest", "created_at", "asc"),
        ("area", "specs.area", "desc"),
    ])
    def test_sort_table(self, key, field, direction):
        assert resolve_sort(key) == SortSpec(field=field, direction=direction)

    def test_search_normalizes_loose_query_values(self):
        store = RecordingStore()
        service = PropertyService(store)

        run_search(service, {
            "type": "VILLA", "listingType": "all", "city": "  ", "currency": "eur",
            "features": "pool, smart home", "hasPool": "true", "page": "3",
        })

        _, criteria = store.calls[0]
        assert criteria.type.value == "villa"
        assert criteria.listing_type is None
        assert criteria.city is None
        assert criteria.currency == "EUR"
        assert criteria.features == ["pool", "smart home"]
        assert criteria.has_pool is True
        assert criteria.page == 3

    @pytest.mark.parametrize("raw,field", [
        ({"limit": 500}, "limit"),
        ({"limit": 0}, "limit"),
        ({"page": 0}, "page"),
        ({"minPrice": -1}, "minPrice"),
        ({"type": "castle"}, "type"),
        ({"minBedrooms": "many"}, "minBedrooms"),
    ])
    def test_invalid_search_input_raises_validation_error(self, raw, field):
        store = RecordingStore()
        service = PropertyService(store)

        with pytest.raises(ValidationError) as excinfo:
            asyncio.run(service.search(raw))

        assert excinfo.value.message == "Invalid search parameters"
        assert field in [d["field"] for d in excinfo.value.details]
        assert store.calls == []

    def test_non_mapping_search_input_is_rejected(self):
        service = PropertyService(RecordingStore())

        with pytest.raises(ValidationError):
            asyncio.run(service.search(["not", "a", "mapping"]))

    def test_unknown_search_fields_are_ignored(self):
        store = RecordingStore()
        service = PropertyService(store)

        run_search(service, {"accountId": 7, "dropTable": "properties"})

        assert len(store.calls) == 1


# ========================================================================
# PAGINATION
# ========================================================================

class TestPagination:
    """Pagination blocks filled in or re-spelled by the service."""

    def test_pagination_filled_when_store_omits_it(self):
        store = RecordingStore([make_property(i) for i in range(3)], pagination={})
        service = PropertyService(store)

        result = run_search(service, {"limit": 2})

        assert result.pagination.total == 3
        assert result.pagination.total_pages == 2
        assert result.pagination.has_next is True
        assert result.pagination.has_prev is False

    def test_pagination_accepts_has_previous_spelling(self):
        store = RecordingStore(pagination={"page": 2, "limit": 10, "total": 25, "hasPrevious": True})
        service = PropertyService(store)

        result = run_search(service, {"page": 2, "limit": 10})

        assert result.pagination.total_pages == 3
        assert result.pagination.has_next is True
        assert result.pagination.has_prev is True


# ========================================================================
# FACETS
# ========================================================================

class TestFacets:
    """Facet enrichment and its per-facet fallbacks."""

    def test_facets_default_when_capabilities_missing(self):
        service = PropertyService(RecordingStore())

        result = run_search(service)

        assert result.filters.price_range.min == 0
        assert result.filters.price_range.max == 10_000_000
        assert result.filters.available_types == {t: 0 for t in FACET_TYPES}
        assert len(result.filters.available_types) == 6
        assert result.filters.available_cities == {}

    def test_failing_facets_degrade_and_are_reported(self):
        sink = Sink()
        store = FlakyFacetStore([make_property(1)])
        service = PropertyService(store, error_sink=sink)

        result = run_search(service)

        # Main result is complete
        assert len(result.properties) == 1
        assert result.pagination.total == 1
        # Only the failing parts fall back
        assert result.filters.price_range.min == 0
        assert result.filters.price_range.max == 10_000_000
        assert result.filters.available_types["land"] == 0
        assert result.filters.available_types["villa"] == 3
        assert result.filters.available_cities == {"Marbella": 2}

        labels = [label for label, _ in sink.reports]
        assert "price range facet" in labels
        assert "type count facet (land)" in labels

    def test_only_city_counts_failing(self):
        sink = Sink()
        service = PropertyService(CityFailStore([make_property(1)]), error_sink=sink)

        result = run_search(service)

        assert result.filters.available_cities == {}
        assert result.filters.price_range.min == 250_000
        assert result.filters.price_range.max == 900_000
        assert result.filters.available_types["villa"] == 2
        assert len(result.filters.available_types) == 6
        assert len(result.properties) == 1
        assert [label for label, _ in sink.reports] == ["city count facet"]
        assert isinstance(sink.reports[0][1], ConnectionError)

    def test_malformed_counts_fall_back_per_facet(self):
        sink = Sink()
        service = PropertyService(JunkCountStore([make_property(1)]), error_sink=sink)

        result = run_search(service)

        assert len(result.properties) == 1
        assert result.filters.available_types["villa"] == 0
        assert result.filters.available_types["apartment"] == 4
        assert result.filters.available_types["land"] == 0
        assert result.filters.available_cities == {}

        labels = [label for label, _ in sink.reports]
        assert "type count facet (villa)" in labels
        assert "city count facet" in labels
        assert "type count facet (apartment)" not in labels

    def test_facet_task_raising_is_replaced_by_default(self):
        sink = Sink()
        service = PropertyService(FlakyFacetStore([make_property(1)]), error_sink=sink)

        async def exploding_city_counts():
            raise KeyError("city")

        service._city_counts = exploding_city_counts

        result = run_search(service)

        assert len(result.properties) == 1
        assert result.filters.available_cities == {}
        assert result.filters.available_types["villa"] == 3
        assert [label for label, exc in sink.reports if isinstance(exc, KeyError)] == ["city count facet"]

    def test_facets_from_memory_store(self):
        service = PropertyService(MemoryPropertyStore.seeded())

        result = run_search(service)

        # Seed data: 10 published listings, cheapest is the Zamalek rental
        assert result.pagination.total == 10
        assert result.filters.price_range.min == 4_500
        assert result.filters.price_range.max == 12_000_000
        assert result.filters.available_types["villa"] == 3
        assert result.filters.available_types["land"] == 1
        assert result.filters.available_cities["Dubai"] == 1


# ========================================================================
# REQUIRED OPERATIONS
# ========================================================================

class TestRequiredOperations:
    """Required store calls surface failures as InternalError."""

    def test_find_all_failure_raises_internal_error(self):
        service = PropertyService(FailingStore())

        with pytest.raises(InternalError) as excinfo:
            asyncio.run(service.search({}))

        assert excinfo.value.operation == "find_all"
        assert isinstance(excinfo.value.__cause__, ConnectionError)

    def test_get_featured_failure_raises_internal_error(self):
        service = PropertyService(FailingStore())

        with pytest.raises(InternalError) as excinfo:
            asyncio.run(service.get_featured())

        assert excinfo.value.operation == "find_featured"

    def test_delegations_pass_arguments_through(self):
        store = RecordingStore([make_property(i) for i in range(8)])
        service = PropertyService(store)

        featured = asyncio.run(service.get_featured())
        similar = asyncio.run(service.get_similar("p-000"))
        by_agent = asyncio.run(service.get_by_agent("agent-omar", page=2))

        assert len(featured) == 6
        assert len(similar) == 4
        assert "p-000" not in [p.id for p in similar]
        assert by_agent.pagination["page"] == 2
        assert ("find_by_agent", "agent-omar", 2, 12) in store.calls

    def test_store_without_required_interface_is_rejected(self):
        with pytest.raises(TypeError):
            PropertyService(object())


# ========================================================================
# GET BY SLUG
# ========================================================================

class TestGetBySlug:
    """Slug lookup, visibility and the detached view increment."""

    def test_slug_is_sanitized_before_lookup(self):
        store = RecordingStore()
        service = PropertyService(store)

        found = asyncio.run(service.get_by_slug("Villa_42!"))

        assert found is None
        assert store.calls == [("find_by_slug", "villa42")]

    @pytest.mark.parametrize("raw,expected", [
        ("Sea-View-Villa", "sea-view-villa"),
        ("villa 42", "villa42"),
        ("../../etc/passwd", "etcpasswd"),
        ("فيلا", ""),
    ])
    def test_sanitize_slug(self, raw, expected):
        assert sanitize_slug(raw) == expected

    def test_unknown_slug_returns_none_without_increment(self):
        store = ViewsStore()
        service = PropertyService(store)

        assert lookup_and_drain(service, "does-not-exist") is None
        assert not any(call[0] == "increment_views" for call in store.calls)

    def test_hidden_listing_returns_none_without_increment(self):
        store = ViewsStore([make_property(1, status="draft")])
        service = PropertyService(store)

        found = lookup_and_drain(service, "listing-1", visible=lambda p: p.status == PropertyStatus.published)

        assert found is None
        assert ("find_by_slug", "listing-1") in store.calls
        assert not any(call[0] == "increment_views" for call in store.calls)

    def test_visible_listing_is_counted(self):
        store = ViewsStore([make_property(1)])
        service = PropertyService(store)

        found = lookup_and_drain(service, "listing-1", visible=lambda p: p.status == PropertyStatus.published)

        assert found.id == "p-001"
        assert ("increment_views", "p-001") in store.calls

    @pytest.mark.parametrize("slug", ["", None, 42])
    def test_invalid_slug_fails_before_storage(self, slug):
        store = RecordingStore()
        service = PropertyService(store)

        with pytest.raises(ValidationError):
            asyncio.run(service.get_by_slug(slug))

        assert store.calls == []

    def test_view_increment_uses_secondary_name(self):
        store = ViewsStore([make_property(1)])
        service = PropertyService(store)

        found = lookup_and_drain(service, "listing-1")

        assert found.id == "p-001"
        assert ("increment_views", "p-001") in store.calls

    def test_view_increment_failure_is_swallowed(self):
        sink = Sink()
        store = BrokenViewCountStore([make_property(1)])
        service = PropertyService(store, error_sink=sink)

        found = lookup_and_drain(service, "listing-1")

        assert found is not None
        assert len(sink.reports) == 1
        label, exc = sink.reports[0]
        assert label == "view count increment"
        assert isinstance(exc, RuntimeError)

    def test_view_count_incremented_in_memory_store(self):
        store = MemoryPropertyStore.seeded()
        service = PropertyService(store)

        async def scenario():
            await service.get_by_slug("marbella-golden-mile-villa")
            await service.get_by_slug("Marbella-Golden-Mile-Villa")
            await service.drain()
            return await store.find_by_slug("marbella-golden-mile-villa")

        assert asyncio.run(scenario()).view_count == 2


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
