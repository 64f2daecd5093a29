"""
modon/property_service.py

Property Search Service: the use cases behind the public listing pages.

- search(): validate -> normalize into SearchCriteria -> store.find_all()
  plus facet enrichment (price range, type counts, city counts)
- get_by_slug(): sanitized lookup, caller visibility check, then a detached
  view-count increment for visible listings only
- get_featured() / get_similar() / get_by_agent(): thin delegations

Error policy:
- Bad input raises ValidationError before any storage call
- Required storage operations surface failures as InternalError
- Optional capabilities degrade to a default and report to the error sink
- The view-count increment never surfaces a failure to the caller
"""

from __future__ import annotations

import asyncio
import math
import re
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Set

from pydantic import ValidationError as PydanticValidationError

from domains.property.models.property import Property, PropertyStatus, PropertyType
from domains.property.models.search import (
    Pagination,
    PriceRange,
    SearchCriteria,
    SearchFacets,
    SearchResult,
    SortSpec,
)
from modon.config import DEFAULT_PRICE_RANGE, IS_DEV
from modon.errors import InternalError, ValidationError
from modon.schemas_properties import PropertySearchInput
from modon.stores import (
    CityCountCapable,
    PaginatedResult,
    PriceRangeCapable,
    PropertyStore,
    TypeCountCapable,
    ViewCountCapable,
    ViewsCapable,
)

ErrorSink = Callable[[str, BaseException], None]

# sortBy key -> concrete (field, direction)
SORT_OPTIONS: Dict[str, SortSpec] = {
    "price_asc": SortSpec(field="price.amount", direction="asc"),
    "price_desc": SortSpec(field="price.amount", direction="desc"),
    "newest": SortSpec(field="created_at", direction="desc"),
    "oldest": SortSpec(field="created_at", direction="asc"),
    "area": SortSpec(field="specs.area", direction="desc"),
}

# Facet enumeration, fixed regardless of what the corpus contains
FACET_TYPES = [t.value for t in PropertyType]

_SLUG_STRIP = re.compile(r"[^a-z0-9-]")


def print_error_sink(label: str, exc: BaseException) -> None:
    """Default sink: degraded facets and failed side effects end up in the server log."""
    print(f"[PROPERTY_SEARCH] {label} failed: {exc!r}")


def sanitize_slug(slug: str) -> str:
    """Lower-case and drop anything outside [a-z0-9-] ("Villa_42!" -> "villa42")."""
    return _SLUG_STRIP.sub("", slug.lower())


def resolve_sort(sort_by: Optional[str]) -> Optional[SortSpec]:
    """Unknown or missing keys mean "storage default ordering", never an error."""
    if not sort_by:
        return None
    return SORT_OPTIONS.get(sort_by)


class PropertyService:
    """
    Stateless between calls; safe to share across concurrent requests.

    The store is injected once at startup. Optional store capabilities are
    detected with isinstance() against the protocols in modon.stores.
    """

    def __init__(self, store: PropertyStore, error_sink: Optional[ErrorSink] = None):
        if not isinstance(store, PropertyStore):
            raise TypeError(f"{type(store).__name__} does not implement PropertyStore")
        self.store = store
        self.error_sink: ErrorSink = error_sink or print_error_sink
        # Detached tasks are referenced until done so they are not garbage collected
        self._background: Set[asyncio.Task] = set()

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------
    def validate(self, raw: Optional[Mapping[str, Any]]) -> PropertySearchInput:
        if raw is None:
            raw = {}
        if not isinstance(raw, Mapping):
            raise ValidationError("Invalid search parameters",
                                  [{"field": "", "message": "search input must be an object"}])
        try:
            return PropertySearchInput.model_validate(dict(raw))
        except PydanticValidationError as exc:
            raise ValidationError.from_pydantic(exc) from exc

    def build_criteria(self, params: PropertySearchInput) -> SearchCriteria:
        return SearchCriteria(
            query=params.query,
            type=params.type,
            listing_type=params.listing_type,
            status=PropertyStatus.published,  # public search never sees other statuses
            city=params.city,
            region=params.region,
            country=params.country,
            min_price=params.min_price,
            max_price=params.max_price,
            currency=params.currency.value if params.currency else None,
            min_bedrooms=params.min_bedrooms,
            max_bedrooms=params.max_bedrooms,
            min_bathrooms=params.min_bathrooms,
            max_bathrooms=params.max_bathrooms,
            min_area=params.min_area,
            max_area=params.max_area,
            features=params.features,
            lifestyle=params.lifestyle,
            has_pool=params.has_pool,
            has_garden=params.has_garden,
            has_seaview=params.has_seaview,
            is_featured=params.is_featured,
            is_off_market=params.is_off_market,
            page=params.page,
            limit=params.limit,
            sort=resolve_sort(params.sort_by),
        )

    async def search(self, raw: Optional[Mapping[str, Any]]) -> SearchResult:
        criteria = self.build_criteria(self.validate(raw))

        # Main query and the three facets run concurrently; facets never raise
        page, price_range, type_counts, city_counts = await asyncio.gather(
            self.store.find_all(criteria),
            self._price_range(),
            self._type_counts(),
            self._city_counts(),
            return_exceptions=True,
        )
        if isinstance(page, BaseException):
            self._raise_internal("find_all", page)
        price_range = self._facet_or_default("price range facet", price_range, self._default_price_range)
        type_counts = self._facet_or_default("type count facet", type_counts, lambda: {t: 0 for t in FACET_TYPES})
        city_counts = self._facet_or_default("city count facet", city_counts, dict)

        result = SearchResult(
            properties=page.data,
            pagination=self.normalize_pagination(page, criteria),
            filters=SearchFacets(
                price_range=price_range,
                available_types=type_counts,
                available_cities=city_counts,
            ),
        )

        if IS_DEV:
            print(f"[PROPERTY_SEARCH] page={result.pagination.page}, limit={result.pagination.limit}, "
                  f"total={result.pagination.total}, sort={criteria.sort}")
        return result

    @staticmethod
    def normalize_pagination(page: PaginatedResult, criteria: SearchCriteria) -> Pagination:
        """Fill whatever the store left out; hasPrev is always a concrete bool."""
        raw = page.pagination or {}
        current = int(raw.get("page") or criteria.page)
        limit = int(raw.get("limit") or criteria.limit)
        total = raw.get("total")
        total = int(total) if total is not None else len(page.data)

        total_pages = raw.get("totalPages")
        if total_pages is None:
            total_pages = math.ceil(total / limit) if limit > 0 else 0

        has_next = raw.get("hasNext")
        if has_next is None:
            has_next = current < total_pages

        has_prev = raw.get("hasPrev")
        if has_prev is None:
            has_prev = raw.get("hasPrevious")
        if has_prev is None:
            has_prev = False

        return Pagination(
            page=current,
            limit=limit,
            total=total,
            total_pages=int(total_pages),
            has_next=bool(has_next),
            has_prev=bool(has_prev),
        )

    # ------------------------------------------------------------------
    # Facets (optional capabilities, each with its own fallback)
    # ------------------------------------------------------------------
    @staticmethod
    def _default_price_range() -> PriceRange:
        return PriceRange(min=DEFAULT_PRICE_RANGE[0], max=DEFAULT_PRICE_RANGE[1])

    def _facet_or_default(self, label: str, value: Any, default: Callable[[], Any]) -> Any:
        """A facet slot that still came back as an exception is reported and replaced."""
        if isinstance(value, Exception):
            self.error_sink(label, value)
            return default()
        if isinstance(value, BaseException):
            raise value
        return value

    async def _price_range(self) -> PriceRange:
        if not isinstance(self.store, PriceRangeCapable):
            return self._default_price_range()
        try:
            found = await self.store.get_price_range(PropertyStatus.published)
            return PriceRange(min=found["min"], max=found["max"])
        except Exception as exc:
            self.error_sink("price range facet", exc)
            return self._default_price_range()

    async def _type_count(self, property_type: str) -> int:
        try:
            return int(await self.store.count_by_type(property_type) or 0)
        except Exception as exc:
            self.error_sink(f"type count facet ({property_type})", exc)
            return 0

    async def _type_counts(self) -> Dict[str, int]:
        if not isinstance(self.store, TypeCountCapable):
            return {t: 0 for t in FACET_TYPES}
        counts = await asyncio.gather(*(self._type_count(t) for t in FACET_TYPES))
        return dict(zip(FACET_TYPES, counts))

    async def _city_counts(self) -> Dict[str, int]:
        if not isinstance(self.store, CityCountCapable):
            return {}
        try:
            found = await self.store.count_by_city()
            return {str(city): int(count) for city, count in dict(found).items()}
        except Exception as exc:
            self.error_sink("city count facet", exc)
            return {}

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------
    async def get_by_slug(
        self,
        slug: Any,
        visible: Optional[Callable[[Property], bool]] = None,
    ) -> Optional[Property]:
        """
        Look up a listing and record a view.

        `visible` lets the caller hide listings it must not serve; a hidden
        listing is returned as None and its view count is left alone.
        """
        if not isinstance(slug, str) or len(slug) < 1:
            raise ValidationError("Invalid property slug",
                                  [{"field": "slug", "message": "slug must be a non-empty string"}])

        prop = await self._required("find_by_slug", self.store.find_by_slug(sanitize_slug(slug)))
        if prop is None:
            return None
        if visible is not None and not visible(prop):
            return None

        self._record_view(prop.id)
        return prop

    async def get_featured(self, limit: int = 6) -> List[Property]:
        return await self._required("find_featured", self.store.find_featured(limit))

    async def get_similar(self, property_id: str, limit: int = 4) -> List[Property]:
        return await self._required("find_similar", self.store.find_similar(property_id, limit))

    async def get_by_agent(self, agent_id: str, page: int = 1, limit: int = 12) -> PaginatedResult:
        return await self._required("find_by_agent", self.store.find_by_agent(agent_id, page, limit))

    # ------------------------------------------------------------------
    # Detached side effects
    # ------------------------------------------------------------------
    def _record_view(self, property_id: str) -> None:
        if isinstance(self.store, ViewCountCapable):
            increment = self.store.increment_view_count
        elif isinstance(self.store, ViewsCapable):
            increment = self.store.increment_views
        else:
            return

        task = asyncio.create_task(self._detached("view count increment", increment, property_id))
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def _detached(self, label: str, fn: Callable[..., Awaitable[Any]], *args: Any) -> None:
        try:
            await fn(*args)
        except Exception as exc:
            self.error_sink(label, exc)

    async def drain(self) -> None:
        """Wait for detached side effects (tests, shutdown)."""
        if self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    async def _required(self, operation: str, op: Awaitable[Any]) -> Any:
        try:
            return await op
        except InternalError:
            raise
        except Exception as exc:
            self._raise_internal(operation, exc)

    @staticmethod
    def _raise_internal(operation: str, exc: BaseException) -> None:
        if isinstance(exc, InternalError) or not isinstance(exc, Exception):
            raise exc
        print(f"[PROPERTY_SEARCH] {operation} failed: {exc!r}")
        raise InternalError(operation) from exc
