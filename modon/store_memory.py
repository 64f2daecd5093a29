"""
modon/store_memory.py

In-memory mock store (simulation mode).

Serves the seeded listings when no database is configured, and backs the
tests. Implements the required PropertyStore interface and every optional
capability, plus PropertyWriter for the admin routes. Read methods hand out
deep copies.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from domains.property.models.property import Property, PropertyStatus
from domains.property.models.search import SearchCriteria, SortSpec
from domains.leads.models.lead import Lead

from modon.config import IS_DEV
from modon.stores import PaginatedResult, build_pagination


DEFAULT_SORT = SortSpec(field="created_at", direction="desc")


def resolve_field(prop: Property, path: str) -> Any:
    """Read a dotted field path such as "price.amount" from a property."""
    value: Any = prop
    for part in path.split("."):
        value = getattr(value, part, None)
        if value is None:
            return None
    return value


def _contains(haystack: Optional[str], needle: str) -> bool:
    return bool(haystack) and needle in haystack.lower()


def _has_all(values: List[str], wanted: List[str]) -> bool:
    have = {v.lower() for v in values}
    return all(w.lower() in have for w in wanted)


def matches(prop: Property, criteria: SearchCriteria) -> bool:
    """True if `prop` satisfies every filter set on `criteria`."""
    if prop.status != criteria.status:
        return False
    if criteria.type and prop.type != criteria.type:
        return False
    if criteria.listing_type and prop.listing_type != criteria.listing_type:
        return False
    if criteria.agent_id and prop.agent_id != criteria.agent_id:
        return False

    if criteria.query:
        q = criteria.query.lower()
        fields = (prop.title, prop.title_ar, prop.description, prop.location.city, prop.location.country)
        if not any(_contains(f, q) for f in fields):
            return False

    # Location (city is a partial match, the others exact)
    if criteria.city and not _contains(prop.location.city, criteria.city.lower()):
        return False
    if criteria.region and (prop.location.region or "").lower() != criteria.region.lower():
        return False
    if criteria.country and prop.location.country.lower() != criteria.country.lower():
        return False

    # Ranges
    amount = prop.price.amount
    if criteria.currency and prop.price.currency.value != criteria.currency:
        return False
    if criteria.min_price is not None and amount < criteria.min_price:
        return False
    if criteria.max_price is not None and amount > criteria.max_price:
        return False
    specs = prop.specs
    if criteria.min_bedrooms is not None and specs.bedrooms < criteria.min_bedrooms:
        return False
    if criteria.max_bedrooms is not None and specs.bedrooms > criteria.max_bedrooms:
        return False
    if criteria.min_bathrooms is not None and specs.bathrooms < criteria.min_bathrooms:
        return False
    if criteria.max_bathrooms is not None and specs.bathrooms > criteria.max_bathrooms:
        return False
    if criteria.min_area is not None and specs.area < criteria.min_area:
        return False
    if criteria.max_area is not None and specs.area > criteria.max_area:
        return False

    # Tags
    if criteria.features and not _has_all(prop.features, criteria.features):
        return False
    if criteria.lifestyle and not _has_all(prop.lifestyle, criteria.lifestyle):
        return False

    # Flags (None means "don't care")
    flag_checks = (
        (criteria.has_pool, specs.pool),
        (criteria.has_garden, specs.garden),
        (criteria.has_seaview, specs.seaview),
        (criteria.is_featured, prop.flags.featured),
        (criteria.is_off_market, prop.flags.off_market),
    )
    for wanted, actual in flag_checks:
        if wanted is not None and actual != wanted:
            return False

    return True


def sort_properties(props: List[Property], sort: Optional[SortSpec]) -> List[Property]:
    sort = sort or DEFAULT_SORT
    present = [p for p in props if resolve_field(p, sort.field) is not None]
    missing = [p for p in props if resolve_field(p, sort.field) is None]
    present.sort(key=lambda p: resolve_field(p, sort.field), reverse=(sort.direction == "desc"))
    # Listings without the sort field always go last
    return present + missing


def paginate(props: List[Property], page: int, limit: int) -> PaginatedResult:
    offset = (page - 1) * limit
    return PaginatedResult(
        data=detached(props[offset:offset + limit]),
        pagination=build_pagination(page, limit, len(props)),
    )


def detached(props: Iterable[Property]) -> List[Property]:
    """Callers get deep copies; mutating a result never touches the store."""
    return [p.model_copy(deep=True) for p in props]


class MemoryPropertyStore:
    """Process-local listing store. Not shared across workers."""

    def __init__(self, properties: Optional[Iterable[Property]] = None):
        self.properties: List[Property] = list(properties or [])
        if IS_DEV:
            print(f"[STORE] Memory store initialized with {len(self.properties)} properties")

    @classmethod
    def seeded(cls) -> "MemoryPropertyStore":
        from modon.seed_data import seed_properties
        return cls(seed_properties())

    def _published(self) -> List[Property]:
        return [p for p in self.properties if p.status == PropertyStatus.published]

    def _index_of(self, property_id: str) -> Optional[int]:
        for i, prop in enumerate(self.properties):
            if prop.id == property_id:
                return i
        return None

    def _slug_taken(self, slug: str) -> bool:
        return any(p.slug == slug for p in self.properties)

    # Required -----------------------------------------------------------
    async def find_all(self, criteria: SearchCriteria) -> PaginatedResult:
        matched = [p for p in self.properties if matches(p, criteria)]
        return paginate(sort_properties(matched, criteria.sort), criteria.page, criteria.limit)

    async def find_by_slug(self, slug: str) -> Optional[Property]:
        for prop in self.properties:
            if prop.slug == slug:
                return prop.model_copy(deep=True)
        return None

    async def find_featured(self, limit: int) -> List[Property]:
        featured = [p for p in self._published() if p.flags.featured]
        return detached(sort_properties(featured, None)[:limit])

    async def find_similar(self, property_id: str, limit: int) -> List[Property]:
        idx = self._index_of(property_id)
        if idx is None:
            return []
        base = self.properties[idx]
        low, high = base.price.amount * 0.7, base.price.amount * 1.3
        similar = [
            p for p in self._published()
            if p.id != base.id
            and p.type == base.type
            and p.listing_type == base.listing_type
            and low <= p.price.amount <= high
        ]
        return detached(sort_properties(similar, None)[:limit])

    async def find_by_agent(self, agent_id: str, page: int, limit: int) -> PaginatedResult:
        # Agent pages are public, so off-market listings stay hidden
        return await self.find_all(SearchCriteria(agent_id=agent_id, is_off_market=False, page=page, limit=limit))

    # Optional capabilities ----------------------------------------------
    async def get_price_range(self, status: PropertyStatus) -> Dict[str, float]:
        amounts = [p.price.amount for p in self.properties if p.status == status]
        if not amounts:
            return {"min": 0, "max": 0}
        return {"min": min(amounts), "max": max(amounts)}

    async def count_by_type(self, property_type: str) -> int:
        return sum(1 for p in self._published() if p.type.value == property_type)

    async def count_by_city(self) -> Dict[str, int]:
        counts: Dict[str, int] = {}
        for prop in self._published():
            counts[prop.location.city] = counts.get(prop.location.city, 0) + 1
        return counts

    async def increment_view_count(self, property_id: str) -> None:
        idx = self._index_of(property_id)
        if idx is not None:
            self.properties[idx].view_count += 1

    # Admin writes -------------------------------------------------------
    async def find_by_id(self, property_id: str) -> Optional[Property]:
        idx = self._index_of(property_id)
        return self.properties[idx].model_copy(deep=True) if idx is not None else None

    async def list_all(self, page: int, limit: int, status: Optional[PropertyStatus] = None) -> PaginatedResult:
        props = [p for p in self.properties if status is None or p.status == status]
        return paginate(sort_properties(props, None), page, limit)

    async def create(self, prop: Property) -> Property:
        if self._slug_taken(prop.slug):
            prop = prop.model_copy(update={"slug": f"{prop.slug}-{uuid.uuid4().hex[:6]}"})
        self.properties.insert(0, prop)
        return prop.model_copy(deep=True)

    async def update(self, property_id: str, changes: Dict[str, Any]) -> Optional[Property]:
        idx = self._index_of(property_id)
        if idx is None:
            return None
        merged = {**self.properties[idx].model_dump(), **changes, "updated_at": datetime.utcnow()}
        updated = Property.model_validate(merged)
        self.properties[idx] = updated
        return updated.model_copy(deep=True)

    async def set_status(self, property_id: str, status: PropertyStatus) -> Optional[Property]:
        return await self.update(property_id, {"status": status})

    async def delete(self, property_id: str) -> bool:
        idx = self._index_of(property_id)
        if idx is None:
            return False
        del self.properties[idx]
        return True


class MemoryLeadStore:
    """Contact-form leads, newest first."""

    def __init__(self):
        self.leads: List[Lead] = []

    async def add(self, lead: Lead) -> Lead:
        self.leads.insert(0, lead)
        return lead

    async def find_all(self, status: Optional[str] = None) -> List[Lead]:
        return [lead for lead in self.leads if status is None or lead.status == status]

    async def update(self, lead_id: str, changes: Dict[str, Any]) -> Optional[Lead]:
        for i, lead in enumerate(self.leads):
            if lead.id == lead_id:
                self.leads[i] = lead.model_copy(update=changes)
                return self.leads[i]
        return None
