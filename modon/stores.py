"""
modon/stores.py

Storage abstraction for property listings.

PropertyStore is the required interface every backend implements. The other
protocols are optional capabilities; callers check them with isinstance()
and fall back to a documented default when a store does not provide one.

Pure typing module - no FastAPI imports, no database access.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol, runtime_checkable

from domains.property.models.property import Property, PropertyStatus
from domains.property.models.search import SearchCriteria


@dataclass
class PaginatedResult:
    """
    One page of records plus its pagination block.

    pagination keys: page, limit, total, totalPages, hasNext and hasPrev.
    Some backends report hasPrevious instead of hasPrev; readers must accept both.
    """
    data: List[Property]
    pagination: Dict[str, Any] = field(default_factory=dict)


def build_pagination(page: int, limit: int, total: int) -> Dict[str, Any]:
    """Pagination block for a page/limit window over `total` matches."""
    total_pages = math.ceil(total / limit) if limit > 0 else 0
    return {
        "page": page,
        "limit": limit,
        "total": total,
        "totalPages": total_pages,
        "hasNext": page < total_pages,
        "hasPrev": page > 1,
    }


# ============================================================================
# Required interface
# ============================================================================

@runtime_checkable
class PropertyStore(Protocol):
    async def find_all(self, criteria: SearchCriteria) -> PaginatedResult: ...

    async def find_by_slug(self, slug: str) -> Optional[Property]: ...

    async def find_featured(self, limit: int) -> List[Property]: ...

    async def find_similar(self, property_id: str, limit: int) -> List[Property]: ...

    async def find_by_agent(self, agent_id: str, page: int, limit: int) -> PaginatedResult: ...


# ============================================================================
# Optional capabilities
# ============================================================================

@runtime_checkable
class PriceRangeCapable(Protocol):
    async def get_price_range(self, status: PropertyStatus) -> Dict[str, float]: ...


@runtime_checkable
class TypeCountCapable(Protocol):
    async def count_by_type(self, property_type: str) -> int: ...


@runtime_checkable
class CityCountCapable(Protocol):
    async def count_by_city(self) -> Dict[str, int]: ...


@runtime_checkable
class ViewCountCapable(Protocol):
    async def increment_view_count(self, property_id: str) -> None: ...


@runtime_checkable
class ViewsCapable(Protocol):
    async def increment_views(self, property_id: str) -> None: ...


@runtime_checkable
class PropertyWriter(Protocol):
    """Write access used by the admin dashboard routes."""

    async def find_by_id(self, property_id: str) -> Optional[Property]: ...

    async def list_all(self, page: int, limit: int, status: Optional[PropertyStatus] = None) -> PaginatedResult: ...

    async def create(self, prop: Property) -> Property: ...

    async def set_status(self, property_id: str, status: PropertyStatus) -> Optional[Property]: ...

    async def update(self, property_id: str, changes: Dict[str, Any]) -> Optional[Property]: ...

    async def delete(self, property_id: str) -> bool: ...
