from pydantic import BaseModel, Field
from typing import Dict, List, Literal, Optional

from domains.property.models.property import (
    CamelModel,
    ListingType,
    Property,
    PropertyStatus,
    PropertyType,
)


class SortSpec(BaseModel):
    """Concrete sort: a dotted Property field path plus a direction."""

    field: str
    direction: Literal["asc", "desc"]


class SearchCriteria(BaseModel):
    """
    Storage-agnostic query built by the search service for one request.
    Public search always pins status to published.
    """

    query: Optional[str] = None

    # Categorical filters
    type: Optional[PropertyType] = None
    listing_type: Optional[ListingType] = None
    status: PropertyStatus = PropertyStatus.published
    city: Optional[str] = None
    region: Optional[str] = None
    country: Optional[str] = None

    # Numeric ranges
    min_price: Optional[float] = None
    max_price: Optional[float] = None
    currency: Optional[str] = None
    min_bedrooms: Optional[int] = None
    max_bedrooms: Optional[int] = None
    min_bathrooms: Optional[int] = None
    max_bathrooms: Optional[int] = None
    min_area: Optional[float] = None
    max_area: Optional[float] = None

    # Tags and flags
    features: Optional[List[str]] = None
    lifestyle: Optional[List[str]] = None
    has_pool: Optional[bool] = None
    has_garden: Optional[bool] = None
    has_seaview: Optional[bool] = None
    is_featured: Optional[bool] = None
    is_off_market: Optional[bool] = None

    agent_id: Optional[str] = None

    # Paging and ordering (sort=None means storage default ordering)
    page: int = 1
    limit: int = 20
    sort: Optional[SortSpec] = None


class Pagination(CamelModel):
    page: int
    limit: int
    total: int
    total_pages: int
    has_next: bool
    has_prev: bool


class PriceRange(CamelModel):
    min: float
    max: float


class SearchFacets(CamelModel):
    """Aggregates over the whole published corpus, independent of the current page."""

    price_range: PriceRange
    available_types: Dict[str, int] = Field(default_factory=dict)
    available_cities: Dict[str, int] = Field(default_factory=dict)


class SearchResult(CamelModel):
    properties: List[Property] = Field(default_factory=list)
    pagination: Pagination
    filters: SearchFacets
