"""
modon/schemas_properties.py

Pydantic schemas for the property API.
Security-first: search input is validated against a fixed schema, unknown
fields are dropped, and free-text is length-capped.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from domains.property.models.property import (
    CamelModel,
    Currency,
    ListingType,
    Property,
    PropertyFlags,
    PropertyLocation,
    PropertyPrice,
    PropertySpecs,
    PropertyStatus,
    PropertyType,
)
from domains.property.models.search import Pagination, SearchFacets
from modon.config import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE


# ========================================================================
# SEARCH INPUT
# ========================================================================

class PropertySearchInput(CamelModel):
    """Loosely-typed search request (query string or JSON body).

    Security notes:
    - extra fields are ignored, never forwarded to storage
    - limit is capped at MAX_PAGE_SIZE
    - status is accepted but ignored; public search only sees published listings
    - sortBy is free-form; unknown keys resolve to the default ordering
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    query: Optional[str] = Field(None, max_length=200)
    type: Optional[PropertyType] = None
    listing_type: Optional[ListingType] = None
    status: Optional[str] = None

    city: Optional[str] = Field(None, max_length=100)
    region: Optional[str] = Field(None, max_length=100)
    country: Optional[str] = Field(None, max_length=100)

    min_price: Optional[float] = Field(None, ge=0)
    max_price: Optional[float] = Field(None, ge=0)
    currency: Optional[Currency] = None

    min_bedrooms: Optional[int] = Field(None, ge=0)
    max_bedrooms: Optional[int] = Field(None, ge=0)
    min_bathrooms: Optional[int] = Field(None, ge=0)
    max_bathrooms: Optional[int] = Field(None, ge=0)

    min_area: Optional[float] = Field(None, ge=0)
    max_area: Optional[float] = Field(None, ge=0)

    features: Optional[List[str]] = None
    lifestyle: Optional[List[str]] = None

    has_pool: Optional[bool] = None
    has_garden: Optional[bool] = None
    has_seaview: Optional[bool] = None
    is_featured: Optional[bool] = None
    is_off_market: Optional[bool] = None

    sort_by: Optional[str] = Field(None, max_length=50)
    page: int = Field(1, ge=1)
    limit: int = Field(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE)

    @field_validator("query", "city", "region", "country", "sort_by", mode="before")
    @classmethod
    def blank_to_none(cls, v):
        """Trim text filters; empty strings and the "all" sentinel mean no filter."""
        if isinstance(v, str):
            v = v.strip()
            if not v or v.lower() == "all":
                return None
        return v

    @field_validator("type", "listing_type", mode="before")
    @classmethod
    def normalize_enum(cls, v):
        if isinstance(v, str):
            v = v.strip().lower()
            if not v or v == "all":
                return None
        return v

    @field_validator("currency", mode="before")
    @classmethod
    def normalize_currency(cls, v):
        if isinstance(v, str):
            return v.strip().upper() or None
        return v

    @field_validator("features", "lifestyle", mode="before")
    @classmethod
    def split_tags(cls, v):
        """Accept "pool,garden" from a query string as well as a JSON list."""
        if isinstance(v, str):
            return [tag.strip() for tag in v.split(",") if tag.strip()]
        return v


# ========================================================================
# RESPONSES
# ========================================================================

class PropertySearchResponse(CamelModel):
    """Search page: listings, pagination and facet aggregates."""
    success: bool = True
    data: List[Property] = Field(default_factory=list)
    pagination: Pagination
    filters: SearchFacets


class PropertyListResponse(CamelModel):
    success: bool = True
    data: List[Property] = Field(default_factory=list)
    pagination: Pagination


class PropertyDetailResponse(CamelModel):
    success: bool = True
    data: Property
    similar: List[Property] = Field(default_factory=list)


class FeaturedResponse(CamelModel):
    success: bool = True
    data: List[Property] = Field(default_factory=list)


# ========================================================================
# ADMIN
# ========================================================================

class PropertyCreateRequest(CamelModel):
    """Admin create request. New listings start as drafts unless a status is given."""
    title: str = Field(..., min_length=10, max_length=200)
    title_ar: Optional[str] = Field(None, max_length=200)
    description: str = Field("", max_length=10000)
    description_ar: Optional[str] = Field(None, max_length=10000)
    slug: Optional[str] = Field(None, max_length=200)
    reference_code: Optional[str] = Field(None, max_length=50)

    type: PropertyType
    listing_type: ListingType = ListingType.sale
    status: PropertyStatus = PropertyStatus.draft

    location: PropertyLocation
    specs: PropertySpecs = Field(default_factory=PropertySpecs)
    price: PropertyPrice
    flags: PropertyFlags = Field(default_factory=PropertyFlags)

    features: List[str] = Field(default_factory=list)
    lifestyle: List[str] = Field(default_factory=list)
    image_url: Optional[str] = None
    agent_id: Optional[str] = None

    @field_validator("title", mode="before")
    @classmethod
    def trim_title(cls, v):
        if isinstance(v, str):
            return v.strip()
        return v


class PropertyUpdateRequest(CamelModel):
    """Partial update: only the fields present in the body change. Nested blocks are replaced whole."""
    title: Optional[str] = Field(None, min_length=10, max_length=200)
    title_ar: Optional[str] = Field(None, max_length=200)
    description: Optional[str] = Field(None, max_length=10000)
    description_ar: Optional[str] = Field(None, max_length=10000)
    slug: Optional[str] = Field(None, max_length=200)
    reference_code: Optional[str] = Field(None, max_length=50)

    type: Optional[PropertyType] = None
    listing_type: Optional[ListingType] = None
    status: Optional[PropertyStatus] = None

    location: Optional[PropertyLocation] = None
    specs: Optional[PropertySpecs] = None
    price: Optional[PropertyPrice] = None
    flags: Optional[PropertyFlags] = None

    features: Optional[List[str]] = None
    lifestyle: Optional[List[str]] = None
    image_url: Optional[str] = None
    agent_id: Optional[str] = None

    @field_validator("title", mode="before")
    @classmethod
    def trim_title(cls, v):
        if isinstance(v, str):
            return v.strip()
        return v

    def changes(self) -> Dict[str, Any]:
        return self.model_dump(exclude_unset=True, exclude_none=True)


class PropertyDeletedResponse(CamelModel):
    success: bool = True
    message: str = "Property deleted successfully"


class PropertyStatusUpdateRequest(CamelModel):
    status: PropertyStatus


def validation_error_body(message: str, details: List[Dict[str, Any]]) -> Dict[str, Any]:
    """Uniform 400 payload used by every route."""
    return {"success": False, "error": message, "details": details}
