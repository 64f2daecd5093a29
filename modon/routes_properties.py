"""
modon/routes_properties.py

Public listing endpoints backed by PropertyService.

Security guarantees:
- Public search only ever sees published, on-market listings
  (status and isOffMarket are overwritten server-side)
- Off-market listings require a member session
- Input validation via PropertySearchInput; failures are 400 with field details
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from domains.property.models.property import Property, PropertyStatus
from domains.property.models.search import SearchCriteria, SearchResult
from modon.auth_context import SessionUser, optional_session, require_session
from modon.config import IS_DEV, MAX_PAGE_SIZE
from modon.dependencies import get_property_service, json_body
from modon.property_service import PropertyService
from modon.schemas_properties import (
    FeaturedResponse,
    PropertyDetailResponse,
    PropertyListResponse,
    PropertySearchResponse,
)


router = APIRouter(prefix="/api", tags=["properties"])

# Query-string keys that may repeat (?features=pool&features=garden)
MULTI_VALUE_PARAMS = {"features", "lifestyle"}
OFF_MARKET_KEYS = ("isOffMarket", "is_off_market")


def query_to_raw(request: Request) -> Dict[str, Any]:
    """Flatten query params into the loose mapping the search service validates."""
    raw: Dict[str, Any] = {}
    for key in request.query_params.keys():
        values = request.query_params.getlist(key)
        if key in MULTI_VALUE_PARAMS and len(values) > 1:
            raw[key] = values
        else:
            raw[key] = values[-1]
    return raw


def pin_off_market(raw: Dict[str, Any], value: bool) -> Dict[str, Any]:
    pinned = {k: v for k, v in raw.items() if k not in OFF_MARKET_KEYS}
    pinned["isOffMarket"] = value
    return pinned


def publicly_visible(prop: Property, user: Optional[SessionUser]) -> bool:
    if prop.status != PropertyStatus.published:
        return False
    return not prop.flags.off_market or user is not None


def to_response(result: SearchResult) -> PropertySearchResponse:
    return PropertySearchResponse(
        data=result.properties,
        pagination=result.pagination,
        filters=result.filters,
    )


@router.get("/properties", response_model=PropertySearchResponse)
async def search_properties(
    request: Request,
    service: PropertyService = Depends(get_property_service),
) -> PropertySearchResponse:
    """Search published listings from query-string filters (?city=Dubai&sortBy=price_desc)."""
    raw = pin_off_market(query_to_raw(request), False)
    return to_response(await service.search(raw))


@router.post("/properties/search", response_model=PropertySearchResponse)
async def search_properties_body(
    body: Dict[str, Any] = Depends(json_body),
    service: PropertyService = Depends(get_property_service),
) -> PropertySearchResponse:
    """Same as GET /api/properties with filters in a JSON body (used by the map view)."""
    return to_response(await service.search(pin_off_market(body, False)))


@router.get("/properties/featured", response_model=FeaturedResponse)
async def featured_properties(
    limit: int = Query(6, ge=1, le=24),
    service: PropertyService = Depends(get_property_service),
) -> FeaturedResponse:
    return FeaturedResponse(data=await service.get_featured(limit))


@router.get("/properties/off-market", response_model=PropertySearchResponse)
async def off_market_properties(
    request: Request,
    user: SessionUser = Depends(require_session),
    service: PropertyService = Depends(get_property_service),
) -> PropertySearchResponse:
    """
    Members-only collection. Same filters as public search, restricted to
    listings flagged off-market.
    """
    raw = pin_off_market(query_to_raw(request), True)
    result = await service.search(raw)
    if IS_DEV:
        print(f"[PROPERTY_SEARCH] Off-market search by user_id={user.user_id}: {result.pagination.total} results")
    return to_response(result)


@router.get("/properties/{slug}", response_model=PropertyDetailResponse)
async def property_detail(
    slug: str,
    user: Optional[SessionUser] = Depends(optional_session),
    service: PropertyService = Depends(get_property_service),
) -> PropertyDetailResponse:
    """
    Listing detail plus up to four similar listings.

    Raises:
        HTTPException(404): Unknown slug, unpublished listing, or an
            off-market listing requested without a member session
    """
    prop = await service.get_by_slug(slug, visible=lambda p: publicly_visible(p, user))
    if prop is None:
        raise HTTPException(status_code=404, detail="Property not found")

    similar = await service.get_similar(prop.id, 4)
    return PropertyDetailResponse(data=prop, similar=similar)


@router.get("/agents/{agent_id}/properties", response_model=PropertyListResponse)
async def agent_properties(
    agent_id: str,
    page: int = Query(1, ge=1),
    limit: int = Query(12, ge=1, le=MAX_PAGE_SIZE),
    service: PropertyService = Depends(get_property_service),
) -> PropertyListResponse:
    result = await service.get_by_agent(agent_id, page, limit)
    pagination = PropertyService.normalize_pagination(result, SearchCriteria(page=page, limit=limit))
    return PropertyListResponse(data=result.data, pagination=pagination)
