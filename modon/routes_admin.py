"""
modon/routes_admin.py

Dashboard endpoints. Every route requires the admin or super_admin role.
Listing payloads are sanitized before validation (same rules as lead forms).

The public search service is read-only; writes go straight to the store and
need the PropertyWriter capability.
"""

from __future__ import annotations

import uuid
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import ValidationError as PydanticValidationError

from domains.property.models.property import Property, PropertyStatus, generate_slug
from domains.property.models.search import SearchCriteria
from modon.auth_context import SessionUser
from modon.config import MAX_PAGE_SIZE
from modon.dependencies import get_lead_store, get_property_store, json_body, require_role
from modon.errors import ValidationError
from modon.property_service import PropertyService
from modon.sanitize import sanitize_object, sanitize_url
from modon.schemas_leads import LeadListResponse
from modon.schemas_properties import (
    PropertyCreateRequest,
    PropertyDeletedResponse,
    PropertyListResponse,
    PropertyStatusUpdateRequest,
    PropertyUpdateRequest,
)
from modon.store_memory import MemoryLeadStore
from modon.stores import PropertyWriter


require_admin = require_role("admin", "super_admin")

# Keys in both camelCase and snake_case; bodies may use either
ENUM_FIELDS = ("type", "listingType", "listing_type", "status", "currency")
IMAGE_URL_FIELDS = ("imageUrl", "image_url")

router = APIRouter(
    prefix="/api/admin",
    tags=["admin"],
    dependencies=[Depends(require_admin)],
)


def writer_or_501(store: Any) -> PropertyWriter:
    if not isinstance(store, PropertyWriter):
        raise HTTPException(status_code=501, detail="Configured store does not support listing management")
    return store


def sanitize_listing(body: Dict[str, Any]) -> Dict[str, Any]:
    """
    Strip markup from every free-text field of a listing payload.

    Enum keys are left for schema validation; the image URL is checked with
    sanitize_url instead, and an unsafe one is rejected.
    """
    cleaned = sanitize_object(body, exclude_fields=ENUM_FIELDS + IMAGE_URL_FIELDS)
    for key in IMAGE_URL_FIELDS:
        if body.get(key) is None:
            continue
        url = sanitize_url(body[key])
        if url is None:
            raise ValidationError("Invalid property data",
                                  [{"field": "imageUrl", "message": "must be an http(s) or site-relative URL"}])
        cleaned[key] = url
    return cleaned


def parse(model, body: Dict[str, Any], message: str):
    try:
        return model.model_validate(body)
    except PydanticValidationError as exc:
        raise ValidationError.from_pydantic(exc, message) from exc


@router.get("/leads", response_model=LeadListResponse)
async def list_leads(
    status: Optional[str] = Query(None, max_length=20),
    leads: MemoryLeadStore = Depends(get_lead_store),
) -> LeadListResponse:
    found = await leads.find_all(status)
    return LeadListResponse(data=found, total=len(found))


@router.get("/properties", response_model=PropertyListResponse)
async def list_properties(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=MAX_PAGE_SIZE),
    status: Optional[PropertyStatus] = None,
    store: Any = Depends(get_property_store),
) -> PropertyListResponse:
    """All listings regardless of status (drafts included), newest first."""
    result = await writer_or_501(store).list_all(page, limit, status)
    pagination = PropertyService.normalize_pagination(result, SearchCriteria(page=page, limit=limit))
    return PropertyListResponse(data=result.data, pagination=pagination)


@router.post("/properties", response_model=Property, status_code=201)
async def create_property(
    body: Dict[str, Any] = Depends(json_body),
    store: Any = Depends(get_property_store),
    user: SessionUser = Depends(require_admin),
) -> Property:
    """
    Create a listing. New listings are drafts unless a status is given;
    a slug is derived from the title when none is supplied.
    """
    writer = writer_or_501(store)
    req: PropertyCreateRequest = parse(PropertyCreateRequest, sanitize_listing(body), "Invalid property data")

    slug = generate_slug(req.slug or req.title)
    if not slug:
        raise ValidationError("Invalid property data", [{"field": "slug", "message": "slug is empty"}])

    prop = Property(
        id=f"prop-{uuid.uuid4().hex[:12]}",
        slug=slug,
        **req.model_dump(exclude={"slug"}),
    )
    created = await writer.create(prop)
    print(f"[ADMIN] Property created: id={created.id}, slug={created.slug}, by={user.user_id}")
    return created


@router.post("/properties/{property_id}/status", response_model=Property)
async def update_property_status(
    property_id: str,
    body: Dict[str, Any] = Depends(json_body),
    store: Any = Depends(get_property_store),
    user: SessionUser = Depends(require_admin),
) -> Property:
    writer = writer_or_501(store)
    req: PropertyStatusUpdateRequest = parse(PropertyStatusUpdateRequest, body, "Invalid status")

    updated = await writer.set_status(property_id, req.status)
    if updated is None:
        raise HTTPException(status_code=404, detail="Property not found")
    print(f"[ADMIN] Property status: id={property_id}, status={req.status.value}, by={user.user_id}")
    return updated


@router.put("/properties/{property_id}", response_model=Property)
async def update_property(
    property_id: str,
    body: Dict[str, Any] = Depends(json_body),
    store: Any = Depends(get_property_store),
    user: SessionUser = Depends(require_admin),
) -> Property:
    """
    Partial update; fields missing from the body keep their value.

    Raises:
        HTTPException(404): Unknown property id
        ValidationError: Invalid fields, or a slug already used by another listing
    """
    writer = writer_or_501(store)
    req: PropertyUpdateRequest = parse(PropertyUpdateRequest, sanitize_listing(body), "Invalid property data")
    changes = req.changes()

    if "slug" in changes:
        changes["slug"] = generate_slug(changes["slug"])
        if not changes["slug"]:
            raise ValidationError("Invalid property data", [{"field": "slug", "message": "slug is empty"}])
        owner = await writer.find_by_slug(changes["slug"])
        if owner is not None and owner.id != property_id:
            raise ValidationError("Invalid property data", [{"field": "slug", "message": "slug is already in use"}])

    updated = await writer.update(property_id, changes)
    if updated is None:
        raise HTTPException(status_code=404, detail="Property not found")
    print(f"[ADMIN] Property updated: id={property_id}, fields={sorted(changes)}, by={user.user_id}")
    return updated


@router.delete("/properties/{property_id}", response_model=PropertyDeletedResponse)
async def delete_property(
    property_id: str,
    store: Any = Depends(get_property_store),
    user: SessionUser = Depends(require_admin),
) -> PropertyDeletedResponse:
    writer = writer_or_501(store)
    if not await writer.delete(property_id):
        raise HTTPException(status_code=404, detail="Property not found")
    print(f"[ADMIN] WARNING: Property deleted: id={property_id}, by={user.user_id}")
    return PropertyDeletedResponse()
