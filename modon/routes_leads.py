"""
modon/routes_leads.py

Contact, sell and viewing-request forms all post here.
Every string is sanitized before a Lead is stored; the email must survive
normalization or the submission is rejected. Submissions are rate limited
per client IP; PATCH is the dashboard follow-up (admin only).
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import ValidationError as PydanticValidationError

from domains.leads.models.lead import Lead
from modon.config import IS_DEV
from modon.dependencies import get_lead_rate_limiter, get_lead_store, json_body, require_role
from modon.errors import RateLimitedError, ValidationError
from modon.property_service import sanitize_slug
from modon.rate_limit import RateLimiter, client_ip
from modon.sanitize import sanitize_email, sanitize_input, sanitize_phone
from modon.schemas_leads import (
    LeadCreateRequest,
    LeadCreatedResponse,
    LeadUpdateRequest,
    LeadUpdatedResponse,
)
from modon.store_memory import MemoryLeadStore


router = APIRouter(prefix="/api/leads", tags=["leads"])


def build_lead(req: LeadCreateRequest) -> Lead:
    """Sanitized Lead from a validated request. Raises ValidationError on unusable input."""
    email = sanitize_email(req.email)
    if email is None:
        raise ValidationError("Invalid lead submission", [{"field": "email", "message": "Invalid email address"}])

    name = sanitize_input(req.full_name(), max_length=100)
    message = sanitize_input(req.message, max_length=5000)
    # Fields that were pure markup are empty after sanitizing
    details = []
    if not name:
        details.append({"field": "name", "message": "name is required"})
    if len(message) < 5:
        details.append({"field": "message", "message": "message is too short"})
    if details:
        raise ValidationError("Invalid lead submission", details)

    return Lead(
        name=name,
        email=email,
        phone=sanitize_phone(req.phone) or None,
        subject=sanitize_input(req.subject, max_length=200) or None,
        message=message,
        type=req.type,
        property_slug=sanitize_slug(req.property_slug) if req.property_slug else None,
        locale=req.locale,
    )


@router.post("", response_model=LeadCreatedResponse, status_code=201)
async def create_lead(
    request: Request,
    body: Dict[str, Any] = Depends(json_body),
    leads: MemoryLeadStore = Depends(get_lead_store),
    limiter: RateLimiter = Depends(get_lead_rate_limiter),
) -> LeadCreatedResponse:
    """
    Store a form submission.

    Raises:
        RateLimitedError: Client IP already sent the allowed number of submissions
        ValidationError: Invalid fields, or fields that were only markup
    """
    decision = limiter.hit(client_ip(request))
    if not decision.allowed:
        raise RateLimitedError(decision.retry_after, "Too many form submissions. Please try again later.")

    try:
        req = LeadCreateRequest.model_validate(body)
    except PydanticValidationError as exc:
        raise ValidationError.from_pydantic(exc, "Invalid lead submission") from exc

    lead = await leads.add(build_lead(req))
    print(f"[LEADS] New {lead.type.value} lead: id={lead.id}"
          + (f", property={lead.property_slug}" if lead.property_slug else ""))
    if IS_DEV:
        print(f"[LEADS] locale={lead.locale}, has_phone={lead.phone is not None}")
    return LeadCreatedResponse(id=lead.id)


@router.patch("", response_model=LeadUpdatedResponse, dependencies=[Depends(require_role("admin", "super_admin"))])
async def update_lead(
    body: Dict[str, Any] = Depends(json_body),
    leads: MemoryLeadStore = Depends(get_lead_store),
) -> LeadUpdatedResponse:
    """Change a lead's status, priority or notes. Moving to "contacted" stamps contactedAt."""
    try:
        req = LeadUpdateRequest.model_validate(body)
    except PydanticValidationError as exc:
        raise ValidationError.from_pydantic(exc, "Invalid lead update") from exc

    changes: Dict[str, Any] = {"updated_at": datetime.utcnow()}
    if req.status is not None:
        changes["status"] = req.status
        if req.status == "contacted":
            changes["contacted_at"] = changes["updated_at"]
    if req.priority is not None:
        changes["priority"] = req.priority
    if req.notes is not None:
        changes["notes"] = sanitize_input(req.notes, max_length=2000)

    lead = await leads.update(req.id, changes)
    if lead is None:
        raise HTTPException(status_code=404, detail="Lead not found")
    print(f"[LEADS] Lead updated: id={lead.id}, status={lead.status}")
    return LeadUpdatedResponse(data=lead)
