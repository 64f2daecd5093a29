"""
modon/dependencies.py

Reusable FastAPI dependencies: role enforcement and access to the
application-scoped service objects created in modon.main.create_app().
"""

from __future__ import annotations

import json
from typing import Any, Callable, Dict

from fastapi import Depends, HTTPException, Request

from modon.auth_context import SessionUser, require_session
from modon.config import IS_DEV
from modon.errors import ValidationError
from modon.property_service import PropertyService
from modon.rate_limit import RateLimiter
from modon.store_memory import MemoryLeadStore


def require_role(*roles: str) -> Callable:
    """
    Dependency factory enforcing that the session user holds one of `roles`.

    Usage in routes:
        @router.get("/leads", dependencies=[Depends(require_role("admin", "super_admin"))])

    Raises:
        HTTPException(401): No valid session (from require_session)
        HTTPException(403): Session role not in `roles`
    """
    allowed = set(roles)

    def _check_role(user: SessionUser = Depends(require_session)) -> SessionUser:
        if user.role not in allowed:
            if IS_DEV:
                print(f"[AUTHZ] Role denied: role={user.role}, required={sorted(allowed)}")
            raise HTTPException(status_code=403, detail="Insufficient permissions")
        return user

    return _check_role


def get_property_service(request: Request) -> PropertyService:
    return request.app.state.property_service


def get_property_store(request: Request):
    """Raw store for admin writes (the search service is read-only)."""
    return request.app.state.property_store


def get_lead_store(request: Request) -> MemoryLeadStore:
    return request.app.state.lead_store


async def json_body(request: Request) -> Dict[str, Any]:
    """
    Raw JSON object body. Schema validation happens in the route so that
    failures map to the uniform 400 payload instead of FastAPI's 422.
    """
    raw = await request.body()
    if not raw:
        return {}
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError:
        raise ValidationError("Invalid JSON body", [{"field": "", "message": "body is not valid JSON"}])
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON body", [{"field": "", "message": "body must be a JSON object"}])
    return payload


def get_lead_rate_limiter(request: Request) -> RateLimiter:
    return request.app.state.lead_rate_limiter
