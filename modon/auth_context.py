"""
modon/auth_context.py

Session primitives for the members area and the admin dashboard.

Contains:
- create_access_token / verify_token: HS256 JWT helpers
- SessionUser: identity carried in the session cookie
- require_session: FastAPI dependency reading the httpOnly auth cookie
- verify_admin_credentials: constant-time check against the configured admin

This module MUST NOT import modon.main to avoid circular dependencies.
"""

from __future__ import annotations

import hashlib
import hmac
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import jwt
from fastapi import HTTPException, Request
from pydantic import BaseModel

from modon.config import (
    ACCESS_TOKEN_MINUTES,
    ADMIN_EMAIL,
    ADMIN_PASSWORD_HASH,
    ALGORITHM,
    AUTH_COOKIE_NAME,
    IS_DEV,
    SECRET_KEY,
)


# ---------------------------------------------------------
# JWT helpers
# ---------------------------------------------------------
def create_access_token(data: Dict[str, Any], minutes: int = ACCESS_TOKEN_MINUTES) -> str:
    payload = dict(data)
    payload["exp"] = datetime.now(timezone.utc) + timedelta(minutes=minutes)
    return jwt.encode(payload, SECRET_KEY, algorithm=ALGORITHM)


def verify_token(token: str) -> dict:
    """
    Verify JWT access token and return decoded payload.

    Raises:
        HTTPException(401): If token is expired or invalid
    """
    try:
        return jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="Session expired")
    except jwt.InvalidTokenError:
        raise HTTPException(status_code=401, detail="Invalid session")


# ---------------------------------------------------------
# Session identity
# ---------------------------------------------------------
class SessionUser(BaseModel):
    """
    Identity decoded from the session cookie.
    Never trust role/email from request bodies or query params.
    """
    user_id: str
    email: str
    role: str = "member"


def require_session(request: Request) -> SessionUser:
    """
    FastAPI dependency for cookie-authenticated routes.

    Raises:
        HTTPException(401): Missing, expired or malformed session cookie
    """
    token: Optional[str] = request.cookies.get(AUTH_COOKIE_NAME)
    if not token:
        raise HTTPException(status_code=401, detail="Authentication required")

    payload = verify_token(token)
    user_id = payload.get("sub")
    email = payload.get("email")
    if not user_id or not email:
        print("[AUTH] Missing subject in session payload")
        raise HTTPException(status_code=401, detail="Invalid session")

    user = SessionUser(user_id=str(user_id), email=email, role=payload.get("role") or "member")
    if IS_DEV:
        print(f"[AUTH] Authenticated: user_id={user.user_id}, role={user.role}")
    return user


# ---------------------------------------------------------
# Admin credentials
# ---------------------------------------------------------
def verify_admin_credentials(email: str, password: str) -> bool:
    """Both comparisons run regardless of outcome so timing leaks neither field."""
    email_ok = hmac.compare_digest(email.strip().lower().encode(), ADMIN_EMAIL.encode())
    password_hash = hashlib.sha256(password.encode()).hexdigest()
    password_ok = hmac.compare_digest(password_hash, ADMIN_PASSWORD_HASH)
    return email_ok and password_ok


# ---------------------------------------------------------
# Optional session (public pages with member-only extras)
# ---------------------------------------------------------
def optional_session(request: Request) -> Optional[SessionUser]:
    """Like require_session, but anonymous visitors (or stale cookies) yield None."""
    if not request.cookies.get(AUTH_COOKIE_NAME):
        return None
    try:
        return require_session(request)
    except HTTPException:
        return None
