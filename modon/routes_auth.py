"""
modon/routes_auth.py

Dashboard login/logout. The session lives in an httpOnly cookie so the
token is never readable from page scripts.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Response
from pydantic import BaseModel, Field

from modon.auth_context import (
    SessionUser,
    create_access_token,
    require_session,
    verify_admin_credentials,
)
from modon.config import ACCESS_TOKEN_MINUTES, ADMIN_EMAIL, AUTH_COOKIE_NAME, IS_PROD


router = APIRouter(prefix="/api/auth", tags=["auth"])


class LoginRequest(BaseModel):
    email: str = Field(..., max_length=254)
    password: str = Field(..., min_length=1, max_length=200)


class SessionResponse(BaseModel):
    success: bool = True
    user: SessionUser


@router.post("/login", response_model=SessionResponse)
def login(req: LoginRequest, response: Response) -> SessionResponse:
    """
    Exchange admin credentials for a session cookie.

    Raises:
        HTTPException(401): Wrong email or password (never says which)
    """
    if not verify_admin_credentials(req.email, req.password):
        print("[AUTH] Failed dashboard login attempt")
        raise HTTPException(status_code=401, detail="Invalid credentials")

    user = SessionUser(user_id="admin", email=ADMIN_EMAIL, role="admin")
    token = create_access_token({"sub": user.user_id, "email": user.email, "role": user.role})
    response.set_cookie(
        key=AUTH_COOKIE_NAME,
        value=token,
        httponly=True,
        secure=IS_PROD,
        samesite="lax",
        max_age=ACCESS_TOKEN_MINUTES * 60,
        path="/",
    )
    print(f"[AUTH] Dashboard login: user_id={user.user_id}")
    return SessionResponse(user=user)


@router.post("/logout")
def logout(response: Response) -> dict:
    response.delete_cookie(AUTH_COOKIE_NAME, path="/")
    return {"success": True}


@router.get("/me", response_model=SessionResponse)
def me(user: SessionUser = Depends(require_session)) -> SessionResponse:
    return SessionResponse(user=user)
