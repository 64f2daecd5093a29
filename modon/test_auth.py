"""
modon/test_auth.py

Session cookie authentication and admin role enforcement.

Tests cover:
- Login sets an httpOnly, SameSite=Lax cookie; failures never say which field was wrong
- Expired, tampered and missing sessions are 401
- Non-admin roles are 403 on every dashboard route
- Admin listing management (create as draft, publish, edit, delete, list all statuses)
- Listing payloads are stripped of markup before they are stored

Run: pytest modon/test_auth.py -v
"""

from __future__ import annotations

import os

import jwt
import pytest
from fastapi.testclient import TestClient

from modon.auth_context import create_access_token, verify_admin_credentials
from modon.config import ACCESS_TOKEN_MINUTES, ADMIN_EMAIL, AUTH_COOKIE_NAME
from modon.main import create_app
from modon.store_memory import MemoryPropertyStore

ADMIN_PASSWORD = os.environ.get("ADMIN_PASSWORD", "modon-admin")


@pytest.fixture
def store():
    return MemoryPropertyStore.seeded()


@pytest.fixture
def client(store):
    with TestClient(create_app(store=store)) as test_client:
        yield test_client


def use_session(client: TestClient, role: str, minutes: int = 15) -> None:
    token = create_access_token({"sub": f"{role}-1", "email": f"{role}@example.com", "role": role}, minutes=minutes)
    client.cookies.set(AUTH_COOKIE_NAME, token)


def new_listing(**overrides):
    payload = {
        "title": "Garden Villa in Sheikh Zayed",
        "titleAr": "فيلا بحديقة في الشيخ زايد",
        "type": "villa",
        "location": {"city": "Sheikh Zayed", "country": "Egypt"},
        "price": {"amount": 1200000, "currency": "USD"},
        "specs": {"bedrooms": 4, "garden": True},
    }
    payload.update(overrides)
    return payload


# ========================================================================
# LOGIN / LOGOUT
# ========================================================================

class TestLogin:
    """Credential check and the session cookie."""

    def test_verify_admin_credentials(self):
        assert verify_admin_credentials(ADMIN_EMAIL.upper(), ADMIN_PASSWORD) is True
        assert verify_admin_credentials(ADMIN_EMAIL, "wrong") is False
        assert verify_admin_credentials("someone@example.com", ADMIN_PASSWORD) is False

    def test_login_sets_http_only_cookie(self, client):
        response = client.post("/api/auth/login", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD})

        assert response.status_code == 200
        assert response.json()["user"]["role"] == "admin"
        set_cookie = response.headers["set-cookie"]
        assert set_cookie.startswith(f"{AUTH_COOKIE_NAME}=")
        assert "HttpOnly" in set_cookie
        assert "samesite=lax" in set_cookie.lower()
        assert f"Max-Age={ACCESS_TOKEN_MINUTES * 60}" in set_cookie

    def test_login_failures_are_indistinguishable(self, client):
        wrong_password = client.post("/api/auth/login", json={"email": ADMIN_EMAIL, "password": "nope"})
        wrong_email = client.post("/api/auth/login", json={"email": "ghost@example.com", "password": ADMIN_PASSWORD})

        assert wrong_password.status_code == 401
        assert wrong_email.status_code == 401
        assert wrong_password.json() == wrong_email.json()

    def test_login_then_me(self, client):
        login = client.post("/api/auth/login", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD})
        client.cookies.set(AUTH_COOKIE_NAME, login.cookies[AUTH_COOKIE_NAME])

        me = client.get("/api/auth/me")

        assert me.status_code == 200
        assert me.json()["user"]["email"] == ADMIN_EMAIL

    def test_logout_clears_cookie(self, client):
        response = client.post("/api/auth/logout")

        assert response.status_code == 200
        assert f'{AUTH_COOKIE_NAME}=""' in response.headers["set-cookie"] or \
            "Max-Age=0" in response.headers["set-cookie"]


# ========================================================================
# SESSION VALIDATION
# ========================================================================

class TestSessionValidation:
    def test_me_without_cookie_is_401(self, client):
        assert client.get("/api/auth/me").status_code == 401

    def test_expired_session_is_401(self, client):
        use_session(client, "admin", minutes=-1)

        response = client.get("/api/auth/me")

        assert response.status_code == 401
        assert response.json()["detail"] == "Session expired"

    def test_token_signed_with_other_key_is_401(self, client):
        forged = jwt.encode({"sub": "admin", "email": "x@example.com", "role": "admin"}, "guessed-signing-key-of-a-reasonable-length", algorithm="HS256")
        client.cookies.set(AUTH_COOKIE_NAME, forged)

        assert client.get("/api/admin/leads").status_code == 401


# ========================================================================
# ROLE ENFORCEMENT
# ========================================================================

class TestRoleEnforcement:
    """Dashboard routes need the admin or super_admin role."""

    @pytest.mark.parametrize("method,path", [
        ("get", "/api/admin/leads"),
        ("get", "/api/admin/properties"),
        ("post", "/api/admin/properties"),
        ("post", "/api/admin/properties/prop-001/status"),
        ("put", "/api/admin/properties/prop-001"),
        ("delete", "/api/admin/properties/prop-001"),
        ("patch", "/api/leads"),
    ])
    def test_member_cannot_use_dashboard(self, client, method, path):
        use_session(client, "member")

        response = getattr(client, method)(path)

        assert response.status_code == 403

    def test_anonymous_cannot_use_dashboard(self, client):
        assert client.get("/api/admin/properties").status_code == 401
        assert client.delete("/api/admin/properties/prop-001").status_code == 401

    def test_super_admin_allowed(self, client):
        use_session(client, "super_admin")

        assert client.get("/api/admin/leads").status_code == 200


# ========================================================================
# LISTING MANAGEMENT
# ========================================================================

class TestListingManagement:
    """Create, publish, edit and delete listings from the dashboard."""

    def test_admin_lists_every_status(self, client):
        use_session(client, "admin")

        body = client.get("/api/admin/properties", params={"limit": 50}).json()
        drafts = client.get("/api/admin/properties", params={"status": "draft"}).json()

        assert body["pagination"]["total"] == 12
        assert [p["id"] for p in drafts["data"]] == ["prop-011"]

    def test_create_draft_then_publish(self, client):
        use_session(client, "admin")

        created = client.post("/api/admin/properties", json=new_listing())

        assert created.status_code == 201
        prop = created.json()
        assert prop["slug"] == "garden-villa-in-sheikh-zayed"
        assert prop["status"] == "draft"
        assert prop["id"].startswith("prop-")

        # Drafts are invisible to the public site
        assert client.get("/api/properties/garden-villa-in-sheikh-zayed").status_code == 404

        published = client.post(f"/api/admin/properties/{prop['id']}/status", json={"status": "published"})
        assert published.status_code == 200
        assert published.json()["status"] == "published"
        assert client.get("/api/properties/garden-villa-in-sheikh-zayed").status_code == 200

    def test_create_rejects_short_title(self, client):
        use_session(client, "admin")

        response = client.post("/api/admin/properties", json={
            "title": "Villa",
            "type": "villa",
            "location": {"city": "Cairo", "country": "Egypt"},
            "price": {"amount": 1},
        })

        assert response.status_code == 400
        assert response.json()["details"][0]["field"] == "title"

    def test_status_update_unknown_property(self, client):
        use_session(client, "admin")

        response = client.post("/api/admin/properties/prop-999/status", json={"status": "sold"})

        assert response.status_code == 404

    def test_status_update_rejects_unknown_status(self, client):
        use_session(client, "admin")

        response = client.post("/api/admin/properties/prop-001/status", json={"status": "vanished"})

        assert response.status_code == 400

    def test_update_changes_only_given_fields(self, client, store):
        use_session(client, "admin")

        response = client.put("/api/admin/properties/prop-003", json={
            "title": "Family Villa with Private Garden",
            "price": {"amount": 899000, "currency": "USD"},
        })

        assert response.status_code == 200
        body = response.json()
        assert body["title"] == "Family Villa with Private Garden"
        assert body["price"]["amount"] == 899000
        assert body["slug"] == "new-cairo-family-villa"
        assert body["location"]["city"] == "New Cairo"
        assert client.get("/api/properties/new-cairo-family-villa").json()["data"]["price"]["amount"] == 899000

    def test_update_unknown_property_is_404(self, client):
        use_session(client, "admin")

        assert client.put("/api/admin/properties/prop-999", json={"description": "Nothing"}).status_code == 404

    def test_update_rejects_slug_of_another_listing(self, client):
        use_session(client, "admin")

        response = client.put("/api/admin/properties/prop-003", json={"slug": "Dubai Marina Penthouse"})

        assert response.status_code == 400
        assert response.json()["details"][0]["field"] == "slug"

    def test_delete_listing(self, client):
        use_session(client, "admin")

        response = client.delete("/api/admin/properties/prop-002")

        assert response.status_code == 200
        assert response.json() == {"success": True, "message": "Property deleted successfully"}
        assert client.get("/api/properties/dubai-marina-penthouse").status_code == 404
        assert client.delete("/api/admin/properties/prop-002").status_code == 404


# ========================================================================
# LISTING SANITIZATION
# ========================================================================

class TestListingSanitization:
    """Markup never reaches the store through the dashboard."""

    def test_create_strips_markup(self, client, store):
        use_session(client, "admin")

        response = client.post("/api/admin/properties", json=new_listing(
            title="<b>Garden Villa</b> in <script>alert(1)</script>Sheikh Zayed",
            description="Quiet street <img src=x onerror=alert(1)>near the park",
            location={"city": "<i>Sheikh Zayed</i>", "country": "Egypt"},
            features=["<b>pool</b>"],
        ))

        assert response.status_code == 201
        prop = response.json()
        assert prop["title"] == "Garden Villa in Sheikh Zayed"
        assert "<" not in prop["description"]
        assert "onerror" not in prop["description"]
        assert prop["location"]["city"] == "Sheikh Zayed"
        assert prop["features"] == ["pool"]

    def test_markup_only_title_is_rejected(self, client):
        use_session(client, "admin")

        response = client.post("/api/admin/properties", json=new_listing(title="<script>alert('long enough')</script>"))

        assert response.status_code == 400
        assert response.json()["details"][0]["field"] == "title"

    @pytest.mark.parametrize("url", ["javascript:alert(1)", "data:text/html;base64,PHNjcmlwdD4="])
    def test_unsafe_image_url_is_rejected(self, client, url):
        use_session(client, "admin")

        response = client.post("/api/admin/properties", json=new_listing(imageUrl=url))

        assert response.status_code == 400
        assert response.json()["details"][0]["field"] == "imageUrl"

    def test_safe_image_url_is_kept(self, client):
        use_session(client, "admin")

        response = client.post("/api/admin/properties", json=new_listing(imageUrl=" /images/garden-villa.jpg "))

        assert response.status_code == 201
        assert response.json()["imageUrl"] == "/images/garden-villa.jpg"

    def test_update_strips_markup(self, client):
        use_session(client, "admin")

        response = client.put("/api/admin/properties/prop-001", json={"description": "<p>Renovated <em>2026</em></p>"})

        assert response.status_code == 200
        assert response.json()["description"] == "Renovated 2026"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
