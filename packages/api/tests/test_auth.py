# This project was developed with assistance from AI tools.
"""Tests for JWT authentication middleware."""

import httpx
import jwt
import pytest
from admissions_db.enums import UserRole
from fastapi import Depends, FastAPI, HTTPException
from fastapi.testclient import TestClient

from admissions_api.core.config import settings
from admissions_api.middleware import auth
from admissions_api.middleware.auth import CurrentUser, _resolve_role, require_roles
from admissions_api.schemas.auth import TokenPayload


def _me_app() -> FastAPI:
    app = FastAPI()

    @app.get("/me")
    async def me(user: CurrentUser):
        return {"user_id": user.user_id, "role": user.role.value, "partner_id": user.partner_id}

    return app


# ---------------------------------------------------------------------------
# AUTH_DISABLED bypass
# ---------------------------------------------------------------------------


def test_auth_disabled_returns_dev_admin(monkeypatch):
    """When AUTH_DISABLED=true, any request gets a dev admin user."""
    monkeypatch.setattr(settings, "AUTH_DISABLED", True)

    resp = TestClient(_me_app()).get("/me")
    assert resp.status_code == 200
    body = resp.json()
    assert body["user_id"] == "dev-user"
    assert body["role"] == "admin"


# ---------------------------------------------------------------------------
# Missing / invalid token
# ---------------------------------------------------------------------------


def test_missing_token_returns_401(monkeypatch):
    monkeypatch.setattr(settings, "AUTH_DISABLED", False)

    resp = TestClient(_me_app()).get("/me")
    assert resp.status_code == 401
    assert "Missing authentication token" in resp.json()["detail"]
    assert resp.headers["www-authenticate"] == "Bearer"


def test_expired_token_returns_401(monkeypatch):
    monkeypatch.setattr(settings, "AUTH_DISABLED", False)

    def _expired(token):
        raise jwt.ExpiredSignatureError("expired")

    monkeypatch.setattr(auth, "_decode_token", _expired)

    resp = TestClient(_me_app()).get("/me", headers={"Authorization": "Bearer abc"})
    assert resp.status_code == 401
    assert resp.json()["detail"] == "Token has expired"


def test_jwks_outage_returns_503(monkeypatch):
    """An unreachable Keycloak surfaces as 503, not as an invalid token."""
    monkeypatch.setattr(settings, "AUTH_DISABLED", False)
    monkeypatch.setattr(auth, "_jwks_data", None)

    def _down():
        raise httpx.ConnectError("connection refused")

    monkeypatch.setattr(auth, "_fetch_jwks", _down)
    token = jwt.encode({"sub": "u1"}, "not-a-real-secret-but-long-enough-for-hs256", headers={"kid": "k1"})

    resp = TestClient(_me_app()).get("/me", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 503


def test_valid_partner_token_carries_partner_id(monkeypatch):
    monkeypatch.setattr(settings, "AUTH_DISABLED", False)
    monkeypatch.setattr(
        auth,
        "_decode_token",
        lambda token: TokenPayload(
            sub="partner-user",
            email="ops@brightfutures.example",
            name="Partner Ops",
            partner_id=7,
            realm_access={"roles": ["offline_access", "partner"]},
        ),
    )

    resp = TestClient(_me_app()).get("/me", headers={"Authorization": "Bearer abc"})
    assert resp.status_code == 200
    assert resp.json() == {"user_id": "partner-user", "role": "partner", "partner_id": 7}


# ---------------------------------------------------------------------------
# Role resolution
# ---------------------------------------------------------------------------


def test_resolve_role_picks_known_role():
    payload = TokenPayload(
        sub="user-1",
        realm_access={"roles": ["offline_access", "university", "uma_authorization"]},
    )
    assert _resolve_role(payload) == UserRole.UNIVERSITY


def test_resolve_role_no_known_role_is_forbidden():
    payload = TokenPayload(
        sub="user-1",
        realm_access={"roles": ["offline_access", "uma_authorization"]},
    )

    with pytest.raises(HTTPException) as exc_info:
        _resolve_role(payload)
    assert exc_info.value.status_code == 403


# ---------------------------------------------------------------------------
# require_roles dependency
# ---------------------------------------------------------------------------


def test_require_roles_rejects_wrong_role(monkeypatch):
    """require_roles returns 403 when user's role is not in allowed set."""
    monkeypatch.setattr(settings, "AUTH_DISABLED", True)

    app = FastAPI()

    @app.get("/immigration-only", dependencies=[Depends(require_roles(UserRole.IMMIGRATION))])
    async def immigration_only(user: CurrentUser):
        return {"ok": True}

    # dev-user is admin, not immigration
    resp = TestClient(app).get("/immigration-only")
    assert resp.status_code == 403
    assert "Insufficient permissions" in resp.json()["detail"]
