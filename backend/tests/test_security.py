"""
Tests for token and password handling in complaint_tracker.core.security.

Tokens are built with jose directly where we need claims the app would never
issue (expired, foreign signature, missing identity).
"""
import time
from types import SimpleNamespace

import pytest
from jose import jwt

from complaint_tracker.core.errors import UnauthorizedError
from complaint_tracker.core.security import (
    create_access_token,
    decode_access_token,
    hash_password,
    settings,
    verify_password,
)


def _user(**overrides):
    fields = {"id": 7, "email": "asha@campus.edu", "role": "student", "name": "Asha"}
    fields.update(overrides)
    return SimpleNamespace(**fields)


def _make_token(secret: str | None = None, exp_offset: int = 3600, **claims) -> str:
    now = int(time.time())
    payload = {
        "sub": "7",
        "id": 7,
        "email": "asha@campus.edu",
        "role": "student",
        "name": "Asha",
        "iat": now,
        "exp": now + exp_offset,
    }
    payload.update(claims)
    return jwt.encode(payload, secret or settings.jwt_secret, algorithm="HS256")


# ---------------------------------------------------------------------------
# Tokens
# ---------------------------------------------------------------------------

def test_issued_token_round_trips_identity():
    token = create_access_token(_user(role="worker", name="Lena"))
    user = decode_access_token(token)
    assert user.id == 7
    assert user.role == "worker"
    assert user.name == "Lena"
    assert user.email == "asha@campus.edu"


def test_issued_token_carries_subject_and_expiry():
    claims = jwt.get_unverified_claims(create_access_token(_user()))
    assert claims["sub"] == "7"
    assert claims["exp"] - claims["iat"] == settings.jwt_expires_minutes * 60


def test_expired_token_raises_401():
    token = _make_token(exp_offset=-10)  # expired 10 seconds ago
    with pytest.raises(UnauthorizedError) as exc_info:
        decode_access_token(token)
    assert exc_info.value.status_code == 401
    assert exc_info.value.message == "Token expired"


def test_wrong_signature_raises_401():
    token = _make_token(secret="someone-else")
    with pytest.raises(UnauthorizedError) as exc_info:
        decode_access_token(token)
    assert exc_info.value.message == "Invalid token"


def test_malformed_token_raises_401():
    with pytest.raises(UnauthorizedError) as exc_info:
        decode_access_token("not.a.jwt")
    assert exc_info.value.message == "Invalid token"


def test_token_without_identity_claims_is_invalid():
    token = jwt.encode({"sub": "7", "exp": int(time.time()) + 60}, settings.jwt_secret, algorithm="HS256")
    with pytest.raises(UnauthorizedError) as exc_info:
        decode_access_token(token)
    assert exc_info.value.message == "Invalid token"


# ---------------------------------------------------------------------------
# Passwords
# ---------------------------------------------------------------------------

def test_password_hash_verifies():
    hashed = hash_password("s3cret-pass")
    assert hashed != "s3cret-pass"
    assert verify_password("s3cret-pass", hashed)
    assert not verify_password("wrong-pass", hashed)


def test_unknown_hash_format_does_not_verify():
    assert not verify_password("anything", "not-a-known-hash")


# ---------------------------------------------------------------------------
# Dependency behaviour over HTTP
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_missing_token_rejected(client):
    resp = await client.get("/api/student/complaints")
    assert resp.status_code == 401
    body = resp.json()
    assert body["success"] is False
    assert "Bearer <token>" in body["message"]


@pytest.mark.asyncio
async def test_expired_token_rejected(client):
    resp = await client.get(
        "/api/student/complaints",
        headers={"Authorization": f"Bearer {_make_token(exp_offset=-10)}"},
    )
    assert resp.status_code == 401
    assert resp.json()["message"] == "Token expired"


@pytest.mark.asyncio
async def test_wrong_role_forbidden(client, student_user, auth_headers):
    resp = await client.get("/api/admin/overview", headers=auth_headers(student_user))
    assert resp.status_code == 403
    assert resp.json()["message"] == "Access denied. Required role: admin"


@pytest.mark.asyncio
async def test_unknown_route_uses_envelope(client):
    resp = await client.get("/api/nowhere")
    assert resp.status_code == 404
    assert resp.json() == {"success": False, "message": "Route not found"}
