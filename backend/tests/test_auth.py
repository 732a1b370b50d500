"""
Tests for the public /auth endpoints.
"""
import pytest
from sqlalchemy import select

from complaint_tracker.core.security import decode_access_token
from complaint_tracker.models import User

TEST_PASSWORD = "password123"  # see conftest._make_user


@pytest.mark.asyncio
async def test_register_creates_student_and_signs_in(client, db_session):
    payload = {
        "name": "Chen Li",
        "email": "Chen.Li@Campus.edu",
        "password": "secret123",
        "studentId": "STU100",
    }
    resp = await client.post("/auth/register", json=payload)
    assert resp.status_code == 201
    body = resp.json()
    assert body["success"] is True
    assert body["message"] == "Registration successful"

    user = body["data"]["user"]
    assert user["email"] == "chen.li@campus.edu"
    assert user["role"] == "student"
    assert user["student_id"] == "STU100"
    assert "password_hash" not in user

    identity = decode_access_token(body["data"]["token"])
    assert identity.id == user["id"]
    assert identity.role == "student"

    stored = (await db_session.execute(select(User).where(User.id == user["id"]))).scalar_one()
    assert stored.password_hash != "secret123"


@pytest.mark.asyncio
async def test_register_duplicate_email_conflicts(client, student_user):
    payload = {"name": "Someone", "email": student_user.email, "password": "secret123"}
    resp = await client.post("/auth/register", json=payload)
    assert resp.status_code == 409
    assert resp.json()["message"] == "User with this email or student ID already exists"


@pytest.mark.asyncio
async def test_register_duplicate_student_id_conflicts(client, student_user):
    payload = {
        "name": "Someone",
        "email": "someone@campus.edu",
        "password": "secret123",
        "studentId": student_user.student_id,
    }
    resp = await client.post("/auth/register", json=payload)
    assert resp.status_code == 409


@pytest.mark.asyncio
async def test_register_without_student_id_twice(client):
    """Two students without a student ID must not collide on the empty value."""
    first = {"name": "First One", "email": "first@campus.edu", "password": "secret123"}
    second = {"name": "Second One", "email": "second@campus.edu", "password": "secret123"}
    assert (await client.post("/auth/register", json=first)).status_code == 201
    assert (await client.post("/auth/register", json=second)).status_code == 201


@pytest.mark.asyncio
async def test_register_validation_failure_lists_fields(client):
    payload = {"name": "X", "email": "not-an-email", "password": "123"}
    resp = await client.post("/auth/register", json=payload)
    assert resp.status_code == 400
    body = resp.json()
    assert body["success"] is False
    assert body["message"] == "Validation failed"
    fields = {err["field"] for err in body["errors"]}
    assert {"name", "email", "password"} <= fields


@pytest.mark.asyncio
async def test_login_with_email_returns_token(client, library_worker):
    resp = await client.post(
        "/auth/login", json={"email": library_worker.email, "password": TEST_PASSWORD}
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["message"] == "Login successful"
    assert body["data"]["user"]["role"] == "worker"
    assert decode_access_token(body["data"]["token"]).id == library_worker.id


@pytest.mark.asyncio
async def test_login_with_student_id(client, student_user):
    resp = await client.post(
        "/auth/login", json={"identifier": student_user.student_id, "password": TEST_PASSWORD}
    )
    assert resp.status_code == 200
    assert resp.json()["data"]["user"]["id"] == student_user.id


@pytest.mark.asyncio
async def test_login_wrong_password(client, student_user):
    resp = await client.post(
        "/auth/login", json={"email": student_user.email, "password": "wrong-password"}
    )
    assert resp.status_code == 401
    assert resp.json()["message"] == "Invalid credentials"


@pytest.mark.asyncio
async def test_login_unknown_user_same_message(client):
    resp = await client.post(
        "/auth/login", json={"email": "ghost@campus.edu", "password": "whatever"}
    )
    assert resp.status_code == 401
    assert resp.json()["message"] == "Invalid credentials"


@pytest.mark.asyncio
async def test_logout_always_succeeds(client):
    resp = await client.post("/auth/logout")
    assert resp.status_code == 200
    assert resp.json()["message"] == "Logout successful"


@pytest.mark.asyncio
async def test_health(client):
    resp = await client.get("/health")
    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["data"]["status"] == "ok"
