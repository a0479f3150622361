from datetime import datetime, timedelta, timezone

import jwt

from inventory_api.core.roles import Role


def test_login_returns_token_and_profile(client, admin_user):
    r = client.post("/api/auth/login", json={"email": "ADMIN@test.com", "password": "secret123"})
    assert r.status_code == 200
    body = r.json()
    assert body["success"] is True
    assert body["data"]["token"]
    assert body["data"]["user"]["email"] == "admin@test.com"
    assert body["data"]["user"]["role"] == "admin"
    assert "hashedPassword" not in body["data"]["user"]


def test_login_rejects_wrong_password(client, admin_user):
    r = client.post("/api/auth/login", json={"email": "admin@test.com", "password": "nope"})
    assert r.status_code == 401
    assert r.json() == {"success": False, "message": "Invalid email or password"}


def test_login_rejects_deactivated_account(client, make_user):
    make_user("gone@test.com", active=False)
    r = client.post("/api/auth/login", json={"email": "gone@test.com", "password": "secret123"})
    assert r.status_code == 401
    assert r.json()["message"] == "Account is deactivated. Contact administrator."


def test_me_requires_token(client):
    r = client.get("/api/auth/me")
    assert r.status_code == 401
    assert r.json()["success"] is False


def test_me_rejects_garbage_token(client):
    r = client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert r.status_code == 401


def test_me_rejects_expired_token(client, settings, admin_user):
    token = jwt.encode(
        {
            "sub": str(admin_user.id),
            "role": "admin",
            "type": "access",
            "exp": datetime.now(timezone.utc) - timedelta(minutes=1),
        },
        settings.secret_key,
        algorithm=settings.jwt_algorithm,
    )
    r = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 401


def test_token_of_deactivated_user_is_rejected(client, db, admin_headers, admin_user):
    admin_user.deactivate()
    db.commit()
    r = client.get("/api/auth/me", headers=admin_headers)
    assert r.status_code == 401


def test_me_returns_profile(client, staff_headers):
    r = client.get("/api/auth/me", headers=staff_headers)
    assert r.status_code == 200
    assert r.json()["data"]["role"] == "staff"


def test_register_requires_admin(client, staff_headers):
    r = client.post(
        "/api/auth/register",
        json={"email": "new@test.com", "password": "secret123", "name": "New"},
        headers=staff_headers,
    )
    assert r.status_code == 403


def test_admin_registers_user_and_duplicate_conflicts(client, admin_headers):
    payload = {"email": "new@test.com", "password": "secret123", "name": "New", "role": "admin"}
    r = client.post("/api/auth/register", json=payload, headers=admin_headers)
    assert r.status_code == 201
    assert r.json()["data"]["role"] == "admin"

    r = client.post("/api/auth/register", json=payload, headers=admin_headers)
    assert r.status_code == 409


def test_register_validates_payload(client, admin_headers):
    r = client.post(
        "/api/auth/register",
        json={"email": "not-an-email", "password": "123", "name": ""},
        headers=admin_headers,
    )
    assert r.status_code == 400
    fields = {e["field"] for e in r.json()["errors"]}
    assert {"email", "password", "name"} <= fields


def test_public_registration_always_creates_staff(client):
    r = client.post(
        "/api/auth/register-public",
        json={"email": "self@test.com", "password": "secret123", "name": "Self", "role": "admin"},
    )
    assert r.status_code == 201
    data = r.json()["data"]
    assert data["user"]["role"] == Role.staff.value
    assert data["token"]


def test_change_password(client, staff_headers):
    r = client.put(
        "/api/auth/password",
        json={"currentPassword": "wrong", "newPassword": "another123"},
        headers=staff_headers,
    )
    assert r.status_code == 401

    r = client.put(
        "/api/auth/password",
        json={"currentPassword": "secret123", "newPassword": "another123"},
        headers=staff_headers,
    )
    assert r.status_code == 200

    r = client.post("/api/auth/login", json={"email": "staff@test.com", "password": "another123"})
    assert r.status_code == 200
