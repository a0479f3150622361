def test_admin_lists_users(client, admin_headers, staff_user):
    r = client.get("/api/users", headers=admin_headers)
    assert r.status_code == 200
    body = r.json()
    assert body["count"] == 2
    assert {u["email"] for u in body["data"]} == {"admin@test.com", "staff@test.com"}
    assert all("hashedPassword" not in u for u in body["data"])


def test_staff_cannot_manage_users(client, staff_headers, staff_user):
    assert client.get("/api/users", headers=staff_headers).status_code == 403
    assert client.delete(f"/api/users/{staff_user.id}", headers=staff_headers).status_code == 403


def test_admin_updates_other_user(client, admin_headers, staff_user):
    r = client.put(
        f"/api/users/{staff_user.id}",
        json={"name": "Promoted", "role": "admin"},
        headers=admin_headers,
    )
    assert r.status_code == 200
    data = r.json()["data"]
    assert data["name"] == "Promoted"
    assert data["role"] == "admin"
    assert data["isActive"] is True


def test_admin_cannot_modify_or_delete_self(client, admin_headers, admin_user):
    r = client.put(f"/api/users/{admin_user.id}", json={"role": "staff"}, headers=admin_headers)
    assert r.status_code == 403

    # any self-targeted update is refused, even a harmless one
    r = client.put(f"/api/users/{admin_user.id}", json={"name": "Me"}, headers=admin_headers)
    assert r.status_code == 403

    r = client.delete(f"/api/users/{admin_user.id}", headers=admin_headers)
    assert r.status_code == 403


def test_deactivate_and_reactivate(client, admin_headers, staff_user, staff_headers):
    r = client.delete(f"/api/users/{staff_user.id}", headers=admin_headers)
    assert r.status_code == 200

    assert client.get("/api/auth/me", headers=staff_headers).status_code == 401
    r = client.post("/api/auth/login", json={"email": "staff@test.com", "password": "secret123"})
    assert r.status_code == 401

    r = client.put(f"/api/users/{staff_user.id}", json={"isActive": True}, headers=admin_headers)
    assert r.status_code == 200
    assert client.get("/api/auth/me", headers=staff_headers).status_code == 200


def test_unknown_user(client, admin_headers):
    assert client.get("/api/users/999", headers=admin_headers).status_code == 404
    assert client.put("/api/users/999", json={"name": "X"}, headers=admin_headers).status_code == 404


def test_invalid_role_rejected(client, admin_headers, staff_user):
    r = client.put(f"/api/users/{staff_user.id}", json={"role": "owner"}, headers=admin_headers)
    assert r.status_code == 400
