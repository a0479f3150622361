from sqlalchemy.orm import Query

from inventory_api.services import category_service, product_service


def test_list_and_detail_with_counts(client, staff_headers, category, create_product):
    create_product(categoryId=category.id)
    create_product(name="Second", categoryId=category.id)

    r = client.get("/api/categories", headers=staff_headers)
    assert r.status_code == 200
    assert r.json()["count"] == 1
    assert r.json()["data"][0]["name"] == "Incense"

    r = client.get(f"/api/categories/{category.id}", headers=staff_headers)
    assert r.json()["data"]["productCount"] == 2


def test_admin_creates_and_updates(client, admin_headers):
    r = client.post(
        "/api/categories",
        json={"name": "Candles", "description": "Wax", "icon": "candle", "displayOrder": 2},
        headers=admin_headers,
    )
    assert r.status_code == 201
    category_id = r.json()["data"]["id"]

    r = client.put(f"/api/categories/{category_id}", json={"name": "Lamps", "displayOrder": 3}, headers=admin_headers)
    assert r.status_code == 200
    assert r.json()["data"]["name"] == "Lamps"
    assert r.json()["data"]["displayOrder"] == 3


def test_names_are_unique_case_insensitively(client, admin_headers, category):
    r = client.post("/api/categories", json={"name": "INCENSE"}, headers=admin_headers)
    assert r.status_code == 409


def test_staff_cannot_manage_categories(client, staff_headers, category):
    assert client.post("/api/categories", json={"name": "X"}, headers=staff_headers).status_code == 403
    assert client.delete(f"/api/categories/{category.id}", headers=staff_headers).status_code == 403


def test_delete_blocked_by_active_products(client, admin_headers, category, create_product):
    product = create_product(categoryId=category.id)

    r = client.delete(f"/api/categories/{category.id}", headers=admin_headers)
    assert r.status_code == 409
    assert r.json()["message"] == "Cannot delete category. It has 1 active products."

    # soft-deleted products do not block deletion
    client.delete(f"/api/products/{product['id']}", headers=admin_headers)
    r = client.delete(f"/api/categories/{category.id}", headers=admin_headers)
    assert r.status_code == 200
    assert client.get(f"/api/categories/{category.id}", headers=admin_headers).status_code == 404


def test_missing_category(client, admin_headers):
    assert client.get("/api/categories/404", headers=admin_headers).status_code == 404
    assert client.delete("/api/categories/404", headers=admin_headers).status_code == 404


def _record_row_locks(monkeypatch):
    calls = []
    original = Query.with_for_update

    def recording(self, *args, **kwargs):
        calls.append(kwargs)
        return original(self, *args, **kwargs)

    monkeypatch.setattr(Query, "with_for_update", recording)
    return calls


def test_delete_locks_category_before_counting(db, category, monkeypatch):
    calls = _record_row_locks(monkeypatch)
    category_service.delete_category(db, category.id)
    assert {} in calls


def test_product_write_share_locks_its_category(db, category, monkeypatch):
    calls = _record_row_locks(monkeypatch)
    product_service.ensure_category_exists(db, category.id)
    assert {"read": True} in calls
