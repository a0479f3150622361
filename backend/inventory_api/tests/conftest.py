import os
import tempfile

# The module-level app in inventory_api.main reads settings at import time
_scratch = tempfile.mkdtemp(prefix="inventory-api-tests-")
os.environ.setdefault("ENV", "test")
os.environ.setdefault("DATABASE_URL", f"sqlite:///{os.path.join(_scratch, 'import.db')}")
os.environ.setdefault("UPLOAD_DIR", os.path.join(_scratch, "uploads"))
os.environ.setdefault("BCRYPT_ROUNDS", "4")

import pytest
from fastapi.testclient import TestClient

from inventory_api.core.config import Settings
from inventory_api.core.roles import Role
from inventory_api.core.security import CredentialService
from inventory_api.main import create_app
from inventory_api.models.category import Category
from inventory_api.models.user import User


ADMIN_EMAIL = "admin@test.com"
STAFF_EMAIL = "staff@test.com"
PASSWORD = "secret123"


@pytest.fixture()
def settings(tmp_path):
    return Settings(
        env="test",
        secret_key="test-secret",
        database_url=f"sqlite:///{tmp_path / 'inventory.db'}",
        database_timeout_seconds=30,
        upload_dir=str(tmp_path / "uploads"),
        bcrypt_rounds=4,
        stock_update_max_attempts=50,
        backend_cors_origins="*",
    )


@pytest.fixture()
def app(settings):
    return create_app(settings)


@pytest.fixture()
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture()
def db(client, app):
    session = app.state.db.session()
    try:
        yield session
    finally:
        session.close()


def _add_user(db, email, name, role, active=True):
    user = User(email=email, hashed_password=CredentialService(rounds=4).hash_password(PASSWORD), name=name, role=role)
    if not active:
        user.deactivate()
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture()
def admin_user(db):
    return _add_user(db, ADMIN_EMAIL, "Admin", Role.admin.value)


@pytest.fixture()
def staff_user(db):
    return _add_user(db, STAFF_EMAIL, "Staff", Role.staff.value)


@pytest.fixture()
def make_user(db):
    def factory(email, role=Role.staff.value, active=True, name="Someone"):
        return _add_user(db, email, name, role, active)

    return factory


def _login(client, email):
    r = client.post("/api/auth/login", json={"email": email, "password": PASSWORD})
    assert r.status_code == 200, r.text
    return r.json()["data"]["token"]


@pytest.fixture()
def admin_headers(client, admin_user):
    return {"Authorization": f"Bearer {_login(client, ADMIN_EMAIL)}"}


@pytest.fixture()
def staff_headers(client, staff_user):
    return {"Authorization": f"Bearer {_login(client, STAFF_EMAIL)}"}


@pytest.fixture()
def category(db):
    category = Category(name="Incense", description="Sticks and cones", display_order=1)
    db.add(category)
    db.commit()
    db.refresh(category)
    return category


@pytest.fixture()
def create_product(client, admin_headers):
    def factory(**overrides):
        payload = {
            "name": "Sandalwood incense",
            "costPrice": 2.5,
            "sellingPrice": 4.0,
            "quantityInStock": 10,
            "lowStockThreshold": 5,
        }
        payload.update(overrides)
        r = client.post("/api/products", json=payload, headers=admin_headers)
        assert r.status_code == 201, r.text
        return r.json()["data"]

    return factory
