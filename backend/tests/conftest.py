"""
Pytest fixtures for the API test suite.

Provides:
- A throwaway SQLite database, recreated before every test
- A FastAPI TestClient
- Two signed-up users (alice, bob) with their bearer headers
- Helpers to create raw materials and products through the API

The environment is configured before the application is imported, so the
engine, the credential secrets and the log directory all point at test
locations.
"""
import os
import tempfile

_TEST_DIR = tempfile.mkdtemp(prefix="inventory-api-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_TEST_DIR, 'test.db')}"
os.environ["LOG_DIR"] = os.path.join(_TEST_DIR, "logs")
os.environ["JWT_SECRET"] = "test-access-secret"
os.environ["JWT_REFRESH_SECRET"] = "test-refresh-secret"
os.environ["JWT_RESET_SECRET"] = "test-reset-secret"

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from crud.gateway import Gateway  # noqa: E402
from database import Base, SessionLocal, engine  # noqa: E402
from main import app  # noqa: E402


@pytest.fixture(autouse=True)
def reset_database():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    app.dependency_overrides.clear()


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def gateway():
    return Gateway(SessionLocal)


class Account:
    def __init__(self, payload: dict):
        self.id = payload["user"]["id"]
        self.email = payload["user"]["email"]
        self.access_token = payload["accessToken"]
        self.refresh_token = payload["refreshToken"]
        self.headers = {"Authorization": f"Bearer {self.access_token}"}


def signup(client, email, password="secret123") -> Account:
    response = client.post("/auth/signup", json={"email": email, "password": password})
    assert response.status_code == 201, response.text
    return Account(response.json())


@pytest.fixture
def alice(client):
    return signup(client, "alice@example.com")


@pytest.fixture
def bob(client):
    return signup(client, "bob@example.com")


@pytest.fixture
def make_material(client):
    def _make(account, name="Paper", quantity=10, unit_cost=1.5):
        response = client.post(
            "/insumos",
            json={"name": name, "quantity": quantity, "unitCost": unit_cost},
            headers=account.headers,
        )
        assert response.status_code == 201, response.text
        return response.json()
    return _make


@pytest.fixture
def make_product(client):
    def _make(account, materials, name="Notebook", sale_price=20.0, total_cost=8.0):
        response = client.post(
            "/produtos",
            json={
                "name": name,
                "salePrice": sale_price,
                "totalCost": total_cost,
                "materials": [{"id": material_id, "quantity": quantity} for material_id, quantity in materials],
            },
            headers=account.headers,
        )
        assert response.status_code == 201, response.text
        return response.json()
    return _make
