import os
import sys
import pytest
from fastapi.testclient import TestClient

ROOT_DIR = os.path.dirname(os.path.dirname(__file__))
if ROOT_DIR not in sys.path:
    sys.path.insert(0, ROOT_DIR)

# Every TestClient context opens a fresh in-memory database.
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["DB_CONNECT_RETRIES"] = "1"

from database import Database  # noqa: E402
from main import app  # noqa: E402


@pytest.fixture(scope="function")
def client():
    """Return a TestClient wired to a fresh in-memory database for each test."""
    app.dependency_overrides.clear()
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def session():
    """A session on a fresh in-memory database, for service-level tests."""
    database = Database("sqlite://", retries=1).open()
    with database.session() as s:
        yield s
    database.close()


@pytest.fixture
def api(client):
    """
    Common helpers shared across endpoint test modules.
    Each create helper asserts success and returns the 'data' of the envelope.
    """
    def create_person(name: str = "Bob", age: int = 30) -> dict:
        res = client.post("/api/people", json={"name": name, "age": age})
        assert res.status_code == 201, res.text
        return res.json()["data"]

    def create_category(description: str = "Mercado", purpose: int = 0) -> dict:
        res = client.post(
            "/api/categories",
            json={"description": description, "purpose": purpose},
        )
        assert res.status_code == 201, res.text
        return res.json()["data"]

    def post_transaction(person_id, category_id, amount=50.0, type_=0, description="Compra"):
        return client.post(
            "/api/transactions",
            json={
                "description": description,
                "amount": amount,
                "type": type_,
                "personId": person_id,
                "categoryId": category_id,
            },
        )

    def create_transaction(person_id, category_id, amount=50.0, type_=0, description="Compra") -> dict:
        res = post_transaction(person_id, category_id, amount, type_, description)
        assert res.status_code == 201, res.text
        return res.json()["data"]

    return {
        "create_person": create_person,
        "create_category": create_category,
        "post_transaction": post_transaction,
        "create_transaction": create_transaction,
    }
