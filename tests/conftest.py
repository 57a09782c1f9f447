"""Shared pytest fixtures for the storefront API tests."""

import pytest
from fastapi.testclient import TestClient

from config import Settings
from database import MemoryKVStore
from identity import IdentityGate, MemoryIdentityProvider
from indexes import product_key
from main import create_app
from service import StorefrontService

CATALOG = [
    {
        "id": "1",
        "name": "Classic Cotton T-Shirt",
        "price": 1299,
        "category": "T-Shirts",
        "brand": "AmarBrand",
        "description": "Premium quality cotton t-shirt.",
        "inStock": True,
        "featured": True,
        "trending": True,
        "newArrival": False,
    },
    {
        "id": "2",
        "name": "Elegant Summer Dress",
        "price": 2499,
        "category": "Dresses",
        "brand": "ElegantWear",
        "description": "Beautiful summer dress for casual outings.",
        "inStock": True,
        "featured": True,
        "trending": False,
        "newArrival": True,
    },
    {
        "id": "3",
        "name": "Premium Denim Jeans",
        "price": 3499,
        "category": "Jeans",
        "brand": "DenimCo",
        "description": "High-quality jeans with a perfect fit.",
        "inStock": False,
        "featured": False,
        "trending": True,
        "newArrival": False,
    },
    {
        "id": "4",
        "name": "Stylish Jacket",
        "price": 4999,
        "category": "Jackets",
        "brand": "StyleHub",
        "description": "Trendy jacket perfect for layering.",
        "inStock": True,
        "featured": True,
        "trending": False,
        "newArrival": True,
    },
]


class FakeClock:
    """Deterministic clock advancing one second per reading."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        self.now += 1
        return self.now


@pytest.fixture
def settings():
    return Settings()


@pytest.fixture
def store():
    store = MemoryKVStore()
    for product in CATALOG:
        store.set(product_key(product["id"]), product)
    return store


@pytest.fixture
def provider():
    return MemoryIdentityProvider()


@pytest.fixture
def service(store, provider, settings):
    return StorefrontService(store, IdentityGate(provider), settings, clock=FakeClock())


@pytest.fixture
def client(service):
    return TestClient(create_app(service=service))


@pytest.fixture
def signup(client, provider):
    """Sign a user up over HTTP and return (user, auth headers)."""

    def _signup(email="a@x.com", password="secret1", name="A"):
        response = client.post("/auth/signup", json={"email": email, "password": password, "name": name})
        assert response.status_code == 200, response.text
        user = response.json()["user"]
        token = provider.issue_token(user["id"])
        return user, {"Authorization": f"Bearer {token}"}

    return _signup
