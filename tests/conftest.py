import itertools

import mongomock
import pytest
from fastapi.testclient import TestClient

from carts import CartService, CartStore
from catalog import CatalogStore
from main import create_app


@pytest.fixture
def db():
    """Fresh in-memory MongoDB database per test."""
    return mongomock.MongoClient()["ecommerce_test"]


@pytest.fixture
def catalog(db):
    store = CatalogStore(db)
    store.ensure_indexes()
    return store


@pytest.fixture
def cart_store(db):
    return CartStore(db)


@pytest.fixture
def cart_service(cart_store, catalog):
    return CartService(cart_store, catalog)


@pytest.fixture
def product_data():
    """Factory for valid product payloads with unique codes."""
    counter = itertools.count(1)

    def make(**overrides):
        n = next(counter)
        data = {
            "title": f"Product {n}",
            "description": f"Description {n}",
            "code": f"CODE-{n:03d}",
            "price": 10.0,
            "status": True,
            "stock": 5,
            "category": "Misc",
            "thumbnails": [],
        }
        data.update(overrides)
        return data

    return make


@pytest.fixture
def make_product(catalog, product_data):
    def make(**overrides):
        return catalog.create(product_data(**overrides))

    return make


@pytest.fixture
def app(db):
    return create_app(database=db, seed=False)


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client
