"""Shared pytest fixtures for the storefront tests."""

import pytest
from fastapi.testclient import TestClient

from catalog import ProductCatalog
from database import JsonFileStore, get_store
from main import app, seed_data
from schemas import CategoryCreate, ProductCreate


@pytest.fixture
def store(tmp_path):
    """An empty JSON-file store in a temp directory."""
    return JsonFileStore(str(tmp_path / "data"))


@pytest.fixture
def seeded_store(store):
    """Store with the default admin, three categories and two products."""
    seed_data(store)
    return store


@pytest.fixture
def catalog(store):
    """Two categories, three products (one discounted)."""
    cat = ProductCatalog(store)
    phones = cat.create_category(CategoryCreate(name="Phones"))
    books = cat.create_category(CategoryCreate(name="Books"))
    cat.create_product(ProductCreate(name="Phone", price=100, category_id=phones.id, discount=25))
    cat.create_product(ProductCreate(name="Novel", price=20, category_id=books.id))
    cat.create_product(ProductCreate(name="Case", price=10, category_id=phones.id))
    return cat


@pytest.fixture
def api(seeded_store):
    """TestClient bound to the seeded store."""
    app.dependency_overrides[get_store] = lambda: seeded_store
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
