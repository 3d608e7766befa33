"""
Unit tests for the in-memory product store.
"""
import pytest
import sys
import os

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from models import Product, ProductNotFound, ProductStore, SEED_PRODUCTS


@pytest.fixture
def store():
    return ProductStore.seeded()


class TestSeed:

    def test_seeded_store_holds_two_products(self, store):
        products = store.list()
        assert [p.id for p in products] == [1, 2]
        assert products[0].name == "Laptop Lenovo"
        assert products[1].price == 120

    def test_seed_is_not_shared_between_stores(self, store):
        """Mutating one store leaves the seed data and other stores alone."""
        store.delete(1)
        assert len(ProductStore.seeded()) == 2
        assert len(SEED_PRODUCTS) == 2

    def test_reset_replaces_collection(self, store):
        store.reset([Product(id=7, name="Monitor", price=900)])
        assert [p.id for p in store.list()] == [7]


class TestCreate:

    def test_create_assigns_max_plus_one(self, store):
        product = store.create("Keyboard", 50)
        assert product.id == 3
        assert product.name == "Keyboard"
        assert product.price == 50
        assert len(store) == 3

    def test_create_on_empty_store_starts_at_one(self):
        store = ProductStore()
        assert store.create("Keyboard", 50).id == 1

    def test_create_uses_max_not_length(self):
        """Ids follow the highest id even when there are gaps."""
        store = ProductStore([Product(id=10, name="A", price=1), Product(id=4, name="B", price=2)])
        assert store.create("C", 3).id == 11

    def test_create_trims_name(self, store):
        assert store.create("  Keyboard  ", 50).name == "Keyboard"

    def test_create_is_not_idempotent(self, store):
        first = store.create("Keyboard", 50)
        second = store.create("Keyboard", 50)
        assert first.id != second.id
        assert len(store) == 4

    def test_create_reuses_id_of_deleted_maximum(self, store):
        store.delete(2)
        assert store.create("Keyboard", 50).id == 2


class TestGet:

    def test_get_existing(self, store):
        assert store.get(2).name == "Mouse Logitech"

    def test_get_missing_raises(self, store):
        with pytest.raises(ProductNotFound) as excinfo:
            store.get(99)
        assert excinfo.value.product_id == 99


class TestUpdate:

    def test_update_replaces_name_and_price(self, store):
        product = store.update(2, "Mouse MX", 150)
        assert product.id == 2
        assert product.name == "Mouse MX"
        assert product.price == 150
        assert store.get(2) == product

    def test_update_keeps_position(self, store):
        store.update(1, "Laptop Dell", 4000)
        assert [p.id for p in store.list()] == [1, 2]

    def test_update_trims_name(self, store):
        assert store.update(1, " Laptop Dell ", 4000).name == "Laptop Dell"

    def test_update_missing_leaves_store_unchanged(self, store):
        before = store.list()
        with pytest.raises(ProductNotFound):
            store.update(99, "Ghost", 1)
        assert store.list() == before


class TestDelete:

    def test_delete_returns_removed_product(self, store):
        removed = store.delete(1)
        assert removed.id == 1
        assert [p.id for p in store.list()] == [2]

    def test_get_after_delete_raises(self, store):
        store.delete(1)
        with pytest.raises(ProductNotFound):
            store.get(1)

    def test_delete_twice_raises(self, store):
        store.delete(1)
        with pytest.raises(ProductNotFound):
            store.delete(1)
        assert len(store) == 1

    def test_list_is_a_snapshot(self, store):
        products = store.list()
        store.delete(1)
        assert len(products) == 2
