"""Tests for the product catalog."""

import pytest

from freshmart.catalog import DEFAULT_PRODUCTS, KeyValueDocumentStore, ProductCatalog, generate_sku
from freshmart.errors import ProductNotFoundError


@pytest.fixture
def catalog(store):
    return ProductCatalog(KeyValueDocumentStore(store))


class TestKeyValueDocumentStore:
    def test_add_assigns_next_integer_id(self, store):
        docs = KeyValueDocumentStore(store)
        assert docs.add("products", {"name": "A"}) == 1
        assert docs.add("products", {"name": "B"}) == 2

    def test_add_keeps_given_id(self, store):
        docs = KeyValueDocumentStore(store)
        assert docs.add("products", {"id": 40, "name": "A"}) == 40
        assert docs.add("products", {"name": "B"}) == 41

    def test_update_merges(self, store):
        docs = KeyValueDocumentStore(store)
        doc_id = docs.add("products", {"name": "A", "price": 1})
        docs.update("products", doc_id, {"price": 2, "id": 999})

        assert docs.list_all("products") == [{"name": "A", "price": 2, "id": doc_id}]

    def test_update_missing_raises(self, store):
        with pytest.raises(ProductNotFoundError):
            KeyValueDocumentStore(store).update("products", 5, {"price": 1})

    def test_delete_missing_raises(self, store):
        with pytest.raises(ProductNotFoundError):
            KeyValueDocumentStore(store).delete("products", 5)


class TestProductCatalog:
    def test_seed_defaults_once(self, catalog):
        assert catalog.seed_defaults() == len(DEFAULT_PRODUCTS)
        assert catalog.seed_defaults() == 0
        assert len(catalog.list_products()) == len(DEFAULT_PRODUCTS)

    def test_get_product_missing_is_none(self, catalog):
        assert catalog.get_product(99) is None

    def test_require_product_missing_raises(self, catalog):
        with pytest.raises(ProductNotFoundError):
            catalog.require_product(99)

    def test_products_by_vendor(self, catalog):
        catalog.seed_defaults()
        names = [p.name for p in catalog.products_by_vendor("vendor2")]
        assert names == ["Fresh Milk", "Butter"]

    def test_add_product_generates_sku(self, catalog):
        product = catalog.add_product(
            {"name": "Spinach", "price": 1.99, "category": "Vegetables", "vendorId": "vendor1"}
        )
        assert product.id == 1
        assert product.sku == "VEG-1-ven"

    def test_add_product_keeps_given_sku(self, catalog):
        product = catalog.add_product({"name": "Spinach", "price": 1.99, "sku": "MY-SKU"})
        assert product.sku == "MY-SKU"

    def test_update_product(self, catalog):
        catalog.seed_defaults()
        product = catalog.update_product(3, {"price": 3.79, "stock": 10})
        assert product.price == 3.79
        assert product.stock == 10

    def test_delete_product(self, catalog):
        catalog.seed_defaults()
        catalog.delete_product(5)
        assert catalog.get_product(5) is None


def test_generate_sku_without_vendor():
    assert generate_sku("Dairy", 12, None) == "DAI-12-"
