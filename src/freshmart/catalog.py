"""Product catalog for freshmart."""

import logging
from typing import Any, Protocol

from .errors import ProductNotFoundError
from .kv_store import PRODUCTS_KEY, KeyValueStore, decode_records, load_list, save_json
from .models import Product, ProductId

logger = logging.getLogger(__name__)


class DocumentStore(Protocol):
    """Document-database interface the catalog is built on."""

    def list_all(self, collection: str) -> list[dict[str, Any]]: ...

    def add(self, collection: str, data: dict[str, Any]) -> ProductId: ...

    def update(self, collection: str, doc_id: ProductId, patch: dict[str, Any]) -> None: ...

    def delete(self, collection: str, doc_id: ProductId) -> None: ...


class KeyValueDocumentStore:
    """
    DocumentStore over the persisted key-value store.

    Each collection is a JSON array under the key of the same name. New
    documents get the next integer ID.
    """

    def __init__(self, store: KeyValueStore):
        self.store = store

    def list_all(self, collection: str) -> list[dict[str, Any]]:
        return load_list(self.store, collection)

    def add(self, collection: str, data: dict[str, Any]) -> ProductId:
        with self.store.lock(collection):
            docs = load_list(self.store, collection)
            doc_id = data.get("id")
            if doc_id is None:
                numeric = [d["id"] for d in docs if isinstance(d.get("id"), int)]
                doc_id = max(numeric) + 1 if numeric else 1
            docs.append({**data, "id": doc_id})
            save_json(self.store, collection, docs)
        return doc_id

    def update(self, collection: str, doc_id: ProductId, patch: dict[str, Any]) -> None:
        """
        Merge a patch into one document.

        Raises:
            ProductNotFoundError: If the document doesn't exist.
        """
        with self.store.lock(collection):
            docs = load_list(self.store, collection)
            for doc in docs:
                if doc.get("id") == doc_id:
                    doc.update({k: v for k, v in patch.items() if k != "id"})
                    save_json(self.store, collection, docs)
                    return
        raise ProductNotFoundError(doc_id)

    def delete(self, collection: str, doc_id: ProductId) -> None:
        with self.store.lock(collection):
            docs = load_list(self.store, collection)
            remaining = [d for d in docs if d.get("id") != doc_id]
            if len(remaining) == len(docs):
                raise ProductNotFoundError(doc_id)
            save_json(self.store, collection, remaining)


def generate_sku(category: str, product_id: ProductId, vendor_id: str | None) -> str:
    """Build a SKU like ``FRU-7-ven`` from category, ID and vendor."""
    return f"{category[:3].upper()}-{product_id}-{(vendor_id or '')[:3]}"


class ProductCatalog:
    """Reads and edits the product collection."""

    def __init__(self, documents: DocumentStore, collection: str = PRODUCTS_KEY):
        self.documents = documents
        self.collection = collection

    def list_products(self) -> list[Product]:
        return decode_records(
            self.collection, self.documents.list_all(self.collection), Product.from_dict
        )

    def get_product(self, product_id: ProductId) -> Product | None:
        """Live lookup by ID. Returns None if the product no longer exists."""
        for product in self.list_products():
            if product.id == product_id:
                return product
        return None

    def require_product(self, product_id: ProductId) -> Product:
        """
        Get a product by ID.

        Raises:
            ProductNotFoundError: If product doesn't exist.
        """
        product = self.get_product(product_id)
        if product is None:
            raise ProductNotFoundError(product_id)
        return product

    def products_by_vendor(self, vendor_id: str) -> list[Product]:
        return [p for p in self.list_products() if p.vendor_id == vendor_id]

    def add_product(self, data: dict[str, Any]) -> Product:
        """
        Add a product. A SKU is generated when the caller gives none.

        Args:
            data: Product fields in stored form (camelCase), without an ID.
        """
        fields = {k: v for k, v in data.items() if k != "id"}
        product_id = self.documents.add(self.collection, fields)
        if not fields.get("sku"):
            sku = generate_sku(fields.get("category", ""), product_id, fields.get("vendorId"))
            self.documents.update(self.collection, product_id, {"sku": sku})
        logger.info("Added product %s (%s)", product_id, fields.get("name"))
        return self.require_product(product_id)

    def update_product(self, product_id: ProductId, patch: dict[str, Any]) -> Product:
        self.documents.update(self.collection, product_id, patch)
        return self.require_product(product_id)

    def delete_product(self, product_id: ProductId) -> None:
        """Delete a product. Placed orders keep their snapshots."""
        self.documents.delete(self.collection, product_id)
        logger.info("Deleted product %s", product_id)

    def seed_defaults(self) -> int:
        """
        Load the sample catalog when the collection is empty.

        Returns:
            Number of products added.
        """
        if self.documents.list_all(self.collection):
            return 0
        for data in DEFAULT_PRODUCTS:
            self.documents.add(self.collection, dict(data))
        return len(DEFAULT_PRODUCTS)


DEFAULT_PRODUCTS: list[dict[str, Any]] = [
    {
        "id": 1,
        "name": "Organic Apples",
        "price": 3.99,
        "image": "https://images.unsplash.com/photo-1560806887-1e4cd0b6cbd6?auto=format&fit=crop&q=80&w=400",
        "category": "Fruits",
        "organic": True,
        "rating": 4.5,
        "description": "Fresh organic apples grown without pesticides.",
        "vendorId": "vendor1",
        "stock": 50,
        "sku": "FRU-001-VEN",
    },
    {
        "id": 2,
        "name": "Organic Carrots",
        "price": 2.49,
        "image": "https://images.unsplash.com/photo-1598170845058-32b9d6a5da37?auto=format&fit=crop&q=80&w=400",
        "category": "Vegetables",
        "organic": True,
        "rating": 4.3,
        "description": "Locally grown organic carrots, perfect for salads and cooking.",
        "vendorId": "vendor1",
        "stock": 40,
        "sku": "VEG-002-VEN",
    },
    {
        "id": 3,
        "name": "Fresh Milk",
        "price": 3.49,
        "image": "https://images.unsplash.com/photo-1550583724-b2692b85b150?auto=format&fit=crop&q=80&w=400",
        "category": "Dairy",
        "organic": False,
        "rating": 4.7,
        "description": "Farm fresh milk from grass-fed cows.",
        "vendorId": "vendor2",
        "stock": 30,
        "sku": "DAI-003-VEN",
    },
    {
        "id": 4,
        "name": "Butter",
        "price": 4.99,
        "image": "https://images.unsplash.com/photo-1589985270826-4b7bb135bc9d?auto=format&fit=crop&q=80&w=400",
        "category": "Dairy",
        "organic": True,
        "rating": 4.6,
        "description": "Creamy butter made from organic milk.",
        "vendorId": "vendor2",
        "stock": 25,
        "sku": "DAI-004-VEN",
    },
    {
        "id": 5,
        "name": "Sourdough Bread",
        "price": 5.99,
        "image": "https://images.unsplash.com/photo-1585478259715-47fc0c821a5b?auto=format&fit=crop&q=80&w=400",
        "category": "Bakery",
        "organic": False,
        "rating": 4.8,
        "description": "Freshly baked sourdough bread.",
        "vendorId": "vendor3",
        "stock": 15,
        "sku": "BAK-005-VEN",
    },
]
