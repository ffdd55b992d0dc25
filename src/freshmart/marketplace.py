"""Wires the stores and services of one marketplace together."""

from pathlib import Path

from .address_book import AddressBook
from .cart import CartRegistry
from .catalog import KeyValueDocumentStore, ProductCatalog
from .checkout import CheckoutService
from .kv_store import JsonFileStore, KeyValueStore
from .notification_store import NotificationStore
from .order_store import OrderStore
from .status_updater import StatusUpdater
from .vendors import VendorRegistry


class Marketplace:
    """Everything the buyer app, admin console and vendor console share."""

    def __init__(self, store: KeyValueStore):
        self.store = store
        self.catalog = ProductCatalog(KeyValueDocumentStore(store))
        self.orders = OrderStore(store)
        self.notifications = NotificationStore(store)
        self.addresses = AddressBook(store)
        self.vendors = VendorRegistry(store)
        self.carts = CartRegistry()
        self.checkout = CheckoutService(self.orders, self.notifications, self.catalog)
        self.status_updater = StatusUpdater(self.orders, self.notifications, self.catalog)

    @classmethod
    def open(cls, data_dir: Path | None = None) -> "Marketplace":
        """Marketplace persisted as JSON files under ``data_dir``."""
        return cls(JsonFileStore(data_dir))
