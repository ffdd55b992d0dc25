"""Pytest fixtures for freshmart tests."""

import random
import tempfile
from pathlib import Path

import pytest

from freshmart.kv_store import JsonFileStore, MemoryStore
from freshmart.marketplace import Marketplace
from freshmart.models import Session, ShippingForm


@pytest.fixture
def temp_dir():
    """Create a temporary directory."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def store():
    """Empty in-memory key-value store."""
    return MemoryStore()


@pytest.fixture
def file_store(temp_dir):
    """JSON file store in a temporary data directory."""
    return JsonFileStore(temp_dir / "data")


@pytest.fixture
def market(store):
    """Marketplace over the memory store with the sample catalog and vendors loaded."""
    m = Marketplace(store)
    m.orders._rng = random.Random(1234)
    m.catalog.seed_defaults()
    m.vendors.seed_defaults()
    return m


class FailingStore(MemoryStore):
    """Memory store that can't write the given keys."""

    def __init__(self, *failing_keys):
        super().__init__()
        self.failing_keys = set(failing_keys)

    def set(self, key, value):
        if key in self.failing_keys:
            raise OSError("quota exceeded")
        super().set(key, value)


@pytest.fixture
def customer():
    return Session.customer("user-1")


@pytest.fixture
def shipping_form():
    """A shipping form that passes validation."""
    return ShippingForm(
        full_name="Asha Rao",
        phone_number="9876543210",
        address="12 MG Road",
        city="Bengaluru",
        state="Karnataka",
        pincode="560001",
    )


def add_to_cart(market, session, *product_ids, quantity=1):
    """Put products in the session's cart, ``quantity`` units each."""
    cart = market.carts.cart_for(session)
    for product_id in product_ids:
        product = market.catalog.require_product(product_id)
        for _ in range(quantity):
            cart.add_to_cart(product)
    return cart


def place_order(market, session, form, *product_ids, **kwargs):
    """Fill the session's cart and check out."""
    cart = add_to_cart(market, session, *product_ids)
    return market.checkout.place_order(session, cart, form, **kwargs)
