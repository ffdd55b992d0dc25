"""Vendor registry for freshmart.

Vendors are stored under the ``vendors`` key in their camelCase shape.
Shoppers only ever see verified vendors; the admin console sees all of them
and flips the verified flag.
"""

import logging
from typing import Any

from .errors import ValidationError, VendorNotFoundError
from .kv_store import VENDORS_KEY, KeyValueStore, decode_records, load_list, save_json
from .models import Vendor, _generate_id

logger = logging.getLogger(__name__)

VENDOR_FILTERS = ("all", "pending", "verified")


def filter_vendors(vendors: list[Vendor], status: str = "all") -> list[Vendor]:
    """
    Filter for the admin vendor list.

    Raises:
        ValidationError: If ``status`` isn't all, pending or verified.
    """
    if status not in VENDOR_FILTERS:
        raise ValidationError(f"Unknown vendor filter: {status}", "status")
    if status == "pending":
        return [v for v in vendors if not v.is_verified]
    if status == "verified":
        return [v for v in vendors if v.is_verified]
    return list(vendors)


class VendorRegistry:
    """Add, edit, verify and remove vendors."""

    def __init__(self, store: KeyValueStore):
        self.store = store

    def _load(self) -> list[Vendor]:
        return decode_records(VENDORS_KEY, load_list(self.store, VENDORS_KEY), Vendor.from_dict)

    def _save(self, vendors: list[Vendor]) -> None:
        save_json(self.store, VENDORS_KEY, [v.to_dict() for v in vendors])

    def list_vendors(self, status: str = "all") -> list[Vendor]:
        return filter_vendors(self._load(), status)

    def find_vendor(self, vendor_id: str) -> Vendor | None:
        for vendor in self._load():
            if vendor.id == vendor_id:
                return vendor
        return None

    def get_vendor(self, vendor_id: str) -> Vendor:
        vendor = self.find_vendor(vendor_id)
        if vendor is None:
            raise VendorNotFoundError(vendor_id)
        return vendor

    def add_vendor(self, data: dict[str, Any]) -> Vendor:
        """
        Register a vendor under a fresh ID. New vendors start unverified
        unless ``isVerified`` says otherwise.

        Raises:
            ValidationError: If the name is blank.
        """
        if not str(data.get("name", "")).strip():
            raise ValidationError("Vendor name is required", "name")
        vendor = Vendor.from_dict({**data, "id": f"vendor-{_generate_id()[:8]}"})

        with self.store.lock(VENDORS_KEY):
            vendors = self._load()
            vendors.append(vendor)
            self._save(vendors)
        logger.info("Added vendor %s (%s)", vendor.id, vendor.name)
        return vendor

    def update_vendor(self, vendor_id: str, patch: dict[str, Any]) -> Vendor:
        """
        Merge ``patch`` (stored keys) into a vendor. The ID never changes.

        Raises:
            VendorNotFoundError: If the vendor doesn't exist.
            ValidationError: If the patch blanks the name.
        """
        if "name" in patch and not str(patch["name"]).strip():
            raise ValidationError("Vendor name is required", "name")

        with self.store.lock(VENDORS_KEY):
            vendors = self._load()
            index = next((i for i, v in enumerate(vendors) if v.id == vendor_id), None)
            if index is None:
                raise VendorNotFoundError(vendor_id)
            updated = Vendor.from_dict({**vendors[index].to_dict(), **patch, "id": vendor_id})
            vendors[index] = updated
            self._save(vendors)
        return updated

    def delete_vendor(self, vendor_id: str) -> Vendor:
        """
        Remove a vendor. Its products and past orders are left alone.

        Raises:
            VendorNotFoundError: If the vendor doesn't exist.
        """
        with self.store.lock(VENDORS_KEY):
            vendors = self._load()
            removed = next((v for v in vendors if v.id == vendor_id), None)
            if removed is None:
                raise VendorNotFoundError(vendor_id)
            self._save([v for v in vendors if v.id != vendor_id])
        logger.info("Deleted vendor %s", vendor_id)
        return removed

    def set_verified(self, vendor_id: str, verified: bool) -> Vendor:
        vendor = self.update_vendor(vendor_id, {"isVerified": verified})
        logger.info("Vendor %s %s", vendor_id, "verified" if verified else "unverified")
        return vendor

    def verify_vendor(self, vendor_id: str) -> Vendor:
        return self.set_verified(vendor_id, True)

    def seed_defaults(self) -> int:
        """
        Load the sample vendors when the registry is empty.

        Returns:
            Number of vendors added.
        """
        with self.store.lock(VENDORS_KEY):
            if self._load():
                return 0
            self._save([Vendor.from_dict(dict(data)) for data in DEFAULT_VENDORS])
        return len(DEFAULT_VENDORS)


DEFAULT_VENDORS: list[dict[str, Any]] = [
    {
        "id": "vendor1",
        "name": "Fresh Farms",
        "email": "vendor1@vendor.com",
        "phone": "9876543210",
        "logo": "https://images.unsplash.com/photo-1498579809087-ef1e558fd1da?auto=format&fit=crop&q=80&w=300",
        "address": "123 Farm Road, Green Valley",
        "description": "We provide fresh organic produce directly from our farms.",
        "rating": 4.8,
        "isVerified": True,
        "categories": ["Fruits", "Vegetables", "Organic"],
    },
    {
        "id": "vendor2",
        "name": "Dairy Delight",
        "email": "vendor2@vendor.com",
        "phone": "9876543211",
        "logo": "https://images.unsplash.com/photo-1634301295749-9c69478a9204?auto=format&fit=crop&q=80&w=300",
        "address": "456 Milk Way, Cream County",
        "description": "Premium dairy products from grass-fed cows.",
        "rating": 4.6,
        "isVerified": True,
        "categories": ["Dairy", "Organic"],
    },
    {
        "id": "vendor3",
        "name": "Bake House",
        "email": "vendor3@vendor.com",
        "phone": "9876543212",
        "logo": "https://images.unsplash.com/photo-1515823662972-da6a2ab7040e?auto=format&fit=crop&q=80&w=300",
        "address": "789 Wheat Street, Flour City",
        "description": "Freshly baked breads and pastries every day.",
        "rating": 4.5,
        "isVerified": True,
        "categories": ["Bakery"],
    },
]
