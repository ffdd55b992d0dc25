"""Saved delivery addresses for freshmart."""

from typing import Any

from .checkout import validate_required_fields
from .errors import AddressNotFoundError
from .kv_store import ADDRESSES_KEY, KeyValueStore, decode_records, load_list, save_json
from .models import Address, _generate_id


class AddressBook:
    """
    Manages saved addresses. Whenever any address exists, exactly one of
    them is the default.
    """

    def __init__(self, store: KeyValueStore):
        self.store = store

    def _load(self) -> list[Address]:
        return decode_records(ADDRESSES_KEY, load_list(self.store, ADDRESSES_KEY), Address.from_dict)

    def _save(self, addresses: list[Address]) -> None:
        save_json(self.store, ADDRESSES_KEY, [a.to_dict() for a in addresses])

    def list_addresses(self) -> list[Address]:
        return self._load()

    def get_address(self, address_id: str) -> Address:
        for address in self._load():
            if address.id == address_id:
                return address
        raise AddressNotFoundError(address_id)

    def default(self) -> Address | None:
        for address in self._load():
            if address.is_default:
                return address
        return None

    def add_address(self, data: dict[str, Any]) -> Address:
        """
        Save a new address. The first address saved becomes the default.

        Raises:
            ValidationError: If a required field is blank.
        """
        address = Address.from_dict({**data, "id": _generate_id()})
        validate_required_fields(address)

        with self.store.lock(ADDRESSES_KEY):
            addresses = self._load()
            address.is_default = address.is_default or not addresses
            if address.is_default:
                for other in addresses:
                    other.is_default = False
            addresses.append(address)
            self._save(addresses)
        return address

    def update_address(self, address_id: str, data: dict[str, Any]) -> Address:
        """
        Replace an address's fields.

        Unsetting the default on the current default hands it to the first
        other address.

        Raises:
            AddressNotFoundError: If the address doesn't exist.
            ValidationError: If a required field is blank.
        """
        updated = Address.from_dict({**data, "id": address_id})
        validate_required_fields(updated)

        with self.store.lock(ADDRESSES_KEY):
            addresses = self._load()
            index = next((i for i, a in enumerate(addresses) if a.id == address_id), None)
            if index is None:
                raise AddressNotFoundError(address_id)

            was_default = addresses[index].is_default
            if updated.is_default:
                for other in addresses:
                    other.is_default = False
            elif was_default and len(addresses) > 1:
                other_index = next(i for i, a in enumerate(addresses) if a.id != address_id)
                addresses[other_index].is_default = True
            elif was_default:
                # The only address stays the default.
                updated.is_default = True

            addresses[index] = updated
            self._save(addresses)
        return updated

    def remove_address(self, address_id: str) -> Address:
        """
        Delete an address. Removing the default promotes the first remaining one.

        Raises:
            AddressNotFoundError: If the address doesn't exist.
        """
        with self.store.lock(ADDRESSES_KEY):
            addresses = self._load()
            removed = next((a for a in addresses if a.id == address_id), None)
            if removed is None:
                raise AddressNotFoundError(address_id)

            remaining = [a for a in addresses if a.id != address_id]
            if removed.is_default and remaining:
                for i, address in enumerate(remaining):
                    address.is_default = i == 0
            self._save(remaining)
        return removed

    def set_default(self, address_id: str) -> Address:
        with self.store.lock(ADDRESSES_KEY):
            addresses = self._load()
            if not any(a.id == address_id for a in addresses):
                raise AddressNotFoundError(address_id)
            for address in addresses:
                address.is_default = address.id == address_id
            self._save(addresses)
        return next(a for a in addresses if a.id == address_id)
