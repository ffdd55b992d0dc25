"""Order storage for freshmart."""

import logging
import random
from typing import Callable

from .errors import OrderNotFoundError, StorageWriteError
from .kv_store import ORDERS_KEY, KeyValueStore, decode_records, load_list, save_json
from .models import Order, OrderStatus

logger = logging.getLogger(__name__)

# Give up on finding a free label after this many draws
MAX_ID_ATTEMPTS = 100


def generate_order_id(rng: random.Random | None = None) -> str:
    """Generate a user-facing order ID such as ``ORD-482913``."""
    rng = rng or random
    return f"ORD-{rng.randint(100000, 999999)}"


class OrderStore:
    """Manages the list of placed orders, newest first."""

    def __init__(self, store: KeyValueStore, rng: random.Random | None = None):
        """
        Initialize OrderStore.

        Args:
            store: Persisted key-value store.
            rng: Random source for order IDs (for testing).
        """
        self.store = store
        self._rng = rng

    def _load(self) -> list[dict]:
        return load_list(self.store, ORDERS_KEY)

    def _decode(self, records: list[dict]) -> list[Order]:
        return decode_records(ORDERS_KEY, records, Order.from_dict)

    def list_orders(self) -> list[Order]:
        return self._decode(self._load())

    def locked(self):
        """Hold the orders lock across several reads and writes."""
        return self.store.lock(ORDERS_KEY)

    def get_order(self, order_id: str) -> Order:
        """
        Get an order by ID.

        Raises:
            OrderNotFoundError: If order doesn't exist.
        """
        for data in self._load():
            if data.get("id") == order_id:
                return self._decode([data])[0]
        raise OrderNotFoundError(order_id)

    def new_order_id(self) -> str:
        return generate_order_id(self._rng)

    def add_order(self, order: Order) -> Order:
        """
        Prepend an order and write the whole list back.

        If the order's ID is already taken, a fresh one is drawn first, so the
        returned order may carry a different ID than the one passed in.

        Raises:
            StorageReadError, StorageWriteError: If the store fails. Nothing
                is saved in that case.
        """
        with self.store.lock(ORDERS_KEY):
            orders = self._load()
            taken = {o.get("id") for o in orders}
            attempts = 0
            while order.id in taken:
                attempts += 1
                if attempts > MAX_ID_ATTEMPTS:
                    raise StorageWriteError(ORDERS_KEY, "no free order ID left")
                logger.warning("Order ID %s already used, drawing another", order.id)
                order.id = self.new_order_id()

            orders.insert(0, order.to_dict())
            save_json(self.store, ORDERS_KEY, orders)

        logger.info("Saved order %s (total %.2f)", order.id, order.total)
        return order

    def set_status(
        self,
        order_id: str,
        status: OrderStatus,
        check: Callable[[Order], None] | None = None,
    ) -> Order:
        """
        Overwrite one order's status and write the whole list back.

        Args:
            order_id: Order ID.
            status: New status.
            check: Called with the stored order while the list is locked;
                raising from it cancels the update.

        Raises:
            OrderNotFoundError: If order doesn't exist.
        """
        with self.store.lock(ORDERS_KEY):
            orders = self._load()
            for data in orders:
                if data.get("id") == order_id:
                    if check is not None:
                        check(self._decode([data])[0])
                    data["status"] = status.value
                    save_json(self.store, ORDERS_KEY, orders)
                    logger.info("Order %s is now %s", order_id, status.value)
                    return self._decode([data])[0]

        raise OrderNotFoundError(order_id)
