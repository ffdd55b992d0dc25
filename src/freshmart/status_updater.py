"""Order status changes from the admin and vendor consoles."""

import logging

from .catalog import ProductCatalog
from .dashboards import live_products, vendor_lines
from .errors import (
    FreshmartError,
    InvalidStatusError,
    InvalidStatusTransitionError,
    NotAuthorizedError,
)
from .fanout import order_status_notification
from .models import STATUS_TRANSITIONS, Notification, Order, OrderStatus, Session
from .notification_store import NotificationStore
from .order_store import OrderStore

logger = logging.getLogger(__name__)


def parse_status(value: str | OrderStatus) -> OrderStatus:
    """
    Raises:
        InvalidStatusError: If ``value`` isn't a known status.
    """
    if isinstance(value, OrderStatus):
        return value
    try:
        return OrderStatus(value)
    except ValueError:
        raise InvalidStatusError(value) from None


def check_transition(current: OrderStatus, target: OrderStatus) -> None:
    """
    Raises:
        InvalidStatusTransitionError: Unless ``target`` is later than ``current``.
    """
    if target not in STATUS_TRANSITIONS[current]:
        raise InvalidStatusTransitionError(current.value, target.value)


class StatusUpdater:
    """Moves orders through pending, processing, shipped, delivered."""

    def __init__(
        self,
        orders: OrderStore,
        notifications: NotificationStore,
        catalog: ProductCatalog,
    ):
        self.orders = orders
        self.notifications = notifications
        self.catalog = catalog

    def authorize(self, session: Session, order: Order) -> None:
        """
        Admins may update any order; vendors only orders that contain one of
        their products right now.

        Raises:
            NotAuthorizedError: Otherwise.
        """
        if session.is_admin:
            return
        if session.is_vendor and session.vendor_id:
            if vendor_lines(order, session.vendor_id, live_products(self.catalog)):
                return
            raise NotAuthorizedError(
                "update order status", f"order {order.id} has no products from this vendor"
            )
        raise NotAuthorizedError("update order status", "admin or vendor session required")

    def update_order_status(
        self, session: Session, order_id: str, new_status: str | OrderStatus
    ) -> tuple[Order, Notification]:
        """
        Change an order's status and notify its customer.

        Both happen or neither does: if the notification can't be saved the
        old status is put back, so the call can simply be retried.

        Returns:
            The updated order and the notification sent.

        Raises:
            InvalidStatusError: If ``new_status`` is unknown.
            OrderNotFoundError: If the order doesn't exist.
            NotAuthorizedError: If the session may not update this order.
            InvalidStatusTransitionError: If the move isn't forward.
            StorageReadError, StorageWriteError: If the store fails. The
                order keeps its previous status.
        """
        target = parse_status(new_status)
        order = self.orders.get_order(order_id)
        self.authorize(session, order)

        previous: list[OrderStatus] = []

        def check(current: Order) -> None:
            # Checked again under the orders lock in case someone else moved it.
            check_transition(current.status, target)
            previous.append(current.status)

        with self.orders.locked():
            updated = self.orders.set_status(order_id, target, check=check)
            try:
                notification = self.notifications.add(order_status_notification(updated, target))
            except FreshmartError as e:
                logger.error(
                    "Couldn't notify about order %s, restoring %s: %s",
                    order_id, previous[0].value, e,
                )
                self.orders.set_status(order_id, previous[0])
                raise
        logger.info("%s moved order %s to %s", session.role, order_id, target.value)
        return updated, notification
