"""Notification fan-out for order events."""

import logging
import os

from .catalog import ProductCatalog
from .models import (
    Audience,
    CartItem,
    Notification,
    NotificationType,
    Order,
    OrderStatus,
)
from .notification_store import NotificationStore

logger = logging.getLogger(__name__)

CURRENCY = os.environ.get("FRESHMART_CURRENCY", "₹")

STATUS_MESSAGES = {
    OrderStatus.PENDING: "Your order has been received and is pending confirmation.",
    OrderStatus.PROCESSING: "Your order is now being processed.",
    OrderStatus.SHIPPED: "Your order has been shipped and is on the way!",
    OrderStatus.DELIVERED: "Your order has been delivered. Enjoy!",
}


def format_money(amount: float) -> str:
    return f"{CURRENCY}{amount:.2f}"


def group_by_vendor(
    cart_items: list[CartItem], catalog: ProductCatalog
) -> dict[str, list[CartItem]]:
    """
    Group purchased lines by the vendor that owns each product right now.

    Ownership comes from a live catalog lookup, not from the line itself.
    Lines whose product was deleted or has no vendor are left out.
    """
    live = {p.id: p for p in catalog.list_products()}
    groups: dict[str, list[CartItem]] = {}
    for item in cart_items:
        product = live.get(item.product_id)
        if product is None:
            logger.debug("Product %s no longer in catalog; no vendor to notify", item.product_id)
            continue
        if not product.vendor_id:
            continue
        groups.setdefault(product.vendor_id, []).append(item)
    return groups


def order_placed_notifications(
    order: Order, cart_items: list[CartItem], catalog: ProductCatalog
) -> list[Notification]:
    """
    Build every notification a new order triggers.

    Always one for the admin and one for the ordering user, then one per
    vendor whose products were bought, summarizing that vendor's lines.
    """
    notifications = [
        Notification.create(
            title="New Order Placed",
            message=f"A new order {order.label} has been placed for {format_money(order.total)}",
            type=NotificationType.ORDER_PLACED,
            audience=Audience.admin(),
            order_id=order.id,
        ),
        Notification.create(
            title="Order Placed Successfully",
            message=f"Your order {order.label} has been placed and is pending confirmation.",
            type=NotificationType.ORDER_PLACED,
            audience=Audience.user(order.user_id),
            order_id=order.id,
        ),
    ]

    for vendor_id, items in group_by_vendor(cart_items, catalog).items():
        count = len(items)
        names = ", ".join(item.product.name for item in items)
        amount = sum(item.subtotal for item in items)
        plural = "s" if count > 1 else ""
        notifications.append(
            Notification.create(
                title="New Order Received",
                message=(
                    f"You have received a new order {order.label} for {count} product{plural} "
                    f"({names}) totaling {format_money(amount)}"
                ),
                type=NotificationType.ORDER_PLACED,
                audience=Audience.vendor(vendor_id, user_id=order.user_id),
                order_id=order.id,
            )
        )

    return notifications


def order_status_notification(order: Order, status: OrderStatus) -> Notification:
    """The single notice a customer gets when their order changes status."""
    return Notification.create(
        title=f"Order {status.display_name}",
        message=STATUS_MESSAGES[status],
        type=NotificationType.ORDER_STATUS,
        audience=Audience.user(order.user_id),
        order_id=order.id,
    )


def publish(notifications: list[Notification], store: NotificationStore) -> list[Notification]:
    """
    Append each notification to its ledger, in order.

    Ledgers are written one at a time; a failure part-way leaves the earlier
    ledgers written.
    """
    for notification in notifications:
        store.add(notification)
    return notifications
