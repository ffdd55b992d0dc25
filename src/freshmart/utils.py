"""Display helpers for freshmart."""

from .dashboards import VendorOrderView
from .fanout import format_money
from .models import Notification, Order, Product, Vendor


def truncate(text: str, width: int = 60) -> str:
    return text[:width] + "..." if len(text) > width else text


def format_timestamp(timestamp: str) -> str:
    """``2024-05-01T10:20:30.123Z`` -> ``2024-05-01 10:20``."""
    if "T" not in timestamp:
        return timestamp
    date, time = timestamp.split("T", 1)
    return f"{date} {time[:5]}"


def format_product(product: Product) -> str:
    vendor = f" [{product.vendor_id}]" if product.vendor_id else ""
    stock = f" stock={product.stock}" if product.stock is not None else ""
    return f"{str(product.id):>4}  {product.name} {format_money(product.price)}{vendor}{stock}"


def format_vendor(vendor: Vendor) -> str:
    state = "verified" if vendor.is_verified else "pending"
    categories = ", ".join(vendor.categories)
    return f"{vendor.id:<10}  {vendor.name} ({state}) rating={vendor.rating:.1f}  {categories}".rstrip()


def format_order(order: Order, verbose: bool = False) -> str:
    """Format an order for display."""
    items = sum(item.quantity for item in order.items)
    result = (
        f"{order.id}  {format_timestamp(order.date)}  {order.status.display_name:<10} "
        f"{format_money(order.total):>10}  {items} item(s)"
    )
    if order.user_id:
        result += f"  user={order.user_id}"

    if verbose:
        result += f"\n         Ship to: {order.address}"
        result += f"\n         Phone: {order.phone_number}  Payment: {order.payment_method}"
        for item in order.items:
            result += (
                f"\n           | {item.quantity} x {truncate(item.name, 40)} "
                f"@ {format_money(item.price)}"
            )
        result += f"\n         Delivery fee: {format_money(order.delivery_fee)}"

    return result


def format_vendor_order(view: VendorOrderView) -> str:
    return (
        f"{view.order_id}  {format_timestamp(view.date)}  {view.status.display_name:<10} "
        f"{format_money(view.total):>10}  {view.item_count} product(s)  {view.customer}"
    )


def format_notification(notification: Notification) -> str:
    marker = " " if notification.is_read else "*"
    return (
        f"{marker} {notification.id[:8]}  {format_timestamp(notification.timestamp)}  "
        f"{notification.title}: {truncate(notification.message, 70)}"
    )
