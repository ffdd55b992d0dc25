"""Customer, admin and vendor views over the same order records.

Every view is computed from the stored orders on demand, so a status
change made from one dashboard shows up in the others on their next read.
"""

from dataclasses import dataclass, field
from typing import Any

from .catalog import ProductCatalog
from .models import STATUS_SEQUENCE, Order, OrderItem, OrderStatus, Product, ProductId, _money


# Customer


def customer_orders(orders: list[Order], user_id: str | None) -> list[Order]:
    """
    Orders placed by ``user_id``, newest first.

    Orders without an owner are shown only to sessions without a user ID.
    """
    mine = [o for o in orders if o.user_id == user_id]
    return sorted(mine, key=lambda o: o.date, reverse=True)


# Admin


def filter_by_status(orders: list[Order], status: OrderStatus | None = None) -> list[Order]:
    """Orders with ``status`` (all orders when None), newest first."""
    selected = orders if status is None else [o for o in orders if o.status == status]
    return sorted(selected, key=lambda o: o.date, reverse=True)


def status_counts(orders: list[Order]) -> dict[str, int]:
    counts = {status.value: 0 for status in STATUS_SEQUENCE}
    for order in orders:
        counts[order.status.value] += 1
    counts["all"] = len(orders)
    return counts


# Vendor


@dataclass
class VendorOrderView:
    """One order as a vendor sees it: only that vendor's lines and subtotal."""

    order_id: str
    customer: str
    date: str
    status: OrderStatus
    total: float
    address: str
    payment_method: str
    items: list[OrderItem] = field(default_factory=list)

    @property
    def item_count(self) -> int:
        return len(self.items)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.order_id,
            "customer": self.customer,
            "date": self.date,
            "status": self.status.value,
            "total": self.total,
            "items": self.item_count,
            "address": self.address,
            "products": [item.to_dict() for item in self.items],
            "paymentMethod": self.payment_method,
        }


def vendor_lines(
    order: Order, vendor_id: str, live: dict[ProductId, Product]
) -> list[OrderItem]:
    """Lines of ``order`` whose product currently belongs to ``vendor_id``."""
    return [
        item for item in order.items
        if item.id in live and live[item.id].vendor_id == vendor_id
    ]


def live_products(catalog: ProductCatalog) -> dict[ProductId, Product]:
    return {p.id: p for p in catalog.list_products()}


def vendor_orders(
    orders: list[Order], catalog: ProductCatalog, vendor_id: str
) -> list[VendorOrderView]:
    """Orders containing at least one of the vendor's products."""
    live = live_products(catalog)
    views = []
    for order in orders:
        lines = vendor_lines(order, vendor_id, live)
        if not lines:
            continue
        views.append(
            VendorOrderView(
                order_id=order.id,
                customer=order.customer_name,
                date=order.date,
                status=order.status,
                total=_money(sum(item.subtotal for item in lines)),
                address=order.address,
                payment_method=order.payment_method,
                items=lines,
            )
        )
    return views


VENDOR_SORT_KEYS = {
    "date": lambda v: v.date,
    "total": lambda v: v.total,
    "status": lambda v: v.status.rank,
}


def sort_vendor_orders(
    views: list[VendorOrderView], by: str = "date", descending: bool = True
) -> list[VendorOrderView]:
    try:
        key = VENDOR_SORT_KEYS[by]
    except KeyError:
        raise ValueError(f"Cannot sort by {by!r}; expected date, total or status") from None
    return sorted(views, key=key, reverse=descending)


def search_vendor_orders(views: list[VendorOrderView], query: str) -> list[VendorOrderView]:
    """Match on customer name or order ID, case-insensitive."""
    needle = query.lower()
    return [v for v in views if needle in v.customer.lower() or needle in v.order_id.lower()]


def vendor_sales_summary(views: list[VendorOrderView]) -> dict[str, Any]:
    by_status = {status.value: 0 for status in STATUS_SEQUENCE}
    for view in views:
        by_status[view.status.value] += 1
    return {
        "orderCount": len(views),
        "revenue": _money(sum(v.total for v in views)),
        "itemsSold": sum(item.quantity for v in views for item in v.items),
        "byStatus": by_status,
    }
