"""Checkout: turn a cart into a placed order."""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING

from .cart import Cart
from .catalog import ProductCatalog
from .errors import FreshmartError, ValidationError
from .fanout import order_placed_notifications, publish
from .models import Order, OrderItem, OrderStatus, Session, ShippingForm, _money, _utc_now
from .notification_store import NotificationStore
from .order_store import OrderStore

if TYPE_CHECKING:
    from .address_book import AddressBook

logger = logging.getLogger(__name__)

DELIVERY_FEES = {
    "standard": 2.99,
    "express": 5.99,
}

PAYMENT_METHODS = {
    "cod": "Cash on Delivery",
    "online": "Online Payment",
}

REQUIRED_FIELDS = ("full_name", "phone_number", "address", "city", "state", "pincode")

_PHONE = re.compile(r"^\d{10}$")
_PINCODE = re.compile(r"^\d{6}$")


def validate_required_fields(form) -> None:
    """
    Raises:
        ValidationError: If any of the six address fields is blank.
    """
    for name in REQUIRED_FIELDS:
        value = getattr(form, name, "") or ""
        if not value.strip():
            raise ValidationError("Please fill in all required fields", field=name)


def validate_shipping_form(form: ShippingForm) -> None:
    """
    Check a shipping form before anything is saved.

    Raises:
        ValidationError: With the message to show the user. The same input
            always fails the same way.
    """
    validate_required_fields(form)
    if not _PHONE.match(form.phone_number):
        raise ValidationError("Please enter a valid 10-digit phone number", field="phone_number")
    if not _PINCODE.match(form.pincode):
        raise ValidationError("Please enter a valid 6-digit pincode", field="pincode")


def delivery_fee(method: str) -> float:
    """
    Raises:
        ValidationError: If the delivery method is unknown.
    """
    try:
        return DELIVERY_FEES[method]
    except KeyError:
        raise ValidationError(f"Unknown delivery method: {method}", field="delivery_method") from None


def payment_method_label(method: str) -> str:
    try:
        return PAYMENT_METHODS[method]
    except KeyError:
        raise ValidationError(f"Unknown payment method: {method}", field="payment_method") from None


def prefill_shipping_form(address_book: AddressBook) -> ShippingForm:
    """Start the checkout form from the default saved address, if any."""
    default = address_book.default()
    if default is None:
        return ShippingForm()
    return default.to_shipping_form()


class CheckoutService:
    """Places orders and announces them."""

    def __init__(
        self,
        orders: OrderStore,
        notifications: NotificationStore,
        catalog: ProductCatalog,
    ):
        self.orders = orders
        self.notifications = notifications
        self.catalog = catalog

    def build_order(
        self,
        session: Session,
        cart: Cart,
        form: ShippingForm,
        payment_method: str,
        delivery_method: str,
    ) -> Order:
        """Validate the input and build the order without saving it."""
        validate_shipping_form(form)
        if cart.is_empty():
            raise ValidationError("Your cart is empty", field="cart")
        fee = delivery_fee(delivery_method)
        payment = payment_method_label(payment_method)

        items = [OrderItem.snapshot(item) for item in cart.items]
        subtotal = sum(item.subtotal for item in items)
        return Order(
            id=self.orders.new_order_id(),
            date=_utc_now(),
            items=items,
            total=_money(subtotal + fee),
            status=OrderStatus.PENDING,
            address=form.full_address(),
            phone_number=form.phone_number,
            payment_method=payment,
            user_id=session.user_id,
            delivery_fee=fee,
        )

    def place_order(
        self,
        session: Session,
        cart: Cart,
        form: ShippingForm,
        payment_method: str = "cod",
        delivery_method: str = "standard",
    ) -> Order:
        """
        Validate, save, announce, then empty the cart.

        Returns:
            The saved order (status pending).

        Raises:
            ValidationError: If the form, cart or methods are invalid.
                Nothing is saved.
            StorageReadError, StorageWriteError: If the order can't be saved.
                The cart is left as it was so the user can retry.
        """
        order = self.build_order(session, cart, form, payment_method, delivery_method)
        purchased = cart.snapshot()

        order = self.orders.add_order(order)

        # The order stands even if some ledger can't be written.
        try:
            publish(order_placed_notifications(order, purchased, self.catalog), self.notifications)
        except FreshmartError as e:
            logger.error("Order %s saved but notifications failed: %s", order.id, e)

        cart.clear_cart()
        return order
