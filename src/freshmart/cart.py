"""Shopping cart for freshmart."""

import logging
from typing import Callable

from .models import CartItem, Product, ProductId, Session

logger = logging.getLogger(__name__)


class Cart:
    """
    The active session's cart. Lives in memory only.

    The cart is emptied by ``clear_cart``, which checkout calls after an
    order has been saved.
    """

    def __init__(self, session: Session):
        self.session = session
        self.items: list[CartItem] = []

    def _find(self, product_id: ProductId) -> CartItem | None:
        for item in self.items:
            if item.product_id == product_id:
                return item
        return None

    def add_to_cart(
        self,
        product: Product,
        on_login_required: Callable[[], None] | None = None,
    ) -> bool:
        """
        Add one unit of a product.

        Guests can't add to the cart: ``on_login_required`` is called (the
        caller's redirect to login) and the cart is left untouched.

        Returns:
            True if the cart changed.
        """
        if not self.session.is_logged_in:
            logger.info("Add to cart refused for guest session (product %s)", product.id)
            if on_login_required is not None:
                on_login_required()
            return False

        existing = self._find(product.id)
        if existing is not None:
            existing.quantity += 1
        else:
            self.items.append(CartItem(product=product, quantity=1))
        return True

    def update_quantity(self, product_id: ProductId, new_quantity: int) -> None:
        """Set a line's quantity. Anything below 1 removes the line."""
        if new_quantity < 1:
            self.remove_from_cart(product_id)
            return
        item = self._find(product_id)
        if item is not None:
            item.quantity = new_quantity

    def remove_from_cart(self, product_id: ProductId) -> None:
        self.items = [item for item in self.items if item.product_id != product_id]

    def clear_cart(self) -> None:
        self.items = []

    def get_total_price(self) -> float:
        return sum(item.subtotal for item in self.items)

    def get_total_items(self) -> int:
        return sum(item.quantity for item in self.items)

    def is_empty(self) -> bool:
        return not self.items

    def snapshot(self) -> list[CartItem]:
        """Copy of the current lines, safe to keep after the cart changes."""
        return [CartItem(product=item.product, quantity=item.quantity) for item in self.items]


class CartRegistry:
    """One cart per signed-in user, for servers that host many sessions."""

    def __init__(self) -> None:
        self._carts: dict[str, Cart] = {}

    def cart_for(self, session: Session) -> Cart:
        key = session.user_id or ""
        cart = self._carts.get(key)
        if cart is None:
            cart = Cart(session)
            self._carts[key] = cart
        else:
            cart.session = session
        return cart

    def discard(self, session: Session) -> None:
        self._carts.pop(session.user_id or "", None)
