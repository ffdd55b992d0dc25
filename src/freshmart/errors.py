"""Custom exceptions for freshmart."""


class FreshmartError(Exception):
    """Base exception for all freshmart errors."""

    pass


class ValidationError(FreshmartError):
    """Raised when user input (checkout form, address) is malformed."""

    def __init__(self, reason: str, field: str | None = None):
        self.reason = reason
        self.field = field
        super().__init__(reason)


class StorageReadError(FreshmartError):
    """Raised when the persisted store cannot be read or decoded."""

    def __init__(self, key: str, reason: str):
        self.key = key
        self.reason = reason
        super().__init__(f"Failed to read '{key}': {reason}")


class StorageWriteError(FreshmartError):
    """Raised when the persisted store cannot be written."""

    def __init__(self, key: str, reason: str):
        self.key = key
        self.reason = reason
        super().__init__(f"Failed to save '{key}': {reason}")


class OrderNotFoundError(FreshmartError):
    """Raised when an order ID doesn't exist."""

    def __init__(self, order_id: str):
        self.order_id = order_id
        super().__init__(f"Order not found: {order_id}")


class ProductNotFoundError(FreshmartError):
    """Raised when a product ID doesn't exist in the catalog."""

    def __init__(self, product_id):
        self.product_id = product_id
        super().__init__(f"Product not found: {product_id}")


class NotificationNotFoundError(FreshmartError):
    """Raised when a notification ID doesn't exist in its ledger."""

    def __init__(self, notification_id: str):
        self.notification_id = notification_id
        super().__init__(f"Notification not found: {notification_id}")


class AddressNotFoundError(FreshmartError):
    """Raised when a saved address ID doesn't exist."""

    def __init__(self, address_id: str):
        self.address_id = address_id
        super().__init__(f"Address not found: {address_id}")


class InvalidStatusError(FreshmartError):
    """Raised when a status string is not a known order status."""

    def __init__(self, status: str):
        self.status = status
        super().__init__(
            f"Invalid order status '{status}'. "
            "Expected one of: pending, processing, shipped, delivered."
        )


class InvalidStatusTransitionError(FreshmartError):
    """Raised when an order status change is not allowed."""

    def __init__(self, current: str, target: str):
        self.current = current
        self.target = target
        super().__init__(f"Cannot move order from '{current}' to '{target}'")


class NotAuthorizedError(FreshmartError):
    """Raised when the acting session lacks the role an operation needs."""

    def __init__(self, action: str, reason: str | None = None):
        self.action = action
        msg = f"Not authorized to {action}"
        if reason:
            msg = f"{msg} ({reason})"
        super().__init__(msg)


class VendorNotFoundError(FreshmartError):
    """Raised when a vendor ID isn't in the vendor registry."""

    def __init__(self, vendor_id: str):
        self.vendor_id = vendor_id
        super().__init__(f"Vendor not found: {vendor_id}")
