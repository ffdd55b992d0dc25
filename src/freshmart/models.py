"""Data models for freshmart."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Union
import uuid

ProductId = Union[int, str]


def _utc_now() -> str:
    """Return current UTC time as ISO 8601 string."""
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def _generate_id() -> str:
    """Generate a new record ID."""
    return str(uuid.uuid4())


def _money(value: float) -> float:
    return round(value, 2)


# Catalog


@dataclass
class Product:
    """A catalog product. Orders embed snapshots, never references."""

    id: ProductId
    name: str
    price: float
    image: str = ""
    category: str = ""
    organic: bool = False
    rating: float = 0.0
    description: str | None = None
    vendor_id: str | None = None
    stock: int | None = None
    sku: str | None = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "price": self.price,
            "image": self.image,
            "category": self.category,
            "organic": self.organic,
            "rating": self.rating,
        }
        if self.description is not None:
            result["description"] = self.description
        if self.vendor_id is not None:
            result["vendorId"] = self.vendor_id
        if self.stock is not None:
            result["stock"] = self.stock
        if self.sku is not None:
            result["sku"] = self.sku
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Product":
        return cls(
            id=data["id"],
            name=data["name"],
            price=float(data["price"]),
            image=data.get("image", ""),
            category=data.get("category", ""),
            organic=bool(data.get("organic", False)),
            rating=float(data.get("rating", 0.0)),
            description=data.get("description"),
            vendor_id=data.get("vendorId") or None,
            stock=data.get("stock"),
            sku=data.get("sku"),
        )


@dataclass
class CartItem:
    """A product line in the active session's cart."""

    product: Product
    quantity: int = 1

    @property
    def product_id(self) -> ProductId:
        return self.product.id

    @property
    def subtotal(self) -> float:
        return self.product.price * self.quantity

    def to_dict(self) -> dict[str, Any]:
        result = self.product.to_dict()
        result["quantity"] = self.quantity
        return result


# Orders


class OrderStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"

    @property
    def rank(self) -> int:
        return STATUS_SEQUENCE.index(self)

    @property
    def display_name(self) -> str:
        return self.value.capitalize()


STATUS_SEQUENCE = [
    OrderStatus.PENDING,
    OrderStatus.PROCESSING,
    OrderStatus.SHIPPED,
    OrderStatus.DELIVERED,
]

# Forward moves only; skipping ahead is allowed, delivered is terminal.
STATUS_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    status: frozenset(STATUS_SEQUENCE[i + 1:]) for i, status in enumerate(STATUS_SEQUENCE)
}


@dataclass
class OrderItem:
    """Frozen snapshot of a cart line at checkout time."""

    id: ProductId
    name: str
    price: float
    quantity: int
    image: str = ""

    @property
    def subtotal(self) -> float:
        return self.price * self.quantity

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "price": self.price,
            "quantity": self.quantity,
            "image": self.image,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "OrderItem":
        return cls(
            id=data["id"],
            name=data["name"],
            price=float(data["price"]),
            quantity=int(data["quantity"]),
            image=data.get("image", ""),
        )

    @classmethod
    def snapshot(cls, item: CartItem) -> "OrderItem":
        return cls(
            id=item.product.id,
            name=item.product.name,
            price=item.product.price,
            quantity=item.quantity,
            image=item.product.image,
        )


@dataclass
class Order:
    """A placed order. Only `status` changes after creation."""

    id: str
    date: str
    items: list[OrderItem]
    total: float
    status: OrderStatus
    address: str
    phone_number: str
    payment_method: str
    user_id: str | None = None
    delivery_fee: float = 0.0

    @property
    def subtotal(self) -> float:
        return _money(sum(item.subtotal for item in self.items))

    @property
    def label(self) -> str:
        return f"#{self.id}"

    @property
    def customer_name(self) -> str:
        return self.address.split(",")[0].strip() or "Customer"

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "id": self.id,
            "date": self.date,
            "items": [item.to_dict() for item in self.items],
            "total": self.total,
            "deliveryFee": self.delivery_fee,
            "status": self.status.value,
            "address": self.address,
            "phoneNumber": self.phone_number,
            "paymentMethod": self.payment_method,
        }
        if self.user_id is not None:
            result["userId"] = self.user_id
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Order":
        items = [OrderItem.from_dict(i) for i in data.get("items", [])]
        total = float(data["total"])
        # Orders written before the fee was stored carry it only implicitly.
        fee = data.get("deliveryFee")
        if fee is None:
            fee = _money(total - sum(i.subtotal for i in items))
        return cls(
            id=data["id"],
            date=data.get("date", ""),
            items=items,
            total=total,
            status=OrderStatus(data.get("status", "pending")),
            address=data.get("address", ""),
            phone_number=data.get("phoneNumber", ""),
            payment_method=data.get("paymentMethod", ""),
            user_id=data.get("userId") or None,
            delivery_fee=float(fee),
        )


# Notifications


class NotificationType(str, Enum):
    ORDER_PLACED = "order_placed"
    ORDER_STATUS = "order_status"
    GENERAL = "general"


ADMIN_LEDGER = "adminNotifications"
VENDOR_LEDGER = "vendorNotifications"
USER_LEDGER = "userNotifications"


@dataclass(frozen=True)
class Audience:
    """Who a notification is for: the admin, one vendor, or a user.

    A user audience without a user_id is visible to every user.
    """

    kind: str  # "admin" | "vendor" | "user"
    vendor_id: str | None = None
    user_id: str | None = None

    def __post_init__(self) -> None:
        if self.kind not in ("admin", "vendor", "user"):
            raise ValueError(f"Unknown audience kind: {self.kind}")
        if self.kind == "vendor" and not self.vendor_id:
            raise ValueError("Vendor audience requires a vendor_id")

    @classmethod
    def admin(cls) -> "Audience":
        return cls(kind="admin")

    @classmethod
    def vendor(cls, vendor_id: str, user_id: str | None = None) -> "Audience":
        return cls(kind="vendor", vendor_id=vendor_id, user_id=user_id)

    @classmethod
    def user(cls, user_id: str | None = None) -> "Audience":
        return cls(kind="user", user_id=user_id)

    @property
    def ledger_key(self) -> str:
        if self.kind == "admin":
            return ADMIN_LEDGER
        if self.kind == "vendor":
            return VENDOR_LEDGER
        return USER_LEDGER

    def to_fields(self) -> dict[str, Any]:
        """Flatten into the stored forAdmin/forVendor/vendorId/userId fields."""
        result: dict[str, Any] = {"forAdmin": self.kind == "admin"}
        if self.kind == "vendor":
            result["forVendor"] = True
            result["vendorId"] = self.vendor_id
        if self.user_id is not None:
            result["userId"] = self.user_id
        return result

    @classmethod
    def from_fields(cls, data: dict[str, Any]) -> "Audience":
        user_id = data.get("userId") or None
        if data.get("forAdmin"):
            return cls.admin()
        if data.get("forVendor"):
            return cls.vendor(data.get("vendorId"), user_id=user_id)
        return cls.user(user_id)


@dataclass
class Notification:
    """A single read/unread record in one audience's ledger."""

    id: str
    title: str
    message: str
    type: NotificationType
    audience: Audience
    timestamp: str = field(default_factory=_utc_now)
    is_read: bool = False
    order_id: str | None = None
    product_id: ProductId | None = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "id": self.id,
            "title": self.title,
            "message": self.message,
            "timestamp": self.timestamp,
            "isRead": self.is_read,
            "type": self.type.value,
        }
        if self.order_id is not None:
            result["orderId"] = self.order_id
        if self.product_id is not None:
            result["productId"] = self.product_id
        result.update(self.audience.to_fields())
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Notification":
        return cls(
            id=data["id"],
            title=data.get("title", ""),
            message=data.get("message", ""),
            type=NotificationType(data.get("type", "general")),
            audience=Audience.from_fields(data),
            timestamp=data.get("timestamp", ""),
            is_read=bool(data.get("isRead", False)),
            order_id=data.get("orderId"),
            product_id=data.get("productId"),
        )

    @classmethod
    def create(
        cls,
        title: str,
        message: str,
        type: NotificationType,
        audience: Audience,
        order_id: str | None = None,
        product_id: ProductId | None = None,
    ) -> "Notification":
        """Create a new unread notification with generated ID and timestamp."""
        return cls(
            id=_generate_id(),
            title=title,
            message=message,
            type=type,
            audience=audience,
            timestamp=_utc_now(),
            is_read=False,
            order_id=order_id,
            product_id=product_id,
        )


# Sessions and checkout input


@dataclass(frozen=True)
class Session:
    """Who is acting: replaces the app-wide isLoggedIn/isAdmin/isVendor flags."""

    user_id: str | None = None
    is_logged_in: bool = False
    is_admin: bool = False
    is_vendor: bool = False
    vendor_id: str | None = None

    @classmethod
    def guest(cls) -> "Session":
        return cls()

    @classmethod
    def customer(cls, user_id: str | None) -> "Session":
        return cls(user_id=user_id, is_logged_in=True)

    @classmethod
    def admin(cls, user_id: str | None = None) -> "Session":
        return cls(user_id=user_id, is_logged_in=True, is_admin=True)

    @classmethod
    def vendor(cls, vendor_id: str, user_id: str | None = None) -> "Session":
        return cls(user_id=user_id, is_logged_in=True, is_vendor=True, vendor_id=vendor_id)

    @property
    def role(self) -> str:
        if self.is_admin:
            return "admin"
        if self.is_vendor:
            return "vendor"
        if self.is_logged_in:
            return "customer"
        return "guest"


@dataclass
class ShippingForm:
    full_name: str = ""
    phone_number: str = ""
    address: str = ""
    city: str = ""
    state: str = ""
    pincode: str = ""

    def full_address(self) -> str:
        return f"{self.address}, {self.city}, {self.state}, {self.pincode}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "fullName": self.full_name,
            "phoneNumber": self.phone_number,
            "address": self.address,
            "city": self.city,
            "state": self.state,
            "pincode": self.pincode,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ShippingForm":
        return cls(
            full_name=data.get("fullName", ""),
            phone_number=data.get("phoneNumber", ""),
            address=data.get("address", ""),
            city=data.get("city", ""),
            state=data.get("state", ""),
            pincode=data.get("pincode", ""),
        )


@dataclass
class Address:
    """A saved delivery address."""

    id: str
    full_name: str
    phone_number: str
    address: str
    city: str
    state: str
    pincode: str
    name: str = ""  # e.g. "Home", "Work"
    is_default: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "fullName": self.full_name,
            "phoneNumber": self.phone_number,
            "address": self.address,
            "city": self.city,
            "state": self.state,
            "pincode": self.pincode,
            "isDefault": self.is_default,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Address":
        return cls(
            id=data["id"],
            name=data.get("name", ""),
            full_name=data.get("fullName", ""),
            phone_number=data.get("phoneNumber", ""),
            address=data.get("address", ""),
            city=data.get("city", ""),
            state=data.get("state", ""),
            pincode=data.get("pincode", ""),
            is_default=bool(data.get("isDefault", False)),
        )

    def to_shipping_form(self) -> ShippingForm:
        return ShippingForm(
            full_name=self.full_name,
            phone_number=self.phone_number,
            address=self.address,
            city=self.city,
            state=self.state,
            pincode=self.pincode,
        )


# Vendors


@dataclass
class Vendor:
    """A registered seller. Only verified vendors are listed to shoppers."""

    id: str
    name: str
    email: str = ""
    phone: str = ""
    logo: str = ""
    address: str = ""
    description: str = ""
    rating: float = 0.0
    is_verified: bool = False
    join_date: str = field(default_factory=_utc_now)
    categories: list[str] = field(default_factory=list)
    bank_details: dict[str, str] | None = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "logo": self.logo,
            "address": self.address,
            "description": self.description,
            "rating": self.rating,
            "isVerified": self.is_verified,
            "joinDate": self.join_date,
            "categories": list(self.categories),
        }
        if self.bank_details is not None:
            result["bankDetails"] = dict(self.bank_details)
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Vendor":
        return cls(
            id=data["id"],
            name=data["name"],
            email=data.get("email", ""),
            phone=data.get("phone", ""),
            logo=data.get("logo", ""),
            address=data.get("address", ""),
            description=data.get("description", ""),
            rating=float(data.get("rating", 0.0)),
            is_verified=bool(data.get("isVerified", False)),
            join_date=data.get("joinDate") or _utc_now(),
            categories=list(data.get("categories", [])),
            bank_details=data.get("bankDetails"),
        )
