"""FastAPI REST API for the freshmart buyer app, admin console and vendor console."""

from typing import Optional, Union

from fastapi import Depends, FastAPI, Header, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from . import __version__
from .checkout import prefill_shipping_form
from .dashboards import (
    VendorOrderView,
    customer_orders,
    filter_by_status,
    live_products,
    search_vendor_orders,
    sort_vendor_orders,
    status_counts,
    vendor_lines,
    vendor_orders,
    vendor_sales_summary,
)
from .errors import (
    AddressNotFoundError,
    FreshmartError,
    InvalidStatusError,
    InvalidStatusTransitionError,
    NotAuthorizedError,
    NotificationNotFoundError,
    OrderNotFoundError,
    ProductNotFoundError,
    StorageReadError,
    StorageWriteError,
    ValidationError,
    VendorNotFoundError,
)
from .marketplace import Marketplace
from .models import Address, CartItem, Notification, Order, Product, Session, ShippingForm, Vendor
from .status_updater import parse_status


# --- Pydantic Schemas ---


class ProductSchema(BaseModel):
    id: Union[int, str]
    name: str
    price: float
    image: str = ""
    category: str = ""
    organic: bool = False
    rating: float = 0.0
    description: Optional[str] = None
    vendor_id: Optional[str] = None
    stock: Optional[int] = None
    sku: Optional[str] = None


class ProductCreateRequest(BaseModel):
    name: str
    price: float = Field(..., ge=0)
    image: str = ""
    category: str = ""
    organic: bool = False
    rating: float = 0.0
    description: Optional[str] = None
    vendor_id: Optional[str] = Field(None, description="Ignored for vendor sessions")
    stock: Optional[int] = Field(None, ge=0)
    sku: Optional[str] = None


class ProductUpdateRequest(BaseModel):
    name: Optional[str] = None
    price: Optional[float] = Field(None, ge=0)
    image: Optional[str] = None
    category: Optional[str] = None
    organic: Optional[bool] = None
    description: Optional[str] = None
    stock: Optional[int] = Field(None, ge=0)


class ProductListResponse(BaseModel):
    products: list[ProductSchema]
    count: int


class CartItemSchema(BaseModel):
    product: ProductSchema
    quantity: int
    subtotal: float


class CartResponse(BaseModel):
    items: list[CartItemSchema]
    total_items: int
    total_price: float


class CartAddRequest(BaseModel):
    product_id: Union[int, str]


class CartQuantityRequest(BaseModel):
    quantity: int


class ShippingFormSchema(BaseModel):
    full_name: str = ""
    phone_number: str = ""
    address: str = ""
    city: str = ""
    state: str = ""
    pincode: str = ""


class CheckoutRequest(BaseModel):
    shipping: ShippingFormSchema
    payment_method: str = Field(default="cod", description="'cod' or 'online'")
    delivery_method: str = Field(default="standard", description="'standard' or 'express'")


class OrderItemSchema(BaseModel):
    id: Union[int, str]
    name: str
    price: float
    quantity: int
    image: str = ""


class OrderSchema(BaseModel):
    id: str
    date: str
    items: list[OrderItemSchema]
    total: float
    delivery_fee: float
    status: str
    address: str
    phone_number: str
    payment_method: str
    user_id: Optional[str] = None


class OrderListResponse(BaseModel):
    orders: list[OrderSchema]
    count: int


class StatusUpdateRequest(BaseModel):
    status: str = Field(..., description="pending | processing | shipped | delivered")


class StatusUpdateResponse(BaseModel):
    order: OrderSchema
    notification_id: str


class VendorOrderSchema(BaseModel):
    id: str
    customer: str
    date: str
    status: str
    total: float
    item_count: int
    address: str
    payment_method: str
    products: list[OrderItemSchema]


class VendorOrderListResponse(BaseModel):
    orders: list[VendorOrderSchema]
    count: int


class NotificationSchema(BaseModel):
    id: str
    title: str
    message: str
    timestamp: str
    is_read: bool
    type: str
    audience: str
    order_id: Optional[str] = None
    vendor_id: Optional[str] = None
    user_id: Optional[str] = None


class NotificationListResponse(BaseModel):
    notifications: list[NotificationSchema]
    count: int
    unread_count: int


class AddressSchema(BaseModel):
    id: str
    name: str = ""
    full_name: str
    phone_number: str
    address: str
    city: str
    state: str
    pincode: str
    is_default: bool = False


class AddressRequest(BaseModel):
    name: str = ""
    full_name: str = ""
    phone_number: str = ""
    address: str = ""
    city: str = ""
    state: str = ""
    pincode: str = ""
    is_default: bool = False


class BankDetailsSchema(BaseModel):
    account_name: str = ""
    account_number: str = ""
    bank_name: str = ""
    ifsc_code: str = ""


class VendorSchema(BaseModel):
    id: str
    name: str
    email: str = ""
    phone: str = ""
    logo: str = ""
    address: str = ""
    description: str = ""
    rating: float = 0.0
    is_verified: bool = False
    join_date: str = ""
    categories: list[str] = []
    bank_details: Optional[BankDetailsSchema] = None


class VendorCreateRequest(BaseModel):
    name: str
    email: str = ""
    phone: str = ""
    logo: str = ""
    address: str = ""
    description: str = ""
    rating: float = Field(default=0.0, ge=0, le=5)
    is_verified: bool = False
    categories: list[str] = []
    bank_details: Optional[BankDetailsSchema] = None


class VendorUpdateRequest(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    logo: Optional[str] = None
    address: Optional[str] = None
    description: Optional[str] = None
    rating: Optional[float] = Field(None, ge=0, le=5)
    is_verified: Optional[bool] = Field(None, description="Admin only")
    categories: Optional[list[str]] = None
    bank_details: Optional[BankDetailsSchema] = None


class VendorListResponse(BaseModel):
    vendors: list[VendorSchema]
    count: int


class ErrorResponse(BaseModel):
    detail: str
    error_type: str


# --- Helper Functions ---


_marketplace: Optional[Marketplace] = None


def get_marketplace() -> Marketplace:
    """Get the global Marketplace."""
    global _marketplace
    if _marketplace is None:
        _marketplace = Marketplace.open()
    return _marketplace


def get_session(
    x_user_id: Optional[str] = Header(default=None),
    x_role: str = Header(default="guest"),
    x_vendor_id: Optional[str] = Header(default=None),
) -> Session:
    """Build the acting session from request headers."""
    role = x_role.lower()
    if role == "admin":
        return Session.admin(x_user_id)
    if role == "vendor":
        if not x_vendor_id:
            raise HTTPException(status_code=400, detail="X-Vendor-Id header required for vendors")
        return Session.vendor(x_vendor_id, x_user_id)
    if role == "customer":
        return Session.customer(x_user_id)
    return Session.guest()


def parse_product_id(raw: str) -> Union[int, str]:
    """Path segments are strings; catalog IDs are usually integers."""
    return int(raw) if raw.isdigit() else raw


def product_to_schema(product: Product) -> ProductSchema:
    return ProductSchema(
        id=product.id,
        name=product.name,
        price=product.price,
        image=product.image,
        category=product.category,
        organic=product.organic,
        rating=product.rating,
        description=product.description,
        vendor_id=product.vendor_id,
        stock=product.stock,
        sku=product.sku,
    )


def cart_item_to_schema(item: CartItem) -> CartItemSchema:
    return CartItemSchema(
        product=product_to_schema(item.product),
        quantity=item.quantity,
        subtotal=round(item.subtotal, 2),
    )


def order_to_schema(order: Order) -> OrderSchema:
    return OrderSchema(
        id=order.id,
        date=order.date,
        items=[OrderItemSchema(**item.to_dict()) for item in order.items],
        total=order.total,
        delivery_fee=order.delivery_fee,
        status=order.status.value,
        address=order.address,
        phone_number=order.phone_number,
        payment_method=order.payment_method,
        user_id=order.user_id,
    )


def vendor_order_to_schema(view: VendorOrderView) -> VendorOrderSchema:
    return VendorOrderSchema(
        id=view.order_id,
        customer=view.customer,
        date=view.date,
        status=view.status.value,
        total=view.total,
        item_count=view.item_count,
        address=view.address,
        payment_method=view.payment_method,
        products=[OrderItemSchema(**item.to_dict()) for item in view.items],
    )


def notification_to_schema(notification: Notification) -> NotificationSchema:
    return NotificationSchema(
        id=notification.id,
        title=notification.title,
        message=notification.message,
        timestamp=notification.timestamp,
        is_read=notification.is_read,
        type=notification.type.value,
        audience=notification.audience.kind,
        order_id=notification.order_id,
        vendor_id=notification.audience.vendor_id,
        user_id=notification.audience.user_id,
    )


def address_to_schema(address: Address) -> AddressSchema:
    return AddressSchema(
        id=address.id,
        name=address.name,
        full_name=address.full_name,
        phone_number=address.phone_number,
        address=address.address,
        city=address.city,
        state=address.state,
        pincode=address.pincode,
        is_default=address.is_default,
    )


def address_request_to_dict(request: AddressRequest) -> dict:
    return {
        "name": request.name,
        "fullName": request.full_name,
        "phoneNumber": request.phone_number,
        "address": request.address,
        "city": request.city,
        "state": request.state,
        "pincode": request.pincode,
        "isDefault": request.is_default,
    }


_BANK_KEYS = {
    "account_name": "accountName",
    "account_number": "accountNumber",
    "bank_name": "bankName",
    "ifsc_code": "ifscCode",
}

_VENDOR_KEYS = {"is_verified": "isVerified", "bank_details": "bankDetails"}


def vendor_to_schema(vendor: Vendor) -> VendorSchema:
    bank = None
    if vendor.bank_details is not None:
        bank = BankDetailsSchema(
            **{field: vendor.bank_details.get(key, "") for field, key in _BANK_KEYS.items()}
        )
    return VendorSchema(
        id=vendor.id,
        name=vendor.name,
        email=vendor.email,
        phone=vendor.phone,
        logo=vendor.logo,
        address=vendor.address,
        description=vendor.description,
        rating=vendor.rating,
        is_verified=vendor.is_verified,
        join_date=vendor.join_date,
        categories=vendor.categories,
        bank_details=bank,
    )


def vendor_request_to_dict(request: Union[VendorCreateRequest, VendorUpdateRequest]) -> dict:
    """Stored (camelCase) keys for the fields the client actually sent."""
    data = {}
    for field, value in request.model_dump(exclude_unset=True).items():
        if value is None:
            continue
        if field == "bank_details":
            value = {_BANK_KEYS[k]: v for k, v in value.items()}
        data[_VENDOR_KEYS.get(field, field)] = value
    return data


def require_admin(session: Session, action: str = "view all orders") -> None:
    if not session.is_admin:
        raise NotAuthorizedError(action, "admin session required")


def require_vendor(session: Session) -> str:
    if not session.is_vendor or not session.vendor_id:
        raise NotAuthorizedError("use the vendor console", "vendor session required")
    return session.vendor_id


def require_login(session: Session, action: str) -> None:
    if not session.is_logged_in:
        raise NotAuthorizedError(action, "login required")


def can_view_order(session: Session, order: Order, market: Marketplace) -> bool:
    if session.is_admin:
        return True
    if session.is_vendor and session.vendor_id:
        return bool(vendor_lines(order, session.vendor_id, live_products(market.catalog)))
    return session.is_logged_in and order.user_id == session.user_id


# --- FastAPI App ---


app = FastAPI(
    title="freshmart API",
    description="Orders, carts and notifications for the grocery marketplace",
    version=__version__,
)

# CORS for local development
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:8081",
        "http://localhost:19006",
        "http://127.0.0.1:8081",
        "http://127.0.0.1:19006",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# --- Global Exception Handler ---


# Map exception types to HTTP status codes
ERROR_STATUS_CODES: dict[type, int] = {
    ValidationError: 400,
    InvalidStatusError: 400,
    InvalidStatusTransitionError: 409,
    NotAuthorizedError: 403,
    OrderNotFoundError: 404,
    ProductNotFoundError: 404,
    NotificationNotFoundError: 404,
    AddressNotFoundError: 404,
    VendorNotFoundError: 404,
    StorageReadError: 500,
    StorageWriteError: 500,
}


@app.exception_handler(FreshmartError)
async def freshmart_error_handler(request: Request, exc: FreshmartError) -> JSONResponse:
    """Map FreshmartError subclasses to appropriate HTTP responses."""
    status_code = ERROR_STATUS_CODES.get(type(exc), 500)
    content = {"detail": str(exc), "error_type": type(exc).__name__}
    if isinstance(exc, ValidationError) and exc.field:
        content["field"] = exc.field
    return JSONResponse(status_code=status_code, content=content)


# --- Endpoints ---


@app.get("/api/health")
def health_check(market: Marketplace = Depends(get_marketplace)):
    """Health check endpoint."""
    try:
        return {
            "status": "ok",
            "version": __version__,
            "product_count": len(market.catalog.list_products()),
            "order_count": len(market.orders.list_orders()),
        }
    except FreshmartError as e:
        return {
            "status": "error",
            "detail": str(e),
        }


# --- Product Endpoints ---


@app.get("/api/products", response_model=ProductListResponse)
def list_products(
    vendor_id: Optional[str] = Query(default=None),
    market: Marketplace = Depends(get_marketplace),
):
    """List the catalog, optionally for one vendor."""
    if vendor_id:
        products = market.catalog.products_by_vendor(vendor_id)
    else:
        products = market.catalog.list_products()
    return ProductListResponse(
        products=[product_to_schema(p) for p in products],
        count=len(products),
    )


@app.get("/api/products/{product_id}", response_model=ProductSchema)
def get_product(product_id: str, market: Marketplace = Depends(get_marketplace)):
    return product_to_schema(market.catalog.require_product(parse_product_id(product_id)))


@app.post("/api/products", response_model=ProductSchema, status_code=201)
def create_product(
    request: ProductCreateRequest,
    session: Session = Depends(get_session),
    market: Marketplace = Depends(get_marketplace),
):
    """Add a product. Vendors always add to their own store."""
    if session.is_vendor:
        vendor_id = session.vendor_id
    elif session.is_admin:
        vendor_id = request.vendor_id
    else:
        raise NotAuthorizedError("add products", "admin or vendor session required")

    product = Product(
        id=0,
        name=request.name,
        price=request.price,
        image=request.image,
        category=request.category,
        organic=request.organic,
        rating=request.rating,
        description=request.description,
        vendor_id=vendor_id,
        stock=request.stock,
        sku=request.sku,
    )
    data = product.to_dict()
    del data["id"]
    return product_to_schema(market.catalog.add_product(data))


def _editable_product(session: Session, product_id: str, market: Marketplace) -> Product:
    product = market.catalog.require_product(parse_product_id(product_id))
    if session.is_admin:
        return product
    if session.is_vendor and product.vendor_id == session.vendor_id:
        return product
    raise NotAuthorizedError("edit this product")


@app.patch("/api/products/{product_id}", response_model=ProductSchema)
def update_product(
    product_id: str,
    request: ProductUpdateRequest,
    session: Session = Depends(get_session),
    market: Marketplace = Depends(get_marketplace),
):
    product = _editable_product(session, product_id, market)
    patch = {k: v for k, v in request.model_dump(exclude_unset=True).items() if v is not None}
    return product_to_schema(market.catalog.update_product(product.id, patch))


@app.delete("/api/products/{product_id}", status_code=204)
def delete_product(
    product_id: str,
    session: Session = Depends(get_session),
    market: Marketplace = Depends(get_marketplace),
):
    """Delete a product. Placed orders keep their snapshot of it."""
    product = _editable_product(session, product_id, market)
    market.catalog.delete_product(product.id)


# --- Cart Endpoints ---


def _cart_response(session: Session, market: Marketplace) -> CartResponse:
    cart = market.carts.cart_for(session)
    return CartResponse(
        items=[cart_item_to_schema(item) for item in cart.items],
        total_items=cart.get_total_items(),
        total_price=round(cart.get_total_price(), 2),
    )


@app.get("/api/cart", response_model=CartResponse)
def get_cart(session: Session = Depends(get_session), market: Marketplace = Depends(get_marketplace)):
    return _cart_response(session, market)


@app.post("/api/cart/items", response_model=CartResponse)
def add_cart_item(
    request: CartAddRequest,
    session: Session = Depends(get_session),
    market: Marketplace = Depends(get_marketplace),
):
    """Add one unit. Guests get 401 so the client can send them to login."""
    product = market.catalog.require_product(parse_product_id(str(request.product_id)))
    cart = market.carts.cart_for(session)
    if not cart.add_to_cart(product):
        raise HTTPException(status_code=401, detail="Login required to add items to the cart")
    return _cart_response(session, market)


@app.patch("/api/cart/items/{product_id}", response_model=CartResponse)
def update_cart_item(
    product_id: str,
    request: CartQuantityRequest,
    session: Session = Depends(get_session),
    market: Marketplace = Depends(get_marketplace),
):
    market.carts.cart_for(session).update_quantity(parse_product_id(product_id), request.quantity)
    return _cart_response(session, market)


@app.delete("/api/cart/items/{product_id}", response_model=CartResponse)
def remove_cart_item(
    product_id: str,
    session: Session = Depends(get_session),
    market: Marketplace = Depends(get_marketplace),
):
    market.carts.cart_for(session).remove_from_cart(parse_product_id(product_id))
    return _cart_response(session, market)


@app.delete("/api/cart", response_model=CartResponse)
def clear_cart(session: Session = Depends(get_session), market: Marketplace = Depends(get_marketplace)):
    market.carts.cart_for(session).clear_cart()
    return _cart_response(session, market)


# --- Checkout Endpoints ---


@app.get("/api/checkout/prefill", response_model=ShippingFormSchema)
def checkout_prefill(market: Marketplace = Depends(get_marketplace)):
    """Shipping form pre-filled from the default saved address."""
    form = prefill_shipping_form(market.addresses)
    return ShippingFormSchema(**vars(form))


@app.post("/api/checkout", response_model=OrderSchema, status_code=201)
def checkout(
    request: CheckoutRequest,
    session: Session = Depends(get_session),
    market: Marketplace = Depends(get_marketplace),
):
    """Place an order from the session's cart."""
    require_login(session, "place an order")
    cart = market.carts.cart_for(session)
    form = ShippingForm(**request.shipping.model_dump())
    order = market.checkout.place_order(
        session, cart, form,
        payment_method=request.payment_method,
        delivery_method=request.delivery_method,
    )
    return order_to_schema(order)


# --- Order Endpoints ---


@app.get("/api/orders", response_model=OrderListResponse)
def list_orders(
    status: Optional[str] = Query(default=None),
    session: Session = Depends(get_session),
    market: Marketplace = Depends(get_marketplace),
):
    """
    Admins see every order (optionally one status); customers see their own.
    Vendors use /api/vendor/orders.
    """
    orders = market.orders.list_orders()
    if session.is_admin:
        orders = filter_by_status(orders, parse_status(status) if status else None)
    else:
        require_login(session, "view orders")
        orders = customer_orders(orders, session.user_id)
        if status:
            orders = filter_by_status(orders, parse_status(status))
    return OrderListResponse(orders=[order_to_schema(o) for o in orders], count=len(orders))


@app.get("/api/orders/counts")
def order_counts(session: Session = Depends(get_session), market: Marketplace = Depends(get_marketplace)):
    """Per-status order counts for the admin dashboard."""
    require_admin(session)
    return status_counts(market.orders.list_orders())


@app.get("/api/orders/{order_id}", response_model=OrderSchema)
def get_order(
    order_id: str,
    session: Session = Depends(get_session),
    market: Marketplace = Depends(get_marketplace),
):
    order = market.orders.get_order(order_id)
    if not can_view_order(session, order, market):
        raise OrderNotFoundError(order_id)
    return order_to_schema(order)


@app.patch("/api/orders/{order_id}/status", response_model=StatusUpdateResponse)
def update_order_status(
    order_id: str,
    request: StatusUpdateRequest,
    session: Session = Depends(get_session),
    market: Marketplace = Depends(get_marketplace),
):
    """Move an order forward and notify its customer."""
    order, notification = market.status_updater.update_order_status(
        session, order_id, request.status
    )
    return StatusUpdateResponse(order=order_to_schema(order), notification_id=notification.id)


@app.get("/api/vendor/orders", response_model=VendorOrderListResponse)
def list_vendor_orders(
    sort_by: str = Query(default="date", pattern="^(date|total|status)$"),
    descending: bool = Query(default=True),
    q: Optional[str] = Query(default=None, description="Search customer name or order ID"),
    session: Session = Depends(get_session),
    market: Marketplace = Depends(get_marketplace),
):
    """Orders containing the vendor's products, with only the vendor's lines."""
    vendor_id = require_vendor(session)
    views = vendor_orders(market.orders.list_orders(), market.catalog, vendor_id)
    if q:
        views = search_vendor_orders(views, q)
    views = sort_vendor_orders(views, by=sort_by, descending=descending)
    return VendorOrderListResponse(
        orders=[vendor_order_to_schema(v) for v in views],
        count=len(views),
    )


@app.get("/api/vendor/summary")
def vendor_summary(session: Session = Depends(get_session), market: Marketplace = Depends(get_marketplace)):
    vendor_id = require_vendor(session)
    return vendor_sales_summary(vendor_orders(market.orders.list_orders(), market.catalog, vendor_id))


# --- Notification Endpoints ---


@app.get("/api/notifications", response_model=NotificationListResponse)
def list_notifications(
    kind: Optional[str] = Query(default=None, alias="type", description="'order' or 'general'"),
    session: Session = Depends(get_session),
    market: Marketplace = Depends(get_marketplace),
):
    """The session's notifications: admin ledger, own vendor records, or own user records."""
    notifications = market.notifications.visible_to(session)
    unread = sum(1 for n in notifications if not n.is_read)
    if kind == "order":
        notifications = [n for n in notifications if n.type.value.startswith("order")]
    elif kind == "general":
        notifications = [n for n in notifications if n.type.value == "general"]
    return NotificationListResponse(
        notifications=[notification_to_schema(n) for n in notifications],
        count=len(notifications),
        unread_count=unread,
    )


@app.get("/api/notifications/unread-count")
def notifications_unread_count(
    session: Session = Depends(get_session),
    market: Marketplace = Depends(get_marketplace),
):
    return {"unread_count": market.notifications.unread_count_for(session)}


@app.post("/api/notifications/read-all")
def mark_all_notifications_read(
    session: Session = Depends(get_session),
    market: Marketplace = Depends(get_marketplace),
):
    require_login(session, "mark notifications as read")
    changed = market.notifications.mark_all_as_read_for(session)
    return {"marked": changed}


@app.post("/api/notifications/{notification_id}/read", response_model=NotificationSchema)
def mark_notification_read(
    notification_id: str,
    session: Session = Depends(get_session),
    market: Marketplace = Depends(get_marketplace),
):
    require_login(session, "mark notifications as read")
    notification = market.notifications.mark_as_read_for(session, notification_id)
    return notification_to_schema(notification)


@app.delete("/api/notifications")
def clear_notifications(
    session: Session = Depends(get_session),
    market: Marketplace = Depends(get_marketplace),
):
    """
    Delete the session's notifications. Admins empty the admin ledger;
    vendors and customers only delete records addressed to them. Not reversible.
    """
    require_login(session, "clear notifications")
    cleared = market.notifications.clear_for(session)
    return {"cleared": cleared}


# --- Address Endpoints ---


@app.get("/api/addresses", response_model=list[AddressSchema])
def list_addresses(market: Marketplace = Depends(get_marketplace)):
    return [address_to_schema(a) for a in market.addresses.list_addresses()]


@app.post("/api/addresses", response_model=AddressSchema, status_code=201)
def create_address(request: AddressRequest, market: Marketplace = Depends(get_marketplace)):
    return address_to_schema(market.addresses.add_address(address_request_to_dict(request)))


@app.put("/api/addresses/{address_id}", response_model=AddressSchema)
def update_address(
    address_id: str,
    request: AddressRequest,
    market: Marketplace = Depends(get_marketplace),
):
    return address_to_schema(
        market.addresses.update_address(address_id, address_request_to_dict(request))
    )


@app.delete("/api/addresses/{address_id}", response_model=AddressSchema)
def delete_address(address_id: str, market: Marketplace = Depends(get_marketplace)):
    return address_to_schema(market.addresses.remove_address(address_id))


@app.post("/api/addresses/{address_id}/default", response_model=AddressSchema)
def set_default_address(address_id: str, market: Marketplace = Depends(get_marketplace)):
    return address_to_schema(market.addresses.set_default(address_id))


# --- Vendor Endpoints ---


@app.get("/api/vendors", response_model=VendorListResponse)
def list_vendors(
    status: str = Query(default="verified", description="all | pending | verified (admin only for all and pending)"),
    session: Session = Depends(get_session),
    market: Marketplace = Depends(get_marketplace),
):
    """Verified vendors for shoppers; admins may list pending or all vendors."""
    if status != "verified":
        require_admin(session, "list unverified vendors")
    vendors = market.vendors.list_vendors(status)
    return VendorListResponse(vendors=[vendor_to_schema(v) for v in vendors], count=len(vendors))


@app.get("/api/vendors/{vendor_id}", response_model=VendorSchema)
def get_vendor(
    vendor_id: str,
    session: Session = Depends(get_session),
    market: Marketplace = Depends(get_marketplace),
):
    """Unverified vendors are only visible to admins and to themselves."""
    vendor = market.vendors.get_vendor(vendor_id)
    if not vendor.is_verified and not session.is_admin and session.vendor_id != vendor_id:
        raise VendorNotFoundError(vendor_id)
    return vendor_to_schema(vendor)


@app.post("/api/vendors", response_model=VendorSchema, status_code=201)
def create_vendor(
    request: VendorCreateRequest,
    session: Session = Depends(get_session),
    market: Marketplace = Depends(get_marketplace),
):
    require_admin(session, "add vendors")
    return vendor_to_schema(market.vendors.add_vendor(vendor_request_to_dict(request)))


@app.patch("/api/vendors/{vendor_id}", response_model=VendorSchema)
def update_vendor(
    vendor_id: str,
    request: VendorUpdateRequest,
    session: Session = Depends(get_session),
    market: Marketplace = Depends(get_marketplace),
):
    """Admins edit any vendor; a vendor edits its own profile but not its verification."""
    patch = vendor_request_to_dict(request)
    if not session.is_admin:
        if not session.is_vendor or session.vendor_id != vendor_id:
            raise NotAuthorizedError("edit this vendor")
        if "isVerified" in patch:
            raise NotAuthorizedError("change vendor verification", "admin session required")
    return vendor_to_schema(market.vendors.update_vendor(vendor_id, patch))


@app.delete("/api/vendors/{vendor_id}", status_code=204)
def delete_vendor(
    vendor_id: str,
    session: Session = Depends(get_session),
    market: Marketplace = Depends(get_marketplace),
):
    """Remove a vendor. Its products and past orders stay."""
    require_admin(session, "delete vendors")
    market.vendors.delete_vendor(vendor_id)


@app.post("/api/vendors/{vendor_id}/verify", response_model=VendorSchema)
def verify_vendor(
    vendor_id: str,
    session: Session = Depends(get_session),
    market: Marketplace = Depends(get_marketplace),
):
    require_admin(session, "verify vendors")
    return vendor_to_schema(market.vendors.verify_vendor(vendor_id))


@app.post("/api/vendors/{vendor_id}/unverify", response_model=VendorSchema)
def unverify_vendor(
    vendor_id: str,
    session: Session = Depends(get_session),
    market: Marketplace = Depends(get_marketplace),
):
    require_admin(session, "verify vendors")
    return vendor_to_schema(market.vendors.set_verified(vendor_id, False))
