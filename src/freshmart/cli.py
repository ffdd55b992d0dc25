"""Command-line interface for freshmart."""

import argparse
import json
import logging
import os
import sys
from pathlib import Path

from . import __version__
from .dashboards import filter_by_status, sort_vendor_orders, status_counts, vendor_orders
from .errors import FreshmartError
from .marketplace import Marketplace
from .models import Session
from .notification_store import NotificationLedger
from .status_updater import parse_status
from .utils import format_notification, format_order, format_product, format_vendor, format_vendor_order


def get_marketplace(args: argparse.Namespace) -> Marketplace:
    """Open the marketplace in --data-dir, or the default data directory."""
    data_dir = Path(args.data_dir) if args.data_dir else None
    return Marketplace.open(data_dir)


def get_ledger(market: Marketplace, args: argparse.Namespace) -> NotificationLedger:
    if args.audience == "admin":
        return market.notifications.admin
    if args.audience == "vendor":
        return market.notifications.vendor
    return market.notifications.user


def cmd_products_list(args: argparse.Namespace) -> int:
    """List catalog products."""
    try:
        market = get_marketplace(args)
        if args.vendor:
            products = market.catalog.products_by_vendor(args.vendor)
        else:
            products = market.catalog.list_products()

        if not products:
            print("No products found.")
            print("Load the sample catalog with: freshmart products seed")
            return 0

        if args.json:
            print(json.dumps([p.to_dict() for p in products], indent=2, ensure_ascii=False))
        else:
            print(f"Products ({len(products)}):")
            print()
            for product in products:
                print(format_product(product))

        return 0

    except FreshmartError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_products_seed(args: argparse.Namespace) -> int:
    """Load the sample catalog into an empty product collection."""
    try:
        market = get_marketplace(args)
        count = market.catalog.seed_defaults()
        if count:
            print(f"Added {count} sample product(s)")
        else:
            print("Catalog already has products; nothing to seed.")
        return 0

    except FreshmartError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_orders_list(args: argparse.Namespace) -> int:
    """List orders as the admin, one customer, or one vendor sees them."""
    try:
        market = get_marketplace(args)
        orders = market.orders.list_orders()
        status = parse_status(args.status) if args.status else None

        if args.vendor:
            views = vendor_orders(orders, market.catalog, args.vendor)
            if status is not None:
                views = [v for v in views if v.status == status]
            views = sort_vendor_orders(views, by=args.sort)
            if args.json:
                print(json.dumps([v.to_dict() for v in views], indent=2, ensure_ascii=False))
            elif not views:
                print(f"No orders for vendor {args.vendor}.")
            else:
                print(f"Orders for vendor {args.vendor} ({len(views)}):")
                print()
                for view in views:
                    print(format_vendor_order(view))
            return 0

        if args.user:
            orders = [o for o in orders if o.user_id == args.user]
        orders = filter_by_status(orders, status)

        if args.json:
            print(json.dumps([o.to_dict() for o in orders], indent=2, ensure_ascii=False))
            return 0

        if not orders:
            print("No orders found.")
            return 0

        counts = status_counts(market.orders.list_orders())
        print(f"Orders ({len(orders)}):")
        print(
            "  " + "  ".join(f"{name}={count}" for name, count in counts.items())
        )
        print()
        for order in orders:
            print(format_order(order, verbose=args.verbose))

        return 0

    except FreshmartError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_orders_show(args: argparse.Namespace) -> int:
    """Show one order in full."""
    try:
        market = get_marketplace(args)
        order = market.orders.get_order(args.order_id)
        if args.json:
            print(json.dumps(order.to_dict(), indent=2, ensure_ascii=False))
        else:
            print(format_order(order, verbose=True))
        return 0

    except FreshmartError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_orders_set_status(args: argparse.Namespace) -> int:
    """Move an order forward and notify its customer."""
    try:
        market = get_marketplace(args)
        session = Session.vendor(args.vendor) if args.vendor else Session.admin()

        order, notification = market.status_updater.update_order_status(
            session, args.order_id, args.status
        )

        print(f"Order {order.id} is now {order.status.display_name}")
        print(f"  Notified: {notification.title} ({notification.id[:8]})")
        return 0

    except FreshmartError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_notifications_list(args: argparse.Namespace) -> int:
    """List one audience's notifications."""
    try:
        market = get_marketplace(args)
        if args.audience == "vendor" and args.vendor:
            notifications = market.notifications.for_vendor(args.vendor)
        elif args.audience == "user" and args.user:
            notifications = market.notifications.visible_to_user(args.user)
        else:
            notifications = get_ledger(market, args).records()

        if args.unread:
            notifications = [n for n in notifications if not n.is_read]

        if args.json:
            print(json.dumps([n.to_dict() for n in notifications], indent=2, ensure_ascii=False))
            return 0

        if not notifications:
            print("No notifications.")
            return 0

        unread = sum(1 for n in notifications if not n.is_read)
        print(f"Notifications ({len(notifications)}, {unread} unread):")
        print()
        for notification in notifications:
            print(format_notification(notification))

        return 0

    except FreshmartError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_notifications_read(args: argparse.Namespace) -> int:
    """Mark one notification as read (ID or unique prefix)."""
    try:
        market = get_marketplace(args)
        ledger = get_ledger(market, args)
        notification = ledger.mark_as_read(ledger.find(args.notification_id).id)
        print(f"Marked as read: {notification.id[:8]} ({notification.title})")
        return 0

    except FreshmartError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_notifications_read_all(args: argparse.Namespace) -> int:
    try:
        market = get_marketplace(args)
        count = get_ledger(market, args).mark_all_as_read()
        print(f"Marked {count} notification(s) as read")
        return 0

    except FreshmartError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_notifications_clear(args: argparse.Namespace) -> int:
    """Delete every notification in one audience's ledger."""
    try:
        market = get_marketplace(args)
        count = get_ledger(market, args).clear_all()
        print(f"Cleared {count} notification(s) from {args.audience} ledger")
        return 0

    except FreshmartError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_vendors_list(args: argparse.Namespace) -> int:
    """List vendors, optionally only pending or verified ones."""
    try:
        market = get_marketplace(args)
        vendors = market.vendors.list_vendors(args.status)

        if not vendors:
            print("No vendors found.")
            return 0

        if args.json:
            print(json.dumps([v.to_dict() for v in vendors], indent=2, ensure_ascii=False))
        else:
            print(f"Vendors ({len(vendors)}):")
            print()
            for vendor in vendors:
                print(format_vendor(vendor))

        return 0

    except FreshmartError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_vendors_seed(args: argparse.Namespace) -> int:
    try:
        count = get_marketplace(args).vendors.seed_defaults()
        if count:
            print(f"Added {count} sample vendor(s)")
        else:
            print("Vendor registry already has vendors; nothing to seed.")
        return 0

    except FreshmartError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_vendors_verify(args: argparse.Namespace) -> int:
    """Set or clear a vendor's verified flag."""
    try:
        vendor = get_marketplace(args).vendors.set_verified(args.vendor_id, not args.revoke)
        state = "verified" if vendor.is_verified else "pending verification"
        print(f"{vendor.name} ({vendor.id}) is now {state}")
        return 0

    except FreshmartError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_serve(args: argparse.Namespace) -> int:
    """Start the API server."""
    try:
        import uvicorn

        if args.data_dir:
            # Reloader workers are separate processes and read it from the environment
            os.environ["FRESHMART_DATA_DIR"] = str(Path(args.data_dir).resolve())

        print("Starting freshmart API server...")
        print(f"API docs: http://{args.host}:{args.port}/docs")
        print()

        # When reload is enabled, uvicorn requires the app as an import string
        app_target = "freshmart.api:app" if args.reload else None
        if app_target is None:
            from . import api

            api._marketplace = get_marketplace(args)
            app_target = api.app

        uvicorn.run(
            app_target,
            host=args.host,
            port=args.port,
            reload=args.reload,
            workers=1,  # Carts live in process memory
        )
        return 0

    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="freshmart",
        description="Manage grocery marketplace orders, products and notifications.",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}"
    )
    parser.add_argument(
        "--data-dir", help="Directory holding the JSON data files (default: $FRESHMART_DATA_DIR)"
    )
    parser.add_argument(
        "--log-level", default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: WARNING)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # products
    products_parser = subparsers.add_parser("products", help="Browse and seed the catalog")
    products_subparsers = products_parser.add_subparsers(dest="products_command")

    products_list_parser = products_subparsers.add_parser("list", help="List products")
    products_list_parser.add_argument("--vendor", help="Only this vendor's products")
    products_list_parser.add_argument("--json", action="store_true", help="Output as JSON")

    products_subparsers.add_parser("seed", help="Load the sample catalog if empty")

    # orders
    orders_parser = subparsers.add_parser("orders", help="View and update orders")
    orders_subparsers = orders_parser.add_subparsers(dest="orders_command")

    orders_list_parser = orders_subparsers.add_parser("list", help="List orders")
    orders_list_parser.add_argument(
        "--status", help="Only orders with this status (pending, processing, shipped, delivered)"
    )
    orders_list_parser.add_argument("--user", help="Only this customer's orders")
    orders_list_parser.add_argument(
        "--vendor", help="Vendor view: orders with this vendor's products, vendor lines only"
    )
    orders_list_parser.add_argument(
        "--sort", default="date", choices=["date", "total", "status"],
        help="Sort key for the vendor view (default: date)",
    )
    orders_list_parser.add_argument(
        "--verbose", "-v", action="store_true", help="Show address and line items"
    )
    orders_list_parser.add_argument("--json", action="store_true", help="Output as JSON")

    orders_show_parser = orders_subparsers.add_parser("show", help="Show one order")
    orders_show_parser.add_argument("order_id", help="Order ID (e.g. ORD-123456)")
    orders_show_parser.add_argument("--json", action="store_true", help="Output as JSON")

    orders_status_parser = orders_subparsers.add_parser(
        "set-status", help="Change an order's status and notify the customer"
    )
    orders_status_parser.add_argument("order_id", help="Order ID")
    orders_status_parser.add_argument("status", help="New status")
    orders_status_parser.add_argument(
        "--vendor", help="Act as this vendor instead of the admin"
    )

    # notifications
    notifications_parser = subparsers.add_parser("notifications", help="Manage notifications")
    notifications_subparsers = notifications_parser.add_subparsers(dest="notifications_command")

    def add_audience(p: argparse.ArgumentParser) -> None:
        p.add_argument(
            "--audience", "-a", default="admin", choices=["admin", "vendor", "user"],
            help="Which ledger (default: admin)",
        )

    notifications_list_parser = notifications_subparsers.add_parser("list", help="List notifications")
    add_audience(notifications_list_parser)
    notifications_list_parser.add_argument("--vendor", help="Only this vendor's records")
    notifications_list_parser.add_argument("--user", help="Only records this user can see")
    notifications_list_parser.add_argument("--unread", action="store_true", help="Only unread")
    notifications_list_parser.add_argument("--json", action="store_true", help="Output as JSON")

    notifications_read_parser = notifications_subparsers.add_parser("read", help="Mark one as read")
    notifications_read_parser.add_argument("notification_id", help="Notification ID (or prefix)")
    add_audience(notifications_read_parser)

    notifications_read_all_parser = notifications_subparsers.add_parser(
        "read-all", help="Mark every notification as read"
    )
    add_audience(notifications_read_all_parser)

    notifications_clear_parser = notifications_subparsers.add_parser(
        "clear", help="Delete every notification in a ledger"
    )
    add_audience(notifications_clear_parser)

    # vendors
    vendors_parser = subparsers.add_parser("vendors", help="Manage the vendor registry")
    vendors_subparsers = vendors_parser.add_subparsers(dest="vendors_command")

    vendors_list_parser = vendors_subparsers.add_parser("list", help="List vendors")
    vendors_list_parser.add_argument(
        "--status", default="all", choices=["all", "pending", "verified"],
        help="Which vendors to list (default: all)",
    )
    vendors_list_parser.add_argument("--json", action="store_true", help="Output as JSON")

    vendors_subparsers.add_parser("seed", help="Load the sample vendors if empty")

    vendors_verify_parser = vendors_subparsers.add_parser("verify", help="Verify a vendor")
    vendors_verify_parser.add_argument("vendor_id", help="Vendor ID")
    vendors_verify_parser.add_argument(
        "--revoke", action="store_true", help="Move the vendor back to pending verification"
    )

    # serve
    serve_parser = subparsers.add_parser("serve", help="Start the API server")
    serve_parser.add_argument(
        "--host", default="127.0.0.1", help="Host to bind to (default: 127.0.0.1)"
    )
    serve_parser.add_argument(
        "--port", type=int, default=8000, help="Port to bind to (default: 8000)"
    )
    serve_parser.add_argument(
        "--reload", action="store_true", help="Enable auto-reload for development"
    )

    return parser


SUBCOMMANDS = {
    "products": ("products_command", {
        "list": cmd_products_list,
        "seed": cmd_products_seed,
    }),
    "orders": ("orders_command", {
        "list": cmd_orders_list,
        "show": cmd_orders_show,
        "set-status": cmd_orders_set_status,
    }),
    "notifications": ("notifications_command", {
        "list": cmd_notifications_list,
        "read": cmd_notifications_read,
        "read-all": cmd_notifications_read_all,
        "clear": cmd_notifications_clear,
    }),
    "vendors": ("vendors_command", {
        "list": cmd_vendors_list,
        "seed": cmd_vendors_seed,
        "verify": cmd_vendors_verify,
    }),
}


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if not args.command:
        parser.print_help()
        return 0

    if args.command == "serve":
        return cmd_serve(args)

    dest, commands = SUBCOMMANDS[args.command]
    cmd_func = commands.get(getattr(args, dest, None) or "")
    if cmd_func is None:
        parser.parse_args([args.command, "--help"])
        return 0
    return cmd_func(args)


if __name__ == "__main__":
    sys.exit(main())
