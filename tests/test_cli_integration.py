"""Integration tests for CLI."""

import json
import os
import subprocess
import sys
from pathlib import Path

import pytest

from freshmart.marketplace import Marketplace
from freshmart.models import Session

from .conftest import place_order


SRC_DIR = Path(__file__).parent.parent / "src"


def run_freshmart(args: list[str], data_dir: Path) -> subprocess.CompletedProcess:
    """Run freshmart CLI command against ``data_dir``."""
    env = dict(os.environ)
    env["PYTHONPATH"] = os.pathsep.join(filter(None, [str(SRC_DIR), env.get("PYTHONPATH")]))
    return subprocess.run(
        [sys.executable, "-m", "freshmart.cli", "--data-dir", str(data_dir)] + args,
        cwd=data_dir.parent,
        capture_output=True,
        text=True,
        env=env,
    )


@pytest.fixture
def data_dir(temp_dir):
    return temp_dir / "data"


@pytest.fixture
def seeded(data_dir, shipping_form):
    """Data directory with the sample catalog and one order from user-1."""
    market = Marketplace.open(data_dir)
    market.catalog.seed_defaults()
    order = place_order(market, Session.customer("user-1"), shipping_form, 1, 3)
    return market, order


class TestCLIIntegration:
    def test_products_empty(self, data_dir):
        result = run_freshmart(["products", "list"], data_dir)

        assert result.returncode == 0
        assert "No products found" in result.stdout

    def test_seed_then_list(self, data_dir):
        result = run_freshmart(["products", "seed"], data_dir)
        assert result.returncode == 0
        assert "Added 5 sample product(s)" in result.stdout

        result = run_freshmart(["products", "seed"], data_dir)
        assert "nothing to seed" in result.stdout

        result = run_freshmart(["products", "list", "--json"], data_dir)
        products = json.loads(result.stdout)
        assert len(products) == 5
        assert products[0]["vendorId"] == "vendor1"

    def test_orders_list(self, data_dir, seeded):
        _, order = seeded
        result = run_freshmart(["orders", "list", "--verbose"], data_dir)

        assert result.returncode == 0
        assert order.id in result.stdout
        assert "Ship to: 12 MG Road" in result.stdout

    def test_orders_list_by_vendor(self, data_dir, seeded):
        _, order = seeded
        result = run_freshmart(["orders", "list", "--vendor", "vendor2", "--json"], data_dir)

        views = json.loads(result.stdout)
        assert [v["id"] for v in views] == [order.id]
        assert [p["name"] for p in views[0]["products"]] == ["Fresh Milk"]

    def test_orders_list_bad_status(self, data_dir, seeded):
        result = run_freshmart(["orders", "list", "--status", "lost"], data_dir)

        assert result.returncode == 1
        assert "Invalid order status" in result.stderr

    def test_set_status(self, data_dir, seeded):
        market, order = seeded
        result = run_freshmart(["orders", "set-status", order.id, "shipped"], data_dir)

        assert result.returncode == 0
        assert "is now Shipped" in result.stdout
        assert market.orders.get_order(order.id).status.value == "shipped"

    def test_set_status_backward_fails(self, data_dir, seeded):
        _, order = seeded
        run_freshmart(["orders", "set-status", order.id, "delivered"], data_dir)

        result = run_freshmart(["orders", "set-status", order.id, "pending"], data_dir)
        assert result.returncode == 1
        assert "Cannot move order" in result.stderr

    def test_set_status_as_unrelated_vendor(self, data_dir, seeded):
        _, order = seeded
        result = run_freshmart(["orders", "set-status", order.id, "shipped", "--vendor", "vendor3"], data_dir)

        assert result.returncode == 1
        assert "Not authorized" in result.stderr

    def test_show_missing_order(self, data_dir, seeded):
        result = run_freshmart(["orders", "show", "ORD-000000"], data_dir)

        assert result.returncode == 1
        assert "Order not found" in result.stderr

    def test_notifications_read_by_prefix(self, data_dir, seeded):
        market, _ = seeded
        [record] = market.notifications.admin.records()

        result = run_freshmart(["notifications", "read", record.id[:8]], data_dir)
        assert result.returncode == 0
        assert market.notifications.admin.unread_count == 0

    def test_notifications_vendor_list(self, data_dir, seeded):
        result = run_freshmart(
            ["notifications", "list", "--audience", "vendor", "--vendor", "vendor1", "--json"],
            data_dir,
        )
        records = json.loads(result.stdout)
        assert [r["vendorId"] for r in records] == ["vendor1"]

    def test_notifications_read_all_and_clear(self, data_dir, seeded):
        market, _ = seeded

        result = run_freshmart(["notifications", "read-all", "--audience", "vendor"], data_dir)
        assert "Marked 2 notification(s) as read" in result.stdout

        result = run_freshmart(["notifications", "clear", "--audience", "user"], data_dir)
        assert "Cleared 1 notification(s)" in result.stdout
        assert len(market.notifications.user) == 0
        assert len(market.notifications.admin) == 1

    def test_vendors_seed_verify_list(self, data_dir):
        result = run_freshmart(["vendors", "seed"], data_dir)
        assert "Added 3 sample vendor(s)" in result.stdout

        result = run_freshmart(["vendors", "verify", "vendor3", "--revoke"], data_dir)
        assert result.returncode == 0
        assert "Bake House (vendor3) is now pending verification" in result.stdout

        result = run_freshmart(["vendors", "list", "--status", "pending", "--json"], data_dir)
        assert [v["id"] for v in json.loads(result.stdout)] == ["vendor3"]

    def test_vendors_verify_missing(self, data_dir):
        result = run_freshmart(["vendors", "verify", "nope"], data_dir)

        assert result.returncode == 1
        assert "Vendor not found: nope" in result.stderr

    def test_no_command_prints_help(self, data_dir):
        result = run_freshmart([], data_dir)
        assert result.returncode == 0
        assert "usage" in result.stdout.lower()
