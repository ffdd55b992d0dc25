"""Tests for customer, admin and vendor order views."""

import pytest

from freshmart.dashboards import (
    customer_orders,
    filter_by_status,
    search_vendor_orders,
    sort_vendor_orders,
    status_counts,
    vendor_orders,
    vendor_sales_summary,
)
from freshmart.models import OrderStatus, Session

from .conftest import place_order


@pytest.fixture
def orders(market, shipping_form):
    alice = Session.customer("alice")
    bob = Session.customer("bob")
    placed = [
        place_order(market, alice, shipping_form, 1, 3),
        place_order(market, bob, shipping_form, 2),
        place_order(market, alice, shipping_form, 5),
    ]
    market.status_updater.update_order_status(Session.admin(), placed[1].id, "shipped")
    return market.orders.list_orders()


class TestCustomerAndAdmin:
    def test_customer_sees_own_orders(self, orders):
        mine = customer_orders(orders, "alice")
        assert len(mine) == 2
        assert all(o.user_id == "alice" for o in mine)
        assert mine[0].date >= mine[1].date

    def test_unknown_customer(self, orders):
        assert customer_orders(orders, "carol") == []

    def test_filter_by_status(self, orders):
        assert len(filter_by_status(orders)) == 3
        shipped = filter_by_status(orders, OrderStatus.SHIPPED)
        assert [o.user_id for o in shipped] == ["bob"]

    def test_status_counts(self, orders):
        assert status_counts(orders) == {
            "pending": 2,
            "processing": 0,
            "shipped": 1,
            "delivered": 0,
            "all": 3,
        }


class TestVendorView:
    def test_only_orders_with_vendor_products(self, market, orders):
        views = vendor_orders(orders, market.catalog, "vendor1")
        assert len(views) == 2

        views = vendor_orders(orders, market.catalog, "vendor3")
        assert len(views) == 1

    def test_only_vendor_lines_and_subtotal(self, market, orders):
        [view] = [
            v for v in vendor_orders(orders, market.catalog, "vendor2")
        ]
        assert [item.name for item in view.items] == ["Fresh Milk"]
        assert view.total == pytest.approx(3.49)
        assert view.item_count == 1
        assert view.customer == "12 MG Road"

    def test_status_change_visible_to_vendor(self, market, orders):
        order_id = vendor_orders(orders, market.catalog, "vendor3")[0].order_id
        market.status_updater.update_order_status(Session.admin(), order_id, "processing")

        [view] = vendor_orders(market.orders.list_orders(), market.catalog, "vendor3")
        assert view.status == OrderStatus.PROCESSING

    def test_deleted_product_hides_order(self, market, orders):
        market.catalog.delete_product(5)
        assert vendor_orders(orders, market.catalog, "vendor3") == []

    def test_sort_by_total(self, market, orders):
        views = vendor_orders(orders, market.catalog, "vendor1")
        ascending = sort_vendor_orders(views, by="total", descending=False)
        assert [v.total for v in ascending] == sorted(v.total for v in views)

    def test_sort_by_status(self, market, orders):
        views = sort_vendor_orders(vendor_orders(orders, market.catalog, "vendor1"), by="status")
        assert views[0].status == OrderStatus.SHIPPED

    def test_sort_unknown_key(self, market, orders):
        with pytest.raises(ValueError):
            sort_vendor_orders([], by="customer")

    def test_search(self, market, orders):
        views = vendor_orders(orders, market.catalog, "vendor1")
        target = views[0].order_id
        assert [v.order_id for v in search_vendor_orders(views, target.lower())] == [target]
        assert len(search_vendor_orders(views, "mg road")) == 2
        assert search_vendor_orders(views, "nobody") == []

    def test_to_dict(self, market, orders):
        data = vendor_orders(orders, market.catalog, "vendor2")[0].to_dict()
        assert data["items"] == 1
        assert data["products"][0]["name"] == "Fresh Milk"
        assert data["paymentMethod"] == "Cash on Delivery"

    def test_sales_summary(self, market, orders):
        summary = vendor_sales_summary(vendor_orders(orders, market.catalog, "vendor1"))
        assert summary["orderCount"] == 2
        assert summary["revenue"] == pytest.approx(3.99 + 2.49)
        assert summary["itemsSold"] == 2
        assert summary["byStatus"]["shipped"] == 1
