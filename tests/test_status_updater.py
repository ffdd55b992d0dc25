"""Tests for order status updates."""

import pytest

from freshmart.errors import (
    InvalidStatusError,
    InvalidStatusTransitionError,
    NotAuthorizedError,
    OrderNotFoundError,
    StorageWriteError,
)
from freshmart.marketplace import Marketplace
from freshmart.models import NotificationType, OrderStatus, Session
from freshmart.status_updater import check_transition, parse_status

from .conftest import FailingStore, place_order


@pytest.fixture
def order(market, customer, shipping_form):
    # Apples (vendor1) and milk (vendor2)
    return place_order(market, customer, shipping_form, 1, 3)


def status_records(market, order_id):
    return [
        n for n in market.notifications.user.records()
        if n.type == NotificationType.ORDER_STATUS and n.order_id == order_id
    ]


class TestParseStatus:
    def test_known(self):
        assert parse_status("shipped") == OrderStatus.SHIPPED
        assert parse_status(OrderStatus.PENDING) == OrderStatus.PENDING

    def test_unknown(self):
        with pytest.raises(InvalidStatusError):
            parse_status("lost")


class TestCheckTransition:
    def test_forward_allowed(self):
        check_transition(OrderStatus.PENDING, OrderStatus.PROCESSING)
        check_transition(OrderStatus.PENDING, OrderStatus.DELIVERED)

    @pytest.mark.parametrize(
        "current,target",
        [
            (OrderStatus.DELIVERED, OrderStatus.PENDING),
            (OrderStatus.SHIPPED, OrderStatus.PROCESSING),
            (OrderStatus.PROCESSING, OrderStatus.PROCESSING),
        ],
    )
    def test_backward_or_same_rejected(self, current, target):
        with pytest.raises(InvalidStatusTransitionError):
            check_transition(current, target)


class TestUpdateOrderStatus:
    def test_round_trip(self, market, order):
        updated, notification = market.status_updater.update_order_status(
            Session.admin(), order.id, "processing"
        )

        assert updated.status == OrderStatus.PROCESSING
        assert market.orders.get_order(order.id).status == OrderStatus.PROCESSING

        [record] = status_records(market, order.id)
        assert record.id == notification.id
        assert record.audience.user_id == "user-1"
        assert record.title == "Order Processing"
        assert record.message == "Your order is now being processed."

    def test_one_notification_per_update(self, market, order):
        market.status_updater.update_order_status(Session.admin(), order.id, "processing")
        market.status_updater.update_order_status(Session.admin(), order.id, "shipped")

        titles = [n.title for n in status_records(market, order.id)]
        assert titles == ["Order Shipped", "Order Processing"]

    def test_unscoped_notification_when_no_user(self, market, shipping_form):
        order = place_order(market, Session(is_logged_in=True), shipping_form, 1)
        market.status_updater.update_order_status(Session.admin(), order.id, "delivered")

        [record] = status_records(market, order.id)
        assert record.audience.user_id is None

    def test_other_orders_untouched(self, market, customer, shipping_form, order):
        other = place_order(market, customer, shipping_form, 5)
        market.status_updater.update_order_status(Session.admin(), order.id, "shipped")

        assert market.orders.get_order(other.id).status == OrderStatus.PENDING

    def test_missing_order(self, market):
        with pytest.raises(OrderNotFoundError):
            market.status_updater.update_order_status(Session.admin(), "ORD-000000", "shipped")
        assert market.notifications.user.records() == []

    def test_invalid_status(self, market, order):
        with pytest.raises(InvalidStatusError):
            market.status_updater.update_order_status(Session.admin(), order.id, "lost")

    def test_backward_move_rejected(self, market, order):
        market.status_updater.update_order_status(Session.admin(), order.id, "delivered")

        with pytest.raises(InvalidStatusTransitionError):
            market.status_updater.update_order_status(Session.admin(), order.id, "pending")
        assert market.orders.get_order(order.id).status == OrderStatus.DELIVERED
        assert len(status_records(market, order.id)) == 1


class TestAuthorization:
    def test_vendor_with_product_may_update(self, market, order):
        updated, _ = market.status_updater.update_order_status(
            Session.vendor("vendor2"), order.id, "processing"
        )
        assert updated.status == OrderStatus.PROCESSING

    def test_vendor_without_product_refused(self, market, order):
        with pytest.raises(NotAuthorizedError):
            market.status_updater.update_order_status(Session.vendor("vendor3"), order.id, "processing")
        assert market.orders.get_order(order.id).status == OrderStatus.PENDING

    def test_customer_refused(self, market, order, customer):
        with pytest.raises(NotAuthorizedError):
            market.status_updater.update_order_status(customer, order.id, "processing")

    def test_vendor_ownership_is_live(self, market, order):
        market.catalog.update_product(3, {"vendorId": "vendor3"})

        with pytest.raises(NotAuthorizedError):
            market.status_updater.update_order_status(Session.vendor("vendor2"), order.id, "shipped")
        market.status_updater.update_order_status(Session.vendor("vendor3"), order.id, "shipped")


class TestNotificationFailure:
    @pytest.fixture
    def failing_market(self):
        market = Marketplace(FailingStore("userNotifications"))
        market.catalog.seed_defaults()
        return market

    def test_status_restored_when_notification_fails(self, failing_market, customer, shipping_form):
        order = place_order(failing_market, customer, shipping_form, 1)

        with pytest.raises(StorageWriteError):
            failing_market.status_updater.update_order_status(Session.admin(), order.id, "processing")

        assert failing_market.orders.get_order(order.id).status == OrderStatus.PENDING

    def test_retry_after_failure(self, failing_market, customer, shipping_form):
        order = place_order(failing_market, customer, shipping_form, 1)
        with pytest.raises(StorageWriteError):
            failing_market.status_updater.update_order_status(Session.admin(), order.id, "processing")

        failing_market.store.failing_keys.clear()
        updated, _ = failing_market.status_updater.update_order_status(
            Session.admin(), order.id, "processing"
        )

        assert updated.status == OrderStatus.PROCESSING
        [record] = status_records(failing_market, order.id)
        assert record.title == "Order Processing"
