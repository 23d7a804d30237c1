"""
Unit Tests: OrderService

- get_order() - wlasciciel zamowienia, brak zamowienia
- list_user_orders() - od najnowszych
- update_status() - przejscia statusu, snapshot bez zmian
"""

from decimal import Decimal
from unittest.mock import MagicMock

import pytest

from storefront.domain.enums import OrderStatus, PaymentStatus
from storefront.domain.errors import InvalidStatusTransitionError, OrderNotFoundError
from storefront.services.cart_store import CartSession, CartStore
from storefront.services.checkout_service import CheckoutService
from storefront.services.order_service import OrderService


@pytest.fixture
def place_order(db, lock_service, billing, products):
    def _place(user_id=1, product_id=1, quantity=1, method="bank"):
        store = CartStore(db, CartSession(user_id=user_id))
        store.add_item(product_id, quantity)
        svc = CheckoutService(db, lock_service=lock_service, notification_service=MagicMock())
        return svc.submit_order(store, billing, None, method).order

    return _place


class TestGetOrder:

    def test_owner_can_read(self, db, place_order):
        order = place_order(user_id=1)
        assert OrderService(db).get_order(order.id, 1).id == order.id

    def test_other_user_forbidden(self, db, place_order):
        order = place_order(user_id=1)
        with pytest.raises(PermissionError):
            OrderService(db).get_order(order.id, 2)

    def test_missing_order(self, db):
        with pytest.raises(OrderNotFoundError):
            OrderService(db).get_order(999, 1)

    def test_guest_order_readable_by_id(self, db, lock_service, billing, products):
        store = CartStore(db, CartSession())
        store.add_item(1, 1)
        order = CheckoutService(db, lock_service, MagicMock()).submit_order(store, billing, None, "bank").order

        assert OrderService(db).get_order(order.id).user_id is None


class TestListOrders:

    def test_newest_first_and_scoped(self, db, place_order):
        first = place_order(user_id=1, product_id=1)
        second = place_order(user_id=1, product_id=2)
        place_order(user_id=2, product_id=1)

        orders = OrderService(db).list_user_orders(1)

        assert [o.id for o in orders] == [second.id, first.id]


class TestUpdateStatus:

    def test_allowed_transitions(self, db, place_order):
        order = place_order()
        svc = OrderService(db)

        svc.update_status(order.id, status=OrderStatus.PROCESSING)
        svc.update_status(order.id, status=OrderStatus.SHIPPED, payment_status=PaymentStatus.PAID)
        updated = svc.update_status(order.id, status=OrderStatus.DELIVERED)

        assert updated.status == "delivered"
        assert updated.payment_status == "paid"

    def test_invalid_transition(self, db, place_order):
        order = place_order()
        with pytest.raises(InvalidStatusTransitionError):
            OrderService(db).update_status(order.id, status=OrderStatus.DELIVERED)

    def test_cancelled_is_terminal(self, db, place_order):
        order = place_order()
        svc = OrderService(db)
        svc.update_status(order.id, status=OrderStatus.CANCELLED)

        with pytest.raises(InvalidStatusTransitionError):
            svc.update_status(order.id, status=OrderStatus.PROCESSING)

    def test_payment_status_only(self, db, place_order):
        order = place_order()
        updated = OrderService(db).update_status(order.id, payment_status=PaymentStatus.FAILED)
        assert updated.status == "pending"
        assert updated.payment_status == "failed"

    def test_snapshot_untouched(self, db, place_order):
        order = place_order(quantity=2)
        items_before = list(order.cart_items)

        updated = OrderService(db).update_status(order.id, status=OrderStatus.PROCESSING)

        assert updated.total == Decimal("160.00")
        assert updated.cart_items == items_before

    def test_missing_order(self, db):
        with pytest.raises(OrderNotFoundError):
            OrderService(db).update_status(404, status=OrderStatus.PROCESSING)
