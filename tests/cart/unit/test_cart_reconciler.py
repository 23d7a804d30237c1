"""
Unit Tests: CartReconciler

- merge() - koszyk goscia -> koszyk uzytkownika, ilosci sie sumuja
- czesciowy blad - nieprzeniesione pozycje zostaja do ponowienia
- detach() - wylogowanie, nowy pusty koszyk goscia
"""

from unittest.mock import patch

from sqlalchemy.exc import IntegrityError

from storefront.domain.schemas import GuestCart
from storefront.services.cart_reconciler import CartReconciler
from storefront.services.cart_store import CartSession, CartStore


def build_guest_cart(db, *lines) -> GuestCart:
    store = CartStore(db, CartSession())
    for product_id, quantity in lines:
        store.add_item(product_id, quantity)
    return store.guest_cart


def user_quantities(db, user_id):
    summary = CartStore(db, CartSession(user_id=user_id)).get_summary()
    return {i.product_id: i.quantity for i in summary.items}


class TestMerge:

    def test_all_items_land_in_empty_user_cart(self, db, products):
        guest = build_guest_cart(db, (1, 2), (2, 1), (3, 1))

        result = CartReconciler(db).merge(5, guest)

        assert result.ok
        assert sorted(result.merged) == [1, 2, 3]
        assert result.guest_cart.items == []
        assert user_quantities(db, 5) == {1: 2, 2: 1, 3: 1}

    def test_overlapping_product_quantities_sum(self, db, products):
        """Scenariusz: user ma A x2, gosc A x1 -> po zalogowaniu A x3, koszyk goscia pusty."""
        CartStore(db, CartSession(user_id=5)).add_item(1, 2)
        guest = build_guest_cart(db, (1, 1))

        result = CartReconciler(db).merge(5, guest)

        assert user_quantities(db, 5) == {1: 3}
        assert result.guest_cart.items == []

    def test_empty_guest_cart_is_noop(self, db, products):
        result = CartReconciler(db).merge(5, GuestCart())
        assert result.ok
        assert result.merged == []
        assert user_quantities(db, 5) == {}

    def test_partial_failure_keeps_unmerged_items(self, db, products):
        guest = build_guest_cart(db, (1, 1), (2, 2), (3, 1))
        reconciler = CartReconciler(db)
        real_upsert = reconciler.repo.upsert_item

        def flaky_upsert(user_id, product_id, quantity):
            if product_id == 2:
                raise IntegrityError("insert", {}, Exception("constraint"))
            return real_upsert(user_id, product_id, quantity)

        with patch.object(reconciler.repo, "upsert_item", side_effect=flaky_upsert):
            result = reconciler.merge(5, guest)

        assert not result.ok
        assert [c.product_id for c in result.conflicts] == [2]
        assert [i.product_id for i in result.guest_cart.items] == [2]
        assert result.guest_cart.items[0].quantity == 2
        assert user_quantities(db, 5) == {1: 1, 3: 1}

    def test_retry_after_failure_does_not_double_count(self, db, products):
        guest = build_guest_cart(db, (1, 1), (2, 2))
        reconciler = CartReconciler(db)
        real_upsert = reconciler.repo.upsert_item

        def flaky_upsert(user_id, product_id, quantity):
            if product_id == 2:
                raise IntegrityError("insert", {}, Exception("constraint"))
            return real_upsert(user_id, product_id, quantity)

        with patch.object(reconciler.repo, "upsert_item", side_effect=flaky_upsert):
            first = reconciler.merge(5, guest)

        second = reconciler.merge(5, first.guest_cart)

        assert second.ok
        assert user_quantities(db, 5) == {1: 1, 2: 2}

    def test_missing_product_is_kept_for_retry(self, db, products):
        guest = build_guest_cart(db, (1, 1))
        guest.items[0].product_id = 404

        result = CartReconciler(db).merge(5, guest)

        assert not result.ok
        assert result.conflicts[0].product_id == 404
        assert len(result.guest_cart.items) == 1


    def test_remaining_lines_keep_guest_token(self, db, products):
        guest = build_guest_cart(db, (1, 1))
        guest.items[0].product_id = 404

        result = CartReconciler(db).merge(5, guest)

        assert result.guest_cart.token == guest.token


class TestDetach:

    def test_logout_starts_empty_guest_cart(self, db, products):
        CartStore(db, CartSession(user_id=5)).add_item(1, 2)

        guest = CartReconciler(db).detach()

        assert guest.items == []
        # brak odwrotnego merge, koszyk uzytkownika zostaje
        assert user_quantities(db, 5) == {1: 2}
