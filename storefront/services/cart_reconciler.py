# storefront/services/cart_reconciler.py
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from storefront.domain.errors import MergeConflictError
from storefront.domain.schemas import GuestCart
from storefront.repos.cart_repo import CartRepo
from storefront.repos.product_repo import ProductRepo
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class MergeResult:
    def __init__(self, merged: list[int], conflicts: list[MergeConflictError], guest_cart: GuestCart):
        self.merged = merged
        self.conflicts = conflicts
        # pozostale (nieprzeniesione) pozycje goscia, do ponowienia przy nastepnym logowaniu
        self.guest_cart = guest_cart

    @property
    def ok(self) -> bool:
        return not self.conflicts


class CartReconciler:
    """
    Przenosi koszyk goscia do koszyka uzytkownika przy logowaniu.

    Kazda pozycja idzie przez ten sam upsert co add_item (sumowanie ilosci,
    nigdy nadpisanie). Pozycja zapisana -> znika z koszyka goscia, blad ->
    zostaje. Calosc nie jest atomowa, ale nic nie ginie.
    """

    def __init__(self, db: Session):
        self.repo = CartRepo(db)
        self.products = ProductRepo(db)

    def merge(self, user_id: int, guest_cart: GuestCart) -> MergeResult:
        merged: list[int] = []
        conflicts: list[MergeConflictError] = []
        remaining = []

        if not guest_cart.items:
            return MergeResult(merged, conflicts, GuestCart(token=guest_cart.token))

        logger.info(f"Przenoszenie {len(guest_cart.items)} pozycji koszyka goscia do uzytkownika {user_id}")

        for item in guest_cart.items:
            try:
                if item.quantity <= 0:
                    raise MergeConflictError(item.product_id, item.quantity, "niepoprawna ilosc")

                if not self.products.get_product(item.product_id):
                    raise MergeConflictError(item.product_id, item.quantity, "produkt nie istnieje")

                self.repo.upsert_item(user_id, item.product_id, item.quantity)
                self.repo.commit()
                merged.append(item.product_id)

            except SQLAlchemyError as e:
                self.repo.rollback()
                conflict = MergeConflictError(item.product_id, item.quantity, str(e))
                logger.warning(f"{conflict!r}")
                conflicts.append(conflict)
                remaining.append(item)

            except MergeConflictError as conflict:
                logger.warning(f"{conflict!r}")
                conflicts.append(conflict)
                remaining.append(item)

        logger.info(
            f"Koszyk goscia -> uzytkownik {user_id}: przeniesiono {len(merged)}, "
            f"do ponowienia {len(remaining)}"
        )

        return MergeResult(merged, conflicts, GuestCart(token=guest_cart.token, items=remaining))

    def detach(self) -> GuestCart:
        # wylogowanie: brak odwrotnego merge, nowy pusty koszyk goscia
        return GuestCart()
