# storefront/services/order_service.py
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from storefront.data.models.order import OrderModel
from storefront.domain.enums import ORDER_STATUS_TRANSITIONS, OrderStatus, PaymentStatus
from storefront.domain.errors import InvalidStatusTransitionError, OrderNotFoundError, PersistenceError
from storefront.repos.order_repo import OrderRepo
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class OrderService:
    """
    Odczyt zamowien i zmiany statusu przez obsluge sklepu.
    Skladanie zamowien jest w CheckoutService.
    """

    def __init__(self, db: Session):
        self.repo = OrderRepo(db)

    def get_order(self, order_id: int, user_id: int | None = None) -> OrderModel:
        """
        Use Case: Pobranie zamowienia (Query).
        Zamowienie uzytkownika widzi tylko jego wlasciciel.
        """
        order = self.repo.get_order(order_id)

        if not order:
            raise OrderNotFoundError(order_id)

        if order.user_id is not None and order.user_id != user_id:
            raise PermissionError("Brak dostępu do zamówienia")

        return order

    def list_user_orders(self, user_id: int) -> list[OrderModel]:
        return self.repo.list_user_orders(user_id)

    def update_status(
        self,
        order_id: int,
        status: OrderStatus | None = None,
        payment_status: PaymentStatus | None = None,
    ) -> OrderModel:
        """
        Use Case: zmiana statusu (Command), tylko pola status/payment_status.
        """
        order = self.repo.get_order(order_id)
        if not order:
            raise OrderNotFoundError(order_id)

        if status is not None:
            try:
                current = OrderStatus(order.status)
            except ValueError:
                raise InvalidStatusTransitionError(order_id, order.status, status.value)
            if status != current and status not in ORDER_STATUS_TRANSITIONS[current]:
                raise InvalidStatusTransitionError(order_id, current.value, status.value)

        try:
            updated = self.repo.update_order_status(
                order,
                status=status.value if status is not None else None,
                payment_status=payment_status.value if payment_status is not None else None,
            )
        except SQLAlchemyError as e:
            self.repo.rollback()
            raise PersistenceError("update_status", {"order_id": order_id}) from e

        logger.info(f"Order {order_id}: status={updated.status}, payment_status={updated.payment_status}")
        return updated
