# storefront/api/routers/orders.py
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from sqlalchemy.orm import Session

from storefront.api.deps import get_cart_session, get_lock_service, to_http, write_guest_cart
from storefront.data.database import get_db
from storefront.domain.enums import CartMode
from storefront.domain.errors import StorefrontError
from storefront.domain.schemas import CheckoutIn, CheckoutOut, OrderOut, OrderStatusIn, OrderSummaryOut
from storefront.services.cart_store import CartSession, CartStore
from storefront.services.checkout_service import CheckoutService
from storefront.services.lock_service import LockService
from storefront.services.order_service import OrderService

router = APIRouter(prefix="/orders", tags=["orders"])


def get_service(db: Session):
    return OrderService(db)


@router.post("", response_model=CheckoutOut, status_code=201)
def submit_order(
    payload: CheckoutIn,
    response: Response,
    db: Session = Depends(get_db),
    session: CartSession = Depends(get_cart_session),
    lock_service: LockService = Depends(get_lock_service),
):
    """
    Sklada zamowienie z aktywnego koszyka.
    Zwraca zamowienie i adres przekierowania zaleznie od metody platnosci.
    """
    store = CartStore(db, session)
    svc = CheckoutService(db, lock_service=lock_service)
    try:
        result = svc.submit_order(
            store,
            billing=payload.billing,
            shipping=payload.shipping,
            payment_method=payload.payment_method,
            notes=payload.notes,
            same_as_billing=payload.same_as_billing,
        )
    except StorefrontError as e:
        raise to_http(e)

    if store.mode == CartMode.GUEST:
        write_guest_cart(response, store.guest_cart)

    return CheckoutOut(
        order=OrderOut.model_validate(result.order),
        redirect_url=result.redirect_url,
    )


@router.get("/mine", response_model=List[OrderSummaryOut])
def list_my_orders(
    user_id: int = Query(..., gt=0),
    db: Session = Depends(get_db),
):
    return get_service(db).list_user_orders(user_id)


@router.get("/{order_id}", response_model=OrderOut)
def get_order(
    order_id: int,
    user_id: int | None = Query(None),
    db: Session = Depends(get_db),
):
    """
    Pobiera szczegóły zamówienia.
    """
    svc = get_service(db)
    try:
        return svc.get_order(order_id, user_id)
    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except StorefrontError as e:
        raise to_http(e)


@router.patch("/{order_id}/status", response_model=OrderOut)
def update_order_status(
    order_id: int,
    payload: OrderStatusIn,
    db: Session = Depends(get_db),
):
    """
    Zmiana statusu przez obsluge sklepu (snapshot i total bez zmian).
    """
    svc = get_service(db)
    try:
        return svc.update_status(order_id, status=payload.status, payment_status=payload.payment_status)
    except StorefrontError as e:
        raise to_http(e)
