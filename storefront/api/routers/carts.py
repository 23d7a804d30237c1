#storefront/api/routers/carts.py
from fastapi import APIRouter, Depends, HTTPException, Response
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from storefront.api.deps import get_cart_session, to_http, write_guest_cart
from storefront.data.database import get_db
from storefront.domain.enums import CartMode
from storefront.domain.errors import StorefrontError
from storefront.domain.schemas import (
    CartCountOut,
    CartOut,
    CartValidationOut,
    ItemIn,
    MergeConflictOut,
    MergeOut,
    QuantityIn,
)
from storefront.services.cart_reconciler import CartReconciler
from storefront.services.cart_store import CartSession, CartStore

router = APIRouter(prefix="/cart", tags=["cart"])


def get_store(
    db: Session = Depends(get_db),
    session: CartSession = Depends(get_cart_session),
) -> CartStore:
    return CartStore(db, session)


def _persist_guest(store: CartStore, response: Response):
    # koszyk goscia wraca do klienta po kazdej zmianie
    if store.mode == CartMode.GUEST:
        write_guest_cart(response, store.guest_cart)


@router.get("", response_model=CartOut)
def get_cart(store: CartStore = Depends(get_store)):
    try:
        return store.get_summary()
    except StorefrontError as e:
        raise to_http(e)


@router.get("/count", response_model=CartCountOut)
def get_cart_count(store: CartStore = Depends(get_store)):
    try:
        return CartCountOut(count=store.get_count())
    except StorefrontError as e:
        raise to_http(e)


@router.post("/items", response_model=CartOut)
def add_item(payload: ItemIn, response: Response, store: CartStore = Depends(get_store)):
    try:
        cart = store.add_item(payload.product_id, payload.quantity)
    except StorefrontError as e:
        raise to_http(e)
    _persist_guest(store, response)
    return cart


@router.put("/items/{item_id}", response_model=CartOut)
def update_item(item_id: int, payload: QuantityIn, response: Response, store: CartStore = Depends(get_store)):
    try:
        cart = store.update_quantity(item_id, payload.quantity)
    except StorefrontError as e:
        raise to_http(e)
    _persist_guest(store, response)
    return cart


@router.delete("/items/{item_id}", response_model=CartOut)
def remove_item(item_id: int, response: Response, store: CartStore = Depends(get_store)):
    try:
        cart = store.remove_item(item_id)
    except StorefrontError as e:
        raise to_http(e)
    _persist_guest(store, response)
    return cart


@router.delete("", response_model=CartOut)
def clear_cart(response: Response, store: CartStore = Depends(get_store)):
    try:
        cart = store.clear()
    except StorefrontError as e:
        raise to_http(e)
    _persist_guest(store, response)
    return cart


@router.get("/validate", response_model=CartValidationOut)
def validate_cart(store: CartStore = Depends(get_store)):
    try:
        errors = store.validate_stock()
    except StorefrontError as e:
        raise to_http(e)
    return CartValidationOut(valid=not errors, errors=errors)


@router.post("/merge", response_model=MergeOut)
def merge_guest_cart(
    db: Session = Depends(get_db),
    session: CartSession = Depends(get_cart_session),
):
    """
    Wywolywane po zalogowaniu: koszyk goscia (cookie) -> koszyk uzytkownika.
    Nieprzeniesione pozycje zostaja w cookie do ponowienia.
    """
    if session.user_id is None:
        raise HTTPException(status_code=401, detail="Wymagane zalogowanie")

    result = CartReconciler(db).merge(session.user_id, session.guest_cart)

    try:
        cart = CartStore(db, CartSession(user_id=session.user_id)).get_summary()
    except StorefrontError as e:
        raise to_http(e)

    body = MergeOut(
        merged=result.merged,
        conflicts=[
            MergeConflictOut(product_id=c.product_id, quantity=c.quantity, message=c.message)
            for c in result.conflicts
        ],
        cart=cart,
    )
    response = JSONResponse(
        status_code=200 if result.ok else 409,
        content=body.model_dump(mode="json"),
    )
    write_guest_cart(response, result.guest_cart)
    return response


@router.post("/logout", response_model=CartOut)
def detach_cart(response: Response, db: Session = Depends(get_db)):
    # po wylogowaniu zaczyna sie nowy, pusty koszyk goscia
    guest_cart = CartReconciler(db).detach()
    write_guest_cart(response, guest_cart)
    return CartStore(db, CartSession(guest_cart=guest_cart)).get_summary()
