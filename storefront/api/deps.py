# storefront/api/deps.py
import base64
import binascii

from fastapi import HTTPException, Query, Request, Response
from pydantic import ValidationError as SchemaError

from storefront.domain.errors import (
    CheckoutInProgressError,
    InvalidStatusTransitionError,
    MergeConflictError,
    OrderNotFoundError,
    PersistenceError,
    StockError,
    StorefrontError,
    ValidationError,
)
from storefront.domain.schemas import GuestCart
from storefront.services.cart_store import CartSession
from storefront.services.lock_service import LockService
from storefront.utils.settings import GUEST_CART_COOKIE, GUEST_CART_MAX_AGE_SECONDS
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

_STATUS = {
    ValidationError: 422,
    StockError: 409,
    MergeConflictError: 409,
    CheckoutInProgressError: 409,
    InvalidStatusTransitionError: 409,
    OrderNotFoundError: 404,
    PersistenceError: 503,
}


def to_http(e: StorefrontError) -> HTTPException:
    status = _STATUS.get(type(e), 400)
    return HTTPException(status_code=status, detail=e.to_dict())


#koszyk goscia w cookie: base64url(json), odpowiednik localStorage
def encode_guest_cart(cart: GuestCart) -> str:
    return base64.urlsafe_b64encode(cart.model_dump_json().encode()).decode()


def decode_guest_cart(raw: str | None) -> GuestCart:
    if not raw:
        return GuestCart()
    try:
        return GuestCart.model_validate_json(base64.urlsafe_b64decode(raw.encode()))
    except (binascii.Error, ValueError, SchemaError) as e:
        # zepsute cookie -> pusty koszyk, jak przy blednym localStorage
        logger.warning(f"Niepoprawne cookie koszyka goscia, resetuje: {e}")
        return GuestCart()


def write_guest_cart(response: Response, cart: GuestCart) -> None:
    if not cart.items:
        response.delete_cookie(GUEST_CART_COOKIE)
        return
    response.set_cookie(
        GUEST_CART_COOKIE,
        encode_guest_cart(cart),
        max_age=GUEST_CART_MAX_AGE_SECONDS,
        httponly=True,
        samesite="lax",
    )


def get_cart_session(
    request: Request,
    user_id: int | None = Query(None, gt=0, description="ID zalogowanego użytkownika (z auth)"),
) -> CartSession:
    return CartSession(
        user_id=user_id,
        guest_cart=decode_guest_cart(request.cookies.get(GUEST_CART_COOKIE)),
    )


def get_lock_service() -> LockService:
    return LockService()
