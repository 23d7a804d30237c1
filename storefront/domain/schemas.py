# storefront/domain/schemas.py
import uuid

from pydantic import BaseModel, Field, ConfigDict, model_validator
from typing import List
from decimal import Decimal
from datetime import datetime

from storefront.domain.enums import CartMode, OrderStatus, PaymentStatus


class ItemIn(BaseModel):
    """Schema dla dodawania produktu do koszyka."""

    product_id: int = Field(..., gt=0, description="ID produktu (musi być > 0)")
    # ilosc walidowana w CartStore, zeby blad mial ten sam format w obu trybach
    quantity: int = Field(1, description="Ilość produktu")


class QuantityIn(BaseModel):
    """Schema dla zmiany ilości; <= 0 usuwa pozycję."""

    quantity: int


class ProductSnapshot(BaseModel):
    """Zdenormalizowane dane produktu zapisane w koszyku gościa."""

    id: int
    name: str = ""
    slug: str = ""
    price_regular: Decimal | None = None
    price_offer: Decimal | None = None
    price: Decimal = Decimal("0.00")
    image_url: str | None = None
    stock: int = 0


class GuestCartItem(BaseModel):
    product_id: int
    quantity: int
    product: ProductSnapshot


def _new_token() -> str:
    return uuid.uuid4().hex


class GuestCart(BaseModel):
    """
    Koszyk gościa trzymany po stronie klienta (cookie).

    Cookie pochodzi od klienta, więc przy każdym odczycie: jedna pozycja na
    produkt (ilości sumowane), pozycje z ilością < 1 odrzucane.
    token identyfikuje przeglądarkę gościa (blokada checkout).
    """

    token: str = Field(default_factory=_new_token, min_length=1, max_length=64)
    items: List[GuestCartItem] = Field(default_factory=list)

    @model_validator(mode="after")
    def normalize_items(self) -> "GuestCart":
        merged: dict[int, GuestCartItem] = {}
        for item in self.items:
            if item.quantity < 1:
                continue
            existing = merged.get(item.product_id)
            if existing is None:
                merged[item.product_id] = item
            else:
                merged[item.product_id] = existing.model_copy(
                    update={"quantity": existing.quantity + item.quantity}
                )
        self.items = list(merged.values())
        return self


class CartLineOut(BaseModel):
    """Pozycja koszyka (response). Dla gościa id == product_id."""

    id: int
    product_id: int
    quantity: int
    unit_price: Decimal
    line_total: Decimal
    product: ProductSnapshot


class CartOut(BaseModel):
    """Schema dla koszyka (response), zawsze liczona od nowa."""

    mode: CartMode
    items: List[CartLineOut]
    total_items: int
    total_price: Decimal
    item_count: int


class CartCountOut(BaseModel):
    count: int


class CartValidationOut(BaseModel):
    valid: bool
    errors: List[str]


class MergeConflictOut(BaseModel):
    product_id: int
    quantity: int
    message: str


class MergeOut(BaseModel):
    merged: List[int]
    conflicts: List[MergeConflictOut]
    cart: CartOut


class AddressIn(BaseModel):
    """
    Blok adresu rozliczeniowego / wysyłki.
    Puste wartości domyślne, wymagalność sprawdza CheckoutService
    (błąd wskazuje konkretne pole, np. billing.phone).
    """

    name: str = ""
    phone: str = ""
    email: str | None = None
    address: str = ""
    city: str = ""
    district: str = ""
    country: str = ""
    postal: str = ""


class CheckoutIn(BaseModel):
    """Schema dla złożenia zamówienia."""

    billing: AddressIn = Field(default_factory=AddressIn)
    shipping: AddressIn | None = None
    same_as_billing: bool = True
    payment_method: str = ""
    notes: str | None = None


class OrderLineOut(BaseModel):
    product_id: int
    quantity: int
    price: Decimal
    product: dict


class OrderOut(BaseModel):
    """Schema dla zamówienia (response)."""

    id: int
    user_id: int | None
    cart_items: List[OrderLineOut]
    total: Decimal
    payment_method: str
    payment_channel: str | None = None
    payment_status: str
    status: str

    billing_name: str
    billing_phone: str
    billing_email: str | None = None
    billing_address: str
    billing_city: str
    billing_district: str
    billing_country: str
    billing_postal: str | None = None

    shipping_name: str
    shipping_phone: str
    shipping_email: str | None = None
    shipping_address: str
    shipping_city: str
    shipping_district: str
    shipping_country: str
    shipping_postal: str | None = None

    notes: str | None = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class CheckoutOut(BaseModel):
    order: OrderOut
    redirect_url: str


class OrderSummaryOut(BaseModel):
    id: int
    created_at: datetime
    total: Decimal
    status: str

    model_config = ConfigDict(from_attributes=True)


class OrderStatusIn(BaseModel):
    """Zmiana statusu przez obsługę sklepu."""

    status: OrderStatus | None = None
    payment_status: PaymentStatus | None = None
