# storefront/services/cart_store.py
from contextlib import contextmanager
from typing import Any, NamedTuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from storefront.data.models.product import ProductModel
from storefront.domain.enums import CartMode
from storefront.domain.errors import PersistenceError, ValidationError
from storefront.domain.schemas import (
    CartLineOut,
    CartOut,
    GuestCart,
    GuestCartItem,
    ProductSnapshot,
)
from storefront.repos.cart_repo import CartRepo
from storefront.repos.product_repo import ProductRepo
from storefront.services.price_resolver import ZERO, line_total, quantize, resolve_price
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class CartSession:
    """
    Kontekst zadania: kto jest zalogowany i jaki koszyk trzyma klient.
    user_id None -> tryb goscia.
    """

    def __init__(self, user_id: int | None = None, guest_cart: GuestCart | None = None):
        self.user_id = user_id
        self.guest_cart = guest_cart if guest_cart is not None else GuestCart()

    @property
    def mode(self) -> CartMode:
        return CartMode.GUEST if self.user_id is None else CartMode.USER


class CartLine(NamedTuple):
    item_id: int
    product_id: int
    quantity: int
    product: Any  # ProductModel albo ProductSnapshot


def snapshot_of(product: ProductModel) -> ProductSnapshot:
    images = product.image_urls or []
    return ProductSnapshot(
        id=product.id,
        name=product.name,
        slug=product.slug or "",
        price_regular=product.price_regular,
        price_offer=product.price_offer,
        price=resolve_price(product),
        image_url=images[0] if images else None,
        stock=product.stock or 0,
    )


@contextmanager
def persistence(repo, operation: str, **details):
    """Blad bazy -> rollback i PersistenceError, koszyk zostaje bez zmian."""
    try:
        yield
    except SQLAlchemyError as e:
        repo.rollback()
        logger.error(f"Blad bazy podczas {operation}: {e}")
        raise PersistenceError(operation, details) from e


class CartBackend:
    mode: CartMode

    def add(self, product: ProductModel, quantity: int) -> None:
        raise NotImplementedError

    def set_quantity(self, item_id: int, quantity: int) -> None:
        raise NotImplementedError

    def remove(self, item_id: int) -> None:
        raise NotImplementedError

    def clear(self) -> None:
        raise NotImplementedError

    def lines(self) -> list[CartLine]:
        raise NotImplementedError

    def count(self) -> int:
        raise NotImplementedError


class GuestCartBackend(CartBackend):
    """Koszyk goscia, tylko w pamieci; pozycja adresowana przez product_id."""

    mode = CartMode.GUEST

    def __init__(self, cart: GuestCart):
        self.cart = cart

    def _find(self, product_id: int) -> GuestCartItem | None:
        return next((i for i in self.cart.items if i.product_id == product_id), None)

    def add(self, product: ProductModel, quantity: int) -> None:
        existing = self._find(product.id)
        if existing:
            existing.quantity += quantity
            existing.product = snapshot_of(product)  # update ceny
        else:
            self.cart.items.append(
                GuestCartItem(
                    product_id=product.id,
                    quantity=quantity,
                    product=snapshot_of(product),
                )
            )

    def set_quantity(self, item_id: int, quantity: int) -> None:
        item = self._find(item_id)
        if not item:
            raise ValidationError("item_id", "Pozycja koszyka nie istnieje", {"item_id": item_id})
        item.quantity = quantity

    def remove(self, item_id: int) -> None:
        self.cart.items = [i for i in self.cart.items if i.product_id != item_id]

    def clear(self) -> None:
        self.cart.items = []

    def lines(self) -> list[CartLine]:
        return [CartLine(i.product_id, i.product_id, i.quantity, i.product) for i in self.cart.items]

    def count(self) -> int:
        return sum(i.quantity for i in self.cart.items)


class UserCartBackend(CartBackend):
    """Koszyk zalogowanego uzytkownika w tabeli user_carts."""

    mode = CartMode.USER

    def __init__(self, repo: CartRepo, user_id: int):
        self.repo = repo
        self.user_id = user_id

    def add(self, product: ProductModel, quantity: int) -> None:
        with persistence(self.repo, "add_item", product_id=product.id):
            self.repo.upsert_item(self.user_id, product.id, quantity)
            self.repo.commit()

    def set_quantity(self, item_id: int, quantity: int) -> None:
        with persistence(self.repo, "update_quantity", item_id=item_id):
            item = self.repo.get_item(self.user_id, item_id)
            if not item:
                raise ValidationError("item_id", "Pozycja koszyka nie istnieje", {"item_id": item_id})
            self.repo.set_quantity(item, quantity)
            self.repo.commit()

    def remove(self, item_id: int) -> None:
        with persistence(self.repo, "remove_item", item_id=item_id):
            self.repo.delete_item(self.user_id, item_id)
            self.repo.commit()

    def clear(self) -> None:
        with persistence(self.repo, "clear"):
            self.repo.delete_all(self.user_id)
            self.repo.commit()

    def lines(self) -> list[CartLine]:
        with persistence(self.repo, "get_summary"):
            items = self.repo.get_items(self.user_id)
        return [CartLine(i.id, i.product_id, i.quantity, i.product) for i in items]

    def count(self) -> int:
        with persistence(self.repo, "get_count"):
            return self.repo.count_items(self.user_id)


class CartStore:
    """
    Jeden logiczny koszyk niezaleznie od logowania.
    Tryb wybierany z CartSession przy tworzeniu, nie ma globalnego "current user".
    """

    def __init__(self, db: Session, session: CartSession):
        self.session = session
        self.products = ProductRepo(db)
        self.cart_repo = CartRepo(db)

        if session.user_id is None:
            self.backend: CartBackend = GuestCartBackend(session.guest_cart)
        else:
            self.backend = UserCartBackend(self.cart_repo, session.user_id)

    @property
    def mode(self) -> CartMode:
        return self.backend.mode

    @property
    def guest_cart(self) -> GuestCart:
        return self.session.guest_cart

    #commands
    def add_item(self, product_id: int, quantity: int) -> CartOut:
        _check_quantity(quantity)

        with persistence(self.cart_repo, "add_item", product_id=product_id):
            product = self.products.get_product(product_id)
        if not product:
            raise ValidationError("product_id", "Produkt nie istnieje", {"product_id": product_id})

        self.backend.add(product, quantity)
        logger.info(f"[{self.mode.value}] Dodano produkt {product_id} x{quantity} do koszyka")
        return self.get_summary()

    def update_quantity(self, item_id: int, quantity: int) -> CartOut:
        _check_int(quantity)

        if quantity <= 0:
            # zero nie zostaje w koszyku
            self.backend.remove(item_id)
            logger.info(f"[{self.mode.value}] Pozycja {item_id} usunieta (ilosc {quantity})")
        else:
            self.backend.set_quantity(item_id, quantity)
            logger.info(f"[{self.mode.value}] Pozycja {item_id} ilosc -> {quantity}")
        return self.get_summary()

    def remove_item(self, item_id: int) -> CartOut:
        self.backend.remove(item_id)
        logger.info(f"[{self.mode.value}] Usunieto pozycje {item_id} z koszyka")
        return self.get_summary()

    def clear(self) -> CartOut:
        self.backend.clear()
        logger.info(f"[{self.mode.value}] Koszyk wyczyszczony")
        return self.get_summary()

    #query
    def lines(self) -> list[CartLine]:
        return self.backend.lines()

    def get_summary(self) -> CartOut:
        # total liczony od nowa przy kazdym odczycie
        items = []
        total_price = ZERO
        for line in self.backend.lines():
            unit_price = resolve_price(line.product)
            total = line_total(line.product, line.quantity)
            total_price += total

            if isinstance(line.product, ProductSnapshot):
                snapshot = line.product
            elif line.product is not None:
                snapshot = snapshot_of(line.product)
            else:
                snapshot = ProductSnapshot(id=line.product_id)

            items.append(
                CartLineOut(
                    id=line.item_id,
                    product_id=line.product_id,
                    quantity=line.quantity,
                    unit_price=unit_price,
                    line_total=total,
                    product=snapshot,
                )
            )

        return CartOut(
            mode=self.mode,
            items=items,
            total_items=sum(i.quantity for i in items),
            total_price=quantize(total_price),
            item_count=len(items),
        )

    def get_count(self) -> int:
        return self.backend.count()

    def contains(self, product_id: int) -> bool:
        return any(line.product_id == product_id for line in self.backend.lines())

    def validate_stock(self) -> list[str]:
        """Pozycje przekraczajace aktualny stan magazynu (zywe dane z products)."""
        lines = self.backend.lines()
        with persistence(self.cart_repo, "validate_stock"):
            live = self.products.get_products([line.product_id for line in lines])

        errors = []
        for line in lines:
            product = live.get(line.product_id)
            available = product.stock if product else 0
            if line.quantity > available:
                name = product.name if product else getattr(line.product, "name", f"Produkt {line.product_id}")
                errors.append(f"{name} - Only {available} available")
        return errors


def _check_int(quantity: Any) -> None:
    if isinstance(quantity, bool) or not isinstance(quantity, int):
        raise ValidationError("quantity", "Ilosc musi byc liczba calkowita", {"quantity": quantity})


def _check_quantity(quantity: Any) -> None:
    _check_int(quantity)
    if quantity <= 0:
        raise ValidationError("quantity", "Ilosc musi byc wieksza niz 0", {"quantity": quantity})

