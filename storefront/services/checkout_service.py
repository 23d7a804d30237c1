# storefront/services/checkout_service.py
from redis.exceptions import RedisError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from storefront.data.models.order import OrderModel
from storefront.data.models.product import ProductModel
from storefront.domain.enums import CartMode, OrderStatus, PaymentMethod, PaymentStatus
from storefront.domain.errors import (
    CheckoutInProgressError,
    PersistenceError,
    StockError,
    StorefrontError,
    ValidationError,
)
from storefront.domain.schemas import AddressIn
from storefront.repos.order_repo import OrderRepo
from storefront.repos.product_repo import ProductRepo
from storefront.services.cart_store import CartLine, CartStore
from storefront.services.lock_service import LockService
from storefront.services.notification_service import NotificationService
from storefront.services.price_resolver import ZERO, quantize, resolve_price
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

REQUIRED_ADDRESS_FIELDS = ("name", "phone", "address", "city", "district", "country", "postal")

REDIRECTS = {
    PaymentMethod.BKASH: "/cart/payment/bkash?order_id={order_id}",
    PaymentMethod.NAGAD: "/cart/payment/nagad?order_id={order_id}",
    PaymentMethod.BANK: "/orders/{order_id}",
}


class CheckoutResult:
    def __init__(self, order: OrderModel, redirect_url: str):
        self.order = order
        self.redirect_url = redirect_url


def validate_address(prefix: str, address: AddressIn) -> None:
    for name in REQUIRED_ADDRESS_FIELDS:
        value = getattr(address, name, None)
        if value is None or not str(value).strip():
            raise ValidationError(f"{prefix}.{name}", f"Pole {prefix}.{name} jest wymagane")


def parse_payment_method(value: str) -> PaymentMethod:
    try:
        return PaymentMethod(value)
    except ValueError:
        raise ValidationError(
            "payment_method",
            "Nieobslugiwana metoda platnosci",
            {"payment_method": value, "allowed": [m.value for m in PaymentMethod]},
        )


def redirect_for(method: PaymentMethod, order_id: int) -> str:
    return REDIRECTS[method].format(order_id=order_id)


def _product_snapshot(product: ProductModel) -> dict:
    images = product.image_urls or []
    return {
        "id": product.id,
        "name": product.name,
        "slug": product.slug or "",
        "price_regular": str(product.price_regular) if product.price_regular is not None else None,
        "price_offer": str(product.price_offer) if product.price_offer is not None else None,
        "image_url": images[0] if images else None,
    }


def _lock_owner(store: CartStore) -> str:
    if store.mode == CartMode.USER:
        return f"user:{store.session.user_id}"
    # gosc nie ma id, token z cookie rozroznia przegladarki
    return f"guest:{store.guest_cart.token}"


def _requested_quantities(lines: list[CartLine]) -> dict[int, int]:
    """Ilosc na produkt; koszyk goscia pochodzi od klienta, wiec sprawdzamy tu jeszcze raz."""
    requested: dict[int, int] = {}
    for line in lines:
        if isinstance(line.quantity, bool) or not isinstance(line.quantity, int) or line.quantity < 1:
            raise ValidationError(
                f"cart_items[{line.product_id}].quantity",
                "Ilosc musi byc wieksza niz 0",
                {"product_id": line.product_id, "quantity": line.quantity},
            )
        requested[line.product_id] = requested.get(line.product_id, 0) + line.quantity
    return requested


class CheckoutService:
    """
    Sklada zamowienie z aktywnego koszyka (gosc albo user).

    1. Walidacja koszyka, metody platnosci i adresow
    2. Ceny liczone od nowa z aktualnych produktow + kontrola stanu
    3. Zapis zamowienia (snapshot + total)
    4. Czyszczenie koszyka i powiadomienie - osobne kroki, ich blad nie cofa zamowienia
    """

    def __init__(
        self,
        db: Session,
        lock_service: LockService,
        notification_service: NotificationService | None = None,
    ):
        self.repo = OrderRepo(db)
        self.products = ProductRepo(db)
        self.lock_service = lock_service
        self.notification_service = notification_service or NotificationService()

    def submit_order(
        self,
        store: CartStore,
        billing: AddressIn,
        shipping: AddressIn | None,
        payment_method: str,
        notes: str | None = None,
        same_as_billing: bool = True,
    ) -> CheckoutResult:
        lines = store.lines()
        if not lines:
            raise ValidationError("cart", "Koszyk jest pusty")

        method = parse_payment_method(payment_method)

        validate_address("billing", billing)
        if same_as_billing:
            shipping = billing.model_copy()
        elif shipping is None:
            raise ValidationError("shipping", "Brak adresu wysylki")
        else:
            validate_address("shipping", shipping)

        owner = _lock_owner(store)
        token = self.lock_service.new_token()
        try:
            locked = self.lock_service.acquire_checkout_lock(owner, token)
        except RedisError as e:
            logger.error(f"Nie mozna zalozyc blokady checkout {owner}: {e}")
            raise PersistenceError("checkout_lock") from e

        if not locked:
            raise CheckoutInProgressError(owner)

        try:
            # koszyk czytany ponownie pod blokada
            lines = store.lines()
            if not lines:
                raise ValidationError("cart", "Koszyk jest pusty")
            order = self._create_order(store, lines, billing, shipping, method, notes)
        finally:
            try:
                self.lock_service.release_checkout_lock(owner, token)
            except RedisError as e:
                # lock i tak wygasnie po TTL
                logger.warning(f"Nie udalo sie zwolnic blokady {owner}: {e}")

        self._clear_cart(store, order.id)
        self._notify(order)

        return CheckoutResult(order, redirect_for(method, order.id))

    def _create_order(
        self,
        store: CartStore,
        lines: list[CartLine],
        billing: AddressIn,
        shipping: AddressIn,
        method: PaymentMethod,
        notes: str | None,
    ) -> OrderModel:
        requested = _requested_quantities(lines)
        names = {line.product_id: getattr(line.product, "name", None) for line in lines}

        try:
            live = self.products.get_products(list(requested))
        except SQLAlchemyError as e:
            self.repo.rollback()
            raise PersistenceError("submit_order") from e

        cart_items = []
        total = ZERO
        for product_id, quantity in requested.items():
            product = live.get(product_id)
            if product is None:
                raise StockError(product_id, quantity, 0, names.get(product_id))
            if quantity > (product.stock or 0):
                raise StockError(product.id, quantity, product.stock or 0, product.name)

            # cena zawsze od nowa, nie z podsumowania koszyka
            price = resolve_price(product)
            total += price * quantity
            cart_items.append(
                {
                    "product_id": product.id,
                    "quantity": quantity,
                    "price": str(price),
                    "product": _product_snapshot(product),
                }
            )

        order = OrderModel(
            user_id=store.session.user_id,
            cart_items=cart_items,
            total=quantize(total),
            payment_method=method.value,
            payment_channel=method.value,
            payment_status=PaymentStatus.PENDING.value,
            status=OrderStatus.PENDING.value,
            billing_name=billing.name,
            billing_phone=billing.phone,
            billing_email=billing.email or None,
            billing_address=billing.address,
            billing_city=billing.city,
            billing_district=billing.district,
            billing_country=billing.country,
            billing_postal=billing.postal,
            shipping_name=shipping.name,
            shipping_phone=shipping.phone,
            shipping_email=shipping.email or None,
            shipping_address=shipping.address,
            shipping_city=shipping.city,
            shipping_district=shipping.district,
            shipping_country=shipping.country,
            shipping_postal=shipping.postal,
            notes=notes,
        )

        try:
            created = self.repo.create_order(order)
        except SQLAlchemyError as e:
            self.repo.rollback()
            logger.error(f"Blad zapisu zamowienia: {e}")
            raise PersistenceError("submit_order") from e

        logger.info(
            f"Order {created.id} created ({store.mode.value}, {len(cart_items)} pozycji, "
            f"total {created.total}, {method.value})"
        )
        return created

    def _clear_cart(self, store: CartStore, order_id: int) -> None:
        # zamowienie juz zapisane, blad czyszczenia tylko logujemy
        try:
            store.clear()
        except StorefrontError as e:
            logger.warning(f"Zamowienie {order_id} zapisane, ale koszyk nie zostal wyczyszczony: {e!r}")

    def _notify(self, order: OrderModel) -> None:
        try:
            self.notification_service.send_order_notification(order.id, order.billing_phone, str(order.total))
        except Exception as e:
            logger.warning(f"Failed to queue notification for order {order.id}: {e}")
