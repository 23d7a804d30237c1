# storefront/services/price_resolver.py
"""
Jedno miejsce liczenia ceny jednostkowej produktu.

Kolejnosc:
1. price_offer - jesli jest, nie None i rozny od 0
2. price_regular
3. price (snapshot z koszyka goscia)
4. 0

price_offer == 0 oznacza "brak promocji", NIE darmowy produkt.
Funkcja nigdy nie rzuca wyjatku, brak danych daje 0.
"""
from collections.abc import Mapping
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any

ZERO = Decimal("0.00")
_CENT = Decimal("0.01")


def quantize(amount: Decimal) -> Decimal:
    return amount.quantize(_CENT, rounding=ROUND_HALF_UP)


def _field(product: Any, name: str) -> Any:
    if product is None:
        return None
    if isinstance(product, Mapping):
        return product.get(name)
    return getattr(product, name, None)


def _as_price(value: Any) -> Decimal | None:
    # None / smieci / NaN / ujemne traktujemy jak brak pola
    if value is None or isinstance(value, bool):
        return None
    try:
        price = Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        return None
    if not price.is_finite() or price < 0:
        return None
    return price


def resolve_price(product: Any) -> Decimal:
    offer = _as_price(_field(product, "price_offer"))
    if offer is not None and offer != 0:
        return quantize(offer)

    regular = _as_price(_field(product, "price_regular"))
    if regular is not None:
        return quantize(regular)

    plain = _as_price(_field(product, "price"))
    if plain is not None:
        return quantize(plain)

    return ZERO


def line_total(product: Any, quantity: int) -> Decimal:
    return quantize(resolve_price(product) * quantity)


def format_price(amount: Any) -> str:
    """Kwota w takach, np. ৳1,250.00; brak kwoty -> ৳0.00."""
    if amount is None or isinstance(amount, bool):
        return "৳0.00"
    try:
        price = Decimal(str(amount))
    except (InvalidOperation, ValueError, TypeError):
        return "৳0.00"
    if not price.is_finite():
        return "৳0.00"
    return f"৳{quantize(price):,.2f}"
