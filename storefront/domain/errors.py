"""
Wyjatki domeny koszyka i zamowien.

Serwisy je rzucaja, routery zamieniaja je na ustrukturyzowana odpowiedz
(`{"error", "message", "field", "details"}`), zeby UI moglo pokazac blad
przy konkretnym polu formularza.
"""


class StorefrontError(Exception):
    """
    Bazowy wyjatek serwisu.

    Attributes:
        message: czytelny komunikat
        details: dodatkowy kontekst (id produktu, ilosci, statusy)
    """

    kind = "error"
    field: str | None = None

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        return self.message

    def __repr__(self) -> str:
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.__class__.__name__}('{self.message}', {details_str})"
        return f"{self.__class__.__name__}('{self.message}')"

    def to_dict(self) -> dict:
        return {
            "error": self.kind,
            "message": self.message,
            "field": self.field,
            "details": self.details,
        }


class ValidationError(StorefrontError):
    """Niepoprawne dane wejsciowe: brakujace pole, ilosc <= 0, metoda platnosci."""

    kind = "validation_error"

    def __init__(self, field: str, message: str, details: dict | None = None):
        super().__init__(message, details)
        self.field = field


class StockError(StorefrontError):
    """Zamowiona ilosc przekracza stan magazynu."""

    kind = "stock_error"

    def __init__(self, product_id: int, requested: int, available: int, name: str | None = None):
        label = name or f"Produkt {product_id}"
        super().__init__(
            f"{label} - Only {available} available",
            details={"product_id": product_id, "requested": requested, "available": available},
        )
        self.field = f"cart_items[{product_id}].quantity"
        self.product_id = product_id
        self.requested = requested
        self.available = available


class PersistenceError(StorefrontError):
    """Baza odrzucila zapis lub odczyt. Stan koszyka/zamowienia bez zmian."""

    kind = "persistence_error"

    def __init__(self, operation: str, details: dict | None = None):
        super().__init__("Cos poszlo nie tak, sprobuj ponownie", details={"operation": operation, **(details or {})})
        self.operation = operation


class MergeConflictError(StorefrontError):
    """Pozycja koszyka goscia nie zostala przeniesiona do koszyka uzytkownika."""

    kind = "merge_conflict"

    def __init__(self, product_id: int, quantity: int, reason: str):
        super().__init__(
            f"Nie udalo sie przeniesc produktu {product_id} do koszyka: {reason}",
            details={"product_id": product_id, "quantity": quantity},
        )
        self.product_id = product_id
        self.quantity = quantity


class CheckoutInProgressError(StorefrontError):
    kind = "checkout_in_progress"

    def __init__(self, owner: str):
        super().__init__("Zamowienie jest juz skladane", details={"owner": owner})


class OrderNotFoundError(StorefrontError):
    kind = "not_found"

    def __init__(self, order_id: int):
        super().__init__(f"Zamowienie {order_id} nie istnieje", details={"order_id": order_id})
        self.order_id = order_id


class InvalidStatusTransitionError(StorefrontError):
    kind = "invalid_transition"

    def __init__(self, order_id: int, current: str, requested: str):
        super().__init__(
            f"Niedozwolona zmiana statusu zamowienia {order_id}: {current} -> {requested}",
            details={"order_id": order_id, "current": current, "requested": requested},
        )
        self.field = "status"
