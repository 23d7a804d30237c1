# storefront/data/seed.py
from decimal import Decimal

from storefront.data.database import SessionLocal, init_db
from storefront.data.models.product import ProductModel
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

PRODUCTS = [
    {"id": 1, "name": "Keyboard", "slug": "keyboard", "price_regular": Decimal("199.99"), "price_offer": None, "stock": 25},
    {"id": 2, "name": "Mouse", "slug": "mouse", "price_regular": Decimal("49.50"), "price_offer": Decimal("39.00"), "stock": 100},
    {"id": 3, "name": "Monitor", "slug": "monitor", "price_regular": Decimal("899.00"), "price_offer": Decimal("0"), "stock": 5},
]


def seed(db=None) -> int:
    """Produkty demo do lokalnego uruchomienia; tylko gdy tabela jest pusta."""
    own_session = db is None
    db = db or SessionLocal()
    try:
        if db.query(ProductModel).first():
            return 0
        for data in PRODUCTS:
            db.add(ProductModel(image_urls=[], **data))
        db.commit()
        logger.info(f"Dodano {len(PRODUCTS)} produktow demo")
        return len(PRODUCTS)
    finally:
        if own_session:
            db.close()


if __name__ == "__main__":
    init_db()
    seed()
