"""
Pytest configuration and fixtures for tests.

Baza SQLite w pamieci (StaticPool), Redis z fakeredis, Celery w trybie eager.
Zmienne srodowiskowe musza byc ustawione przed importem storefront.*.
"""

import os

os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["CELERY_TASK_ALWAYS_EAGER"] = "1"
os.environ["SMS_API_URL"] = ""
os.environ["SMS_API_KEY"] = ""

from decimal import Decimal

import fakeredis
import pytest

from storefront.data.database import Base, SessionLocal, engine
from storefront.data.models.product import ProductModel
from storefront.domain.schemas import AddressIn
from storefront.services.lock_service import LockService


# ============================================================================
# Database Fixtures
# ============================================================================

@pytest.fixture(autouse=True)
def tables():
    """Swieze tabele dla kazdego testu."""
    import storefront.data.models  # noqa: F401

    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db(tables):
    session = SessionLocal()
    yield session
    session.rollback()
    session.close()


def make_product(db, id, price_regular, price_offer=None, stock=10, name=None):
    product = ProductModel(
        id=id,
        name=name or f"Product {id}",
        slug=f"product-{id}",
        price_regular=Decimal(str(price_regular)),
        price_offer=Decimal(str(price_offer)) if price_offer is not None else None,
        stock=stock,
        image_urls=[f"https://cdn.example.com/{id}.jpg"],
    )
    db.add(product)
    db.commit()
    return product


@pytest.fixture
def products(db):
    """
    A: regular 100, offer 80
    B: regular 50, offer 0 (0 = brak promocji)
    C: regular 30, bez promocji, stock 2
    """
    return {
        "A": make_product(db, 1, 100, 80, stock=10, name="Product A"),
        "B": make_product(db, 2, 50, 0, stock=10, name="Product B"),
        "C": make_product(db, 3, 30, None, stock=2, name="Product C"),
    }


# ============================================================================
# Redis / lock Fixtures
# ============================================================================

@pytest.fixture
def fake_redis():
    return fakeredis.FakeRedis(decode_responses=True)


@pytest.fixture
def lock_service(fake_redis):
    return LockService(client=fake_redis)


# ============================================================================
# Checkout data
# ============================================================================

@pytest.fixture
def billing():
    return AddressIn(
        name="Rahim Uddin",
        phone="01711000000",
        email="rahim@example.com",
        address="House 12, Road 5",
        city="Dhaka",
        district="Dhaka",
        country="Bangladesh",
        postal="1207",
    )
