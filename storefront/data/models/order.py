from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, DateTime, Numeric, JSON, Text

from storefront.data.database import Base


def _utcnow():
    return datetime.now(timezone.utc)


class OrderModel(Base):
    __tablename__ = "user_orders"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, nullable=True, index=True)  # NULL = zamowienie goscia

    # zamrozony snapshot koszyka, nie zmienia sie po utworzeniu
    cart_items = Column(JSON, nullable=False)
    total = Column(Numeric(10, 2), nullable=False)

    payment_method = Column(String, nullable=False)  # bkash, nagad, bank
    payment_channel = Column(String, nullable=True)
    payment_status = Column(String, nullable=False, default="pending")  # pending, paid, failed, refunded
    status = Column(String, nullable=False, default="pending")  # pending, processing, shipped, delivered, cancelled

    billing_name = Column(String, nullable=False)
    billing_phone = Column(String, nullable=False)
    billing_email = Column(String, nullable=True)
    billing_address = Column(String, nullable=False)
    billing_city = Column(String, nullable=False)
    billing_district = Column(String, nullable=False)
    billing_country = Column(String, nullable=False)
    billing_postal = Column(String, nullable=True)

    shipping_name = Column(String, nullable=False)
    shipping_phone = Column(String, nullable=False)
    shipping_email = Column(String, nullable=True)
    shipping_address = Column(String, nullable=False)
    shipping_city = Column(String, nullable=False)
    shipping_district = Column(String, nullable=False)
    shipping_country = Column(String, nullable=False)
    shipping_postal = Column(String, nullable=True)

    notes = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)
