from datetime import datetime, timezone

from sqlalchemy import Column, Integer, DateTime, UniqueConstraint, ForeignKey
from sqlalchemy.orm import relationship

from storefront.data.database import Base


def _utcnow():
    return datetime.now(timezone.utc)


class UserCartItemModel(Base):
    __tablename__ = "user_carts"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False)

    quantity = Column(Integer, nullable=False)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    product = relationship("ProductModel", lazy="joined")

    # jeden wiersz na pare (user, produkt), upsert zwieksza ilosc
    __table_args__ = (UniqueConstraint("user_id", "product_id", name="u_user_product"),)
