from sqlalchemy import Column, Integer, String, Numeric, JSON

from storefront.data.database import Base


class ProductModel(Base):
    # katalog jest zarzadzany przez panel admina, tutaj tylko odczyt
    __tablename__ = "products"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    slug = Column(String, nullable=False, default="")

    price_regular = Column(Numeric(10, 2), nullable=False)
    price_offer = Column(Numeric(10, 2), nullable=True)  # 0 / NULL = brak promocji
    stock = Column(Integer, nullable=False, default=0)

    image_urls = Column(JSON, nullable=False, default=list)
