#import wszystkich modeli zeby SQLAlchemy je zarejestrowal w base metadata

from storefront.data.models.product import ProductModel
from storefront.data.models.cart_item import UserCartItemModel
from storefront.data.models.order import OrderModel

__all__ = ["ProductModel", "UserCartItemModel", "OrderModel"]
