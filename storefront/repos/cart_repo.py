# storefront/repos/cart_repo.py
from datetime import datetime, timezone

from sqlalchemy import select, delete, func
from sqlalchemy.orm import Session

from storefront.data.models.cart_item import UserCartItemModel


class CartRepo:
    """Dostep do tabeli user_carts, jeden wiersz na (user_id, product_id)."""

    def __init__(self, db: Session):
        self.db = db

    def get_items(self, user_id: int) -> list[UserCartItemModel]:
        stmt = (
            select(UserCartItemModel)
            .where(UserCartItemModel.user_id == user_id)
            .order_by(UserCartItemModel.created_at.desc(), UserCartItemModel.id.desc())
        )
        return list(self.db.execute(stmt).scalars().unique().all())

    def get_item(self, user_id: int, item_id: int) -> UserCartItemModel | None:
        stmt = select(UserCartItemModel).where(
            UserCartItemModel.id == item_id,
            UserCartItemModel.user_id == user_id,
        )
        return self.db.execute(stmt).scalars().first()

    def get_item_by_product(self, user_id: int, product_id: int) -> UserCartItemModel | None:
        stmt = select(UserCartItemModel).where(
            UserCartItemModel.user_id == user_id,
            UserCartItemModel.product_id == product_id,
        )
        return self.db.execute(stmt).scalars().first()

    def upsert_item(self, user_id: int, product_id: int, quantity: int) -> None:
        """
        INSERT ... ON CONFLICT (user_id, product_id) DO UPDATE quantity = quantity + nowa.
        Dwa rownolegle dodania sumuja sie zamiast nadpisywac.
        """
        now = datetime.now(timezone.utc)
        dialect = self.db.get_bind().dialect.name

        if dialect == "postgresql":
            from sqlalchemy.dialects.postgresql import insert
        elif dialect == "sqlite":
            from sqlalchemy.dialects.sqlite import insert
        else:
            self._upsert_fallback(user_id, product_id, quantity, now)
            return

        stmt = insert(UserCartItemModel).values(
            user_id=user_id,
            product_id=product_id,
            quantity=quantity,
            created_at=now,
            updated_at=now,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["user_id", "product_id"],
            set_={
                "quantity": UserCartItemModel.quantity + stmt.excluded.quantity,
                "updated_at": now,
            },
        )
        self.db.execute(stmt)

    def _upsert_fallback(self, user_id: int, product_id: int, quantity: int, now: datetime) -> None:
        existing = self.get_item_by_product(user_id, product_id)
        if existing:
            existing.quantity += quantity
            existing.updated_at = now
        else:
            self.db.add(
                UserCartItemModel(
                    user_id=user_id,
                    product_id=product_id,
                    quantity=quantity,
                )
            )
        self.db.flush()

    def set_quantity(self, item: UserCartItemModel, quantity: int) -> None:
        item.quantity = quantity
        self.db.flush()

    def delete_item(self, user_id: int, item_id: int) -> int:
        result = self.db.execute(
            delete(UserCartItemModel).where(
                UserCartItemModel.id == item_id,
                UserCartItemModel.user_id == user_id,
            )
        )
        return result.rowcount

    def delete_all(self, user_id: int) -> int:
        result = self.db.execute(
            delete(UserCartItemModel).where(UserCartItemModel.user_id == user_id)
        )
        return result.rowcount

    def count_items(self, user_id: int) -> int:
        # SUM(quantity), jedno zapytanie niezaleznie od liczby pozycji
        total = self.db.execute(
            select(func.coalesce(func.sum(UserCartItemModel.quantity), 0))
            .where(UserCartItemModel.user_id == user_id)
        ).scalar_one()
        return int(total)

    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()
