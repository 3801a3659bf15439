"""
Stores

Thin data-access objects over the relational schema in ``database``. Each
store is built with the engine it should use; there is no shared global
connection.
"""

import logging
from datetime import timezone
from typing import Dict, Iterable, List, Optional, Sequence, Set

from sqlalchemy import select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from database import order_items, orders, products, users, utcnow
from errors import ConflictError, StorageError, ValidationError
from schemas import CartItem, OrderItemView, OrderWithItems, Product, User, UserRecord

logger = logging.getLogger(__name__)


class CatalogStore:
    def __init__(self, engine: Engine):
        self.engine = engine

    def list_products(self) -> List[Product]:
        query = select(products).order_by(products.c.id)
        try:
            with self.engine.connect() as conn:
                rows = conn.execute(query).mappings().all()
        except SQLAlchemyError as e:
            logger.exception("Failed to list products")
            raise StorageError("Failed to fetch products") from e
        return [Product(**row) for row in rows]

    def existing_ids(self, ids: Iterable[int]) -> Set[int]:
        wanted = set(ids)
        if not wanted:
            return set()
        query = select(products.c.id).where(products.c.id.in_(wanted))
        try:
            with self.engine.connect() as conn:
                return set(conn.execute(query).scalars().all())
        except SQLAlchemyError as e:
            logger.exception("Failed to look up product ids")
            raise StorageError("Failed to fetch products") from e


class IdentityStore:
    def __init__(self, engine: Engine):
        self.engine = engine

    def find_by_email(self, email: str) -> Optional[UserRecord]:
        query = select(users).where(users.c.email == email)
        try:
            with self.engine.connect() as conn:
                row = conn.execute(query).mappings().first()
        except SQLAlchemyError as e:
            logger.exception("Failed to look up user")
            raise StorageError("Failed to look up user") from e
        return UserRecord(**row) if row else None

    def create(self, name: str, email: str, password_hash: str) -> User:
        """Insert a user and return it without the hash.

        Callers check ``find_by_email`` first; a concurrent registration
        that slips past that check still lands on the unique constraint.
        """
        stmt = users.insert().values(name=name, email=email, password_hash=password_hash)
        try:
            with self.engine.begin() as conn:
                user_id = conn.execute(stmt).inserted_primary_key[0]
        except IntegrityError as e:
            raise ConflictError("User with this email already exists") from e
        except SQLAlchemyError as e:
            logger.exception("Failed to create user")
            raise StorageError("Failed to create user") from e
        return User(id=user_id, name=name, email=email)


class OrderStore:
    def __init__(self, engine: Engine):
        self.engine = engine

    def create_order(self, customer_name: str, email: str, address: str, items: Sequence[CartItem]) -> int:
        """Persist an order and all of its items in one transaction.

        Either the order row and every item row commit together, or the
        transaction rolls back and nothing is visible to later reads.
        """
        if not items:
            raise ValidationError("Order must contain at least one item")
        try:
            with self.engine.begin() as conn:
                result = conn.execute(
                    orders.insert().values(
                        customer_name=customer_name,
                        email=email,
                        address=address,
                        created_at=utcnow(),
                    )
                )
                order_id = result.inserted_primary_key[0]
                conn.execute(
                    order_items.insert(),
                    [
                        {"order_id": order_id, "product_id": item.product_id, "quantity": item.quantity}
                        for item in items
                    ],
                )
        except SQLAlchemyError as e:
            logger.exception("Failed to create order for %d items", len(items))
            raise StorageError("Failed to create order") from e
        logger.info("Created order %s with %d items", order_id, len(items))
        return order_id

    def orders_for_email(self, email: str) -> List[OrderWithItems]:
        """Orders placed under ``email``, newest first, each with its items.

        Item prices come from the current catalog, not from the time of
        purchase. Orders without any item rows are not returned.
        """
        query = (
            select(
                orders.c.id.label("order_id"),
                orders.c.customer_name,
                orders.c.email,
                orders.c.address,
                orders.c.created_at,
                products.c.name.label("product_name"),
                products.c.price.label("product_price"),
                order_items.c.quantity,
            )
            .select_from(
                orders.join(order_items, order_items.c.order_id == orders.c.id).join(
                    products, products.c.id == order_items.c.product_id
                )
            )
            .where(orders.c.email == email)
            .order_by(orders.c.created_at.desc(), orders.c.id.desc(), order_items.c.id)
        )
        try:
            with self.engine.connect() as conn:
                rows = conn.execute(query).mappings().all()
        except SQLAlchemyError as e:
            logger.exception("Failed to load orders")
            raise StorageError("Failed to load orders") from e
        return fold_order_rows(rows)


def fold_order_rows(rows) -> List[OrderWithItems]:
    """Fold flat order/item rows into nested orders.

    The first row seen for an order id builds the order; later rows with the
    same id only append an item. Order of first appearance is preserved.
    """
    folded: Dict[int, OrderWithItems] = {}
    for row in rows:
        order = folded.get(row["order_id"])
        if order is None:
            created_at = row["created_at"]
            if created_at.tzinfo is None:
                created_at = created_at.replace(tzinfo=timezone.utc)
            order = OrderWithItems(
                id=row["order_id"],
                customer_name=row["customer_name"],
                email=row["email"],
                address=row["address"],
                created_at=created_at,
            )
            folded[row["order_id"]] = order
        order.items.append(
            OrderItemView(
                product_name=row["product_name"],
                price=row["product_price"],
                quantity=row["quantity"],
            )
        )
    return list(folded.values())
