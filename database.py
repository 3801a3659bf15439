"""
Database

Relational schema for the storefront (products, users, orders, order_items)
and helpers to build an engine and bootstrap the store. The engine is created
by the caller and handed to the stores; nothing here is a process-wide handle.
"""

import logging
from datetime import datetime, timezone

from sqlalchemy import (
    Column,
    DateTime,
    ForeignKey,
    Integer,
    MetaData,
    Numeric,
    String,
    Table,
    Text,
    create_engine,
    event,
    func,
    select,
)
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)

metadata = MetaData()

products = Table(
    "products",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String(255), nullable=False),
    Column("description", Text, nullable=True),
    Column("price", Numeric(10, 2, asdecimal=False), nullable=False),
    Column("image_url", String(1000), nullable=True),
    Column("size", String(255), nullable=True),
    Column("category", String(100), nullable=True),
)

users = Table(
    "users",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String(255), nullable=False),
    Column("email", String(255), nullable=False, unique=True),
    Column("password_hash", String(255), nullable=False),
)

orders = Table(
    "orders",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("customer_name", String(255), nullable=False),
    Column("email", String(255), nullable=False, index=True),
    Column("address", Text, nullable=False),
    Column("created_at", DateTime(timezone=True), nullable=False),
)

order_items = Table(
    "order_items",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("order_id", Integer, ForeignKey("orders.id"), nullable=False, index=True),
    Column("product_id", Integer, ForeignKey("products.id"), nullable=False),
    Column("quantity", Integer, nullable=False),
)

SAMPLE_PRODUCTS = [
    {
        "name": "Classic T-Shirt",
        "description": "Soft cotton t-shirt in multiple colors.",
        "price": 19.99,
        "image_url": "/images/tshirt.jpg",
        "size": "S,M,L,XL",
        "category": "Top",
    },
    {
        "name": "Blue Jeans",
        "description": "Slim fit denim jeans.",
        "price": 39.99,
        "image_url": "/images/jeans.jpg",
        "size": "30,32,34,36",
        "category": "Bottom",
    },
    {
        "name": "Hoodie",
        "description": "Comfortable fleece hoodie.",
        "price": 29.99,
        "image_url": "/images/hoodie.jpg",
        "size": "S,M,L,XL",
        "category": "Top",
    },
    {
        "name": "Sneakers",
        "description": "Casual everyday sneakers.",
        "price": 49.99,
        "image_url": "/images/sneakers.jpg",
        "size": "7,8,9,10",
        "category": "Shoes",
    },
]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def make_engine(database_url: str, timeout: float = 10.0) -> Engine:
    """Create an engine for ``database_url`` with a driver-level timeout.

    SQLite gets foreign keys switched on for every connection (it ignores
    them otherwise) and in-memory URLs share a single connection so every
    caller sees the same database.
    """
    url = make_url(database_url)
    if url.get_backend_name() == "sqlite":
        kwargs = {"connect_args": {"check_same_thread": False, "timeout": timeout}}
        if url.database in (None, "", ":memory:"):
            kwargs["poolclass"] = StaticPool
        engine = create_engine(url, **kwargs)
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
        return engine
    return create_engine(
        url,
        pool_pre_ping=True,
        pool_timeout=timeout,
        connect_args={"connect_timeout": int(timeout)},
    )


def init_db(engine: Engine, seed: bool = True) -> None:
    """Create tables and, if the catalog is empty, insert the starter products."""
    metadata.create_all(engine)
    if not seed:
        return
    with engine.begin() as conn:
        count = conn.execute(select(func.count()).select_from(products)).scalar_one()
        if count == 0:
            conn.execute(products.insert(), SAMPLE_PRODUCTS)
            logger.info("Seeded catalog with %d products", len(SAMPLE_PRODUCTS))
    logger.info("Database initialized")
