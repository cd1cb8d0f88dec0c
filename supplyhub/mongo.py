# supplyhub/mongo.py
from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, Optional

from bson import ObjectId
from pymongo import ASCENDING, DESCENDING, MongoClient
from pymongo.client_session import ClientSession
from pymongo.database import Database

from supplyhub.errors import NotFound

logger = logging.getLogger(__name__)

USERS = "users"
PRODUCTS = "wholesale_products"
ORDERS = "vendor_orders"
ORDER_ITEMS = "vendor_order_items"
ASSIGNMENTS = "delivery_assignments"


def init_mongo(uri: str) -> Database:
    """
    Connect and return the database named in the URI.
    The client is lazy; the first command opens the connection.
    """
    client = MongoClient(uri, tz_aware=True)
    db = client.get_database()
    logger.info("Mongo client created for database %s", db.name)
    return db


def ensure_indexes(db: Database) -> None:
    db[USERS].create_index([("firebaseUid", ASCENDING)], unique=True)
    db[USERS].create_index([("email", ASCENDING)], unique=True)
    db[USERS].create_index([("role", ASCENDING)])

    db[PRODUCTS].create_index([("distributorId", ASCENDING), ("createdAt", DESCENDING)])

    db[ORDERS].create_index([("orderNumber", ASCENDING)], unique=True)
    db[ORDERS].create_index([("vendorId", ASCENDING), ("createdAt", DESCENDING)])
    db[ORDERS].create_index([("distributorId", ASCENDING), ("createdAt", DESCENDING)])

    db[ORDER_ITEMS].create_index([("orderId", ASCENDING)])

    # one assignment per order
    db[ASSIGNMENTS].create_index([("orderId", ASCENDING)], unique=True)
    db[ASSIGNMENTS].create_index([("status", ASCENDING), ("createdAt", DESCENDING)])
    db[ASSIGNMENTS].create_index([("agentId", ASCENDING)])
    logger.info("Mongo indexes ensured")


@contextmanager
def unit_of_work(db: Database, transactional: bool) -> Iterator[Optional[ClientSession]]:
    """
    Yields a session bound to an open transaction, or None when transactions
    are disabled (standalone servers). Callers pass the yielded value as
    ``session=`` to every write and compensate themselves when it is None.
    """
    if not transactional:
        yield None
        return
    with db.client.start_session() as session:
        with session.start_transaction():
            yield session


def now_utc() -> datetime:
    return datetime.now(tz=timezone.utc)


def oid(value: str, what: str = "Record") -> ObjectId:
    """Parse an id from a path; a malformed id cannot exist, so it is a 404."""
    if not value or not ObjectId.is_valid(value):
        raise NotFound(f"{what} not found")
    return ObjectId(value)


def serialize_doc(doc: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    if not doc:
        return doc
    d = dict(doc)
    if "_id" in d:
        d["id"] = str(d.pop("_id"))
    for k, v in list(d.items()):
        if isinstance(v, ObjectId):
            d[k] = str(v)
    return d
