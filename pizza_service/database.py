"""
database.py — MongoDB access for catalog, menu and orders

Collections:
    • variants — one document per ingredient variant {id, name, category, price, stock, threshold}
    • pizzas   — menu pizzas {name, price, description, imageUrl}
    • orders   — orders {user, items, address, currency, total, status, payment, createdAt}

The database handle is provided through `get_db()` so the API can swap it in
tests. Documents leave this module with `_id` exposed as a string `id`.
"""

from datetime import datetime, timezone

from bson import ObjectId
from bson.errors import InvalidId
from pymongo import DESCENDING, MongoClient, ReturnDocument

from . import config
from .catalog import Catalog
from .logging_config import get_logger
from .models import CATEGORY_KEYS

log = get_logger(__name__)

_client = None


def get_client() -> MongoClient:
    global _client
    if _client is None:
        _client = MongoClient(config.MONGO_URL, serverSelectionTimeoutMS=5000)
    return _client


def get_db():
    return get_client()[config.MONGO_DB_NAME]


def utcnow():
    return datetime.now(timezone.utc)


def to_str_id(doc):
    if not doc:
        return doc
    if isinstance(doc, list):
        return [to_str_id(d) for d in doc]
    d = dict(doc)
    if "_id" in d:
        d["id"] = str(d["_id"])
        del d["_id"]
    return d


def _object_id(value):
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        return None


# --- Catalog ---

def load_catalog(db) -> Catalog:
    """Reads a fresh catalog snapshot. Called per request, never cached."""
    return Catalog.from_documents(db["variants"].find({}, {"_id": 0}))


def save_inventory(db, update) -> dict:
    """
    Rewrites stock and threshold of the listed variants in bulk.

    Args:
        db: Database handle.
        update (InventoryUpdate): Per-category lists of {id, stock, threshold}.

    Returns:
        dict: {"updated": int, "unknown": [{"category", "id"}]}.
    """
    updated = 0
    unknown = []
    for category, key in CATEGORY_KEYS.items():
        for entry in getattr(update, key):
            result = db["variants"].update_one(
                {"category": category.value, "id": entry.id},
                {"$set": {"stock": entry.stock, "threshold": entry.threshold}},
            )
            if result.matched_count:
                updated += 1
            else:
                unknown.append({"category": category.value, "id": entry.id})

    if unknown:
        log.warning(f"Inventory save ignored unknown variants: {unknown}")
    log.info(f"Inventory save: {updated} variants updated.")
    return {"updated": updated, "unknown": unknown}


# --- Menu ---

def list_pizzas(db) -> list:
    return to_str_id(list(db["pizzas"].find({}).sort("name")))


def get_pizza(db, pizza_id):
    oid = _object_id(pizza_id)
    if oid is None:
        return None
    return to_str_id(db["pizzas"].find_one({"_id": oid}))


def create_pizza(db, data: dict) -> dict:
    doc = dict(data)
    doc["createdAt"] = utcnow()
    result = db["pizzas"].insert_one(doc)
    doc["_id"] = result.inserted_id
    return to_str_id(doc)


def delete_pizza(db, pizza_id) -> bool:
    """Removes a menu pizza. Orders keep their own item snapshots."""
    oid = _object_id(pizza_id)
    if oid is None:
        return False
    return db["pizzas"].delete_one({"_id": oid}).deleted_count == 1


# --- Orders ---

def insert_order(db, order: dict) -> str:
    result = db["orders"].insert_one(dict(order))
    return str(result.inserted_id)


def get_order(db, order_id):
    oid = _object_id(order_id)
    if oid is None:
        return None
    return to_str_id(db["orders"].find_one({"_id": oid}))


def delete_order(db, order_id):
    oid = _object_id(order_id)
    if oid is not None:
        db["orders"].delete_one({"_id": oid})


def update_order(db, order_id, fields: dict, expected_status=None):
    """
    Applies a $set on the order and returns the updated document, or None if not found.

    With `expected_status` the update only applies while the order is still in
    that status; otherwise nothing is written and None is returned.
    """
    oid = _object_id(order_id)
    if oid is None:
        return None
    query = {"_id": oid}
    if expected_status is not None:
        query["status"] = expected_status
    fields = dict(fields)
    fields["updatedAt"] = utcnow()
    doc = db["orders"].find_one_and_update(
        query, {"$set": fields}, return_document=ReturnDocument.AFTER
    )
    return to_str_id(doc)


def list_orders(db, user_id=None) -> list:
    query = {"user": user_id} if user_id is not None else {}
    return to_str_id(list(db["orders"].find(query).sort([("createdAt", DESCENDING), ("_id", DESCENDING)])))


# --- Seed data ---

DEFAULT_VARIANTS = [
    {"category": "base", "id": "thinCrust", "name": "Thin Crust", "price": 3.0},
    {"category": "base", "id": "handTossed", "name": "Hand Tossed", "price": 3.5},
    {"category": "base", "id": "cheeseBurst", "name": "Cheese Burst", "price": 5.0},
    {"category": "sauce", "id": "tomato", "name": "Tomato", "price": 0.5},
    {"category": "sauce", "id": "whiteSauce", "name": "White Sauce", "price": 0.75},
    {"category": "sauce", "id": "pesto", "name": "Pesto", "price": 1.0},
    {"category": "cheese", "id": "mozzarella", "name": "Mozzarella", "price": 1.0},
    {"category": "cheese", "id": "cheddar", "name": "Cheddar", "price": 1.25},
    {"category": "cheese", "id": "fourCheese", "name": "Four Cheese", "price": 2.0},
    {"category": "veggie", "id": "blackOlives", "name": "Black Olives", "price": 0.6},
    {"category": "veggie", "id": "redOnion", "name": "Red Onion", "price": 0.4},
    {"category": "veggie", "id": "capsicum", "name": "Capsicum", "price": 0.5},
    {"category": "veggie", "id": "jalapeno", "name": "Jalapeno", "price": 0.5},
    {"category": "veggie", "id": "sweetCorn", "name": "Sweet Corn", "price": 0.45},
    {"category": "veggie", "id": "mushroom", "name": "Mushroom", "price": 0.7},
    {"category": "veggie", "id": "paneer", "name": "Paneer", "price": 0.9},
]

DEFAULT_PIZZAS = [
    {"name": "Margherita", "price": 7.99, "description": "Tomato, mozzarella and basil."},
    {"name": "Farmhouse", "price": 9.49, "description": "Onion, capsicum, mushroom and tomato."},
    {"name": "Peppy Paneer", "price": 9.99, "description": "Paneer, capsicum and red paprika."},
    {"name": "Veggie Supreme", "price": 10.99, "description": "Olives, onion, corn, jalapeno and mushroom."},
]

DEFAULT_STOCK = 50
DEFAULT_THRESHOLD = 10


def seed_defaults(db):
    """Seeds the variant and pizza collections when they are empty."""
    if db["variants"].count_documents({}) == 0:
        docs = [dict(v, stock=DEFAULT_STOCK, threshold=DEFAULT_THRESHOLD) for v in DEFAULT_VARIANTS]
        db["variants"].insert_many(docs)
        log.info(f"Seeded {len(docs)} variants.")
    if db["pizzas"].count_documents({}) == 0:
        db["pizzas"].insert_many([dict(p, createdAt=utcnow()) for p in DEFAULT_PIZZAS])
        log.info(f"Seeded {len(DEFAULT_PIZZAS)} menu pizzas.")
