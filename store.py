"""
Order store

Every query the API runs against MongoDB lives here, so the routes only deal
with plain dicts and the tests can swap in an in-memory store.
"""
from datetime import datetime, timezone
from typing import List, Optional

from bson import ObjectId
from bson.errors import InvalidId
from pymongo import DESCENDING, ReturnDocument
from pymongo.database import Database

from database import FAILED_NOTIFICATION_COLLECTION, ORDER_COLLECTION, PRODUCT_COLLECTION
from schemas import FailedNotification
from stats import revenue_pipeline


def parse_object_id(id_str: str) -> Optional[ObjectId]:
    try:
        return ObjectId(id_str)
    except (InvalidId, TypeError):
        return None


class MongoOrderStore:

    def __init__(self, database: Database):
        self.db = database
        self.orders = database[ORDER_COLLECTION]
        self.products = database[PRODUCT_COLLECTION]

    # ----- Orders -----

    def insert_order(self, document: dict) -> dict:
        """Insert a new order. Raises DuplicateKeyError when order_id is taken."""
        doc = dict(document)
        now = datetime.now(timezone.utc)
        doc["created_at"] = now
        doc["updated_at"] = now
        result = self.orders.insert_one(doc)
        doc["_id"] = result.inserted_id
        return doc

    def find_by_code(self, code: str) -> Optional[dict]:
        return self.orders.find_one({"order_id": code})

    def find_by_id(self, order_id: str) -> Optional[dict]:
        _id = parse_object_id(order_id)
        if _id is None:
            return None
        return self.orders.find_one({"_id": _id})

    def list_orders(self) -> List[dict]:
        return list(self.orders.find({}).sort("created_at", DESCENDING))

    def update_status(self, order_id: str, status: str) -> Optional[dict]:
        _id = parse_object_id(order_id)
        if _id is None:
            return None
        return self.orders.find_one_and_update(
            {"_id": _id},
            {"$set": {"status": status, "updated_at": datetime.now(timezone.utc)}},
            return_document=ReturnDocument.AFTER,
        )

    def delete_order(self, order_id: str) -> bool:
        _id = parse_object_id(order_id)
        if _id is None:
            return False
        return self.orders.delete_one({"_id": _id}).deleted_count == 1

    # ----- Reporting -----

    def count_orders(self) -> int:
        return self.orders.count_documents({})

    def count_orders_by_payment_method(self, method: str) -> int:
        return self.orders.count_documents({"payment_method": method})

    def count_orders_with_item_names(self, pattern: str) -> int:
        return self.orders.count_documents(
            {"cart_items.name": {"$regex": pattern, "$options": "i"}}
        )

    def distinct_phones(self) -> list:
        # orders saved without a phone are not a customer
        return self.orders.distinct("phone", {"phone": {"$nin": [None, ""]}})

    def revenue_split(self, cosmetics_category: str) -> dict:
        result = list(self.orders.aggregate(revenue_pipeline(cosmetics_category)))
        if not result:
            return {"total_revenue": 0, "cosmetics_revenue": 0, "fashion_revenue": 0}
        row = result[0]
        return {
            "total_revenue": row.get("total_revenue", 0),
            "cosmetics_revenue": row.get("cosmetics_revenue", 0),
            "fashion_revenue": row.get("fashion_revenue", 0),
        }

    def count_products(self) -> int:
        return self.products.count_documents({})

    def count_out_of_stock_products(self) -> int:
        return self.products.count_documents({"in_stock": False})

    # ----- Notifications -----

    def record_failed_notification(self, failure: FailedNotification) -> None:
        data = failure.model_dump()
        data["created_at"] = data.get("created_at") or datetime.now(timezone.utc)
        self.db[FAILED_NOTIFICATION_COLLECTION].insert_one(data)
