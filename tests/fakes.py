"""In-memory fakes for testing.

FakeOrderStore implements the same methods as MongoOrderStore but keeps
everything in lists. The unique order_id index is emulated by raising
DuplicateKeyError, and the revenue aggregation is evaluated in Python.
"""

from __future__ import annotations

import re
import smtplib
from datetime import datetime, timedelta, timezone

from bson import ObjectId
from pymongo.errors import DuplicateKeyError

from schemas import FailedNotification
from store import parse_object_id

_EPOCH = datetime(2026, 1, 1, tzinfo=timezone.utc)


class FakeOrderStore:

    def __init__(self, products: list[dict] | None = None) -> None:
        self.orders: list[dict] = []
        self.products: list[dict] = []
        self.failed_notifications: list[FailedNotification] = []
        self.insert_attempts: list[str] = []
        self._clock = 0
        for p in products or []:
            self.add_product(p)

    def _now(self) -> datetime:
        self._clock += 1
        return _EPOCH + timedelta(seconds=self._clock)

    def add_product(self, product: dict) -> dict:
        doc = dict(product)
        doc.setdefault("_id", ObjectId())
        self.products.append(doc)
        return doc

    # ----- Orders -----

    def insert_order(self, document: dict) -> dict:
        self.insert_attempts.append(document.get("order_id"))
        if any(o.get("order_id") == document.get("order_id") for o in self.orders):
            raise DuplicateKeyError("E11000 duplicate key error collection: order index: order_id_unique")
        doc = dict(document)
        now = self._now()
        doc["_id"] = ObjectId()
        doc["created_at"] = now
        doc["updated_at"] = now
        self.orders.append(doc)
        return doc

    def find_by_code(self, code: str) -> dict | None:
        return next((o for o in self.orders if o.get("order_id") == code), None)

    def find_by_id(self, order_id: str) -> dict | None:
        _id = parse_object_id(order_id)
        return next((o for o in self.orders if o["_id"] == _id), None)

    def list_orders(self) -> list[dict]:
        return sorted(self.orders, key=lambda o: o["created_at"], reverse=True)

    def update_status(self, order_id: str, status: str) -> dict | None:
        order = self.find_by_id(order_id)
        if order is None:
            return None
        order["status"] = status
        order["updated_at"] = self._now()
        return dict(order)

    def delete_order(self, order_id: str) -> bool:
        order = self.find_by_id(order_id)
        if order is None:
            return False
        self.orders.remove(order)
        return True

    # ----- Reporting -----

    def count_orders(self) -> int:
        return len(self.orders)

    def count_orders_by_payment_method(self, method: str) -> int:
        return sum(1 for o in self.orders if o.get("payment_method") == method)

    def count_orders_with_item_names(self, pattern: str) -> int:
        regex = re.compile(pattern, re.IGNORECASE)
        return sum(
            1 for o in self.orders
            if any(regex.search(item.get("name") or "") for item in o.get("cart_items", []))
        )

    def distinct_phones(self) -> list:
        phones = []
        for o in self.orders:
            if o.get("phone") and o.get("phone") not in phones:
                phones.append(o.get("phone"))
        return phones

    def revenue_split(self, cosmetics_category: str) -> dict:
        categories = {str(p["_id"]): p.get("category") for p in self.products}
        totals = {"total_revenue": 0, "cosmetics_revenue": 0, "fashion_revenue": 0}
        for order in self.orders:
            if order.get("status") == "Cancelled":
                continue
            for item in order.get("cart_items", []):
                line = item["price"] * item["quantity"]
                category = categories.get(str(item.get("product_id"))) or "Other"
                totals["total_revenue"] += line
                if category == cosmetics_category:
                    totals["cosmetics_revenue"] += line
                else:
                    totals["fashion_revenue"] += line
        return totals

    def count_products(self) -> int:
        return len(self.products)

    def count_out_of_stock_products(self) -> int:
        return sum(1 for p in self.products if p.get("in_stock") is False)

    # ----- Notifications -----

    def record_failed_notification(self, failure: FailedNotification) -> None:
        self.failed_notifications.append(failure)


class FakeMailer:
    """Records sent messages. Fails the first `failures` sends."""

    def __init__(self, failures: int = 0) -> None:
        self.failures = failures
        self.attempts = 0
        self.sent = []

    def send(self, message) -> None:
        self.attempts += 1
        if self.attempts <= self.failures:
            raise smtplib.SMTPServerDisconnected("Connection unexpectedly closed")
        self.sent.append(message)


class SequenceRandom:
    """Stand-in for `random` that hands out a fixed sequence of draws."""

    def __init__(self, values: list[int]) -> None:
        self._values = list(values)

    def randrange(self, start: int, stop: int) -> int:
        return self._values.pop(0)
