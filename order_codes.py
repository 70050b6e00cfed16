"""
Customer-facing order codes

Codes are 5-7 digit decimal strings. Uniqueness is enforced by the unique
index on order_id: a candidate is written directly and a fresh one is drawn
when the insert hits a duplicate key.
"""
import logging
import random
import re

from pymongo.errors import DuplicateKeyError

logger = logging.getLogger(__name__)

ORDER_CODE_MIN = 10000
ORDER_CODE_MAX = 9999999  # exclusive
ORDER_CODE_RE = re.compile(r"^\d{5,7}$")


class OrderCodeExhausted(Exception):
    """No free order code was found within the attempt budget."""


def generate_order_code(rng=random) -> str:
    return str(rng.randrange(ORDER_CODE_MIN, ORDER_CODE_MAX))


def is_order_code(value: str) -> bool:
    return bool(ORDER_CODE_RE.match(value))


def insert_with_order_code(store, document: dict, max_attempts: int = 25, rng=random) -> dict:
    """Persist `document` under a freshly drawn order code and return the stored order."""
    for attempt in range(1, max_attempts + 1):
        code = generate_order_code(rng)
        try:
            return store.insert_order({**document, "order_id": code})
        except DuplicateKeyError:
            logger.warning("Order code %s already taken (attempt %d/%d)", code, attempt, max_attempts)
    raise OrderCodeExhausted(f"Could not allocate an order code after {max_attempts} attempts")
