"""
Database Connection

MongoDB client shared by the whole app. `db` stays None when DATABASE_URL or
DATABASE_NAME is not configured.
"""
import logging
from typing import Optional

from pymongo import ASCENDING, DESCENDING, MongoClient
from pymongo.database import Database

from config import settings

logger = logging.getLogger(__name__)

ORDER_COLLECTION = "order"
PRODUCT_COLLECTION = "product"
FAILED_NOTIFICATION_COLLECTION = "failed_notification"

client: Optional[MongoClient] = None
db: Optional[Database] = None

if settings.database_url and settings.database_name:
    client = MongoClient(settings.database_url)
    db = client[settings.database_name]


def init_database(database: Database) -> None:
    """Idempotent startup bootstrap. Safe to run on every boot."""
    orders = database[ORDER_COLLECTION]
    orders.create_index([("order_id", ASCENDING)], unique=True, name="order_id_unique")
    orders.create_index([("created_at", DESCENDING)], name="created_at_desc")
    orders.create_index([("phone", ASCENDING)], name="phone")
    logger.info("Database indexes ensured on %s", database.name)
