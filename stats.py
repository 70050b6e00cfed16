"""
Dashboard statistics

Two independent ways of telling cosmetics apart from fashion are used here:

* revenue is split by joining each cart item to its product and comparing the
  product category with StatsConfig.cosmetics_category (exact match, anything
  else including unresolved products counts as fashion);
* order counts use a case-insensitive keyword match on cart item names.

The two can disagree for the same order. They are kept separate on purpose
and both are configurable through StatsConfig.
"""
from typing import List

from config import StatsConfig
from database import PRODUCT_COLLECTION
from schemas import ONLINE_PAYMENT, DashboardStats, OrderStatus

UNRESOLVED_CATEGORY = "Other"


def revenue_pipeline(cosmetics_category: str) -> List[dict]:
    """Aggregation over the order collection producing one revenue row."""
    line_total = {"$multiply": ["$cart_items.price", "$cart_items.quantity"]}
    return [
        {"$match": {"status": {"$ne": OrderStatus.CANCELLED.value}}},
        {"$unwind": "$cart_items"},
        {"$lookup": {
            "from": PRODUCT_COLLECTION,
            "let": {"pid": {"$convert": {
                "input": "$cart_items.product_id", "to": "string", "onError": None, "onNull": None,
            }}},
            "pipeline": [
                {"$match": {"$expr": {"$eq": [{"$toString": "$_id"}, "$$pid"]}}},
                {"$project": {"category": 1}},
            ],
            "as": "product_info",
        }},
        {"$addFields": {
            "item_category": {
                "$ifNull": [{"$arrayElemAt": ["$product_info.category", 0]}, UNRESOLVED_CATEGORY]
            }
        }},
        {"$group": {
            "_id": None,
            "total_revenue": {"$sum": line_total},
            "cosmetics_revenue": {"$sum": {
                "$cond": [{"$eq": ["$item_category", cosmetics_category]}, line_total, 0]
            }},
            "fashion_revenue": {"$sum": {
                "$cond": [{"$ne": ["$item_category", cosmetics_category]}, line_total, 0]
            }},
        }},
    ]


def build_dashboard_stats(store, config: StatsConfig) -> DashboardStats:
    total_orders = store.count_orders()
    revenue = store.revenue_split(config.cosmetics_category)
    cosmetics_orders = store.count_orders_with_item_names(config.cosmetics_keywords)

    return DashboardStats(
        total_orders=total_orders,
        online_transactions=store.count_orders_by_payment_method(ONLINE_PAYMENT),
        total_revenue=revenue["total_revenue"],
        total_products=store.count_products(),
        out_of_stock_count=store.count_out_of_stock_products(),
        fashion_revenue=revenue["fashion_revenue"],
        cosmetics_revenue=revenue["cosmetics_revenue"],
        fashion_orders=total_orders - cosmetics_orders,
        cosmetics_orders=cosmetics_orders,
        customer_count=len(store.distinct_phones()),
    )
