"""
Order creation

Builds the stored order from a storefront checkout payload. The caller's
total is stored untouched next to the server-computed one so the admin can
reconcile the two.
"""
import logging
import random
from datetime import datetime, timezone
from typing import Iterable, Optional

from order_codes import insert_with_order_code
from schemas import CartItem, Order, OrderCreate, OrderStatus

logger = logging.getLogger(__name__)

TOTAL_TOLERANCE = 0.005


class EmptyCartError(ValueError):
    pass


def compute_total(cart_items: Iterable[CartItem], shipping_charge: Optional[float]) -> float:
    subtotal = sum(item.price * item.quantity for item in cart_items)
    return round(subtotal + (shipping_charge or 0), 2)


def build_order(payload: OrderCreate, today: Optional[datetime] = None) -> Order:
    if not payload.cart_items:
        raise EmptyCartError("Cart is empty")

    today = today or datetime.now(timezone.utc)
    customer = payload.customer_details
    computed = compute_total(payload.cart_items, payload.shipping_charge)
    mismatch = payload.total is None or abs(payload.total - computed) > TOTAL_TOLERANCE

    return Order(
        first_name=customer.first_name,
        last_name=customer.last_name,
        email=customer.email,
        phone=customer.phone,
        address=customer.address,
        city=customer.city or "",
        note=customer.note or "",
        cart_items=payload.cart_items,
        total=payload.total,
        computed_total=computed,
        total_mismatch=mismatch,
        shipping_charge=payload.shipping_charge,
        payment_method=payload.payment_info.payment_method,
        payment_details=payload.payment_info.payment_details,
        date=today.strftime("%Y-%m-%d"),
        status=OrderStatus.PENDING,
    )


def create_order(store, payload: OrderCreate, max_attempts: int = 25, rng=random) -> dict:
    """Validate, allocate an order code and persist. Returns the stored document."""
    order = build_order(payload)
    document = order.model_dump(exclude={"order_id", "created_at", "updated_at"})
    stored = insert_with_order_code(store, document, max_attempts=max_attempts, rng=rng)

    if order.total_mismatch:
        logger.warning(
            "Order %s total %s does not match computed total %s",
            stored["order_id"], order.total, order.computed_total,
        )
    logger.info("Order %s created with %d item(s)", stored["order_id"], len(order.cart_items))
    return stored
