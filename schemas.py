"""
Database Schemas

Storefront order models.
Each stored Pydantic model corresponds to a MongoDB collection (lowercased class name).
"""
from datetime import datetime
from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field

ONLINE_PAYMENT = "Online"


class OrderStatus(str, Enum):
    PENDING = "Pending"
    PROCESSING = "Processing"
    SHIPPED = "Shipped"
    DELIVERED = "Delivered"
    CANCELLED = "Cancelled"


class Product(BaseModel):
    """Catalog entry. Maintained elsewhere, only read by the order reports."""
    title: str = Field(..., description="Product title")
    description: Optional[str] = Field(None, description="Product description")
    price: float = Field(..., ge=0, description="Unit price")
    category: Optional[str] = Field(None, description="Category, e.g. 'Cosmetics', 'Sarees'")
    images: List[str] = Field(default_factory=list, description="Array of image URLs")
    in_stock: bool = Field(True, description="Whether available for purchase")


class CartItem(BaseModel):
    # product_id is whatever the storefront sent; compared as a string against product ids
    product_id: Optional[Any] = None
    name: str = ""
    image: Optional[str] = None
    size: Optional[str] = None
    price: float = 0
    quantity: int = 1


class CustomerDetails(BaseModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = ""
    note: Optional[str] = ""


class PaymentInfo(BaseModel):
    payment_method: Optional[str] = Field(None, description="'Online' or 'Cash on Delivery'")
    payment_details: Optional[Any] = None


class OrderCreate(BaseModel):
    customer_details: CustomerDetails = Field(default_factory=CustomerDetails)
    cart_items: Optional[List[CartItem]] = None
    total: Optional[float] = None
    payment_info: PaymentInfo = Field(default_factory=PaymentInfo)
    shipping_charge: Optional[float] = None


class Order(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    order_id: Optional[str] = Field(None, description="Customer-facing 5-7 digit order code")
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    city: str = ""
    note: str = ""
    cart_items: List[CartItem]
    total: Optional[float] = Field(None, description="Total as claimed by the storefront")
    computed_total: float = Field(0, description="sum(price * quantity) + shipping_charge")
    total_mismatch: bool = False
    shipping_charge: Optional[float] = None
    payment_method: Optional[str] = None
    payment_details: Optional[Any] = None
    date: str = Field(..., description="Order date, YYYY-MM-DD")
    status: OrderStatus = OrderStatus.PENDING.value
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class StatusUpdate(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    status: OrderStatus


class FailedNotification(BaseModel):
    order_id: Optional[str] = None
    error: str
    attempts: int = Field(..., ge=1)
    created_at: Optional[datetime] = None


class DashboardStats(BaseModel):
    total_orders: int = 0
    online_transactions: int = 0
    total_revenue: float = 0
    total_products: int = 0
    out_of_stock_count: int = 0
    fashion_revenue: float = 0
    cosmetics_revenue: float = 0
    fashion_orders: int = 0
    cosmetics_orders: int = 0
    customer_count: int = 0
