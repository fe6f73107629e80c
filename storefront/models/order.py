"""Order models for the storefront"""

from pydantic import BaseModel, Field
from typing import Optional
from enum import Enum


class OrderStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class OrderItem(BaseModel):
    """Line of an order request"""
    productId: str
    quantity: int = Field(gt=0)


class Order(BaseModel):
    """Order as recorded by the backend"""
    id: str
    status: OrderStatus
    total: int
    userId: str
    timestamp: int  # nanoseconds since the epoch
    items: list[OrderItem]


class ShippingDetails(BaseModel):
    """Checkout form"""
    name: str = ""
    email: str = ""
    phone: str = ""
    address: str = ""
    city: str = ""
    zip_code: str = ""
    notes: Optional[str] = None


class OrderConfirmation(BaseModel):
    """Result of a placed order"""
    order_id: str
    subtotal: int
    item_count: int
