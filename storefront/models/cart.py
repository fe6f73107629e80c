"""Cart models for the storefront"""

from pydantic import BaseModel, Field
from typing import Optional

from .product import Product


class CartItem(BaseModel):
    """Item in a shopping cart"""
    product: Product
    quantity: int = Field(ge=1)

    @property
    def line_total(self) -> int:
        return self.product.price * self.quantity


class CartState(BaseModel):
    """Shopping cart, in insertion order"""
    items: list[CartItem] = []

    def find(self, product_id: str) -> Optional[CartItem]:
        return next((item for item in self.items if item.product.id == product_id), None)

    @property
    def is_empty(self) -> bool:
        return not self.items
