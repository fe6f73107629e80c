"""Product models shared by the storefront and the backend"""

from pydantic import BaseModel, Field
from enum import Enum


class Category(str, Enum):
    ELECTRONICS = "electronics"
    HOME_DECOR = "homeDecor"

    @property
    def label(self) -> str:
        return "Electronics" if self is Category.ELECTRONICS else "Home Decor"


class Product(BaseModel):
    """Product in the catalog. Prices are whole rupees."""
    id: str
    name: str
    description: str
    price: int = Field(ge=0)
    stock: int = Field(ge=0)
    category: Category
    published: bool = True

    class Config:
        from_attributes = True

    @property
    def in_stock(self) -> bool:
        return self.stock > 0
