# Storefront Models

from .product import Product, Category
from .cart import CartItem, CartState
from .order import Order, OrderItem, OrderStatus, ShippingDetails, OrderConfirmation
from .profile import UserProfile, UserRole

__all__ = [
    "Product",
    "Category",
    "CartItem",
    "CartState",
    "Order",
    "OrderItem",
    "OrderStatus",
    "ShippingDetails",
    "OrderConfirmation",
    "UserProfile",
    "UserRole",
]
