# Client-side state

from .cart import CartStore, CART_STORAGE_KEY

__all__ = ["CartStore", "CART_STORAGE_KEY"]
