# Storefront Routes

from .content import router as content_router
from .products import router as products_router
from .cart import router as cart_router
from .login import router as login_router
from .checkout import router as checkout_router
from .admin import router as admin_router

__all__ = [
    "content_router",
    "products_router",
    "cart_router",
    "login_router",
    "checkout_router",
    "admin_router",
]
