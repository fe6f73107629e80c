# Database modules

from .products import ProductDatabase, SAMPLE_PRODUCTS
from .orders import OrderDatabase, OrderRejected
from .profiles import ProfileDatabase
from .roles import RoleDatabase

__all__ = [
    "ProductDatabase",
    "SAMPLE_PRODUCTS",
    "OrderDatabase",
    "OrderRejected",
    "ProfileDatabase",
    "RoleDatabase",
]
