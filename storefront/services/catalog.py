"""Catalog browsing: product listings, category pages and product detail"""

import logging
from typing import Optional

from ..models import Category, Product
from ..utils.errors import NotFound, sanitize_storefront_error
from .backend_client import BackendClient, BackendError

logger = logging.getLogger(__name__)


def filter_products(
    products: list[Product],
    query: Optional[str] = None,
    category: Optional[Category] = None,
) -> list[Product]:
    """Narrow a listing by category and a case-insensitive name/description match"""
    filtered = products

    if category is not None:
        filtered = [p for p in filtered if p.category == category]

    if query and query.strip():
        needle = query.strip().lower()
        filtered = [
            p for p in filtered
            if needle in p.name.lower() or needle in p.description.lower()
        ]

    return filtered


async def list_products(backend: BackendClient) -> list[Product]:
    """Published products"""
    try:
        return await backend.get_all_products()
    except BackendError as e:
        logger.error(f"Failed to load products: {e}")
        raise sanitize_storefront_error(e) from e


async def list_category(backend: BackendClient, category: Category) -> list[Product]:
    try:
        return await backend.get_products_by_category(category)
    except BackendError as e:
        logger.error(f"Failed to load {Category(category).value} products: {e}")
        raise sanitize_storefront_error(e) from e


async def get_product_detail(backend: BackendClient, product_id: str) -> Product:
    """A single product; raises NotFound for unknown ids"""
    try:
        return await backend.get_product(product_id)
    except BackendError as e:
        if "not found" in str(e).lower():
            raise NotFound(original_message=str(e)) from e
        logger.error(f"Failed to load product {product_id}: {e}")
        raise sanitize_storefront_error(e) from e
