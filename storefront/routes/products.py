"""Catalog API routes"""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from ..models import Category, Product
from ..services import catalog
from ..services.backend_client import BackendClient
from ..utils.assets import get_product_images
from ..utils.currency import format_inr
from ..utils.errors import StorefrontError
from .deps import get_base_path, get_caller_backend, raise_http_error

router = APIRouter(prefix="/api/products", tags=["Products"])


def product_view(product: Product, base_path: str = "/") -> dict:
    """Product as shown on cards and the detail page"""
    return {
        **product.model_dump(mode="json"),
        "price_display": format_inr(product.price),
        "category_label": product.category.label,
        "in_stock": product.in_stock,
        "images": get_product_images(product.id, base_path) or get_product_images(product.name, base_path),
    }


@router.get("")
async def list_products(
    q: Optional[str] = Query(None, description="Search in name and description"),
    category: Optional[Category] = Query(None),
    backend: BackendClient = Depends(get_caller_backend),
    base_path: str = Depends(get_base_path),
):
    """List published products, optionally filtered"""
    try:
        products = await catalog.list_products(backend)
    except StorefrontError as e:
        raise_http_error(e)

    filtered = catalog.filter_products(products, query=q, category=category)
    return {
        "products": [product_view(p, base_path) for p in filtered],
        "total": len(filtered),
        "has_filters": bool(q or category),
    }


@router.get("/category/{category}")
async def list_category(
    category: Category,
    backend: BackendClient = Depends(get_caller_backend),
    base_path: str = Depends(get_base_path),
):
    """List published products of one category"""
    try:
        products = await catalog.list_category(backend, category)
    except StorefrontError as e:
        raise_http_error(e)

    return {
        "category": category.value,
        "label": category.label,
        "products": [product_view(p, base_path) for p in products],
    }


@router.get("/{product_id}")
async def get_product(
    product_id: str,
    backend: BackendClient = Depends(get_caller_backend),
    base_path: str = Depends(get_base_path),
):
    """Product detail"""
    try:
        product = await catalog.get_product_detail(backend, product_id)
    except StorefrontError as e:
        raise_http_error(e)

    return product_view(product, base_path)
