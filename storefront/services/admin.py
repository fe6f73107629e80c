"""
Admin console

Product management for callers holding the admin role: list every product,
create or edit one, and toggle whether it is published.
"""

import logging
import re
from typing import Optional

from pydantic import BaseModel

from ..models import Category, Product
from ..utils.errors import (
    GenericError,
    PermissionDenied,
    StorefrontError,
    ValidationError,
    sanitize_storefront_error,
)
from .backend_client import BackendClient, BackendError

logger = logging.getLogger(__name__)

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


class ProductForm(BaseModel):
    """Admin product form as submitted; numbers arrive as text"""
    id: str = ""
    name: str = ""
    description: str = ""
    price: str = ""
    stock: str = ""
    category: Category = Category.ELECTRONICS
    published: bool = True

    @classmethod
    def from_product(cls, product: Product) -> "ProductForm":
        return cls(
            id=product.id,
            name=product.name,
            description=product.description,
            price=str(product.price),
            stock=str(product.stock),
            category=product.category,
            published=product.published,
        )


def parse_whole_number(text: str) -> Optional[int]:
    """Leading integer of `text`, or None when it does not start with one"""
    match = _LEADING_INT.match(text)
    return int(match.group(1)) if match else None


def validate_product_form(form: ProductForm) -> Product:
    """Build a product from the form or raise ValidationError"""
    if not form.id.strip() or not form.name.strip() or not form.description.strip():
        raise ValidationError("Please fill in all required fields.")

    price = parse_whole_number(form.price)
    if price is None or price < 0:
        raise ValidationError("Price must be a valid positive number.", field="price")

    stock = parse_whole_number(form.stock)
    if stock is None or stock < 0:
        raise ValidationError("Stock must be a valid positive number.", field="stock")

    return Product(
        id=form.id.strip(),
        name=form.name.strip(),
        description=form.description.strip(),
        price=price,
        stock=stock,
        category=form.category,
        published=form.published,
    )


def _is_permission_error(message: str) -> bool:
    lower = message.lower()
    return "unauthorized" in lower or "permission" in lower


def map_admin_error(error: BackendError) -> StorefrontError:
    message = str(error) or "An error occurred"
    if _is_permission_error(message):
        return PermissionDenied(original_message=message)
    if "already exists" in message.lower():
        return GenericError("A product with this ID already exists.", original_message=message)
    return GenericError(message, original_message=message)


class AdminConsole:
    """
    Admin product management on behalf of one caller.

    Usage:
        console = AdminConsole(backend.for_identity(identity))
        if await console.is_admin():
            await console.save_product(ProductForm(...), editing=False)
    """

    def __init__(self, backend: BackendClient):
        self.backend = backend

    async def is_admin(self) -> bool:
        try:
            return await self.backend.is_caller_admin()
        except BackendError as e:
            logger.warning(f"Admin check failed: {e}")
            raise sanitize_storefront_error(e) from e

    async def list_products(self) -> list[Product]:
        """Every product, published or not"""
        try:
            return await self.backend.admin_get_all_products()
        except BackendError as e:
            logger.error(f"Failed to load admin products: {e}")
            if _is_permission_error(str(e)):
                raise PermissionDenied(
                    "You do not have permission to view products.", original_message=str(e)
                ) from e
            raise GenericError(
                "Failed to load products. Please try again.", original_message=str(e)
            ) from e

    async def save_product(self, form: ProductForm, editing: bool = False) -> Product:
        """Create a product, or update it when `editing`"""
        product = validate_product_form(form)

        try:
            if editing:
                await self.backend.admin_update_product(product)
            else:
                await self.backend.admin_create_product(product)
        except BackendError as e:
            logger.error(f"Saving product {product.id} failed: {e}")
            raise map_admin_error(e) from e

        logger.info(f"{'Updated' if editing else 'Created'} product {product.id}")
        return product

    async def toggle_publish(self, product_id: str, currently_published: bool) -> bool:
        """Flip a product's publish status and return the new status"""
        published = not currently_published
        try:
            await self.backend.admin_set_product_publish_status(product_id, published)
        except BackendError as e:
            logger.error(f"Changing publish status of {product_id} failed: {e}")
            raise map_admin_error(e) from e
        return published

    async def initialize_shop(self) -> None:
        """Seed the catalog with sample products"""
        try:
            await self.backend.initialize_shop()
        except BackendError as e:
            logger.error(f"Shop initialization failed: {e}")
            raise sanitize_storefront_error(e) from e
