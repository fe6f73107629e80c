"""
Checkout

Validates the shipping form, turns the cart into order lines and places the
order. The cart is cleared only once the backend has accepted the order.
"""

import logging
import re

from ..models import OrderConfirmation, OrderItem, ShippingDetails
from ..store.cart import CartStore
from ..utils.errors import (
    AuthenticationRequired,
    ValidationError,
    sanitize_storefront_error,
)
from .backend_client import BackendClient, BackendError

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"\S+@\S+\.\S+")


class ShippingInvalid(ValidationError):
    """The shipping form has one or more invalid fields"""

    def __init__(self, errors: dict[str, ValidationError]):
        super().__init__("Please check the highlighted fields.")
        self.errors = errors


def validate_shipping(details: ShippingDetails) -> dict[str, ValidationError]:
    errors: dict[str, ValidationError] = {}

    if not details.name.strip():
        errors["name"] = ValidationError("Name is required", field="name")
    if not details.email.strip():
        errors["email"] = ValidationError("Email is required", field="email")
    elif not EMAIL_PATTERN.search(details.email):
        errors["email"] = ValidationError("Email is invalid", field="email")
    if not details.address.strip():
        errors["address"] = ValidationError("Address is required", field="address")
    if not details.city.strip():
        errors["city"] = ValidationError("City is required", field="city")
    if not details.zip_code.strip():
        errors["zip_code"] = ValidationError("ZIP code is required", field="zip_code")

    return errors


def order_items_from_cart(cart_store: CartStore) -> list[OrderItem]:
    return [
        OrderItem(productId=item.product.id, quantity=item.quantity)
        for item in cart_store.items
    ]


async def place_order(
    cart_store: CartStore,
    backend: BackendClient,
    details: ShippingDetails,
) -> OrderConfirmation:
    """
    Place an order for everything in the cart.

    Args:
        cart_store: The session's cart
        backend: Backend client acting as the signed-in caller
        details: Shipping form

    Returns:
        Confirmation with the backend's order id

    Raises:
        ValidationError: Empty cart or invalid shipping details
        StorefrontError: The backend refused the order
    """
    if cart_store.cart.is_empty:
        raise ValidationError("Your cart is empty.", field="cart")

    field_errors = validate_shipping(details)
    if field_errors:
        raise ShippingInvalid(field_errors)

    subtotal = cart_store.subtotal()
    item_count = cart_store.item_count()

    try:
        order_id = await backend.create_order(order_items_from_cart(cart_store))
    except BackendError as e:
        logger.error(f"Order creation failed: {e}")
        if "unauthorized" in str(e).lower():
            raise AuthenticationRequired(original_message=str(e)) from e
        raise sanitize_storefront_error(e) from e

    cart_store.clear()
    logger.info(f"Order {order_id} placed: {item_count} items, subtotal {subtotal}")

    return OrderConfirmation(order_id=order_id, subtotal=subtotal, item_count=item_count)
