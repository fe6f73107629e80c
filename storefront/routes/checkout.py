"""Checkout and order API routes"""

from fastapi import APIRouter, Depends

from ..core.session import StorefrontSession
from ..models import ShippingDetails
from ..services.backend_client import BackendClient, BackendError
from ..services.checkout import place_order
from ..utils.currency import format_inr
from ..utils.errors import AuthenticationRequired, StorefrontError, sanitize_storefront_error
from .deps import get_caller_backend, get_session, raise_http_error

router = APIRouter(prefix="/api", tags=["Checkout"])


@router.post("/checkout")
async def checkout(
    details: ShippingDetails,
    session: StorefrontSession = Depends(get_session),
    backend: BackendClient = Depends(get_caller_backend),
):
    """
    Place an order for the session's cart.

    The cart is only emptied when the backend accepts the order.
    """
    if not session.identity.is_authenticated:
        raise_http_error(AuthenticationRequired())

    try:
        confirmation = await place_order(session.cart, backend, details)
    except StorefrontError as e:
        raise_http_error(e)

    return {
        **confirmation.model_dump(),
        "subtotal_display": format_inr(confirmation.subtotal),
    }


@router.get("/orders")
async def list_orders(backend: BackendClient = Depends(get_caller_backend)):
    """Orders visible to the caller"""
    try:
        orders = await backend.get_all_orders()
    except BackendError as e:
        raise_http_error(sanitize_storefront_error(e))

    return {"orders": [order.model_dump(mode="json") for order in orders]}


@router.get("/orders/{order_id}")
async def get_order(order_id: str, backend: BackendClient = Depends(get_caller_backend)):
    try:
        order = await backend.get_order(order_id)
    except BackendError as e:
        raise_http_error(sanitize_storefront_error(e))

    return {**order.model_dump(mode="json"), "total_display": format_inr(order.total)}
