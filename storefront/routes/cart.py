"""Cart API routes"""

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from ..core.session import StorefrontSession
from ..services import catalog
from ..services.backend_client import BackendClient
from ..utils.currency import format_inr
from ..utils.errors import StorefrontError
from .deps import get_base_path, get_caller_backend, get_session, raise_http_error
from .products import product_view

router = APIRouter(prefix="/api/cart", tags=["Cart"])


class AddItemRequest(BaseModel):
    product_id: str
    quantity: int = Field(default=1, ge=1)


class SetQuantityRequest(BaseModel):
    quantity: int


def cart_view(session: StorefrontSession, base_path: str = "/") -> dict:
    store = session.cart
    subtotal = store.subtotal()
    return {
        "session_id": session.session_id,
        "items": [
            {
                "product": product_view(item.product, base_path),
                "quantity": item.quantity,
                "line_total": item.line_total,
                "line_total_display": format_inr(item.line_total),
            }
            for item in store.items
        ],
        "item_count": store.item_count(),
        "subtotal": subtotal,
        "subtotal_display": format_inr(subtotal),
    }


@router.get("")
async def get_cart(
    session: StorefrontSession = Depends(get_session),
    base_path: str = Depends(get_base_path),
):
    """Current cart"""
    return cart_view(session, base_path)


@router.post("/items")
async def add_item(
    request: AddItemRequest,
    session: StorefrontSession = Depends(get_session),
    backend: BackendClient = Depends(get_caller_backend),
    base_path: str = Depends(get_base_path),
):
    """Add a product to the cart, up to its stock"""
    try:
        product = await catalog.get_product_detail(backend, request.product_id)
    except StorefrontError as e:
        raise_http_error(e)

    if not product.in_stock:
        raise HTTPException(status_code=400, detail={"message": "This product is out of stock."})

    existing = session.cart.cart.find(product.id)
    in_cart = existing.quantity if existing else 0
    if in_cart + request.quantity > product.stock:
        raise HTTPException(
            status_code=400,
            detail={"message": f"Only {product.stock} in stock."},
        )

    session.cart.add_item(product, request.quantity)
    return cart_view(session, base_path)


@router.put("/items/{product_id}")
async def set_quantity(
    product_id: str,
    request: SetQuantityRequest,
    session: StorefrontSession = Depends(get_session),
    base_path: str = Depends(get_base_path),
):
    """Change a line's quantity; zero or less removes it"""
    item = session.cart.cart.find(product_id)
    if item is None:
        raise HTTPException(status_code=404, detail={"message": "Item is not in your cart."})

    if request.quantity > item.product.stock:
        raise HTTPException(
            status_code=400,
            detail={"message": f"Only {item.product.stock} in stock."},
        )

    session.cart.set_quantity(product_id, request.quantity)
    return cart_view(session, base_path)


@router.delete("/items/{product_id}")
async def remove_item(
    product_id: str,
    session: StorefrontSession = Depends(get_session),
    base_path: str = Depends(get_base_path),
):
    session.cart.remove_item(product_id)
    return cart_view(session, base_path)


@router.delete("")
async def clear_cart(
    session: StorefrontSession = Depends(get_session),
    base_path: str = Depends(get_base_path),
):
    session.cart.clear()
    return cart_view(session, base_path)
