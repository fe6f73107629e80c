"""Admin console API routes"""

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from ..services.admin import AdminConsole, ProductForm
from ..services.backend_client import BackendClient, BackendError
from ..utils.errors import PermissionDenied, StorefrontError, sanitize_storefront_error
from .deps import get_base_path, get_caller_backend, raise_http_error
from .products import product_view

router = APIRouter(prefix="/api/admin", tags=["Admin"])


class PublishToggle(BaseModel):
    """Publish status the admin currently sees for the product"""
    published: bool


def get_admin_console(backend: BackendClient = Depends(get_caller_backend)) -> AdminConsole:
    return AdminConsole(backend)


async def require_admin(console: AdminConsole = Depends(get_admin_console)) -> AdminConsole:
    """Only callers with the admin role get past this"""
    try:
        is_admin = await console.is_admin()
    except StorefrontError as e:
        raise_http_error(e)

    if not is_admin:
        raise_http_error(PermissionDenied(
            "Access denied. You do not have permission to view this page."
        ))
    return console


@router.get("/status")
async def admin_status(backend: BackendClient = Depends(get_caller_backend)):
    """Caller's role, for showing admin-only controls"""
    try:
        is_admin = await backend.is_caller_admin()
        role = await backend.get_caller_user_role()
    except BackendError as e:
        raise_http_error(sanitize_storefront_error(e))

    return {"is_admin": is_admin, "role": role.value}


@router.post("/initialize")
async def initialize_shop(console: AdminConsole = Depends(get_admin_console)):
    """Seed the catalog with sample products"""
    try:
        await console.initialize_shop()
    except StorefrontError as e:
        raise_http_error(e)
    return {"message": "Shop initialized"}


@router.get("/products")
async def list_products(
    console: AdminConsole = Depends(require_admin),
    base_path: str = Depends(get_base_path),
):
    """Every product, including unpublished ones"""
    try:
        products = await console.list_products()
    except StorefrontError as e:
        raise_http_error(e)

    return {"products": [product_view(p, base_path) for p in products]}


@router.post("/products", status_code=201)
async def create_product(
    form: ProductForm,
    console: AdminConsole = Depends(require_admin),
):
    try:
        product = await console.save_product(form, editing=False)
    except StorefrontError as e:
        raise_http_error(e)
    return product.model_dump(mode="json")


@router.put("/products/{product_id}")
async def update_product(
    product_id: str,
    form: ProductForm,
    console: AdminConsole = Depends(require_admin),
):
    form = form.model_copy(update={"id": product_id})
    try:
        product = await console.save_product(form, editing=True)
    except StorefrontError as e:
        raise_http_error(e)
    return product.model_dump(mode="json")


@router.post("/products/{product_id}/toggle-publish")
async def toggle_publish(
    product_id: str,
    toggle: PublishToggle,
    console: AdminConsole = Depends(require_admin),
):
    """Flip a product between published and hidden"""
    try:
        published = await console.toggle_publish(product_id, toggle.published)
    except StorefrontError as e:
        raise_http_error(e)
    return {"id": product_id, "published": published}
