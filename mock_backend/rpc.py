"""
RPC methods

Every method the storefront calls, registered by name. Handlers receive the
call context (caller principal plus the databases) and the request params,
and either return a JSON-serializable result or raise RpcError.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable

from pydantic import ValidationError

from storefront.models import Category, OrderItem, Product, UserProfile
from storefront.services.identity import ANONYMOUS_PRINCIPAL

from .database import OrderDatabase, OrderRejected, ProductDatabase, ProfileDatabase, RoleDatabase

logger = logging.getLogger(__name__)

# JSON-RPC 2.0 error codes
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
APPLICATION_ERROR = -32000


class RpcError(Exception):
    """A call failed; the message is returned to the caller as-is"""

    def __init__(self, message: str, code: int = APPLICATION_ERROR):
        super().__init__(message)
        self.message = message
        self.code = code


@dataclass
class BackendState:
    products: ProductDatabase
    orders: OrderDatabase
    profiles: ProfileDatabase
    roles: RoleDatabase


@dataclass
class CallContext:
    caller: str
    state: BackendState

    @property
    def is_anonymous(self) -> bool:
        return self.caller == ANONYMOUS_PRINCIPAL

    def require_user(self) -> None:
        if self.is_anonymous:
            raise RpcError("Unauthorized: Only users can perform this action")

    def require_admin(self) -> None:
        if not self.state.roles.is_admin(self.caller):
            raise RpcError("Unauthorized: Only admins can perform this action")


Handler = Callable[[CallContext, dict], Any]
METHODS: dict[str, Handler] = {}


def rpc_method(name: str) -> Callable[[Handler], Handler]:
    def register(handler: Handler) -> Handler:
        METHODS[name] = handler
        return handler
    return register


def dispatch(method: str, ctx: CallContext, params: dict) -> Any:
    """Run a method; bad params become INVALID_PARAMS errors"""
    handler = METHODS.get(method)
    if handler is None:
        raise RpcError(f"Method not found: {method}", code=METHOD_NOT_FOUND)

    try:
        return handler(ctx, params)
    except (KeyError, TypeError, ValidationError) as e:
        raise RpcError(f"Invalid params: {e}", code=INVALID_PARAMS) from e


def _product_json(product: Product) -> dict:
    return product.model_dump(mode="json")


# ==================== Profile Methods ====================

@rpc_method("getCallerUserProfile")
def get_caller_user_profile(ctx: CallContext, params: dict):
    ctx.require_user()
    profile = ctx.state.profiles.get_profile(ctx.caller)
    return profile.model_dump() if profile else None


@rpc_method("saveCallerUserProfile")
def save_caller_user_profile(ctx: CallContext, params: dict):
    ctx.require_user()
    profile = UserProfile.model_validate(params["profile"])
    ctx.state.profiles.save_profile(ctx.caller, profile)
    return None


# ==================== Phone Verification Methods ====================

def _require_profile_phone(ctx: CallContext, phone: str) -> None:
    profile = ctx.state.profiles.get_profile(ctx.caller)
    if profile is None:
        raise RpcError("Profile not found. Please save your profile first.")
    if profile.phone != phone:
        raise RpcError("Can only verify the phone number in your profile")


@rpc_method("requestPhoneVerification")
def request_phone_verification(ctx: CallContext, params: dict):
    ctx.require_user()
    phone = str(params["phone"])
    _require_profile_phone(ctx, phone)
    ctx.state.profiles.issue_code(ctx.caller, phone)
    return None


@rpc_method("verifyPhoneVerificationCode")
def verify_phone_verification_code(ctx: CallContext, params: dict):
    ctx.require_user()
    phone = str(params["phone"])
    _require_profile_phone(ctx, phone)
    return ctx.state.profiles.verify_code(ctx.caller, phone, str(params["code"]))


@rpc_method("isPhoneVerified")
def is_phone_verified(ctx: CallContext, params: dict):
    ctx.require_user()
    return ctx.state.profiles.is_phone_verified(ctx.caller, str(params["phone"]))


# ==================== Product Methods ====================

@rpc_method("getAllProducts")
def get_all_products(ctx: CallContext, params: dict):
    return [_product_json(p) for p in ctx.state.products.list_products()]


@rpc_method("getProductsByCategory")
def get_products_by_category(ctx: CallContext, params: dict):
    try:
        category = Category(params["category"])
    except ValueError as e:
        raise RpcError(f"Invalid params: unknown category {params['category']!r}", code=INVALID_PARAMS) from e
    return [_product_json(p) for p in ctx.state.products.list_products(category=category)]


@rpc_method("getProduct")
def get_product(ctx: CallContext, params: dict):
    product = ctx.state.products.get_product(
        str(params["productId"]),
        include_unpublished=ctx.state.roles.is_admin(ctx.caller),
    )
    if product is None:
        raise RpcError("Product not found")
    return _product_json(product)


@rpc_method("initializeShop")
def initialize_shop(ctx: CallContext, params: dict):
    """The first signed-in caller becomes admin; the catalog is seeded if empty"""
    ctx.require_user()
    if not ctx.state.roles.has_admin:
        ctx.state.roles.grant_admin(ctx.caller)
        logger.info(f"Granted admin role to {ctx.caller}")
    ctx.require_admin()

    added = ctx.state.products.seed()
    logger.info(f"Shop initialized with {added} sample products")
    return None


# ==================== Order Methods ====================

@rpc_method("createOrder")
def create_order(ctx: CallContext, params: dict):
    ctx.require_user()
    items = [OrderItem.model_validate(item) for item in params["items"]]
    try:
        order = ctx.state.orders.create_order(ctx.caller, items)
    except OrderRejected as e:
        raise RpcError(str(e)) from e

    logger.info(f"Order {order.id} created by {ctx.caller}: total {order.total}")
    return order.id


@rpc_method("getOrder")
def get_order(ctx: CallContext, params: dict):
    ctx.require_user()
    order = ctx.state.orders.get_order(str(params["orderId"]))
    if order is None:
        raise RpcError("Order not found")
    if order.userId != ctx.caller and not ctx.state.roles.is_admin(ctx.caller):
        raise RpcError("Unauthorized: Can only view your own orders")
    return order.model_dump(mode="json")


@rpc_method("getAllOrders")
def get_all_orders(ctx: CallContext, params: dict):
    ctx.require_user()
    user_id = None if ctx.state.roles.is_admin(ctx.caller) else ctx.caller
    return [o.model_dump(mode="json") for o in ctx.state.orders.list_orders(user_id)]


# ==================== Role & Admin Methods ====================

@rpc_method("isCallerAdmin")
def is_caller_admin(ctx: CallContext, params: dict):
    return ctx.state.roles.is_admin(ctx.caller)


@rpc_method("getCallerUserRole")
def get_caller_user_role(ctx: CallContext, params: dict):
    return ctx.state.roles.role_of(ctx.caller).value


@rpc_method("adminGetAllProducts")
def admin_get_all_products(ctx: CallContext, params: dict):
    ctx.require_admin()
    return [_product_json(p) for p in ctx.state.products.list_products(include_unpublished=True)]


@rpc_method("adminCreateProduct")
def admin_create_product(ctx: CallContext, params: dict):
    ctx.require_admin()
    product = Product.model_validate(params["product"])
    if not ctx.state.products.create_product(product):
        raise RpcError("Product with this ID already exists")
    return None


@rpc_method("adminUpdateProduct")
def admin_update_product(ctx: CallContext, params: dict):
    ctx.require_admin()
    product = Product.model_validate(params["product"])
    if not ctx.state.products.update_product(product):
        raise RpcError("Product not found")
    return None


@rpc_method("adminSetProductPublishStatus")
def admin_set_product_publish_status(ctx: CallContext, params: dict):
    ctx.require_admin()
    if not ctx.state.products.set_published(str(params["productId"]), bool(params["published"])):
        raise RpcError("Product not found")
    return None
