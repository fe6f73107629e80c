"""
Backend RPC Client

HTTP client for the storefront backend. Calls are framed as JSON-RPC 2.0
requests posted to `<backend_url>/rpc`; the caller's identity travels as
an EdDSA bearer token.
"""

import itertools
import logging
from typing import Optional, Any, TYPE_CHECKING

import httpx

from ..models import (
    Category,
    Order,
    OrderItem,
    Product,
    UserProfile,
    UserRole,
)

if TYPE_CHECKING:
    from .identity import Identity

logger = logging.getLogger(__name__)


class BackendError(Exception):
    """The backend rejected a call; the message is the backend's text"""

    def __init__(self, message: str, code: Optional[int] = None):
        super().__init__(message)
        self.code = code


class BackendUnavailableError(BackendError):
    """The backend could not be reached or failed before answering"""
    pass


class BackendClient:
    """
    Client for the storefront backend RPC surface.

    Usage:
        client = BackendClient("http://localhost:8001")
        products = await client.get_all_products()

        signed_in = client.for_identity(identity)
        await signed_in.save_caller_user_profile(profile)
    """

    def __init__(
        self,
        backend_url: str,
        identity: Optional["Identity"] = None,
        timeout: float = 30.0,
        token_audience: str = "lens-backend",
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize backend client.

        Args:
            backend_url: Base URL of the backend service
            identity: Signed-in identity used to authenticate calls
            timeout: Request timeout in seconds
            token_audience: Audience claim of the bearer tokens
            http_client: Pre-built client, e.g. one with a test transport
        """
        self.base_url = backend_url.rstrip("/")
        self.identity = identity
        self.token_audience = token_audience
        self._owns_http_client = http_client is None
        self._http_client = http_client or httpx.AsyncClient(timeout=timeout)
        self._ids = itertools.count(1)

    def for_identity(self, identity: Optional["Identity"]) -> "BackendClient":
        """Return a client acting as `identity`, sharing this connection pool"""
        client = BackendClient(
            backend_url=self.base_url,
            identity=identity,
            token_audience=self.token_audience,
            http_client=self._http_client,
        )
        client._owns_http_client = False
        return client

    async def close(self) -> None:
        """Close HTTP client"""
        if self._owns_http_client:
            await self._http_client.aclose()

    def _generate_headers(self) -> dict[str, str]:
        """Generate headers including the caller's bearer token if signed in"""
        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

        if self.identity is not None and not self.identity.is_anonymous:
            token = self.identity.issue_token(audience=self.token_audience)
            headers["Authorization"] = f"Bearer {token}"

        return headers

    async def _call(self, method: str, params: Optional[dict[str, Any]] = None) -> Any:
        """Invoke an RPC method and return its result"""
        request_body = {
            "jsonrpc": "2.0",
            "method": method,
            "params": params or {},
            "id": next(self._ids),
        }

        try:
            response = await self._http_client.post(
                f"{self.base_url}/rpc",
                headers=self._generate_headers(),
                json=request_body,
            )
        except httpx.HTTPError as e:
            logger.error(f"RPC {method} failed to reach backend: {e}")
            raise BackendUnavailableError(f"Backend not available: {e}") from e

        if response.status_code >= 500:
            logger.error(f"RPC {method} failed: {response.status_code} - {response.text}")
            raise BackendUnavailableError(
                f"Backend not available: HTTP {response.status_code}"
            )

        if response.status_code >= 400:
            logger.error(f"RPC {method} rejected: {response.status_code} - {response.text}")
            raise BackendError(f"Request rejected: HTTP {response.status_code}", code=response.status_code)

        try:
            result = response.json()
        except ValueError:
            result = None
        if not isinstance(result, dict):
            logger.error(f"RPC {method} returned a malformed response: {response.text[:200]}")
            raise BackendUnavailableError("Backend not available: malformed response")

        if result.get("error"):
            error = result["error"]
            logger.debug(f"RPC {method} returned error: {error}")
            raise BackendError(error.get("message", "Unknown error"), code=error.get("code"))

        return result.get("result")

    # ==================== Profile APIs ====================

    async def get_caller_user_profile(self) -> Optional[UserProfile]:
        """Get the caller's profile, if one was saved"""
        result = await self._call("getCallerUserProfile")
        return UserProfile.model_validate(result) if result else None

    async def save_caller_user_profile(self, profile: UserProfile) -> None:
        """Create or replace the caller's profile"""
        await self._call("saveCallerUserProfile", {"profile": profile.model_dump()})

    # ==================== Phone Verification APIs ====================

    async def request_phone_verification(self, phone: str) -> None:
        """Ask the backend to send a verification code to `phone`"""
        await self._call("requestPhoneVerification", {"phone": phone})

    async def verify_phone_verification_code(self, phone: str, code: str) -> bool:
        """Check a verification code; False when wrong or expired"""
        return bool(await self._call("verifyPhoneVerificationCode", {"phone": phone, "code": code}))

    async def is_phone_verified(self, phone: str) -> bool:
        return bool(await self._call("isPhoneVerified", {"phone": phone}))

    # ==================== Product APIs ====================

    async def get_all_products(self) -> list[Product]:
        """Get published products"""
        result = await self._call("getAllProducts")
        return [Product.model_validate(p) for p in result or []]

    async def get_products_by_category(self, category: Category) -> list[Product]:
        result = await self._call("getProductsByCategory", {"category": Category(category).value})
        return [Product.model_validate(p) for p in result or []]

    async def get_product(self, product_id: str) -> Product:
        """Get product details"""
        return Product.model_validate(await self._call("getProduct", {"productId": product_id}))

    async def initialize_shop(self) -> None:
        """Seed the catalog (first caller becomes admin)"""
        await self._call("initializeShop")

    # ==================== Order APIs ====================

    async def create_order(self, items: list[OrderItem]) -> str:
        """Place an order and return its id"""
        result = await self._call(
            "createOrder",
            {"items": [item.model_dump() for item in items]},
        )
        return str(result)

    async def get_order(self, order_id: str) -> Order:
        return Order.model_validate(await self._call("getOrder", {"orderId": order_id}))

    async def get_all_orders(self) -> list[Order]:
        result = await self._call("getAllOrders")
        return [Order.model_validate(o) for o in result or []]

    # ==================== Role & Admin APIs ====================

    async def is_caller_admin(self) -> bool:
        return bool(await self._call("isCallerAdmin"))

    async def get_caller_user_role(self) -> UserRole:
        return UserRole(await self._call("getCallerUserRole"))

    async def admin_get_all_products(self) -> list[Product]:
        """Get every product, published or not"""
        result = await self._call("adminGetAllProducts")
        return [Product.model_validate(p) for p in result or []]

    async def admin_create_product(self, product: Product) -> None:
        await self._call("adminCreateProduct", {"product": product.model_dump(mode="json")})

    async def admin_update_product(self, product: Product) -> None:
        await self._call("adminUpdateProduct", {"product": product.model_dump(mode="json")})

    async def admin_set_product_publish_status(self, product_id: str, published: bool) -> None:
        await self._call(
            "adminSetProductPublishStatus",
            {"productId": product_id, "published": published},
        )
