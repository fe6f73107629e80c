"""Shared pytest fixtures: a recording fake backend, sample products and signed-in identities."""

import asyncio
from typing import Optional

import httpx
import pytest

from storefront.core.environment import MemoryStorage
from storefront.models import Category, Order, OrderStatus, Product, UserProfile, UserRole
from storefront.services.backend_client import BackendClient, BackendError
from storefront.services.identity import Identity, IdentityProvider, LoginStatus
from storefront.store.cart import CartStore


def make_product(
    product_id: str = "moon-lamp",
    name: str = "3D Moon Lamp",
    price: int = 1299,
    stock: int = 10,
    category: Category = Category.HOME_DECOR,
    description: Optional[str] = None,
    published: bool = True,
) -> Product:
    return Product(
        id=product_id,
        name=name,
        description=description or f"{name} for every room",
        price=price,
        stock=stock,
        category=category,
        published=published,
    )


class FakeBackend:
    """
    Stand-in for BackendClient that records every call in order.

    Set `errors[method_name]` to make a method raise, and `gates[method_name]`
    to an asyncio.Event to hold a call until the event is set.
    """

    def __init__(self, products: Optional[list[Product]] = None):
        self.products: dict[str, Product] = {p.id: p for p in products or []}
        self.calls: list[tuple[str, tuple]] = []
        self.identities: list = []
        self.errors: dict[str, Exception] = {}
        self.gates: dict[str, asyncio.Event] = {}
        self.verify_result = True
        self.order_id = "ORD-TEST0001"
        self.admin = False
        self.profile: Optional[UserProfile] = None

    @property
    def call_names(self) -> list[str]:
        return [name for name, _ in self.calls]

    def for_identity(self, identity):
        self.identities.append(identity)
        return self

    async def close(self) -> None:
        pass

    async def _record(self, name: str, *args) -> None:
        self.calls.append((name, args))
        gate = self.gates.get(name)
        if gate is not None:
            await gate.wait()
        if name in self.errors:
            raise self.errors[name]

    async def get_caller_user_profile(self):
        await self._record("get_caller_user_profile")
        return self.profile

    async def save_caller_user_profile(self, profile: UserProfile) -> None:
        await self._record("save_caller_user_profile", profile)
        self.profile = profile

    async def request_phone_verification(self, phone: str) -> None:
        await self._record("request_phone_verification", phone)

    async def verify_phone_verification_code(self, phone: str, code: str) -> bool:
        await self._record("verify_phone_verification_code", phone, code)
        return self.verify_result

    async def get_all_products(self) -> list[Product]:
        await self._record("get_all_products")
        return [p for p in self.products.values() if p.published]

    async def get_products_by_category(self, category: Category) -> list[Product]:
        await self._record("get_products_by_category", category)
        return [p for p in self.products.values() if p.published and p.category == category]

    async def get_product(self, product_id: str) -> Product:
        await self._record("get_product", product_id)
        if product_id not in self.products:
            raise BackendError("Product not found")
        return self.products[product_id]

    async def initialize_shop(self) -> None:
        await self._record("initialize_shop")

    async def create_order(self, items) -> str:
        await self._record("create_order", items)
        return self.order_id

    async def get_order(self, order_id: str) -> Order:
        await self._record("get_order", order_id)
        return Order(
            id=order_id,
            status=OrderStatus.PENDING,
            total=2598,
            userId="caller",
            timestamp=1_700_000_000_000_000_000,
            items=[],
        )

    async def get_all_orders(self) -> list[Order]:
        await self._record("get_all_orders")
        return []

    async def is_caller_admin(self) -> bool:
        await self._record("is_caller_admin")
        return self.admin

    async def get_caller_user_role(self) -> UserRole:
        await self._record("get_caller_user_role")
        return UserRole.ADMIN if self.admin else UserRole.USER

    async def admin_get_all_products(self) -> list[Product]:
        await self._record("admin_get_all_products")
        return list(self.products.values())

    async def admin_create_product(self, product: Product) -> None:
        await self._record("admin_create_product", product)
        self.products[product.id] = product

    async def admin_update_product(self, product: Product) -> None:
        await self._record("admin_update_product", product)
        self.products[product.id] = product

    async def admin_set_product_publish_status(self, product_id: str, published: bool) -> None:
        await self._record("admin_set_product_publish_status", product_id, published)


def signed_in_provider() -> IdentityProvider:
    """An identity provider that has already completed sign-in"""
    provider = IdentityProvider()
    provider.identity = Identity.generate()
    provider.status = LoginStatus.SUCCESS
    return provider


def asgi_backend_client(app, identity: Optional[Identity] = None) -> BackendClient:
    """BackendClient talking to an in-process backend app"""
    http_client = httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app),
        base_url="http://backend",
    )
    return BackendClient("http://backend", identity=identity, http_client=http_client)


@pytest.fixture()
def lamp() -> Product:
    return make_product()


@pytest.fixture()
def earbuds() -> Product:
    return make_product(
        product_id="cmf-earbuds",
        name="CMF Buds",
        price=2499,
        stock=2,
        category=Category.ELECTRONICS,
    )


@pytest.fixture()
def fake_backend(lamp, earbuds) -> FakeBackend:
    return FakeBackend([lamp, earbuds])


@pytest.fixture()
def storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture()
def cart_store(storage) -> CartStore:
    return CartStore(storage)


@pytest.fixture()
def provider() -> IdentityProvider:
    return signed_in_provider()
