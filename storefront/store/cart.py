"""
Cart store

Pure functions compute the next cart from the current one; `CartStore`
holds the current cart for a session and writes it to durable storage after
every mutation. Stock limits are checked by callers, not here.
"""

import logging

from pydantic import ValidationError

from ..core.environment import Storage, StorageError
from ..models import CartItem, CartState, Product

logger = logging.getLogger(__name__)

CART_STORAGE_KEY = "the-lens-cart"


def add_to_cart(cart: CartState, product: Product, quantity: int = 1) -> CartState:
    """Merge `quantity` into the product's line, appending a new line if absent"""
    existing = cart.find(product.id)
    if existing is None:
        if quantity <= 0:
            return cart
        return CartState(items=[*cart.items, CartItem(product=product, quantity=quantity)])

    return update_quantity(cart, product.id, existing.quantity + quantity)


def remove_from_cart(cart: CartState, product_id: str) -> CartState:
    return CartState(items=[item for item in cart.items if item.product.id != product_id])


def update_quantity(cart: CartState, product_id: str, quantity: int) -> CartState:
    """Replace a line's quantity; zero or less removes the line"""
    if quantity <= 0:
        return remove_from_cart(cart, product_id)

    return CartState(items=[
        item.model_copy(update={"quantity": quantity}) if item.product.id == product_id else item
        for item in cart.items
    ])


def clear_cart() -> CartState:
    return CartState()


def cart_subtotal(cart: CartState) -> int:
    return sum(item.product.price * item.quantity for item in cart.items)


def cart_item_count(cart: CartState) -> int:
    return sum(item.quantity for item in cart.items)


class CartStore:
    """The current session's cart, kept in sync with durable storage"""

    def __init__(self, storage: Storage, key: str = CART_STORAGE_KEY):
        self._storage = storage
        self._key = key
        self.cart = CartState()

    @property
    def items(self) -> list[CartItem]:
        return self.cart.items

    def load(self) -> CartState:
        """Hydrate from storage; anything missing or unreadable is an empty cart"""
        try:
            stored = self._storage.get(self._key)
        except StorageError as e:
            logger.error(f"Failed to load cart from storage: {e}")
            stored = None

        cart = CartState()
        if stored:
            try:
                cart = CartState.model_validate_json(stored)
            except ValidationError as e:
                logger.error(f"Discarding unreadable cart in storage: {e.error_count()} errors")

        self.cart = cart
        return cart

    def save(self) -> None:
        """Persist the current cart; failures leave the in-memory cart intact"""
        try:
            self._storage.set(self._key, self.cart.model_dump_json())
        except StorageError as e:
            logger.error(f"Failed to save cart to storage: {e}")

    def _commit(self, cart: CartState) -> CartState:
        self.cart = cart
        self.save()
        return cart

    def add_item(self, product: Product, quantity: int = 1) -> CartState:
        return self._commit(add_to_cart(self.cart, product, quantity))

    def remove_item(self, product_id: str) -> CartState:
        return self._commit(remove_from_cart(self.cart, product_id))

    def set_quantity(self, product_id: str, quantity: int) -> CartState:
        return self._commit(update_quantity(self.cart, product_id, quantity))

    def clear(self) -> CartState:
        return self._commit(clear_cart())

    def subtotal(self) -> int:
        return cart_subtotal(self.cart)

    def item_count(self) -> int:
        return cart_item_count(self.cart)
