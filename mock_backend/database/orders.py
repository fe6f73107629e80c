"""Order storage for the mock backend"""

import time
import uuid
from typing import Optional

from storefront.models import Order, OrderItem, OrderStatus

from .products import ProductDatabase


class OrderRejected(Exception):
    """The order cannot be placed as requested"""
    pass


class OrderDatabase:
    """In-memory order storage"""

    def __init__(self, products: ProductDatabase):
        self.products = products
        self.orders: dict[str, Order] = {}

    def create_order(self, user_id: str, items: list[OrderItem]) -> Order:
        """
        Create an order and take its items out of stock.

        Every line is checked before any stock moves, so a rejected order
        leaves the catalog untouched.
        """
        if not items:
            raise OrderRejected("Order must contain at least one item")

        total = 0
        for item in items:
            product = self.products.get_product(item.productId)
            if product is None:
                raise OrderRejected(f"Product not found: {item.productId}")
            if product.stock < item.quantity:
                raise OrderRejected(f"Insufficient stock for {product.name}")
            total += product.price * item.quantity

        for item in items:
            self.products.update_stock(item.productId, -item.quantity)

        order = Order(
            id=f"ORD-{uuid.uuid4().hex[:8].upper()}",
            status=OrderStatus.PENDING,
            total=total,
            userId=user_id,
            timestamp=time.time_ns(),
            items=items,
        )
        self.orders[order.id] = order
        return order

    def get_order(self, order_id: str) -> Optional[Order]:
        """Get an order by ID"""
        return self.orders.get(order_id)

    def list_orders(self, user_id: Optional[str] = None) -> list[Order]:
        """Orders, newest first; only `user_id`'s when given"""
        orders = [
            o for o in self.orders.values()
            if user_id is None or o.userId == user_id
        ]
        orders.sort(key=lambda o: o.timestamp, reverse=True)
        return orders
