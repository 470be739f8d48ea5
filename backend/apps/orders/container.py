from __future__ import annotations

from apps.carts.repositories import CartItemRepository, CartRepository
from apps.catalog.container import build_listing_cache
from apps.catalog.repositories import ProductRepository
from .mappers import OrderMapper
from .repositories import OrderItemRepository, OrderRepository
from .services import CheckoutService, OrderService


def build_checkout_service() -> CheckoutService:
    return CheckoutService(
        orders=OrderRepository(),
        order_items=OrderItemRepository(),
        carts=CartRepository(),
        cart_items=CartItemRepository(),
        stock=ProductRepository(),
        listing_cache=build_listing_cache(),
        mapper=OrderMapper(),
    )


def build_order_service() -> OrderService:
    return OrderService(
        orders=OrderRepository(),
        order_items=OrderItemRepository(),
        stock=ProductRepository(),
        listing_cache=build_listing_cache(),
        mapper=OrderMapper(),
    )
