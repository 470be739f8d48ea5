from __future__ import annotations

from apps.catalog.repositories import ProductRepository
from .mappers import CartItemMapper, CartMapper
from .repositories import CartItemRepository, CartRepository
from .services import CartService


def build_cart_service() -> CartService:
    item_mapper = CartItemMapper()
    return CartService(
        carts=CartRepository(),
        items=CartItemRepository(),
        products=ProductRepository(),
        cart_mapper=CartMapper(item_mapper),
        item_mapper=item_mapper,
    )
