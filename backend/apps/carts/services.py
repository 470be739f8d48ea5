from __future__ import annotations

from typing import Any, Dict, Union

from django.db import transaction

from apps.api.exceptions import ForbiddenError, InsufficientStockError, NotFoundError
from apps.common import get_logger
from .commands import CartItemAddCommand, CartItemUpdateCommand
from .dtos import CartDTO, CartItemDTO, CartSummaryDTO
from .protocols import (
    CartItemMapperProtocol,
    CartItemRepositoryProtocol,
    CartMapperProtocol,
    CartRepositoryProtocol,
    ProductRepositoryProtocol,
)

logger = get_logger(__name__).bind(component="carts", layer="service")


class CartService:
    def __init__(
        self,
        carts: CartRepositoryProtocol,
        items: CartItemRepositoryProtocol,
        products: ProductRepositoryProtocol,
        cart_mapper: CartMapperProtocol,
        item_mapper: CartItemMapperProtocol,
    ):
        self.carts = carts
        self.items = items
        self.products = products
        self.cart_mapper = cart_mapper
        self.item_mapper = item_mapper
        self.logger = logger.bind(service="CartService")

    def _ensure_cart(self, user_id: int):
        cart, created = self.carts.get_or_create_for_user(user_id)
        if created:
            self.logger.info("Created cart on first access", user_id=user_id, cart_id=cart.id)
        return cart

    def _check_stock(self, product, requested: int) -> None:
        if requested > product.stock:
            self.logger.info(
                "Cart quantity exceeds stock",
                product_id=product.id,
                requested=requested,
                available=product.stock,
            )
            raise InsufficientStockError(
                product_id=product.id,
                product_name=product.name,
                available=product.stock,
                requested=requested,
            )

    def _owned_item(self, user_id: int, item_id: int):
        item = self.items.get_with_cart(item_id)
        if not item:
            self.logger.info("Cart item not found", item_id=item_id, user_id=user_id)
            raise NotFoundError("Cart item not found", details={"itemId": item_id})
        if item.cart.user_id != user_id:
            self.logger.warning(
                "Cart item ownership mismatch",
                item_id=item_id,
                user_id=user_id,
                owner_id=item.cart.user_id,
            )
            raise ForbiddenError("This cart item does not belong to you")
        return item

    def get_cart(self, user_id: int) -> CartDTO:
        cart = self._ensure_cart(user_id)
        items = self.items.list_for_cart(cart.id)
        self.logger.debug("Returning cart", user_id=user_id, cart_id=cart.id)
        return self.cart_mapper.to_dto(cart, items)

    def summary(self, user_id: int) -> CartSummaryDTO:
        cart = self.carts.get(user_id=user_id)
        if not cart:
            return CartSummaryDTO(item_count=0, subtotal="0.00")
        return self.cart_mapper.summarize(self.items.list_for_cart(cart.id))

    def add_item(
        self,
        user_id: int,
        data: Union[Dict[str, Any], CartItemAddCommand],
    ) -> CartItemDTO:
        cmd = data if isinstance(data, CartItemAddCommand) else CartItemAddCommand.from_raw(data)
        self.logger.info(
            "Adding product to cart",
            user_id=user_id,
            product_id=cmd.product_id,
            quantity=cmd.quantity,
        )
        product = self.products.get(id=cmd.product_id)
        if not product:
            raise NotFoundError("Product not found", details={"productId": cmd.product_id})
        cart = self._ensure_cart(user_id)
        with transaction.atomic():
            # Serialize concurrent mutations of the same cart
            self.carts.get_for_update(id=cart.id)
            existing = self.items.get_for_cart_product(cart.id, product.id)
            if existing:
                total = existing.quantity + cmd.quantity
                self._check_stock(product, total)
                item = self.items.update(existing, quantity=total)
            else:
                self._check_stock(product, cmd.quantity)
                item = self.items.create(cart=cart, product=product, quantity=cmd.quantity)
            self.carts.touch(cart)
        self.logger.info("Cart item saved", cart_id=cart.id, item_id=item.id, quantity=item.quantity)
        return self.item_mapper.to_dto(item)

    def update_item(
        self,
        user_id: int,
        item_id: int,
        data: Union[Dict[str, Any], CartItemUpdateCommand],
    ) -> CartItemDTO:
        cmd = (
            data
            if isinstance(data, CartItemUpdateCommand)
            else CartItemUpdateCommand.from_raw(item_id, data)
        )
        item = self._owned_item(user_id, cmd.item_id)
        self._check_stock(item.product, cmd.quantity)
        with transaction.atomic():
            item = self.items.update(item, quantity=cmd.quantity)
            self.carts.touch(item.cart)
        self.logger.info("Cart item updated", item_id=item.id, quantity=cmd.quantity)
        return self.item_mapper.to_dto(item)

    def remove_item(self, user_id: int, item_id: int) -> None:
        item = self._owned_item(user_id, item_id)
        cart = item.cart
        with transaction.atomic():
            self.items.delete(item)
            self.carts.touch(cart)
        self.logger.info("Cart item removed", item_id=item_id, user_id=user_id)

    def clear(self, user_id: int) -> int:
        cart = self.carts.get(user_id=user_id)
        if not cart:
            self.logger.debug("Clear requested without a cart", user_id=user_id)
            return 0
        with transaction.atomic():
            removed = self.items.delete_for_cart(cart.id)
            self.carts.touch(cart)
        self.logger.info("Cart cleared", user_id=user_id, removed=removed)
        return removed
