from __future__ import annotations

from typing import TYPE_CHECKING, Iterable, Optional, Protocol, Tuple

from .models import Cart, CartItem

if TYPE_CHECKING:
    from apps.carts.dtos import CartDTO, CartItemDTO, CartSummaryDTO
    from apps.catalog.models import Product


class CartRepositoryProtocol(Protocol):
    def get(self, **filters) -> Optional[Cart]:
        ...

    def get_for_update(self, **filters) -> Optional[Cart]:
        ...

    def get_or_create_for_user(self, user_id: int) -> Tuple[Cart, bool]:
        ...

    def touch(self, cart: Cart) -> None:
        ...


class CartItemRepositoryProtocol(Protocol):
    def create(self, **data) -> CartItem:
        ...

    def update(self, obj: CartItem, **data) -> CartItem:
        ...

    def delete(self, obj: CartItem) -> None:
        ...

    def list_for_cart(self, cart_id: int) -> Iterable[CartItem]:
        ...

    def get_with_cart(self, item_id: int) -> Optional[CartItem]:
        ...

    def get_for_cart_product(self, cart_id: int, product_id: int) -> Optional[CartItem]:
        ...

    def delete_for_cart(self, cart_id: int) -> int:
        ...


class ProductRepositoryProtocol(Protocol):
    def get(self, **filters) -> Optional["Product"]:
        ...


class CartMapperProtocol(Protocol):
    def to_dto(self, cart: Cart, items: Iterable[CartItem]) -> "CartDTO":
        ...

    def summarize(self, items: Iterable[CartItem]) -> "CartSummaryDTO":
        ...


class CartItemMapperProtocol(Protocol):
    def to_dto(self, item: CartItem) -> "CartItemDTO":
        ...
