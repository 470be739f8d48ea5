from __future__ import annotations

from decimal import Decimal
from typing import Any, Iterable, List, Optional, Protocol, Sequence, Tuple

from .commands import OrderFilterCommand


class OrderRepositoryProtocol(Protocol):
    def create(self, **data) -> Any: ...
    def get_detailed(self, order_id: int) -> Optional[Any]: ...
    def filtered(self, filters: OrderFilterCommand) -> Any: ...
    def cancel_if_open(self, order_id: int) -> bool: ...
    def set_status(self, order_id: int, status: str) -> bool: ...
    def set_payment_status(self, order_id: int, payment_status: str) -> None: ...
    def status_counts(self) -> List[Tuple[str, int]]: ...
    def delivered_revenue(self) -> Decimal: ...
    def recent(self, limit: int = 5) -> Iterable[Any]: ...


class OrderItemRepositoryProtocol(Protocol):
    def bulk_create_for_order(
        self, order: Any, lines: Sequence[Tuple[Any, int, Decimal]]
    ) -> List[Any]: ...
    def list_for_order(self, order_id: int) -> Iterable[Any]: ...


class CartRepositoryProtocol(Protocol):
    def get_for_update(self, **filters) -> Optional[Any]: ...


class CartItemRepositoryProtocol(Protocol):
    def list_for_cart(self, cart_id: int) -> Iterable[Any]: ...
    def delete_for_cart(self, cart_id: int) -> int: ...


class StockRepositoryProtocol(Protocol):
    def decrement_stock(self, product_id: int, quantity: int) -> bool: ...
    def increment_stock(self, product_id: int, quantity: int) -> None: ...
    def current_stock(self, product_id: int) -> int: ...


class ListingCacheProtocol(Protocol):
    def bump(self) -> None: ...
