from typing import Any, Iterable, Optional, Protocol

from .commands import ProductFilterCommand


class CategoryRepositoryProtocol(Protocol):
    def get(self, **filters) -> Any: ...
    def exists(self, **filters) -> bool: ...
    def create(self, **data) -> Any: ...
    def update(self, obj: Any, **data) -> Any: ...
    def delete(self, obj: Any) -> None: ...
    def name_taken(self, name: str, *, exclude_id: Optional[int] = None) -> bool: ...
    def list_with_counts(self, search: Optional[str] = None) -> Iterable[Any]: ...
    def product_count(self, category: Any) -> int: ...


class ProductRepositoryProtocol(Protocol):
    def get(self, **filters) -> Any: ...
    def create(self, **data) -> Any: ...
    def update(self, obj: Any, **data) -> Any: ...
    def delete(self, obj: Any) -> None: ...
    def filtered(self, filters: ProductFilterCommand) -> Any: ...
    def list_for_category(self, category_id: int) -> Any: ...
    def has_order_items(self, product: Any) -> bool: ...
    def decrement_stock(self, product_id: int, quantity: int) -> bool: ...
    def increment_stock(self, product_id: int, quantity: int) -> None: ...
    def current_stock(self, product_id: int) -> int: ...


class CacheBackendProtocol(Protocol):
    def get(self, key: str, default: Any = None) -> Any: ...
    def set(self, key: str, value: Any, timeout: Optional[int] = None) -> None: ...


class ListingCacheProtocol(Protocol):
    def key(self, filters: ProductFilterCommand) -> str: ...
    def get(self, key: str) -> Any: ...
    def set(self, key: str, value: Any) -> None: ...
    def bump(self) -> None: ...
