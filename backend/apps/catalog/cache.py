from typing import Any, Optional

from apps.common import get_logger
from .commands import ProductFilterCommand
from .protocols import CacheBackendProtocol

logger = get_logger(__name__).bind(component="catalog", layer="cache")


class ProductListingCache:
    """Read-through cache for product listings.

    Keys embed a version number; bumping the version orphans every cached
    page at once instead of deleting keys one by one.
    """

    prefix = "products:list"
    default_version = 1

    def __init__(self, backend: CacheBackendProtocol, *, timeout: Optional[int] = None):
        self.backend = backend
        self.timeout = timeout
        self.version_key = f"{self.prefix}:version"

    def version(self) -> int:
        return self.backend.get(self.version_key) or self.default_version

    def key(self, filters: ProductFilterCommand) -> str:
        return f"{self.prefix}:v{self.version()}:{filters.cache_key_parts()}"

    def get(self, key: str) -> Any:
        return self.backend.get(key)

    def set(self, key: str, value: Any) -> None:
        """``key`` must be the one resolved before the page was loaded."""
        if self.timeout is None:
            self.backend.set(key, value)
        else:
            self.backend.set(key, value, timeout=self.timeout)

    def bump(self) -> None:
        version = self.version() + 1
        # Version key should not expire
        self.backend.set(self.version_key, version, timeout=None)
        logger.debug("Bumped product listing cache version", new_version=version)
