from __future__ import annotations

from django.conf import settings
from django.core.cache import cache

from .cache import ProductListingCache
from .repositories import CategoryRepository, ProductRepository
from .services import CategoryService, ProductService


def build_listing_cache() -> ProductListingCache:
    return ProductListingCache(cache, timeout=getattr(settings, "CACHE_TTL", None))


def build_product_service(*, disable_cache: bool = False) -> ProductService:
    return ProductService(
        products=ProductRepository(),
        categories=CategoryRepository(),
        listing_cache=build_listing_cache(),
        disable_cache=disable_cache,
    )


def build_category_service() -> CategoryService:
    return CategoryService(
        categories=CategoryRepository(),
        products=ProductRepository(),
        listing_cache=build_listing_cache(),
    )
