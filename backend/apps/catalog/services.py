from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple, Union

from django.db import transaction

from apps.api.exceptions import ConflictError, NotFoundError
from apps.common import get_logger
from apps.common.pagination import PageResult, paginate
from .commands import (
    CategoryCreateCommand,
    CategoryUpdateCommand,
    ProductCreateCommand,
    ProductFilterCommand,
    ProductUpdateCommand,
)
from .dtos import (
    CategoryDetailDTO,
    CategoryDTO,
    CategorySummaryDTO,
    CategoryWithCountDTO,
    ProductDTO,
)
from .mappers import CategoryMapper, ProductMapper
from .protocols import (
    CategoryRepositoryProtocol,
    ListingCacheProtocol,
    ProductRepositoryProtocol,
)

logger = get_logger(__name__).bind(component="catalog", layer="service")


class ProductService:
    def __init__(
        self,
        products: ProductRepositoryProtocol,
        categories: CategoryRepositoryProtocol,
        listing_cache: ListingCacheProtocol,
        disable_cache: bool = False,
    ):
        self.products = products
        self.categories = categories
        self.listing_cache = listing_cache
        self.disable_cache = disable_cache
        self.logger = logger.bind(service="ProductService")

    def _load_page(self, filters: ProductFilterCommand) -> PageResult:
        page = paginate(self.products.filtered(filters), filters.page, filters.limit)
        page.items = ProductMapper.many_to_dto(page.items)
        return page

    def list_products(
        self, filters: Union[Dict[str, Any], ProductFilterCommand, None] = None
    ) -> PageResult:
        cmd = (
            filters
            if isinstance(filters, ProductFilterCommand)
            else ProductFilterCommand.from_raw(filters or {})
        )
        self.logger.debug(
            "Listing products",
            category=cmd.category_id,
            page=cmd.page,
            limit=cmd.limit,
            cache_enabled=not self.disable_cache,
        )
        if self.disable_cache:
            return self._load_page(cmd)
        key = self.listing_cache.key(cmd)
        cached = self.listing_cache.get(key)
        if cached is not None:
            self.logger.debug("Product list cache hit", page=cmd.page)
            return cached
        self.logger.debug("Product list cache miss", page=cmd.page)
        page = self._load_page(cmd)
        self.listing_cache.set(key, page)
        return page

    def get_product(self, product_id: int) -> ProductDTO:
        self.logger.debug("Fetching product", product_id=product_id)
        product = self.products.get(id=product_id)
        if not product:
            self.logger.info("Product not found", product_id=product_id)
            raise NotFoundError("Product not found", details={"id": product_id})
        return ProductMapper.to_dto(product)

    def _require_category(self, category_id: int) -> None:
        if not self.categories.exists(id=category_id):
            self.logger.info("Referenced category missing", category_id=category_id)
            raise NotFoundError("Category not found", details={"categoryId": category_id})

    def create_product(
        self, data: Union[Dict[str, Any], ProductCreateCommand]
    ) -> ProductDTO:
        cmd = (
            data
            if isinstance(data, ProductCreateCommand)
            else ProductCreateCommand.from_raw(data)
        )
        self.logger.info("Creating product", name=cmd.name)
        if cmd.category_id is not None:
            self._require_category(cmd.category_id)
        with transaction.atomic():
            product = self.products.create(**cmd.as_model_fields())
        self.listing_cache.bump()
        self.logger.info("Product created", product_id=product.id)
        # Re-read so the category relation is populated for the response
        return ProductMapper.to_dto(self.products.get(id=product.id) or product)

    def update_product(
        self, product_id: int, data: Union[Dict[str, Any], ProductUpdateCommand]
    ) -> ProductDTO:
        cmd = (
            data
            if isinstance(data, ProductUpdateCommand)
            else ProductUpdateCommand.from_raw(product_id, data)
        )
        self.logger.info(
            "Updating product", product_id=product_id, fields=sorted(cmd.changes)
        )
        product = self.products.get(id=product_id)
        if not product:
            self.logger.warning("Product update failed: not found", product_id=product_id)
            raise NotFoundError("Product not found", details={"id": product_id})
        if cmd.touches_category and cmd.category_id is not None:
            self._require_category(cmd.category_id)
        if cmd.changes:
            with transaction.atomic():
                self.products.update(product, **cmd.changes)
            self.listing_cache.bump()
        self.logger.info("Product updated", product_id=product_id)
        return ProductMapper.to_dto(self.products.get(id=product_id) or product)

    def delete_product(self, product_id: int) -> None:
        self.logger.info("Deleting product", product_id=product_id)
        product = self.products.get(id=product_id)
        if not product:
            self.logger.warning("Product deletion failed: not found", product_id=product_id)
            raise NotFoundError("Product not found", details={"id": product_id})
        if self.products.has_order_items(product):
            self.logger.warning(
                "Product deletion blocked by orders", product_id=product_id
            )
            raise ConflictError(
                "Cannot delete product that is part of existing orders",
                details={"id": product_id},
            )
        self.products.delete(product)
        self.listing_cache.bump()
        self.logger.info("Product deleted", product_id=product_id)


class CategoryService:
    def __init__(
        self,
        categories: CategoryRepositoryProtocol,
        products: ProductRepositoryProtocol,
        listing_cache: Optional[ListingCacheProtocol] = None,
    ):
        self.categories = categories
        self.products = products
        self.listing_cache = listing_cache
        self.logger = logger.bind(service="CategoryService")

    def _get_or_404(self, category_id: int):
        category = self.categories.get(id=category_id)
        if not category:
            self.logger.info("Category not found", category_id=category_id)
            raise NotFoundError("Category not found", details={"id": category_id})
        return category

    def _invalidate_listing(self) -> None:
        # Listings embed the category name
        if self.listing_cache is not None:
            self.listing_cache.bump()

    def list_categories(self, search: Optional[str] = None) -> List[CategoryWithCountDTO]:
        self.logger.debug("Listing categories", search=search)
        return [
            CategoryMapper.to_count_dto(c)
            for c in self.categories.list_with_counts(search)
        ]

    def get_category(self, category_id: int) -> CategoryDetailDTO:
        category = self._get_or_404(category_id)
        products = self.products.list_for_category(category.id)
        return CategoryMapper.to_detail(category, products)

    def products_in_category(
        self, category_id: int, page: int = 1, limit: int = 10
    ) -> Tuple[CategorySummaryDTO, PageResult]:
        category = self._get_or_404(category_id)
        result = paginate(self.products.list_for_category(category.id), page, limit)
        result.items = ProductMapper.many_to_dto(result.items)
        return CategoryMapper.to_summary(category), result

    def create_category(
        self, data: Union[Dict[str, Any], CategoryCreateCommand]
    ) -> CategoryDTO:
        cmd = (
            data
            if isinstance(data, CategoryCreateCommand)
            else CategoryCreateCommand.from_raw(data)
        )
        self.logger.info("Creating category", name=cmd.name)
        if self.categories.name_taken(cmd.name):
            self.logger.warning("Duplicate category name", name=cmd.name)
            raise ConflictError(
                "Category with this name already exists", details={"name": cmd.name}
            )
        category = self.categories.create(name=cmd.name, description=cmd.description)
        self.logger.info("Category created", category_id=category.id)
        return CategoryMapper.to_dto(category)

    def update_category(
        self, category_id: int, data: Union[Dict[str, Any], CategoryUpdateCommand]
    ) -> CategoryDTO:
        cmd = (
            data
            if isinstance(data, CategoryUpdateCommand)
            else CategoryUpdateCommand.from_raw(category_id, data)
        )
        category = self._get_or_404(category_id)
        changes: Dict[str, Any] = {}
        if cmd.name is not None and cmd.name != category.name:
            if self.categories.name_taken(cmd.name, exclude_id=category.id):
                self.logger.warning(
                    "Duplicate category name on update",
                    category_id=category_id,
                    name=cmd.name,
                )
                raise ConflictError(
                    "Category with this name already exists", details={"name": cmd.name}
                )
            changes["name"] = cmd.name
        if cmd.has_description:
            changes["description"] = cmd.description
        if changes:
            self.categories.update(category, **changes)
            self._invalidate_listing()
        self.logger.info("Category updated", category_id=category_id)
        return CategoryMapper.to_dto(category)

    def delete_category(self, category_id: int) -> None:
        category = self._get_or_404(category_id)
        product_count = self.categories.product_count(category)
        if product_count:
            self.logger.warning(
                "Category deletion blocked by products",
                category_id=category_id,
                product_count=product_count,
            )
            raise ConflictError(
                f"Cannot delete category with {product_count} products. "
                "Remove products first.",
                details={"id": category_id, "productCount": product_count},
            )
        self.categories.delete(category)
        self.logger.info("Category deleted", category_id=category_id)
