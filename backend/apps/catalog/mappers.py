from typing import Iterable, List

from apps.common.money import format_money

from .dtos import (
    CategoryDetailDTO,
    CategoryDTO,
    CategorySummaryDTO,
    CategoryWithCountDTO,
    ProductDTO,
)
from .models import Category, Product


class CategoryMapper:
    @staticmethod
    def to_dto(cat: Category) -> CategoryDTO:
        return CategoryDTO(
            id=cat.id,
            name=cat.name,
            description=cat.description,
            created_at=getattr(cat, "created_at", None),
            updated_at=getattr(cat, "updated_at", None),
        )

    @staticmethod
    def to_summary(cat: Category) -> CategorySummaryDTO:
        return CategorySummaryDTO(id=cat.id, name=cat.name)

    @staticmethod
    def to_count_dto(cat: Category) -> CategoryWithCountDTO:
        # product_count comes from a Count() annotation
        return CategoryWithCountDTO(
            id=cat.id,
            name=cat.name,
            description=cat.description,
            product_count=int(getattr(cat, "product_count", 0) or 0),
        )

    @staticmethod
    def to_detail(cat: Category, products: Iterable[Product]) -> CategoryDetailDTO:
        return CategoryDetailDTO(
            id=cat.id,
            name=cat.name,
            description=cat.description,
            products=ProductMapper.many_to_dto(products),
            created_at=getattr(cat, "created_at", None),
            updated_at=getattr(cat, "updated_at", None),
        )


class ProductMapper:
    @staticmethod
    def to_dto(product: Product) -> ProductDTO:
        category = product.category if product.category_id else None
        return ProductDTO(
            id=product.id,
            name=product.name,
            description=product.description,
            price=format_money(product.price),
            stock=product.stock,
            images=list(product.images or []),
            category=CategoryMapper.to_summary(category) if category else None,
            created_at=getattr(product, "created_at", None),
            updated_at=getattr(product, "updated_at", None),
        )

    @staticmethod
    def many_to_dto(products: Iterable[Product]) -> List[ProductDTO]:
        return [ProductMapper.to_dto(p) for p in products]
