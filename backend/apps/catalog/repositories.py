from typing import Optional

from django.db.models import Count, F, Q, QuerySet
from django.utils import timezone

from apps.common.repository import GenericRepository
from .commands import ProductFilterCommand
from .models import Category, Product


class CategoryRepository(GenericRepository[Category]):
    def __init__(self):
        super().__init__(Category)

    def name_taken(self, name: str, *, exclude_id: Optional[int] = None) -> bool:
        qs = self.model.objects.filter(name__iexact=name)
        if exclude_id is not None:
            qs = qs.exclude(id=exclude_id)
        return qs.exists()

    def list_with_counts(self, search: Optional[str] = None) -> QuerySet:
        qs = self.model.objects.annotate(product_count=Count("products"))
        if search:
            qs = qs.filter(name__icontains=search)
        return qs.order_by("name")

    def product_count(self, category: Category) -> int:
        return category.products.count()


class ProductRepository(GenericRepository[Product]):
    def __init__(self):
        super().__init__(Product)

    def get(self, **filters) -> Optional[Product]:  # type: ignore[override]
        """Category is joined so DTO mapping does not issue a second query."""
        return self.model.objects.select_related("category").filter(**filters).first()

    def filtered(self, filters: ProductFilterCommand) -> QuerySet:
        qs = self.model.objects.select_related("category")
        if filters.category_id is not None:
            qs = qs.filter(category_id=filters.category_id)
        if filters.min_price is not None:
            qs = qs.filter(price__gte=filters.min_price)
        if filters.max_price is not None:
            qs = qs.filter(price__lte=filters.max_price)
        if filters.search:
            qs = qs.filter(Q(name__icontains=filters.search))
        if filters.in_stock:
            qs = qs.filter(stock__gt=0)
        return qs.order_by(*filters.ordering)

    def list_for_category(self, category_id: int) -> QuerySet:
        return (
            self.model.objects.select_related("category")
            .filter(category_id=category_id)
            .order_by("-created_at", "-id")
        )

    def has_order_items(self, product: Product) -> bool:
        return self.model.objects.filter(
            id=product.id, order_items__isnull=False
        ).exists()

    # --- Stock mutations used by checkout and cancellation ---
    def decrement_stock(self, product_id: int, quantity: int) -> bool:
        """Conditional relative decrement. False when stock is below ``quantity``."""
        updated = self.model.objects.filter(id=product_id, stock__gte=quantity).update(
            stock=F("stock") - quantity, updated_at=timezone.now()
        )
        return updated == 1

    def increment_stock(self, product_id: int, quantity: int) -> None:
        self.model.objects.filter(id=product_id).update(
            stock=F("stock") + quantity, updated_at=timezone.now()
        )

    def current_stock(self, product_id: int) -> int:
        stock = (
            self.model.objects.filter(id=product_id)
            .values_list("stock", flat=True)
            .first()
        )
        return int(stock or 0)
