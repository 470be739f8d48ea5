from decimal import Decimal
from typing import Iterable, List, Optional, Sequence, Tuple

from django.db.models import Count, Prefetch, QuerySet, Sum
from django.utils import timezone

from apps.common.repository import GenericRepository
from .commands import OrderFilterCommand
from .models import CANCELLABLE_STATUSES, Order, OrderItem, OrderStatus


class OrderRepository(GenericRepository[Order]):
    def __init__(self):
        super().__init__(Order)

    def _detailed(self) -> QuerySet:
        items = Prefetch(
            "items",
            queryset=OrderItem.objects.select_related("product", "product__category"),
        )
        return self.model.objects.select_related("user").prefetch_related(items)

    def get_detailed(self, order_id: int) -> Optional[Order]:
        return self._detailed().filter(id=order_id).first()

    def filtered(self, filters: OrderFilterCommand) -> QuerySet:
        qs = self._detailed()
        if filters.user_id is not None:
            qs = qs.filter(user_id=filters.user_id)
        if filters.status:
            qs = qs.filter(status=filters.status)
        if filters.start_date:
            qs = qs.filter(created_at__date__gte=filters.start_date)
        if filters.end_date:
            qs = qs.filter(created_at__date__lte=filters.end_date)
        return qs.order_by("-created_at", "-id")

    def cancel_if_open(self, order_id: int) -> bool:
        """Conditional status write; only one concurrent caller can win."""
        updated = self.model.objects.filter(
            id=order_id, status__in=CANCELLABLE_STATUSES
        ).update(status=OrderStatus.CANCELLED, updated_at=timezone.now())
        return updated == 1

    def set_status(self, order_id: int, status: str) -> bool:
        """Writes only ``status``. A cancelled order stays cancelled."""
        qs = self.model.objects.filter(id=order_id)
        if status != OrderStatus.CANCELLED:
            qs = qs.exclude(status=OrderStatus.CANCELLED)
        return qs.update(status=status, updated_at=timezone.now()) == 1

    def set_payment_status(self, order_id: int, payment_status: str) -> None:
        self.model.objects.filter(id=order_id).update(
            payment_status=payment_status, updated_at=timezone.now()
        )

    def status_counts(self) -> List[Tuple[str, int]]:
        rows = (
            self.model.objects.values("status")
            .annotate(count=Count("id"))
            .order_by("status")
        )
        return [(row["status"], row["count"]) for row in rows]

    def delivered_revenue(self) -> Decimal:
        total = self.model.objects.filter(status=OrderStatus.DELIVERED).aggregate(
            total=Sum("total")
        )["total"]
        return total or Decimal("0")

    def recent(self, limit: int = 5) -> QuerySet:
        return self._detailed().order_by("-created_at", "-id")[:limit]


class OrderItemRepository(GenericRepository[OrderItem]):
    def __init__(self):
        super().__init__(OrderItem)

    def bulk_create_for_order(
        self, order: Order, lines: Sequence[Tuple[object, int, Decimal]]
    ) -> List[OrderItem]:
        items = [
            OrderItem(order=order, product=product, quantity=quantity, price=price)
            for product, quantity, price in lines
        ]
        return self.model.objects.bulk_create(items)

    def list_for_order(self, order_id: int) -> Iterable[OrderItem]:
        return self.model.objects.filter(order_id=order_id).select_related(
            "product", "product__category"
        )
