from typing import Iterable, List, Optional

from apps.catalog.mappers import ProductMapper
from apps.common.money import format_money, to_decimal
from apps.users.dtos import user_to_summary
from .dtos import OrderDTO, OrderItemDTO
from .models import Order, OrderItem


class OrderItemMapper:
    def __init__(self, product_mapper: Optional[ProductMapper] = None) -> None:
        self.product_mapper = product_mapper or ProductMapper()

    def to_dto(self, item: OrderItem) -> OrderItemDTO:
        # price is the snapshot taken at checkout, not the current product price
        return OrderItemDTO(
            id=item.id,
            product=self.product_mapper.to_dto(item.product),
            quantity=item.quantity,
            price=format_money(item.price),
            line_total=format_money(to_decimal(item.price) * item.quantity),
        )

    def many_to_dto(self, items: Iterable[OrderItem]) -> List[OrderItemDTO]:
        return [self.to_dto(i) for i in items]


class OrderMapper:
    def __init__(self, item_mapper: Optional[OrderItemMapper] = None) -> None:
        self.item_mapper = item_mapper or OrderItemMapper()

    def to_dto(
        self,
        order: Order,
        items: Optional[Iterable[OrderItem]] = None,
        *,
        include_user: bool = False,
    ) -> OrderDTO:
        if items is None:
            items = order.items.all()
        return OrderDTO(
            id=order.id,
            user_id=order.user_id,
            total=format_money(order.total),
            status=str(order.status),
            payment_status=str(order.payment_status),
            payment_method=str(order.payment_method),
            shipping_address=order.shipping_address,
            items=self.item_mapper.many_to_dto(items),
            user=user_to_summary(order.user) if include_user else None,
            created_at=getattr(order, "created_at", None),
            updated_at=getattr(order, "updated_at", None),
        )

    def many_to_dto(
        self, orders: Iterable[Order], *, include_user: bool = False
    ) -> List[OrderDTO]:
        return [self.to_dto(o, include_user=include_user) for o in orders]
