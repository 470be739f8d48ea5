from decimal import Decimal
from typing import Iterable, List, Optional

from apps.catalog.mappers import ProductMapper
from apps.common.money import format_money, to_decimal
from .dtos import CartDTO, CartItemDTO, CartSummaryDTO
from .models import Cart, CartItem


def line_total(item: CartItem) -> Decimal:
    return to_decimal(item.product.price) * item.quantity


class CartItemMapper:
    def __init__(self, product_mapper: Optional[ProductMapper] = None) -> None:
        self.product_mapper = product_mapper or ProductMapper()

    def to_dto(self, item: CartItem) -> CartItemDTO:
        return CartItemDTO(
            id=item.id,
            product=self.product_mapper.to_dto(item.product),
            quantity=item.quantity,
            line_total=format_money(line_total(item)),
            created_at=getattr(item, "created_at", None),
        )

    def many_to_dto(self, items: Iterable[CartItem]) -> List[CartItemDTO]:
        return [self.to_dto(i) for i in items]


class CartMapper:
    def __init__(self, item_mapper: Optional[CartItemMapper] = None) -> None:
        self.item_mapper = item_mapper or CartItemMapper()

    def to_dto(self, cart: Cart, items: Iterable[CartItem]) -> CartDTO:
        items = list(items)
        summary = self.summarize(items)
        return CartDTO(
            id=cart.id,
            items=self.item_mapper.many_to_dto(items),
            subtotal=summary.subtotal,
            item_count=summary.item_count,
            created_at=getattr(cart, "created_at", None),
            updated_at=getattr(cart, "updated_at", None),
        )

    @staticmethod
    def summarize(items: Iterable[CartItem]) -> CartSummaryDTO:
        subtotal = Decimal("0")
        count = 0
        for item in items:
            subtotal += line_total(item)
            count += item.quantity
        return CartSummaryDTO(item_count=count, subtotal=format_money(subtotal))
