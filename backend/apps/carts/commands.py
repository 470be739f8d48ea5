from dataclasses import dataclass
from typing import Any, Dict


@dataclass
class CartItemAddCommand:
    product_id: int
    quantity: int = 1

    @staticmethod
    def from_raw(raw: Dict[str, Any]):
        data = dict(raw or {})
        return CartItemAddCommand(
            product_id=int(data.get("productId")),
            quantity=int(data.get("quantity") or 1),
        )


@dataclass
class CartItemUpdateCommand:
    item_id: int
    quantity: int

    @staticmethod
    def from_raw(item_id: int, raw: Dict[str, Any]):
        return CartItemUpdateCommand(item_id=item_id, quantity=int(dict(raw or {})["quantity"]))
