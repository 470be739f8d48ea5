from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from apps.catalog.dtos import ProductDTO


@dataclass
class CartItemDTO:
    id: int
    product: ProductDTO
    quantity: int
    line_total: str
    created_at: Optional[datetime] = None


@dataclass
class CartDTO:
    id: int
    items: List[CartItemDTO] = field(default_factory=list)
    subtotal: str = "0.00"
    item_count: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass
class CartSummaryDTO:
    item_count: int
    subtotal: str
