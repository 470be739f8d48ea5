from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from apps.catalog.dtos import ProductDTO
from apps.users.dtos import UserSummaryDTO


@dataclass
class OrderItemDTO:
    id: int
    product: ProductDTO
    quantity: int
    price: str
    line_total: str


@dataclass
class OrderDTO:
    id: int
    user_id: int
    total: str
    status: str
    payment_status: str
    payment_method: str
    shipping_address: str
    items: List[OrderItemDTO] = field(default_factory=list)
    user: Optional[UserSummaryDTO] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass
class StatusCountDTO:
    status: str
    count: int


@dataclass
class OrderStatsDTO:
    total_orders: int
    orders_by_status: List[StatusCountDTO]
    total_revenue: str
    recent_orders: List[OrderDTO]
