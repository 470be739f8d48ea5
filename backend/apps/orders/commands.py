from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, Optional

from apps.common.pagination import DEFAULT_PAGE_SIZE
from .models import PaymentMethod


@dataclass
class CheckoutCommand:
    user_id: int
    shipping_address: str
    payment_method: str = PaymentMethod.CARD

    @staticmethod
    def from_raw(user_id: int, payload: Dict[str, Any]):
        data = dict(payload or {})
        return CheckoutCommand(
            user_id=user_id,
            shipping_address=str(data.get("shippingAddress", "")).strip(),
            payment_method=data.get("paymentMethod") or PaymentMethod.CARD,
        )


@dataclass
class OrderFilterCommand:
    status: Optional[str] = None
    user_id: Optional[int] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    page: int = 1
    limit: int = DEFAULT_PAGE_SIZE

    @staticmethod
    def from_raw(params: Dict[str, Any], *, user_id: Optional[int] = None):
        """``user_id`` pins the owner and wins over any ``userId`` in ``params``."""
        data = dict(params or {})
        return OrderFilterCommand(
            status=data.get("status") or None,
            user_id=user_id if user_id is not None else data.get("userId"),
            start_date=data.get("startDate"),
            end_date=data.get("endDate"),
            page=int(data.get("page") or 1),
            limit=int(data.get("limit") or DEFAULT_PAGE_SIZE),
        )
