from __future__ import annotations

from decimal import Decimal
from typing import Any, Callable, Dict, List, Optional, Union

from apps.api.exceptions import (
    AlreadyCancelledError,
    ForbiddenError,
    InsufficientStockError,
    InvalidTransitionError,
    NotFoundError,
)
from apps.common import get_logger
from apps.common.money import CENT, format_money, to_decimal
from apps.common.pagination import PageResult, paginate
from apps.common.transactions import run_in_transaction
from .commands import CheckoutCommand, OrderFilterCommand
from .dtos import OrderDTO, OrderStatsDTO, StatusCountDTO
from .mappers import OrderMapper
from .models import OrderStatus, PaymentStatus
from .protocols import (
    CartItemRepositoryProtocol,
    CartRepositoryProtocol,
    ListingCacheProtocol,
    OrderItemRepositoryProtocol,
    OrderRepositoryProtocol,
    StockRepositoryProtocol,
)

logger = get_logger(__name__).bind(component="orders", layer="service")

TransactionRunner = Callable[[Callable[[], Any]], Any]

EMPTY_CART_MESSAGE = "Cart is empty. Add items before checkout."


class CheckoutService:
    """Turns the caller's cart into an order in a single transaction.

    Stock is decremented with conditional relative updates, so two checkouts
    racing for the last unit cannot both succeed and stock never goes below
    zero. Any failure rolls back the order rows, the stock changes and the
    cart deletion together.
    """

    def __init__(
        self,
        orders: OrderRepositoryProtocol,
        order_items: OrderItemRepositoryProtocol,
        carts: CartRepositoryProtocol,
        cart_items: CartItemRepositoryProtocol,
        stock: StockRepositoryProtocol,
        listing_cache: ListingCacheProtocol,
        mapper: Optional[OrderMapper] = None,
        transaction_runner: TransactionRunner = run_in_transaction,
    ):
        self.orders = orders
        self.order_items = order_items
        self.carts = carts
        self.cart_items = cart_items
        self.stock = stock
        self.listing_cache = listing_cache
        self.mapper = mapper or OrderMapper()
        self.run_in_transaction = transaction_runner
        self.logger = logger.bind(service="CheckoutService")

    def checkout(
        self, user_id: int, data: Union[CheckoutCommand, Dict[str, Any]]
    ) -> OrderDTO:
        cmd = (
            data
            if isinstance(data, CheckoutCommand)
            else CheckoutCommand.from_raw(user_id, data)
        )
        self.logger.info(
            "Starting checkout", user_id=cmd.user_id, payment_method=cmd.payment_method
        )
        order = self.run_in_transaction(lambda: self._place_order(cmd))
        self.listing_cache.bump()
        self.logger.info(
            "Order placed", order_id=order.id, user_id=cmd.user_id, total=order.total
        )
        return self.mapper.to_dto(order, self.order_items.list_for_order(order.id))

    def _place_order(self, cmd: CheckoutCommand):
        cart = self.carts.get_for_update(user_id=cmd.user_id)
        items = list(self.cart_items.list_for_cart(cart.id)) if cart else []
        if not items:
            self.logger.info("Checkout rejected: empty cart", user_id=cmd.user_id)
            raise InsufficientStockError(EMPTY_CART_MESSAGE)

        for item in items:
            if item.quantity > item.product.stock:
                self.logger.info(
                    "Checkout rejected: insufficient stock",
                    user_id=cmd.user_id,
                    product_id=item.product_id,
                    requested=item.quantity,
                    available=item.product.stock,
                )
                raise InsufficientStockError(
                    product_id=item.product_id,
                    product_name=item.product.name,
                    available=item.product.stock,
                    requested=item.quantity,
                )

        total = sum(
            (to_decimal(item.product.price) * item.quantity for item in items),
            Decimal("0"),
        ).quantize(CENT)
        order = self.orders.create(
            user_id=cmd.user_id,
            total=total,
            status=OrderStatus.PENDING,
            payment_status=PaymentStatus.PENDING,
            payment_method=cmd.payment_method,
            shipping_address=cmd.shipping_address,
        )
        self.order_items.bulk_create_for_order(
            order,
            [(item.product, item.quantity, to_decimal(item.product.price)) for item in items],
        )

        # Fixed lock order across transactions
        for item in sorted(items, key=lambda i: i.product_id):
            if not self.stock.decrement_stock(item.product_id, item.quantity):
                available = self.stock.current_stock(item.product_id)
                self.logger.warning(
                    "Stock drained by a concurrent checkout",
                    order_id=order.id,
                    product_id=item.product_id,
                    requested=item.quantity,
                    available=available,
                )
                raise InsufficientStockError(
                    product_id=item.product_id,
                    product_name=item.product.name,
                    available=available,
                    requested=item.quantity,
                )

        self.cart_items.delete_for_cart(cart.id)
        return order


class OrderService:
    def __init__(
        self,
        orders: OrderRepositoryProtocol,
        order_items: OrderItemRepositoryProtocol,
        stock: StockRepositoryProtocol,
        listing_cache: ListingCacheProtocol,
        mapper: Optional[OrderMapper] = None,
        transaction_runner: TransactionRunner = run_in_transaction,
    ):
        self.orders = orders
        self.order_items = order_items
        self.stock = stock
        self.listing_cache = listing_cache
        self.mapper = mapper or OrderMapper()
        self.run_in_transaction = transaction_runner
        self.logger = logger.bind(service="OrderService")

    def _get_or_404(self, order_id: int):
        order = self.orders.get_detailed(order_id)
        if not order:
            self.logger.info("Order not found", order_id=order_id)
            raise NotFoundError("Order not found", details={"id": order_id})
        return order

    @staticmethod
    def _ensure_cancellable(status: str) -> None:
        if status in (OrderStatus.SHIPPED, OrderStatus.DELIVERED):
            raise InvalidTransitionError(
                "Cannot cancel order that is already shipped or delivered"
            )
        if status == OrderStatus.CANCELLED:
            raise AlreadyCancelledError("Order is already cancelled")

    def _paginate(self, filters: OrderFilterCommand, *, include_user: bool) -> PageResult:
        page = paginate(self.orders.filtered(filters), filters.page, filters.limit)
        page.items = self.mapper.many_to_dto(page.items, include_user=include_user)
        return page

    def list_for_user(self, user_id: int, params: Optional[Dict[str, Any]] = None) -> PageResult:
        filters = OrderFilterCommand.from_raw(params or {}, user_id=user_id)
        self.logger.debug(
            "Listing orders for user", user_id=user_id, status=filters.status, page=filters.page
        )
        return self._paginate(filters, include_user=False)

    def list_all(self, params: Optional[Dict[str, Any]] = None) -> PageResult:
        filters = OrderFilterCommand.from_raw(params or {})
        self.logger.debug(
            "Listing all orders", user_id=filters.user_id, status=filters.status, page=filters.page
        )
        return self._paginate(filters, include_user=True)

    def get_for_user(self, order_id: int, actor_id: int, is_admin: bool = False) -> OrderDTO:
        order = self._get_or_404(order_id)
        if order.user_id != actor_id and not is_admin:
            self.logger.warning(
                "Order read denied", order_id=order_id, actor_id=actor_id, owner_id=order.user_id
            )
            raise ForbiddenError("You can only view your own orders")
        return self.mapper.to_dto(order, include_user=is_admin)

    def cancel(self, order_id: int, requesting_user_id: int) -> OrderDTO:
        self.logger.info("Cancelling order", order_id=order_id, user_id=requesting_user_id)
        order = self._get_or_404(order_id)
        if order.user_id != requesting_user_id:
            self.logger.warning(
                "Order cancel denied",
                order_id=order_id,
                user_id=requesting_user_id,
                owner_id=order.user_id,
            )
            raise ForbiddenError("You can only cancel your own orders")
        self._ensure_cancellable(order.status)

        def _cancel_and_restock():
            if not self.orders.cancel_if_open(order_id):
                # A concurrent transition won; report what it moved the order to
                current = self._get_or_404(order_id)
                self._ensure_cancellable(current.status)
                raise InvalidTransitionError("Order can no longer be cancelled")
            restored = 0
            for item in self.order_items.list_for_order(order_id):
                self.stock.increment_stock(item.product_id, item.quantity)
                restored += item.quantity
            return restored

        restored = self.run_in_transaction(_cancel_and_restock)
        self.listing_cache.bump()
        self.logger.info("Order cancelled", order_id=order_id, units_restored=restored)
        return self.mapper.to_dto(self._get_or_404(order_id))

    def update_status(self, order_id: int, status: str) -> OrderDTO:
        order = self._get_or_404(order_id)
        self.logger.info(
            "Updating order status", order_id=order_id, old=order.status, new=status
        )
        if not self.orders.set_status(order_id, status):
            # Cancelling already restored the stock for this order
            raise InvalidTransitionError(
                "Cannot change the status of a cancelled order",
                hint="Cancelled orders are final",
            )
        return self.mapper.to_dto(self._get_or_404(order_id), include_user=True)

    def update_payment_status(self, order_id: int, payment_status: str) -> OrderDTO:
        order = self._get_or_404(order_id)
        self.logger.info(
            "Updating payment status",
            order_id=order_id,
            old=order.payment_status,
            new=payment_status,
        )
        self.orders.set_payment_status(order_id, payment_status)
        return self.mapper.to_dto(self._get_or_404(order_id), include_user=True)

    def stats(self) -> OrderStatsDTO:
        counts: List[StatusCountDTO] = [
            StatusCountDTO(status=status, count=count)
            for status, count in self.orders.status_counts()
        ]
        recent = self.mapper.many_to_dto(self.orders.recent(5), include_user=True)
        return OrderStatsDTO(
            total_orders=sum(c.count for c in counts),
            orders_by_status=counts,
            total_revenue=format_money(self.orders.delivered_revenue()),
            recent_orders=recent,
        )
