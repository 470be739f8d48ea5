import copy
import types
import unittest
from decimal import Decimal
from unittest.mock import patch

from apps.api.exceptions import (
    AlreadyCancelledError,
    ForbiddenError,
    InsufficientStockError,
    InvalidTransitionError,
    NotFoundError,
)
from apps.orders.models import OrderStatus
from apps.orders.services import CheckoutService, OrderService


def passthrough(fn):
    return fn()


class FailingTransaction:
    """Mimics a rollback by restoring snapshots of the fake stores on error."""

    def __init__(self, *stores):
        self.stores = stores

    def __call__(self, fn):
        snapshots = [store.snapshot() for store in self.stores]
        try:
            return fn()
        except Exception:
            for store, snap in zip(self.stores, snapshots):
                store.restore(snap)
            raise


class ItemManager(list):
    def all(self):
        return list(self)


def make_product(product_id, name, price, stock):
    return types.SimpleNamespace(
        id=product_id,
        name=name,
        description=None,
        price=Decimal(price),
        stock=stock,
        images=[],
        category=None,
        category_id=None,
    )


class FakeStock:
    def __init__(self, products):
        self.products = {p.id: p for p in products}
        self.drained = set()

    def snapshot(self):
        return {pid: p.stock for pid, p in self.products.items()}

    def restore(self, snap):
        for pid, stock in snap.items():
            self.products[pid].stock = stock

    def decrement_stock(self, product_id, quantity):
        product = self.products[product_id]
        if product_id in self.drained:
            # another transaction took the units after the pre-flight read
            product.stock = 0
        if product.stock < quantity:
            return False
        product.stock -= quantity
        return True

    def increment_stock(self, product_id, quantity):
        self.products[product_id].stock += quantity

    def current_stock(self, product_id):
        return self.products[product_id].stock


class FakeCarts:
    def __init__(self):
        self.carts = {}
        self.locked = []

    def add(self, user_id, cart_id):
        self.carts[user_id] = types.SimpleNamespace(id=cart_id, user_id=user_id)

    def get_for_update(self, **filters):
        cart = self.carts.get(filters["user_id"])
        self.locked.append(filters["user_id"])
        return cart


class FakeCartItems:
    def __init__(self):
        self.items = []

    def snapshot(self):
        return list(self.items)

    def restore(self, snap):
        self.items = list(snap)

    def add(self, cart_id, product, quantity):
        self.items.append(
            types.SimpleNamespace(
                cart_id=cart_id, product=product, product_id=product.id, quantity=quantity
            )
        )

    def list_for_cart(self, cart_id):
        return [i for i in self.items if i.cart_id == cart_id]

    def delete_for_cart(self, cart_id):
        before = len(self.items)
        self.items = [i for i in self.items if i.cart_id != cart_id]
        return before - len(self.items)


class FakeOrders:
    def __init__(self):
        self.orders = {}
        self._pk = 1

    def snapshot(self):
        return dict(self.orders)

    def restore(self, snap):
        self.orders = dict(snap)

    def create(self, **data):
        order = types.SimpleNamespace(id=self._pk, items=ItemManager(), user=None, **data)
        self.orders[order.id] = order
        self._pk += 1
        return order

    def get_detailed(self, order_id):
        return self.orders.get(order_id)

    def set_status(self, order_id, status):
        order = self.orders[order_id]
        if order.status == OrderStatus.CANCELLED and status != OrderStatus.CANCELLED:
            return False
        order.status = status
        return True

    def set_payment_status(self, order_id, payment_status):
        self.orders[order_id].payment_status = payment_status

    def cancel_if_open(self, order_id):
        order = self.orders[order_id]
        if order.status not in (OrderStatus.PENDING, OrderStatus.PROCESSING):
            return False
        order.status = OrderStatus.CANCELLED
        return True

    def status_counts(self):
        counts = {}
        for order in self.orders.values():
            counts[order.status] = counts.get(order.status, 0) + 1
        return sorted(counts.items())

    def delivered_revenue(self):
        return sum(
            (o.total for o in self.orders.values() if o.status == OrderStatus.DELIVERED),
            Decimal("0"),
        )

    def recent(self, limit=5):
        return sorted(self.orders.values(), key=lambda o: o.id, reverse=True)[:limit]


class FakeOrderItems:
    def __init__(self, orders: FakeOrders):
        self.orders = orders
        self._pk = 1

    def bulk_create_for_order(self, order, lines):
        created = []
        for product, quantity, price in lines:
            item = types.SimpleNamespace(
                id=self._pk,
                order_id=order.id,
                product=product,
                product_id=product.id,
                quantity=quantity,
                price=price,
            )
            self._pk += 1
            order.items.append(item)
            created.append(item)
        return created

    def list_for_order(self, order_id):
        order = self.orders.orders.get(order_id)
        return list(order.items) if order else []


class FakeListingCache:
    def __init__(self):
        self.bumps = 0

    def bump(self):
        self.bumps += 1


class CheckoutServiceTests(unittest.TestCase):
    def setUp(self):
        self.mouse = make_product(1, "Mouse", "10.00", 5)
        self.cable = make_product(2, "Cable", "2.50", 1)
        self.stock = FakeStock([self.mouse, self.cable])
        self.carts = FakeCarts()
        self.carts.add(user_id=10, cart_id=100)
        self.cart_items = FakeCartItems()
        self.orders = FakeOrders()
        self.order_items = FakeOrderItems(self.orders)
        self.cache = FakeListingCache()
        self.service = CheckoutService(
            orders=self.orders,
            order_items=self.order_items,
            carts=self.carts,
            cart_items=self.cart_items,
            stock=self.stock,
            listing_cache=self.cache,
            transaction_runner=FailingTransaction(self.stock, self.cart_items, self.orders),
        )

    def test_checkout_places_order(self):
        self.cart_items.add(100, self.mouse, 2)
        dto = self.service.checkout(10, {"shippingAddress": "1 Main Street, Springfield"})
        self.assertEqual(dto.total, "20.00")
        self.assertEqual(dto.status, "PENDING")
        self.assertEqual(dto.payment_status, "PENDING")
        self.assertEqual(dto.payment_method, "CARD")
        self.assertEqual(dto.items[0].price, "10.00")
        self.assertEqual(self.mouse.stock, 3)
        self.assertEqual(self.cart_items.list_for_cart(100), [])
        self.assertEqual(self.carts.locked, [10])
        self.assertEqual(self.cache.bumps, 1)

    def test_empty_cart_is_rejected(self):
        with self.assertRaises(InsufficientStockError) as ctx:
            self.service.checkout(10, {"shippingAddress": "1 Main Street, Springfield"})
        self.assertEqual(ctx.exception.message, "Cart is empty. Add items before checkout.")
        self.assertIsNone(ctx.exception.details)
        self.assertEqual(self.orders.orders, {})

    def test_missing_cart_is_rejected(self):
        with self.assertRaises(InsufficientStockError):
            self.service.checkout(99, {"shippingAddress": "1 Main Street, Springfield"})

    def test_preflight_failure_changes_nothing(self):
        self.cart_items.add(100, self.mouse, 1)
        self.cart_items.add(100, self.cable, 2)
        with self.assertRaises(InsufficientStockError) as ctx:
            self.service.checkout(10, {"shippingAddress": "1 Main Street, Springfield"})
        self.assertEqual(ctx.exception.message, "Only 1 items available in stock")
        self.assertEqual(
            ctx.exception.details,
            {"productId": 2, "productName": "Cable", "available": 1, "requested": 2},
        )
        self.assertEqual((self.mouse.stock, self.cable.stock), (5, 1))
        self.assertEqual(len(self.cart_items.list_for_cart(100)), 2)
        self.assertEqual(self.orders.orders, {})
        self.assertEqual(self.cache.bumps, 0)

    def test_concurrent_drain_rolls_back_everything(self):
        self.cart_items.add(100, self.mouse, 2)
        self.cart_items.add(100, self.cable, 1)
        self.stock.drained.add(2)
        with self.assertRaises(InsufficientStockError) as ctx:
            self.service.checkout(10, {"shippingAddress": "1 Main Street, Springfield"})
        self.assertEqual(ctx.exception.details["available"], 0)
        self.assertEqual(self.mouse.stock, 5)
        self.assertEqual(self.orders.orders, {})
        self.assertEqual(len(self.cart_items.list_for_cart(100)), 2)

    def test_second_checkout_for_last_unit_fails(self):
        self.carts.add(user_id=11, cart_id=101)
        self.cart_items.add(100, self.cable, 1)
        self.cart_items.add(101, self.cable, 1)
        self.service.checkout(10, {"shippingAddress": "1 Main Street, Springfield"})
        with self.assertRaises(InsufficientStockError) as ctx:
            self.service.checkout(11, {"shippingAddress": "2 Side Street, Springfield"})
        self.assertEqual(ctx.exception.message, "Only 0 items available in stock")
        self.assertEqual(self.cable.stock, 0)
        self.assertEqual(len(self.orders.orders), 1)


class OrderServiceTests(unittest.TestCase):
    def setUp(self):
        self.mouse = make_product(1, "Mouse", "10.00", 3)
        self.stock = FakeStock([self.mouse])
        self.orders = FakeOrders()
        self.order_items = FakeOrderItems(self.orders)
        self.cache = FakeListingCache()
        self.service = OrderService(
            orders=self.orders,
            order_items=self.order_items,
            stock=self.stock,
            listing_cache=self.cache,
            transaction_runner=passthrough,
        )
        self.order = self.orders.create(
            user_id=10,
            total=Decimal("20.00"),
            status=OrderStatus.PENDING,
            payment_status="PENDING",
            payment_method="CARD",
            shipping_address="1 Main Street, Springfield",
        )
        self.order.user = types.SimpleNamespace(id=10, name="Jane", email="jane@example.com")
        self.order_items.bulk_create_for_order(self.order, [(self.mouse, 2, Decimal("10.00"))])

    def test_cancel_restores_stock(self):
        dto = self.service.cancel(self.order.id, 10)
        self.assertEqual(dto.status, "CANCELLED")
        self.assertEqual(self.mouse.stock, 5)
        self.assertEqual(self.cache.bumps, 1)

    def test_cancel_twice_restores_once(self):
        self.service.cancel(self.order.id, 10)
        with self.assertRaises(AlreadyCancelledError) as ctx:
            self.service.cancel(self.order.id, 10)
        self.assertEqual(ctx.exception.message, "Order is already cancelled")
        self.assertEqual(self.mouse.stock, 5)

    def test_cancel_other_users_order_is_forbidden(self):
        with self.assertRaises(ForbiddenError) as ctx:
            self.service.cancel(self.order.id, 11)
        self.assertEqual(ctx.exception.message, "You can only cancel your own orders")

    def test_cancel_shipped_order(self):
        self.order.status = OrderStatus.SHIPPED
        with self.assertRaises(InvalidTransitionError) as ctx:
            self.service.cancel(self.order.id, 10)
        self.assertEqual(
            ctx.exception.message, "Cannot cancel order that is already shipped or delivered"
        )
        self.assertEqual(self.mouse.stock, 3)

    def test_cancel_loses_race_to_shipping(self):
        original = self.orders.cancel_if_open

        def ship_first(order_id):
            self.order.status = OrderStatus.SHIPPED
            return original(order_id)

        self.orders.cancel_if_open = ship_first
        with self.assertRaises(InvalidTransitionError):
            self.service.cancel(self.order.id, 10)
        self.assertEqual(self.mouse.stock, 3)

    def test_cancel_missing_order(self):
        with self.assertRaises(NotFoundError) as ctx:
            self.service.cancel(999, 10)
        self.assertEqual(ctx.exception.message, "Order not found")

    def test_get_for_user_checks_ownership(self):
        with self.assertRaises(ForbiddenError) as ctx:
            self.service.get_for_user(self.order.id, 11)
        self.assertEqual(ctx.exception.message, "You can only view your own orders")
        dto = self.service.get_for_user(self.order.id, 11, is_admin=True)
        self.assertEqual(dto.user.email, "jane@example.com")

    def test_snapshot_price_survives_product_price_change(self):
        self.mouse.price = Decimal("99.00")
        dto = self.service.get_for_user(self.order.id, 10)
        self.assertEqual(dto.items[0].price, "10.00")
        self.assertEqual(dto.total, "20.00")

    def test_admin_updates(self):
        dto = self.service.update_status(self.order.id, OrderStatus.SHIPPED)
        self.assertEqual(dto.status, "SHIPPED")
        self.assertEqual(dto.payment_status, "PENDING")
        dto = self.service.update_payment_status(self.order.id, "PAID")
        self.assertEqual(dto.payment_status, "PAID")
        self.assertEqual(dto.status, "SHIPPED")
        self.assertEqual(dto.total, "20.00")
        self.assertEqual(dto.payment_method, "CARD")
        self.assertEqual(dto.shipping_address, "1 Main Street, Springfield")
        self.assertEqual(dto.user.name, "Jane")
        self.assertEqual(self.mouse.stock, 3)

    def test_payment_update_after_stale_read_keeps_cancellation(self):
        stale = copy.copy(self.order)
        self.service.cancel(self.order.id, 10)
        reads = iter([stale])

        with patch.object(
            self.orders,
            "get_detailed",
            side_effect=lambda pk: next(reads, None) or self.orders.orders.get(pk),
        ):
            dto = self.service.update_payment_status(self.order.id, "PAID")

        self.assertEqual(dto.status, "CANCELLED")
        self.assertEqual(dto.payment_status, "PAID")
        with self.assertRaises(AlreadyCancelledError):
            self.service.cancel(self.order.id, 10)
        self.assertEqual(self.mouse.stock, 5)

    def test_status_update_cannot_reopen_cancelled_order(self):
        self.service.cancel(self.order.id, 10)
        with self.assertRaises(InvalidTransitionError) as ctx:
            self.service.update_status(self.order.id, OrderStatus.PENDING)
        self.assertEqual(ctx.exception.message, "Cannot change the status of a cancelled order")
        self.assertEqual(self.order.status, OrderStatus.CANCELLED)
        self.assertEqual(self.mouse.stock, 5)


    def test_stats_counts_only_delivered_revenue(self):
        delivered = self.orders.create(
            user_id=10,
            total=Decimal("15.50"),
            status=OrderStatus.DELIVERED,
            payment_status="PAID",
            payment_method="CARD",
            shipping_address="1 Main Street, Springfield",
        )
        delivered.user = self.order.user
        stats = self.service.stats()
        self.assertEqual(stats.total_orders, 2)
        self.assertEqual(stats.total_revenue, "15.50")
        self.assertEqual(
            [(s.status, s.count) for s in stats.orders_by_status],
            [("DELIVERED", 1), ("PENDING", 1)],
        )
        self.assertEqual(stats.recent_orders[0].id, delivered.id)
