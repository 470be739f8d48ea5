import logging
import unittest
from decimal import Decimal

from apps.common.logger import AppLogger
from apps.common.money import format_money, to_decimal
from apps.common.pagination import MAX_PAGE_SIZE, paginate


class FakeQuerySet:
    def __init__(self, records):
        self.records = list(records)

    def count(self):
        return len(self.records)

    def __getitem__(self, item):
        return self.records[item]


class PaginationTests(unittest.TestCase):
    def test_second_page(self):
        page = paginate(FakeQuerySet(range(25)), page=2, limit=10)
        self.assertEqual(page.items, list(range(10, 20)))
        self.assertEqual(page.meta(), {"page": 2, "limit": 10, "total": 25, "totalPages": 3})

    def test_page_past_end_is_empty(self):
        page = paginate(FakeQuerySet(range(3)), page=5, limit=10)
        self.assertEqual(page.items, [])
        self.assertEqual(page.total, 3)

    def test_limit_is_clamped(self):
        page = paginate(FakeQuerySet(range(3)), page=0, limit=1000)
        self.assertEqual(page.page, 1)
        self.assertEqual(page.limit, MAX_PAGE_SIZE)

    def test_empty_result_has_zero_pages(self):
        page = paginate(FakeQuerySet([]), page=1, limit=10)
        self.assertEqual(page.items, [])
        self.assertEqual(page.meta(), {"page": 1, "limit": 10, "total": 0, "totalPages": 0})


class MoneyTests(unittest.TestCase):
    def test_format_money_rounds_half_up(self):
        self.assertEqual(format_money(Decimal("2.005")), "2.01")
        self.assertEqual(format_money(20), "20.00")
        self.assertEqual(format_money(None), "0.00")

    def test_to_decimal_avoids_float_noise(self):
        self.assertEqual(to_decimal(0.1) + to_decimal(0.2), Decimal("0.3"))


class AppLoggerTests(unittest.TestCase):
    def test_bound_context_is_rendered(self):
        base = AppLogger("apps.tests")
        log = base.bind(component="orders").bind(order_id=7)
        with self.assertLogs("apps.tests", level=logging.INFO) as captured:
            log.info("Order cancelled", restored=2)
        self.assertEqual(
            captured.records[0].getMessage(),
            "Order cancelled | component=orders order_id=7 restored=2",
        )
        self.assertEqual(base.context, {})
