import types
import unittest
from decimal import Decimal
from unittest.mock import patch

from apps.api.exceptions import ConflictError, NotFoundError
from apps.catalog.cache import ProductListingCache
from apps.catalog.services import CategoryService, ProductService


class DummyAtomic:
    def __call__(self, *args, **kwargs):
        return self

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        return False


class FakeCache:
    def __init__(self):
        self.store = {}

    def get(self, key, default=None):
        return self.store.get(key, default)

    def set(self, key, value, timeout=None):
        self.store[key] = value


class FakeQuerySet(list):
    def count(self):
        return len(self)


def make_category(category_id=1, name="Electronics"):
    return types.SimpleNamespace(id=category_id, name=name, description=None)


def make_product(product_id=1, name="Phone", price="10.00", stock=5, category=None):
    return types.SimpleNamespace(
        id=product_id,
        name=name,
        description=None,
        price=Decimal(price),
        stock=stock,
        images=[],
        category=category,
        category_id=getattr(category, "id", None),
    )


class FakeCategoryRepository:
    def __init__(self, categories=None):
        self._categories = {c.id: c for c in (categories or [])}
        self.counts = {}
        self._pk = max(self._categories, default=0) + 1

    def get(self, **filters):
        return self._categories.get(filters.get("id"))

    def exists(self, **filters):
        return filters.get("id") in self._categories

    def create(self, **data):
        category = types.SimpleNamespace(id=self._pk, **data)
        self._categories[self._pk] = category
        self._pk += 1
        return category

    def update(self, obj, **data):
        for k, v in data.items():
            setattr(obj, k, v)
        return obj

    def delete(self, obj):
        self._categories.pop(obj.id, None)

    def name_taken(self, name, *, exclude_id=None):
        return any(
            c.name.lower() == name.lower() and c.id != exclude_id
            for c in self._categories.values()
        )

    def list_with_counts(self, search=None):
        out = []
        for c in sorted(self._categories.values(), key=lambda c: c.name):
            c.product_count = self.counts.get(c.id, 0)
            out.append(c)
        return out

    def product_count(self, category):
        return self.counts.get(category.id, 0)


class FakeProductRepository:
    def __init__(self, categories: FakeCategoryRepository, products=None):
        self.categories = categories
        self._products = {p.id: p for p in (products or [])}
        self._pk = max(self._products, default=0) + 1
        self.ordered_ids = set()
        self.filtered_calls = 0

    def get(self, **filters):
        return self._products.get(filters.get("id"))

    def create(self, **data):
        category = self.categories.get(id=data.get("category_id"))
        product = make_product(
            self._pk, data["name"], str(data["price"]), data.get("stock", 0), category
        )
        self._products[self._pk] = product
        self._pk += 1
        return product

    def update(self, obj, **data):
        for k, v in data.items():
            setattr(obj, k, v)
        if "category_id" in data:
            obj.category = self.categories.get(id=data["category_id"])
        return obj

    def delete(self, obj):
        self._products.pop(obj.id, None)

    def filtered(self, filters):
        self.filtered_calls += 1
        return FakeQuerySet(self._products.values())

    def list_for_category(self, category_id):
        return FakeQuerySet(p for p in self._products.values() if p.category_id == category_id)

    def has_order_items(self, product):
        return product.id in self.ordered_ids


class ProductServiceTests(unittest.TestCase):
    def setUp(self):
        self.electronics = make_category(1, "Electronics")
        self.categories = FakeCategoryRepository([self.electronics])
        self.products = FakeProductRepository(
            self.categories, [make_product(1, "Phone", category=self.electronics)]
        )
        self.cache = ProductListingCache(FakeCache())
        self.service = ProductService(self.products, self.categories, self.cache)
        self.atomic_patch = patch("apps.catalog.services.transaction.atomic", DummyAtomic())
        self.atomic_patch.start()
        self.addCleanup(self.atomic_patch.stop)

    def test_list_products_reads_through_cache(self):
        first = self.service.list_products({"page": 1, "limit": 10})
        second = self.service.list_products({"page": 1, "limit": 10})
        self.assertEqual(self.products.filtered_calls, 1)
        self.assertEqual(first.total, 1)
        self.assertIs(first, second)
        self.assertEqual(second.items[0].price, "10.00")

    def test_bump_during_page_load_is_not_cached_as_fresh(self):
        load_page = self.service._load_page

        def load_then_sell_out(cmd):
            page = load_page(cmd)
            # A checkout drains the stock after the page was read
            self.products.get(id=1).stock = 0
            self.cache.bump()
            return page

        with patch.object(self.service, "_load_page", side_effect=load_then_sell_out):
            stale = self.service.list_products({})
        self.assertEqual(stale.items[0].stock, 5)

        fresh = self.service.list_products({})
        self.assertEqual(self.products.filtered_calls, 2)
        self.assertEqual(fresh.items[0].stock, 0)

    def test_create_product_bumps_cache_version(self):
        self.service.list_products({})
        version = self.cache.version()
        dto = self.service.create_product(
            {"name": "Laptop", "price": "999.99", "stock": 2, "categoryId": 1}
        )
        self.assertEqual(dto.name, "Laptop")
        self.assertEqual(dto.category.name, "Electronics")
        self.assertEqual(self.cache.version(), version + 1)
        page = self.service.list_products({})
        self.assertEqual(page.total, 2)

    def test_create_product_with_unknown_category_raises(self):
        with self.assertRaises(NotFoundError) as ctx:
            self.service.create_product({"name": "Laptop", "price": "5", "categoryId": 42})
        self.assertEqual(ctx.exception.message, "Category not found")

    def test_get_missing_product_raises_not_found(self):
        with self.assertRaises(NotFoundError) as ctx:
            self.service.get_product(99)
        self.assertEqual(ctx.exception.message, "Product not found")

    def test_update_product_can_detach_category(self):
        dto = self.service.update_product(1, {"categoryId": None, "price": "12.5"})
        self.assertIsNone(dto.category)
        self.assertEqual(dto.price, "12.50")

    def test_delete_product_referenced_by_orders_conflicts(self):
        self.products.ordered_ids.add(1)
        with self.assertRaises(ConflictError):
            self.service.delete_product(1)
        self.assertIsNotNone(self.products.get(id=1))

    def test_delete_product(self):
        self.service.delete_product(1)
        self.assertIsNone(self.products.get(id=1))


class CategoryServiceTests(unittest.TestCase):
    def setUp(self):
        self.categories = FakeCategoryRepository([make_category(1, "Electronics")])
        self.products = FakeProductRepository(self.categories)
        self.service = CategoryService(self.categories, self.products)

    def test_duplicate_name_is_case_insensitive(self):
        with self.assertRaises(ConflictError) as ctx:
            self.service.create_category({"name": "electronics"})
        self.assertEqual(ctx.exception.message, "Category with this name already exists")
        self.assertEqual(ctx.exception.status_code, 409)

    def test_update_keeps_own_name(self):
        dto = self.service.update_category(1, {"name": "Electronics", "description": "Gadgets"})
        self.assertEqual(dto.description, "Gadgets")

    def test_delete_with_products_conflicts(self):
        self.categories.counts[1] = 3
        with self.assertRaises(ConflictError) as ctx:
            self.service.delete_category(1)
        self.assertEqual(
            ctx.exception.message,
            "Cannot delete category with 3 products. Remove products first.",
        )

    def test_delete_missing_category_raises_not_found(self):
        with self.assertRaises(NotFoundError):
            self.service.delete_category(404)

    def test_list_includes_product_counts(self):
        self.categories.counts[1] = 2
        data = self.service.list_categories()
        self.assertEqual(data[0].product_count, 2)

    def test_products_in_category_paginates(self):
        category = self.categories.get(id=1)
        for i in range(3):
            self.products.create(name=f"P{i}", price="1.00", stock=1, category_id=category.id)
        summary, page = self.service.products_in_category(1, page=2, limit=2)
        self.assertEqual(summary.name, "Electronics")
        self.assertEqual(page.total, 3)
        self.assertEqual(len(page.items), 1)
        self.assertEqual(page.meta()["totalPages"], 2)
