from decimal import Decimal

from django.core.cache import cache
from rest_framework.test import APITestCase

from apps.auth.tokens import issue_access_token
from apps.catalog.models import Category, Product
from apps.users.models import Role, User


class CatalogApiTests(APITestCase):
    def setUp(self):
        cache.clear()
        self.admin = User.objects.create_user(
            email="admin@example.com", password="secret123", name="Admin", role=Role.ADMIN
        )
        self.customer = User.objects.create_user(
            email="jane@example.com", password="secret123", name="Jane"
        )
        self.electronics = Category.objects.create(name="Electronics")
        self.books = Category.objects.create(name="Books")
        self.phone = Product.objects.create(
            name="Phone", price=Decimal("300.00"), stock=5, category=self.electronics
        )
        self.novel = Product.objects.create(
            name="Novel", price=Decimal("12.00"), stock=0, category=self.books
        )

    def login(self, user):
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {issue_access_token(user)}")

    def test_list_products_filters_and_paginates(self):
        resp = self.client.get("/api/v1/products/", {"inStock": "true"})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual([p["name"] for p in resp.data["products"]], ["Phone"])
        self.assertEqual(resp.data["pagination"]["total"], 1)

        resp = self.client.get("/api/v1/products/", {"sortBy": "price", "order": "asc"})
        self.assertEqual([p["name"] for p in resp.data["products"]], ["Novel", "Phone"])

        resp = self.client.get("/api/v1/products/", {"search": "PHO"})
        self.assertEqual(resp.data["products"][0]["category"]["name"], "Electronics")

    def test_listing_cache_is_invalidated_by_writes(self):
        self.client.get("/api/v1/products/")
        self.login(self.admin)
        resp = self.client.post(
            "/api/v1/products/",
            {"name": "Tablet", "price": "150.00", "stock": 3, "categoryId": self.electronics.id},
            format="json",
        )
        self.assertEqual(resp.status_code, 201)
        self.assertEqual(resp.data["price"], "150.00")
        self.client.credentials()
        resp = self.client.get("/api/v1/products/")
        self.assertEqual(resp.data["pagination"]["total"], 3)

    def test_customer_cannot_create_product(self):
        self.login(self.customer)
        resp = self.client.post(
            "/api/v1/products/", {"name": "Tablet", "price": "1.00"}, format="json"
        )
        self.assertEqual(resp.status_code, 403)
        self.assertEqual(resp.json()["statusCode"], 403)

    def test_create_product_with_unknown_category(self):
        self.login(self.admin)
        resp = self.client.post(
            "/api/v1/products/",
            {"name": "Tablet", "price": "1.00", "categoryId": 9999},
            format="json",
        )
        self.assertEqual(resp.status_code, 404)
        self.assertEqual(resp.json()["message"], "Category not found")

    def test_update_product_partially(self):
        self.login(self.admin)
        resp = self.client.put(
            f"/api/v1/products/{self.phone.id}/", {"stock": 9}, format="json"
        )
        self.assertEqual(resp.status_code, 200)
        self.phone.refresh_from_db()
        self.assertEqual(self.phone.stock, 9)
        self.assertEqual(self.phone.price, Decimal("300.00"))

    def test_delete_category_with_products_conflicts(self):
        self.login(self.admin)
        resp = self.client.delete(f"/api/v1/categories/{self.books.id}/")
        self.assertEqual(resp.status_code, 409)
        self.assertEqual(
            resp.json()["message"],
            "Cannot delete category with 1 products. Remove products first.",
        )

    def test_category_crud(self):
        self.login(self.admin)
        resp = self.client.post("/api/v1/categories/", {"name": "Garden"}, format="json")
        self.assertEqual(resp.status_code, 201)
        category_id = resp.data["id"]
        resp = self.client.post("/api/v1/categories/", {"name": "garden"}, format="json")
        self.assertEqual(resp.status_code, 409)
        resp = self.client.delete(f"/api/v1/categories/{category_id}/")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.data["message"], "Category deleted successfully")

    def test_category_list_and_products(self):
        resp = self.client.get("/api/v1/categories/")
        self.assertEqual(
            [(c["name"], c["productCount"]) for c in resp.data["categories"]],
            [("Books", 1), ("Electronics", 1)],
        )
        resp = self.client.get(f"/api/v1/categories/{self.electronics.id}/products/")
        self.assertEqual(resp.data["category"]["name"], "Electronics")
        self.assertEqual(resp.data["products"][0]["id"], self.phone.id)
        resp = self.client.get(f"/api/v1/categories/{self.electronics.id}/")
        self.assertEqual(resp.data["category"]["products"][0]["name"], "Phone")
