from decimal import Decimal

from rest_framework.test import APITestCase

from apps.auth.tokens import issue_access_token
from apps.carts.models import Cart, CartItem
from apps.catalog.models import Category, Product
from apps.users.models import User


class CartApiTests(APITestCase):
    def setUp(self):
        self.user = User.objects.create_user(
            email="jane@example.com", password="secret123", name="Jane"
        )
        self.other = User.objects.create_user(
            email="bob@example.com", password="secret123", name="Bob"
        )
        category = Category.objects.create(name="Accessories")
        self.mouse = Product.objects.create(
            name="Mouse", price=Decimal("10.00"), stock=5, category=category
        )
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {issue_access_token(self.user)}")

    def test_cart_flow(self):
        resp = self.client.get("/api/v1/cart/summary/")
        self.assertEqual(resp.data, {"itemCount": 0, "subtotal": "0.00"})
        self.assertFalse(Cart.objects.filter(user=self.user).exists())

        resp = self.client.post(
            "/api/v1/cart/add/", {"productId": self.mouse.id, "quantity": 2}, format="json"
        )
        self.assertEqual(resp.status_code, 201)
        item_id = resp.data["cartItem"]["id"]

        resp = self.client.post(
            "/api/v1/cart/add/", {"productId": self.mouse.id}, format="json"
        )
        self.assertEqual(resp.data["cartItem"]["quantity"], 3)

        resp = self.client.get("/api/v1/cart/")
        self.assertEqual(resp.data["cart"]["subtotal"], "30.00")
        self.assertEqual(resp.data["cart"]["itemCount"], 3)
        self.assertEqual(resp.data["cart"]["items"][0]["product"]["category"]["name"], "Accessories")

        resp = self.client.put(f"/api/v1/cart/item/{item_id}/", {"quantity": 6}, format="json")
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()["message"], "Only 5 items available in stock")

        resp = self.client.delete(f"/api/v1/cart/item/{item_id}/")
        self.assertEqual(resp.status_code, 200)
        self.assertFalse(CartItem.objects.exists())

    def test_foreign_item_is_forbidden(self):
        cart = Cart.objects.create(user=self.other)
        item = CartItem.objects.create(cart=cart, product=self.mouse, quantity=1)
        resp = self.client.put(f"/api/v1/cart/item/{item.id}/", {"quantity": 2}, format="json")
        self.assertEqual(resp.status_code, 403)
        self.assertEqual(resp.json()["message"], "This cart item does not belong to you")

    def test_clear_twice_succeeds(self):
        for _ in range(2):
            resp = self.client.delete("/api/v1/cart/clear/")
            self.assertEqual(resp.status_code, 200)

    def test_unauthenticated_is_rejected(self):
        self.client.credentials()
        resp = self.client.get("/api/v1/cart/")
        self.assertEqual(resp.status_code, 401)
        self.assertEqual(resp.json()["status"], "error")
