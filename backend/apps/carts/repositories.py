from typing import Optional, Tuple

from django.db.models import QuerySet

from apps.common.repository import GenericRepository
from .models import Cart, CartItem


class CartRepository(GenericRepository[Cart]):
    def __init__(self):
        super().__init__(Cart)

    def get_or_create_for_user(self, user_id: int) -> Tuple[Cart, bool]:
        # get_or_create recovers from the unique-user race on its own
        return self.model.objects.get_or_create(user_id=user_id)

    def touch(self, cart: Cart) -> None:
        cart.save(update_fields=["updated_at"])


class CartItemRepository(GenericRepository[CartItem]):
    def __init__(self):
        super().__init__(CartItem)

    def list_for_cart(self, cart_id: int) -> QuerySet:
        return self.model.objects.filter(cart_id=cart_id).select_related(
            "product", "product__category"
        )

    def get_with_cart(self, item_id: int) -> Optional[CartItem]:
        return (
            self.model.objects.filter(id=item_id)
            .select_related("cart", "product", "product__category")
            .first()
        )

    def get_for_cart_product(self, cart_id: int, product_id: int) -> Optional[CartItem]:
        return (
            self.model.objects.filter(cart_id=cart_id, product_id=product_id)
            .select_related("product", "product__category")
            .first()
        )

    def delete_for_cart(self, cart_id: int) -> int:
        deleted, _ = self.model.objects.filter(cart_id=cart_id).delete()
        return deleted
