from django.urls import path

from .views import CartAddView, CartClearView, CartItemView, CartSummaryView, CartView

urlpatterns = [
    path("", CartView.as_view(), name="api-cart"),
    path("summary/", CartSummaryView.as_view(), name="api-cart-summary"),
    path("add/", CartAddView.as_view(), name="api-cart-add"),
    path("item/<int:item_id>/", CartItemView.as_view(), name="api-cart-item"),
    path("clear/", CartClearView.as_view(), name="api-cart-clear"),
]
