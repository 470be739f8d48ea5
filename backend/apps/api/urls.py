from django.urls import include, path

urlpatterns = [
    path("users/", include("apps.auth.urls")),
    path("", include("apps.catalog.urls")),
    path("cart/", include("apps.carts.urls")),
    path("orders/", include("apps.orders.urls")),
]
