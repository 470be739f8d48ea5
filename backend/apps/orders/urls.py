from django.urls import path

from .views import (
    AdminOrderListView,
    MyOrdersView,
    OrderCancelView,
    OrderDetailView,
    OrderListView,
    OrderPaymentView,
    OrderStatsView,
    OrderStatusView,
)

urlpatterns = [
    path("", OrderListView.as_view(), name="api-orders-checkout"),
    path("my-orders/", MyOrdersView.as_view(), name="api-orders-mine"),
    path("admin/stats/", OrderStatsView.as_view(), name="api-orders-stats"),
    path("admin/all/", AdminOrderListView.as_view(), name="api-orders-all"),
    path("admin/<int:order_id>/status/", OrderStatusView.as_view(), name="api-orders-status"),
    path("admin/<int:order_id>/payment/", OrderPaymentView.as_view(), name="api-orders-payment"),
    path("<int:order_id>/", OrderDetailView.as_view(), name="api-orders-detail"),
    path("<int:order_id>/cancel/", OrderCancelView.as_view(), name="api-orders-cancel"),
]
