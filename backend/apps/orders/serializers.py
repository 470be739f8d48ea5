from rest_framework import serializers

from apps.api.schemas import PageQuerySerializer
from apps.catalog.serializers import ProductReadSerializer
from apps.users.serializers import UserSummarySerializer
from .models import OrderStatus, PaymentMethod, PaymentStatus


class OrderItemSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    product = ProductReadSerializer()
    quantity = serializers.IntegerField()
    price = serializers.CharField()
    lineTotal = serializers.CharField(source="line_total")


class OrderSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    userId = serializers.IntegerField(source="user_id")
    total = serializers.CharField()
    status = serializers.CharField()
    paymentStatus = serializers.CharField(source="payment_status")
    paymentMethod = serializers.CharField(source="payment_method")
    shippingAddress = serializers.CharField(source="shipping_address")
    items = OrderItemSerializer(many=True)
    user = UserSummarySerializer(required=False, allow_null=True)
    createdAt = serializers.DateTimeField(source="created_at", allow_null=True)
    updatedAt = serializers.DateTimeField(source="updated_at", allow_null=True)

    def to_representation(self, instance):
        data = super().to_representation(instance)
        # user is only attached on admin-facing reads
        if data.get("user") is None:
            data.pop("user", None)
        return data


class StatusCountSerializer(serializers.Serializer):
    status = serializers.CharField()
    count = serializers.IntegerField()


class OrderStatsSerializer(serializers.Serializer):
    totalOrders = serializers.IntegerField(source="total_orders")
    ordersByStatus = StatusCountSerializer(source="orders_by_status", many=True)
    totalRevenue = serializers.CharField(source="total_revenue")
    recentOrders = OrderSerializer(source="recent_orders", many=True)


class CheckoutRequestSerializer(serializers.Serializer):
    shippingAddress = serializers.CharField(
        min_length=10,
        max_length=500,
        error_messages={
            "min_length": "Shipping address must be at least 10 characters",
            "max_length": "Shipping address is too long",
        },
    )
    paymentMethod = serializers.ChoiceField(
        choices=PaymentMethod.choices, required=False, default=PaymentMethod.CARD
    )


class OrderStatusUpdateSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=OrderStatus.choices)


class PaymentStatusUpdateSerializer(serializers.Serializer):
    paymentStatus = serializers.ChoiceField(choices=PaymentStatus.choices)


class OrderFilterSerializer(PageQuerySerializer):
    status = serializers.ChoiceField(choices=OrderStatus.choices, required=False)
    startDate = serializers.DateField(required=False)
    endDate = serializers.DateField(required=False)

    def validate(self, attrs):
        start, end = attrs.get("startDate"), attrs.get("endDate")
        if start and end and start > end:
            raise serializers.ValidationError(
                {"startDate": "startDate cannot be after endDate"}
            )
        return attrs


class AdminOrderFilterSerializer(OrderFilterSerializer):
    userId = serializers.IntegerField(required=False, min_value=1)
