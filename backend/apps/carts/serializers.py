from rest_framework import serializers

from apps.catalog.serializers import ProductReadSerializer


class CartItemSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    product = ProductReadSerializer()
    quantity = serializers.IntegerField()
    lineTotal = serializers.CharField(source="line_total")
    createdAt = serializers.DateTimeField(source="created_at", allow_null=True)


class CartSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    items = CartItemSerializer(many=True)
    subtotal = serializers.CharField()
    itemCount = serializers.IntegerField(source="item_count")
    createdAt = serializers.DateTimeField(source="created_at", allow_null=True)
    updatedAt = serializers.DateTimeField(source="updated_at", allow_null=True)


class CartSummarySerializer(serializers.Serializer):
    itemCount = serializers.IntegerField(source="item_count")
    subtotal = serializers.CharField()


class CartItemAddSerializer(serializers.Serializer):
    productId = serializers.IntegerField(min_value=1)
    quantity = serializers.IntegerField(
        min_value=1,
        max_value=100,
        default=1,
        error_messages={"max_value": "Cannot add more than 100 items at once"},
    )


class CartItemUpdateSerializer(serializers.Serializer):
    quantity = serializers.IntegerField(
        min_value=1,
        max_value=100,
        error_messages={"max_value": "Quantity cannot exceed 100"},
    )
