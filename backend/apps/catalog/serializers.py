from decimal import Decimal

from rest_framework import serializers

from apps.api.schemas import PageQuerySerializer
from .commands import SORTABLE_FIELDS


class CategorySummarySerializer(serializers.Serializer):
    id = serializers.IntegerField()
    name = serializers.CharField()


class CategorySerializer(serializers.Serializer):
    id = serializers.IntegerField()
    name = serializers.CharField()
    description = serializers.CharField(allow_null=True)
    createdAt = serializers.DateTimeField(source="created_at", allow_null=True)
    updatedAt = serializers.DateTimeField(source="updated_at", allow_null=True)


class CategoryWithCountSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    name = serializers.CharField()
    description = serializers.CharField(allow_null=True)
    productCount = serializers.IntegerField(source="product_count")


class ProductReadSerializer(serializers.Serializer):
    # Matches ProductDTO
    id = serializers.IntegerField()
    name = serializers.CharField()
    description = serializers.CharField(allow_null=True)
    price = serializers.CharField()
    stock = serializers.IntegerField()
    images = serializers.ListField(child=serializers.CharField())
    category = CategorySummarySerializer(allow_null=True)
    createdAt = serializers.DateTimeField(source="created_at", allow_null=True)
    updatedAt = serializers.DateTimeField(source="updated_at", allow_null=True)


class CategoryDetailSerializer(CategorySerializer):
    products = ProductReadSerializer(many=True)


class ProductWriteSerializer(serializers.Serializer):
    # 'id' is server-assigned and never accepted from clients
    name = serializers.CharField(min_length=3, max_length=100)
    description = serializers.CharField(
        max_length=1000, required=False, allow_blank=True, allow_null=True
    )
    price = serializers.DecimalField(
        max_digits=10,
        decimal_places=2,
        min_value=Decimal("0.01"),
        max_value=Decimal("1000000"),
    )
    stock = serializers.IntegerField(min_value=0, required=False, default=0)
    categoryId = serializers.IntegerField(required=False, allow_null=True)
    images = serializers.ListField(
        child=serializers.URLField(), required=False, max_length=10
    )


class ProductFilterSerializer(PageQuerySerializer):
    category = serializers.IntegerField(required=False, min_value=1)
    minPrice = serializers.DecimalField(
        max_digits=10, decimal_places=2, required=False, min_value=Decimal("0")
    )
    maxPrice = serializers.DecimalField(
        max_digits=10, decimal_places=2, required=False, min_value=Decimal("0")
    )
    search = serializers.CharField(required=False, allow_blank=True, max_length=100)
    inStock = serializers.BooleanField(required=False, allow_null=True, default=None)
    sortBy = serializers.ChoiceField(
        choices=list(SORTABLE_FIELDS), required=False, default="createdAt"
    )
    order = serializers.ChoiceField(choices=["asc", "desc"], required=False, default="desc")

    def validate(self, attrs):
        low, high = attrs.get("minPrice"), attrs.get("maxPrice")
        if low is not None and high is not None and low > high:
            raise serializers.ValidationError(
                {"minPrice": "minPrice cannot be greater than maxPrice"}
            )
        return attrs


class CategoryWriteSerializer(serializers.Serializer):
    name = serializers.CharField(min_length=2, max_length=50)
    description = serializers.CharField(
        max_length=500, required=False, allow_blank=True, allow_null=True
    )


class CategoryListQuerySerializer(serializers.Serializer):
    search = serializers.CharField(required=False, allow_blank=True, max_length=50)
