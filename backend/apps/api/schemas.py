from drf_spectacular.utils import inline_serializer
from rest_framework import serializers


class ErrorResponseSerializer(serializers.Serializer):
    status = serializers.CharField(default="error")
    statusCode = serializers.IntegerField()
    code = serializers.CharField()
    message = serializers.CharField()
    details = serializers.JSONField(required=False)
    hint = serializers.CharField(required=False)
    stack = serializers.CharField(required=False)


class MessageResponseSerializer(serializers.Serializer):
    message = serializers.CharField()


class PaginationSerializer(serializers.Serializer):
    page = serializers.IntegerField()
    limit = serializers.IntegerField()
    total = serializers.IntegerField()
    totalPages = serializers.IntegerField()


def paginated_response(
    results_key: str,
    item_serializer_class: type[serializers.Serializer],
) -> serializers.Serializer:
    """Inline schema for ``{<results_key>: [item], pagination: {...}}`` list responses."""
    name = getattr(item_serializer_class, "__name__", "Items")
    return inline_serializer(
        name=f"Paginated{name}",
        fields={
            results_key: item_serializer_class(many=True),
            "pagination": PaginationSerializer(),
        },
    )


def message_with(key: str, item_serializer_class: type[serializers.Serializer]) -> serializers.Serializer:
    """Inline schema for ``{message, <key>: item}`` mutation responses."""
    name = getattr(item_serializer_class, "__name__", "Item")
    return inline_serializer(
        name=f"{name}MessageEnvelope",
        fields={
            "message": serializers.CharField(),
            key: item_serializer_class(),
        },
    )


class PageQuerySerializer(serializers.Serializer):
    page = serializers.IntegerField(required=False, min_value=1, default=1)
    limit = serializers.IntegerField(required=False, min_value=1, max_value=100, default=10)
