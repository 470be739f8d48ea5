from drf_spectacular.utils import OpenApiParameter, OpenApiResponse, extend_schema, inline_serializer
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.api.schemas import ErrorResponseSerializer, MessageResponseSerializer, message_with
from apps.common import get_logger
from .container import build_cart_service
from .serializers import (
    CartItemAddSerializer,
    CartItemSerializer,
    CartItemUpdateSerializer,
    CartSerializer,
    CartSummarySerializer,
)

logger = get_logger(__name__).bind(component="carts", layer="view")

_ITEM_PATH = OpenApiParameter("item_id", int, OpenApiParameter.PATH)


def _user_id(request) -> int:
    # Set by RequestValidationMiddleware; fall back to the DRF user for direct calls
    user_id = getattr(request, "validated_user_id", None)
    return int(user_id if user_id is not None else request.user.id)


@extend_schema(tags=["Cart"])
class CartView(APIView):
    permission_classes = [IsAuthenticated]
    service = build_cart_service()
    log = logger.bind(view="CartView")

    @extend_schema(
        summary="Get the current user's cart",
        description="Creates an empty cart on first access.",
        responses={
            200: inline_serializer(name="CartEnvelope", fields={"cart": CartSerializer()}),
            401: OpenApiResponse(response=ErrorResponseSerializer),
        },
    )
    def get(self, request):
        dto = self.service.get_cart(_user_id(request))
        return Response({"cart": CartSerializer(dto).data})


@extend_schema(tags=["Cart"])
class CartSummaryView(APIView):
    permission_classes = [IsAuthenticated]
    service = build_cart_service()
    log = logger.bind(view="CartSummaryView")

    @extend_schema(
        summary="Cart item count and subtotal",
        responses={
            200: CartSummarySerializer,
            401: OpenApiResponse(response=ErrorResponseSerializer),
        },
    )
    def get(self, request):
        dto = self.service.summary(_user_id(request))
        return Response(CartSummarySerializer(dto).data)


@extend_schema(tags=["Cart"])
class CartAddView(APIView):
    permission_classes = [IsAuthenticated]
    service = build_cart_service()
    log = logger.bind(view="CartAddView")

    @extend_schema(
        summary="Add a product to the cart",
        description="Merges with an existing line for the same product.",
        request=CartItemAddSerializer,
        responses={
            201: message_with("cartItem", CartItemSerializer),
            400: OpenApiResponse(response=ErrorResponseSerializer),
            404: OpenApiResponse(response=ErrorResponseSerializer),
        },
    )
    def post(self, request):
        serializer = CartItemAddSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user_id = _user_id(request)
        self.log.info(
            "Add to cart request",
            user_id=user_id,
            product_id=serializer.validated_data["productId"],
        )
        dto = self.service.add_item(user_id, serializer.validated_data)
        return Response(
            {
                "message": "Product added to cart successfully",
                "cartItem": CartItemSerializer(dto).data,
            },
            status=status.HTTP_201_CREATED,
        )


@extend_schema(tags=["Cart"])
class CartItemView(APIView):
    permission_classes = [IsAuthenticated]
    service = build_cart_service()
    log = logger.bind(view="CartItemView")

    @extend_schema(
        summary="Change the quantity of a cart item",
        parameters=[_ITEM_PATH],
        request=CartItemUpdateSerializer,
        responses={
            200: message_with("cartItem", CartItemSerializer),
            400: OpenApiResponse(response=ErrorResponseSerializer),
            403: OpenApiResponse(response=ErrorResponseSerializer),
            404: OpenApiResponse(response=ErrorResponseSerializer),
        },
    )
    def put(self, request, item_id: int):
        serializer = CartItemUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        dto = self.service.update_item(_user_id(request), item_id, serializer.validated_data)
        return Response(
            {"message": "Cart item updated successfully", "cartItem": CartItemSerializer(dto).data}
        )

    @extend_schema(
        summary="Remove an item from the cart",
        parameters=[_ITEM_PATH],
        responses={
            200: MessageResponseSerializer,
            403: OpenApiResponse(response=ErrorResponseSerializer),
            404: OpenApiResponse(response=ErrorResponseSerializer),
        },
    )
    def delete(self, request, item_id: int):
        self.service.remove_item(_user_id(request), item_id)
        return Response({"message": "Item removed from cart successfully"})


@extend_schema(tags=["Cart"])
class CartClearView(APIView):
    permission_classes = [IsAuthenticated]
    service = build_cart_service()
    log = logger.bind(view="CartClearView")

    @extend_schema(
        summary="Remove every item from the cart",
        responses={
            200: MessageResponseSerializer,
            401: OpenApiResponse(response=ErrorResponseSerializer),
        },
    )
    def delete(self, request):
        removed = self.service.clear(_user_id(request))
        self.log.debug("Cart clear handled", removed=removed)
        return Response({"message": "Cart cleared successfully"})
