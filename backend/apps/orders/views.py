from drf_spectacular.utils import OpenApiParameter, OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.api.permissions import IsAdminRole, is_admin_user
from apps.api.schemas import ErrorResponseSerializer, message_with, paginated_response
from apps.common import get_logger
from .container import build_checkout_service, build_order_service
from .serializers import (
    AdminOrderFilterSerializer,
    CheckoutRequestSerializer,
    OrderFilterSerializer,
    OrderSerializer,
    OrderStatsSerializer,
    OrderStatusUpdateSerializer,
    PaymentStatusUpdateSerializer,
)

logger = get_logger(__name__).bind(component="orders", layer="view")

_ORDER_PATH = OpenApiParameter("order_id", int, OpenApiParameter.PATH)


def _user_id(request) -> int:
    user_id = getattr(request, "validated_user_id", None)
    return int(user_id if user_id is not None else request.user.id)


def _is_privileged(request) -> bool:
    privileged = getattr(request, "is_privileged_user", None)
    return privileged if privileged is not None else is_admin_user(request.user)


def _order_page_payload(page) -> dict:
    return {
        "orders": OrderSerializer(page.items, many=True).data,
        "pagination": page.meta(),
    }


@extend_schema(tags=["Orders"])
class OrderListView(APIView):
    permission_classes = [IsAuthenticated]
    service = build_checkout_service()
    log = logger.bind(view="OrderListView")

    @extend_schema(
        operation_id="orders_checkout",
        summary="Place an order from the cart",
        description=(
            "Atomically converts the cart into an order, decrementing stock. "
            "On any failure nothing changes."
        ),
        request=CheckoutRequestSerializer,
        responses={
            201: message_with("order", OrderSerializer),
            400: OpenApiResponse(response=ErrorResponseSerializer),
            401: OpenApiResponse(response=ErrorResponseSerializer),
        },
    )
    def post(self, request):
        serializer = CheckoutRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user_id = _user_id(request)
        self.log.info("Checkout request", user_id=user_id)
        dto = self.service.checkout(user_id, serializer.validated_data)
        return Response(
            {"message": "Order placed successfully", "order": OrderSerializer(dto).data},
            status=status.HTTP_201_CREATED,
        )


@extend_schema(tags=["Orders"])
class MyOrdersView(APIView):
    permission_classes = [IsAuthenticated]
    service = build_order_service()
    log = logger.bind(view="MyOrdersView")

    @extend_schema(
        summary="List the current user's orders",
        parameters=[OrderFilterSerializer],
        responses={
            200: paginated_response("orders", OrderSerializer),
            400: OpenApiResponse(response=ErrorResponseSerializer),
        },
    )
    def get(self, request):
        filters = OrderFilterSerializer(data=request.query_params.dict())
        filters.is_valid(raise_exception=True)
        page = self.service.list_for_user(_user_id(request), filters.validated_data)
        return Response(_order_page_payload(page))


@extend_schema(tags=["Orders"])
class OrderDetailView(APIView):
    permission_classes = [IsAuthenticated]
    service = build_order_service()
    log = logger.bind(view="OrderDetailView")

    @extend_schema(
        summary="Get an order",
        description="Owners see their own orders; admins see any order.",
        parameters=[_ORDER_PATH],
        responses={
            200: OrderSerializer,
            403: OpenApiResponse(response=ErrorResponseSerializer),
            404: OpenApiResponse(response=ErrorResponseSerializer),
        },
    )
    def get(self, request, order_id: int):
        dto = self.service.get_for_user(order_id, _user_id(request), _is_privileged(request))
        return Response(OrderSerializer(dto).data)


@extend_schema(tags=["Orders"])
class OrderCancelView(APIView):
    permission_classes = [IsAuthenticated]
    service = build_order_service()
    log = logger.bind(view="OrderCancelView")

    @extend_schema(
        summary="Cancel an order and restore stock",
        parameters=[_ORDER_PATH],
        request=None,
        responses={
            200: message_with("order", OrderSerializer),
            400: OpenApiResponse(response=ErrorResponseSerializer),
            403: OpenApiResponse(response=ErrorResponseSerializer),
            404: OpenApiResponse(response=ErrorResponseSerializer),
        },
    )
    def put(self, request, order_id: int):
        user_id = _user_id(request)
        self.log.info("Cancel request", order_id=order_id, user_id=user_id)
        dto = self.service.cancel(order_id, user_id)
        return Response(
            {
                "message": "Order cancelled successfully. Stock has been restored.",
                "order": OrderSerializer(dto).data,
            }
        )


@extend_schema(tags=["Orders (admin)"])
class OrderStatsView(APIView):
    permission_classes = [IsAuthenticated & IsAdminRole]
    service = build_order_service()
    log = logger.bind(view="OrderStatsView")

    @extend_schema(
        summary="Order statistics",
        responses={
            200: OrderStatsSerializer,
            403: OpenApiResponse(response=ErrorResponseSerializer),
        },
    )
    def get(self, request):
        return Response(OrderStatsSerializer(self.service.stats()).data)


@extend_schema(tags=["Orders (admin)"])
class AdminOrderListView(APIView):
    permission_classes = [IsAuthenticated & IsAdminRole]
    service = build_order_service()
    log = logger.bind(view="AdminOrderListView")

    @extend_schema(
        summary="List all orders",
        parameters=[AdminOrderFilterSerializer],
        responses={
            200: paginated_response("orders", OrderSerializer),
            400: OpenApiResponse(response=ErrorResponseSerializer),
            403: OpenApiResponse(response=ErrorResponseSerializer),
        },
    )
    def get(self, request):
        filters = AdminOrderFilterSerializer(data=request.query_params.dict())
        filters.is_valid(raise_exception=True)
        page = self.service.list_all(filters.validated_data)
        return Response(_order_page_payload(page))


@extend_schema(tags=["Orders (admin)"])
class OrderStatusView(APIView):
    permission_classes = [IsAuthenticated & IsAdminRole]
    service = build_order_service()
    log = logger.bind(view="OrderStatusView")

    @extend_schema(
        summary="Set order status",
        parameters=[_ORDER_PATH],
        request=OrderStatusUpdateSerializer,
        responses={
            200: message_with("order", OrderSerializer),
            400: OpenApiResponse(response=ErrorResponseSerializer),
            404: OpenApiResponse(response=ErrorResponseSerializer),
        },
    )
    def put(self, request, order_id: int):
        serializer = OrderStatusUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        new_status = serializer.validated_data["status"]
        dto = self.service.update_status(order_id, new_status)
        return Response(
            {"message": f"Order status updated to {new_status}", "order": OrderSerializer(dto).data}
        )


@extend_schema(tags=["Orders (admin)"])
class OrderPaymentView(APIView):
    permission_classes = [IsAuthenticated & IsAdminRole]
    service = build_order_service()
    log = logger.bind(view="OrderPaymentView")

    @extend_schema(
        summary="Set payment status",
        parameters=[_ORDER_PATH],
        request=PaymentStatusUpdateSerializer,
        responses={
            200: message_with("order", OrderSerializer),
            400: OpenApiResponse(response=ErrorResponseSerializer),
            404: OpenApiResponse(response=ErrorResponseSerializer),
        },
    )
    def put(self, request, order_id: int):
        serializer = PaymentStatusUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        payment_status = serializer.validated_data["paymentStatus"]
        dto = self.service.update_payment_status(order_id, payment_status)
        return Response(
            {
                "message": f"Payment status updated to {payment_status}",
                "order": OrderSerializer(dto).data,
            }
        )
