import types
from unittest.mock import patch

from rest_framework.test import APIRequestFactory

from apps.api.middleware import RequestValidationMiddleware
from apps.api.validation import VIEW_RULES, validate_request_context
from apps.carts.views import CartView
from apps.catalog.views import ProductDetailView, ProductListView
from apps.orders.views import OrderStatsView, OrderStatusView

factory = APIRequestFactory()


def _user(user_id, admin=False):
    return types.SimpleNamespace(
        id=user_id, is_authenticated=True, is_admin=admin, is_superuser=False
    )


def _anonymous():
    return types.SimpleNamespace(id=None, is_authenticated=False)


def test_authenticated_request_sets_validated_user():
    request = factory.get("/api/v1/cart/")
    request.user = _user(42)
    response = validate_request_context(request, CartView, {})
    assert response is None
    assert request.validated_user_id == 42
    assert request.is_privileged_user is False


def test_anonymous_request_is_rejected():
    request = factory.get("/api/v1/cart/")
    request.user = _anonymous()
    response = validate_request_context(request, CartView, {})
    assert response.status_code == 401
    assert response.data["code"] == "UNAUTHORIZED"


def test_invalid_bearer_token_is_rejected():
    request = factory.get("/api/v1/cart/", HTTP_AUTHORIZATION="Bearer not-a-token")
    request.user = _anonymous()
    response = validate_request_context(request, CartView, {})
    assert response.status_code == 401


def test_public_catalog_reads_skip_checks():
    request = factory.get("/api/v1/products/")
    request.user = _anonymous()
    assert validate_request_context(request, ProductListView, {}) is None


def test_catalog_writes_require_admin():
    request = factory.post("/api/v1/products/", {}, format="json")
    request.user = _user(5)
    response = validate_request_context(request, ProductListView, {})
    assert response.status_code == 403
    assert response.data["message"] == "Access denied. Admin privileges required"

    request = factory.delete("/api/v1/products/1/")
    request.user = _user(1, admin=True)
    assert validate_request_context(request, ProductDetailView, {"product_id": 1}) is None
    assert request.is_privileged_user is True


def test_admin_order_views_apply_to_every_method():
    for view_cls in (OrderStatsView, OrderStatusView):
        assert VIEW_RULES[view_cls.__name__].keys() == {"*"}
        request = factory.get("/api/v1/orders/admin/stats/")
        request.user = _user(7)
        assert validate_request_context(request, view_cls, {}).status_code == 403


def test_options_requests_are_not_checked():
    request = factory.options("/api/v1/cart/")
    request.user = _anonymous()
    assert validate_request_context(request, CartView, {}) is None


def test_middleware_no_view_class_returns_none():
    middleware = RequestValidationMiddleware(lambda req: None)
    request = factory.get("/health/live")
    response = middleware.process_view(request, lambda req: req, [], {})
    assert response is None


def test_middleware_renders_rejections():
    middleware = RequestValidationMiddleware(lambda req: None)
    request = factory.get("/api/v1/cart/")
    request.user = _anonymous()
    response = middleware.process_view(request, CartView.as_view(), [], {})
    assert response.status_code == 401
    assert b'"code":"UNAUTHORIZED"' in response.content


def test_middleware_passes_allowed_requests():
    middleware = RequestValidationMiddleware(lambda req: None)
    request = factory.get("/api/v1/cart/")
    request.user = _user(3)
    with patch("apps.api.middleware.logger") as log_mock:
        response = middleware.process_view(request, CartView.as_view(), [], {})
    assert response is None
    log_mock.info.assert_not_called()
