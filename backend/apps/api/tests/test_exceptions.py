from django.db import IntegrityError
from django.db.models import ProtectedError
from django.test import override_settings
from rest_framework import status
from rest_framework.exceptions import NotAuthenticated, ValidationError
from rest_framework.test import APIRequestFactory

from apps.api.exceptions import (
    AlreadyCancelledError,
    ConflictError,
    InsufficientStockError,
    global_exception_handler,
)

factory = APIRequestFactory()


class DummyView:
    pass


def _context(request):
    return {"request": request, "view": DummyView()}


def test_app_error_returns_envelope():
    request = factory.delete("/api/v1/categories/1/")
    exc = ConflictError(
        "Cannot delete category with 2 products. Remove products first.",
        details={"productCount": 2},
    )
    response = global_exception_handler(exc, _context(request))
    assert response.status_code == status.HTTP_409_CONFLICT
    assert response.data["status"] == "error"
    assert response.data["statusCode"] == 409
    assert response.data["code"] == "CONFLICT"
    assert response.data["details"] == {"productCount": 2}


def test_insufficient_stock_names_product():
    request = factory.post("/api/v1/orders/")
    exc = InsufficientStockError(product_id=3, product_name="Mouse", available=1, requested=2)
    response = global_exception_handler(exc, _context(request))
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.data["code"] == "INSUFFICIENT_STOCK"
    assert response.data["message"] == "Only 1 items available in stock"
    assert response.data["details"] == {
        "productId": 3,
        "productName": "Mouse",
        "available": 1,
        "requested": 2,
    }


def test_already_cancelled_is_bad_request():
    request = factory.put("/api/v1/orders/1/cancel/")
    response = global_exception_handler(AlreadyCancelledError(), _context(request))
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.data["message"] == "Order is already cancelled"


def test_validation_error_surfaces_first_field():
    request = factory.post("/api/v1/cart/add/", data={})
    exc = ValidationError({"productId": ["This field is required."]})
    response = global_exception_handler(exc, _context(request))
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.data["code"] == "VALIDATION_ERROR"
    assert response.data["message"] == "productId: This field is required."
    assert response.data["details"] == {"productId": ["This field is required."]}


def test_not_authenticated_maps_to_unauthorized():
    request = factory.get("/api/v1/cart/")
    response = global_exception_handler(NotAuthenticated(), _context(request))
    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert response.data["code"] == "UNAUTHORIZED"


def test_store_errors_are_translated():
    request = factory.post("/api/v1/categories/")
    response = global_exception_handler(
        IntegrityError("UNIQUE constraint failed: categories.name"), _context(request)
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.data["message"] == "A record with this field already exists"

    response = global_exception_handler(
        ProtectedError("protected", set()), _context(request)
    )
    assert response.status_code == status.HTTP_409_CONFLICT


@override_settings(DEBUG=False)
def test_unhandled_exception_hides_stack_in_production():
    request = factory.get("/api/v1/products/")
    response = global_exception_handler(RuntimeError("boom"), _context(request))
    assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    assert response.data["code"] == "SERVER_ERROR"
    assert response.data["message"] == "Something went wrong"
    assert "stack" not in response.data
    assert "details" not in response.data


@override_settings(DEBUG=True)
def test_unhandled_exception_includes_stack_in_debug():
    request = factory.get("/api/v1/products/")
    response = global_exception_handler(RuntimeError("boom"), _context(request))
    assert "RuntimeError: boom" in response.data["stack"]
