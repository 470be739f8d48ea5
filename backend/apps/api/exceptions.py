from __future__ import annotations

import traceback
from typing import Any, Dict, Mapping, Optional, Tuple, Union

from django.conf import settings
from django.core.exceptions import (
    ObjectDoesNotExist,
    PermissionDenied as DjangoPermissionDenied,
    ValidationError as DjangoValidationError,
)
from django.db import IntegrityError
from django.db.models import ProtectedError, RestrictedError
from django.http import Http404
from rest_framework import status
from rest_framework.exceptions import (
    AuthenticationFailed,
    MethodNotAllowed,
    NotAuthenticated,
    NotFound,
    ParseError,
    PermissionDenied,
    Throttled,
    ValidationError as DRFValidationError,
)
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

from apps.api.utils import error_response
from apps.common import get_logger

logger = get_logger(__name__).bind(component="api", layer="exception")

STATUS_CODE_DEFAULTS: Dict[int, Tuple[str, str]] = {
    status.HTTP_400_BAD_REQUEST: ("VALIDATION_ERROR", "Validation failed"),
    status.HTTP_401_UNAUTHORIZED: ("UNAUTHORIZED", "Authentication required"),
    status.HTTP_403_FORBIDDEN: (
        "FORBIDDEN",
        "You do not have permission to perform this action",
    ),
    status.HTTP_404_NOT_FOUND: ("NOT_FOUND", "Resource not found"),
    status.HTTP_405_METHOD_NOT_ALLOWED: ("METHOD_NOT_ALLOWED", "Method not allowed"),
    status.HTTP_409_CONFLICT: ("CONFLICT", "Resource conflict"),
    status.HTTP_415_UNSUPPORTED_MEDIA_TYPE: (
        "UNSUPPORTED_MEDIA_TYPE",
        "Unsupported media type",
    ),
    status.HTTP_429_TOO_MANY_REQUESTS: ("TOO_MANY_REQUESTS", "Request was throttled"),
    status.HTTP_500_INTERNAL_SERVER_ERROR: ("SERVER_ERROR", "Something went wrong"),
    status.HTTP_503_SERVICE_UNAVAILABLE: (
        "SERVICE_UNAVAILABLE",
        "Service temporarily unavailable",
    ),
}

# PostgreSQL SQLSTATE classes for integrity violations
_PG_UNIQUE_VIOLATION = "23505"
_PG_FOREIGN_KEY_VIOLATION = "23503"
_PG_NOT_NULL_VIOLATION = "23502"
_PG_CHECK_VIOLATION = "23514"


class AppError(Exception):
    """
    Base application error raised from services and views.

    Subclasses pin ``code`` and ``status_code``; instances may still override
    both. The global exception handler turns any ``AppError`` into the
    standard error envelope.

    Args:
        message: Human readable explanation. Defaults to ``default_message``.
        code: Machine readable error code.
        status_code: HTTP status. If omitted, the class default is used.
        details: Optional structured details for clients.
        hint: Optional hint for remediation.
        headers: Optional mapping of headers to include in the response.
    """

    code = "SERVER_ERROR"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Something went wrong"

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        code: Optional[str] = None,
        status_code: Optional[int] = None,
        details: Optional[Any] = None,
        hint: Optional[str] = None,
        headers: Optional[Mapping[str, Any]] = None,
    ):
        self.message = message or self.default_message
        super().__init__(self.message)
        if code is not None:
            self.code = code
        if status_code is not None:
            self.status_code = status_code
        self.details = details
        self.hint = hint
        self.headers = headers

    def to_response(self) -> Response:
        return error_response(
            self.code,
            self.message,
            self.details,
            http_status=self.status_code,
            hint=self.hint,
            headers=self.headers,
        )


class ValidationError(AppError):
    code = "VALIDATION_ERROR"
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Validation failed"


class UnauthorizedError(AppError):
    code = "UNAUTHORIZED"
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Unauthorized"


class ForbiddenError(AppError):
    code = "FORBIDDEN"
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Forbidden"


class NotFoundError(AppError):
    code = "NOT_FOUND"
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Resource not found"


class ConflictError(AppError):
    code = "CONFLICT"
    status_code = status.HTTP_409_CONFLICT
    default_message = "Resource conflict"


class InsufficientStockError(ValidationError):
    """Requested quantity exceeds a product's stock, or there is nothing to buy."""

    code = "INSUFFICIENT_STOCK"
    default_message = "Insufficient stock"

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        product_id: Optional[int] = None,
        product_name: Optional[str] = None,
        available: Optional[int] = None,
        requested: Optional[int] = None,
    ):
        if message is None and available is not None:
            message = f"Only {available} items available in stock"
        details = None
        if product_id is not None:
            details = {
                "productId": product_id,
                "productName": product_name,
                "available": available,
                "requested": requested,
            }
        super().__init__(message, details=details)
        self.product_id = product_id
        self.available = available
        self.requested = requested


class InvalidTransitionError(ValidationError):
    code = "INVALID_TRANSITION"
    default_message = "Invalid status transition"


class AlreadyCancelledError(ValidationError):
    code = "ALREADY_CANCELLED"
    default_message = "Order is already cancelled"


def global_exception_handler(exc: Exception, context: Dict[str, Any]) -> Response:
    """
    Central exception handler for DRF views returning the standard error envelope.
    """

    bound_logger = _bind_logger(context)

    if isinstance(exc, AppError):
        if exc.status_code >= 500:
            bound_logger.exception("Application error", code=exc.code)
        else:
            bound_logger.info(
                "Handled application error",
                code=exc.code,
                status=exc.status_code,
            )
        return exc.to_response()

    translated = _translate_store_error(exc)
    if translated is not None:
        bound_logger.warning(
            "Translated store error",
            code=translated.code,
            error=str(exc),
        )
        return translated.to_response()

    if isinstance(exc, DjangoValidationError):
        exc = DRFValidationError(_normalize_django_validation_error(exc))

    response = drf_exception_handler(exc, context)
    if response is not None:
        return _from_drf_exception(exc, response, bound_logger)

    bound_logger.exception("Unhandled exception bubbled to global handler")
    return error_response(
        "SERVER_ERROR",
        "Something went wrong",
        http_status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        stack=_format_stack(exc),
    )


def _format_stack(exc: Exception) -> Optional[str]:
    if not settings.DEBUG:
        return None
    return "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))


def _bind_logger(context: Dict[str, Any]):
    log = logger
    view = context.get("view")
    request = context.get("request")
    if view:
        log = log.bind(view=type(view).__name__)
    if request is not None:
        log = log.bind(
            method=getattr(request, "method", None),
            path=getattr(request, "path", None),
        )
    return log


def _translate_store_error(exc: Exception) -> Optional[AppError]:
    if isinstance(exc, (ProtectedError, RestrictedError)):
        return ConflictError("This record is referenced by other records")
    if isinstance(exc, ObjectDoesNotExist):
        return NotFoundError("Record not found")
    if isinstance(exc, IntegrityError):
        pgcode = getattr(exc.__cause__, "pgcode", None)
        text = str(exc).lower()
        if pgcode == _PG_UNIQUE_VIOLATION or "unique" in text:
            return ValidationError("A record with this field already exists")
        if pgcode == _PG_FOREIGN_KEY_VIOLATION or "foreign key" in text:
            return ValidationError("Invalid reference to related record")
        if pgcode in (_PG_NOT_NULL_VIOLATION, _PG_CHECK_VIOLATION) or "constraint" in text:
            return ValidationError("This operation would violate a data constraint")
        return AppError("Database error occurred")
    return None


def _from_drf_exception(
    exc: Exception, response: Response, bound_logger
) -> Response:
    status_code = response.status_code
    code, message, details, hint = _normalize_payload(exc, response.data, status_code)
    headers = dict(response.headers) if getattr(response, "headers", None) else None

    if status_code >= 500:
        bound_logger.error("Converted server error", code=code, status=status_code)
    else:
        bound_logger.info("Converted API exception", code=code, status=status_code)

    return error_response(
        code,
        message,
        details,
        http_status=status_code,
        hint=hint,
        headers=headers,
    )


def _normalize_django_validation_error(
    exc: DjangoValidationError,
) -> Union[Dict[str, Any], list]:
    if hasattr(exc, "message_dict"):
        return exc.message_dict
    return list(exc.messages)


def _normalize_payload(
    exc: Exception,
    payload: Any,
    status_code: int,
) -> Tuple[str, str, Optional[Any], Optional[str]]:
    if isinstance(exc, DRFValidationError):
        return (
            "VALIDATION_ERROR",
            _first_field_message(payload) or "Validation failed",
            payload,
            None,
        )
    if isinstance(exc, ParseError):
        return (
            "VALIDATION_ERROR",
            _extract_message(payload, "Malformed request", status_code),
            None,
            None,
        )
    if isinstance(exc, (NotAuthenticated, AuthenticationFailed)):
        message = _extract_message(
            payload,
            "Authentication failed"
            if isinstance(exc, AuthenticationFailed)
            else "Authentication required",
            status_code,
        )
        return ("UNAUTHORIZED", message, None, None)
    if isinstance(exc, (PermissionDenied, DjangoPermissionDenied)):
        return (
            "FORBIDDEN",
            _extract_message(
                payload, "You do not have permission to perform this action", status_code
            ),
            None,
            None,
        )
    if isinstance(exc, (NotFound, Http404)):
        return (
            "NOT_FOUND",
            _extract_message(payload, "Resource not found", status_code),
            None,
            None,
        )
    if isinstance(exc, MethodNotAllowed):
        return (
            "METHOD_NOT_ALLOWED",
            _extract_message(payload, "Method not allowed", status_code),
            None,
            None,
        )
    if isinstance(exc, Throttled):
        wait = getattr(exc, "wait", None)
        return (
            "TOO_MANY_REQUESTS",
            _extract_message(payload, "Request was throttled", status_code),
            {"retryAfter": wait} if wait is not None else None,
            "Wait before retrying this request." if wait is not None else None,
        )

    code, default_message = STATUS_CODE_DEFAULTS.get(
        status_code,
        (
            "SERVER_ERROR" if status_code >= 500 else "UNKNOWN_ERROR",
            "Something went wrong" if status_code >= 500 else "Request failed",
        ),
    )
    details = payload if _include_details(status_code, payload) else None
    return code, _extract_message(payload, default_message, status_code), details, None


def _first_field_message(payload: Any) -> Optional[str]:
    """Surface the first validation message, e.g. "quantity: Ensure this value is ..."."""
    if isinstance(payload, list) and payload and isinstance(payload[0], str):
        return str(payload[0])
    if isinstance(payload, dict):
        for field, messages in payload.items():
            if isinstance(messages, list) and messages and isinstance(messages[0], str):
                if field in ("non_field_errors", "detail"):
                    return str(messages[0])
                return f"{field}: {messages[0]}"
            if isinstance(messages, str):
                return messages if field == "detail" else f"{field}: {messages}"
    return None


def _include_details(status_code: int, payload: Any) -> bool:
    if status_code >= 500:
        return False
    return isinstance(payload, (dict, list)) and bool(payload)


def _extract_message(payload: Any, fallback: str, status_code: int) -> str:
    if status_code >= 500:
        return STATUS_CODE_DEFAULTS[status.HTTP_500_INTERNAL_SERVER_ERROR][1]
    if isinstance(payload, str) and payload:
        return payload
    if isinstance(payload, dict):
        detail = payload.get("detail")
        if isinstance(detail, str) and detail:
            return str(detail)
    if isinstance(payload, list) and payload and isinstance(payload[0], str):
        return str(payload[0])
    return fallback


__all__ = [
    "AppError",
    "ValidationError",
    "UnauthorizedError",
    "ForbiddenError",
    "NotFoundError",
    "ConflictError",
    "InsufficientStockError",
    "InvalidTransitionError",
    "AlreadyCancelledError",
    "global_exception_handler",
]
