from typing import Any, Callable, Dict, Mapping, Optional, Tuple

from django.http import HttpRequest
from rest_framework.exceptions import AuthenticationFailed as DRFAuthenticationFailed
from rest_framework.response import Response
from rest_framework_simplejwt.authentication import JWTAuthentication
from rest_framework_simplejwt.exceptions import InvalidToken

from apps.api.permissions import is_admin_user
from apps.api.utils import error_response
from apps.common import get_logger

logger = get_logger(__name__).bind(component="api", layer="validation")

_jwt_authenticator = JWTAuthentication()

Predicate = Callable[[HttpRequest, Mapping[str, Any]], Optional[Response]]


def _is_authenticated_user(request: HttpRequest) -> bool:
    user = getattr(request, "user", None)
    if user and getattr(user, "is_authenticated", False) and getattr(user, "id", None):
        return True

    # DRF authenticates lazily inside the view; this runs earlier, so resolve
    # the bearer token here.
    auth_header = request.META.get("HTTP_AUTHORIZATION")
    if not auth_header:
        return False

    try:
        authenticated = _jwt_authenticator.authenticate(request)
    except (InvalidToken, DRFAuthenticationFailed) as exc:
        logger.warning("JWT authentication failed", detail=str(exc))
        return False

    if not authenticated:
        return False

    user, token = authenticated
    if not getattr(user, "is_authenticated", False) or not getattr(user, "id", None):
        return False

    request.user = user
    request.auth = token
    logger.debug("Authenticated user from bearer token", user_id=user.id)
    return True


def _set_validated_user(request: HttpRequest, user_id: int) -> None:
    request.validated_user_id = user_id
    request.is_privileged_user = is_admin_user(getattr(request, "user", None))


def require_authenticated(request: HttpRequest, view_kwargs: Mapping[str, Any]) -> Optional[Response]:
    if not _is_authenticated_user(request):
        return error_response("UNAUTHORIZED", "Authentication required")
    _set_validated_user(request, int(request.user.id))
    return None


def require_admin(request: HttpRequest, view_kwargs: Mapping[str, Any]) -> Optional[Response]:
    if not getattr(request, "is_privileged_user", False):
        logger.warning(
            "Admin-only endpoint rejected",
            user_id=getattr(request, "validated_user_id", None),
        )
        return error_response("FORBIDDEN", "Access denied. Admin privileges required")
    return None


AUTHENTICATED: Tuple[Predicate, ...] = (require_authenticated,)
ADMIN_ONLY: Tuple[Predicate, ...] = (require_authenticated, require_admin)

# view class name -> HTTP method ("*" for any) -> predicates, evaluated in order
VIEW_RULES: Dict[str, Dict[str, Tuple[Predicate, ...]]] = {
    "ProfileView": {"*": AUTHENTICATED},
    "ProductListView": {"POST": ADMIN_ONLY},
    "ProductDetailView": {"PUT": ADMIN_ONLY, "PATCH": ADMIN_ONLY, "DELETE": ADMIN_ONLY},
    "CategoryListView": {"POST": ADMIN_ONLY},
    "CategoryDetailView": {"PUT": ADMIN_ONLY, "PATCH": ADMIN_ONLY, "DELETE": ADMIN_ONLY},
    "CartView": {"*": AUTHENTICATED},
    "CartSummaryView": {"*": AUTHENTICATED},
    "CartAddView": {"*": AUTHENTICATED},
    "CartItemView": {"*": AUTHENTICATED},
    "CartClearView": {"*": AUTHENTICATED},
    "OrderListView": {"*": AUTHENTICATED},
    "MyOrdersView": {"*": AUTHENTICATED},
    "OrderDetailView": {"*": AUTHENTICATED},
    "OrderCancelView": {"*": AUTHENTICATED},
    "OrderStatsView": {"*": ADMIN_ONLY},
    "AdminOrderListView": {"*": ADMIN_ONLY},
    "OrderStatusView": {"*": ADMIN_ONLY},
    "OrderPaymentView": {"*": ADMIN_ONLY},
}


def validate_request_context(request: HttpRequest, view_class, view_kwargs) -> Any:
    """
    Evaluates the authorization predicates registered for ``view_class``.
    Returns an error Response from the first predicate that rejects the
    request, otherwise None with ``validated_user_id``/``is_privileged_user``
    attached to the request.
    """
    view_name = getattr(view_class, "__name__", "")
    rules = VIEW_RULES.get(view_name)
    if not rules:
        return None
    method = (request.method or "").upper()
    if method == "OPTIONS":
        return None
    predicates = rules.get(method, rules.get("*", ()))

    logger.debug(
        "Running request context validation",
        view=view_name,
        method=method,
        predicates=len(predicates),
    )
    for predicate in predicates:
        response = predicate(request, view_kwargs or {})
        if response is not None:
            return response
    return None
