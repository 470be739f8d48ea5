from rest_framework.permissions import SAFE_METHODS, BasePermission


def is_admin_user(user) -> bool:
    if not user or not getattr(user, "is_authenticated", False):
        return False
    return bool(getattr(user, "is_admin", False) or getattr(user, "is_superuser", False))


class IsAdminRole(BasePermission):
    """Grants access to ADMIN accounts. Combine with IsAuthenticated: ``[IsAuthenticated & IsAdminRole]``."""

    message = "Access denied. Admin privileges required"

    def has_permission(self, request, view):
        return is_admin_user(getattr(request, "user", None))


class IsAdminOrReadOnly(IsAdminRole):
    """Public reads, ADMIN-only writes."""

    def has_permission(self, request, view):
        if request.method in SAFE_METHODS:
            return True
        return super().has_permission(request, view)
