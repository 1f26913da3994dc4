from rest_framework import permissions


class IsAdminRole(permissions.BasePermission):
    """
    Allow access only to users whose role is ADMIN (or superusers).
    """
    message = "Administrator access required."

    def has_permission(self, request, view):
        user = request.user
        if not user or not user.is_authenticated:
            return False
        return bool(getattr(user, "is_admin", False) or user.is_superuser)
