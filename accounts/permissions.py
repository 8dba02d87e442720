# accounts/permissions.py
from rest_framework import permissions

from .models import Role


def _role(user):
    return getattr(user, "role", None)


class IsAdminOrSuperAdmin(permissions.BasePermission):
    """
    Any back office user (ADMIN / SUPER_ADMIN / Django superuser).
    """
    def has_permission(self, request, view):
        user = request.user
        if not (user and user.is_authenticated):
            return False
        return user.is_superuser or _role(user) in (Role.ADMIN, Role.SUPERADMIN)


class IsSuperAdmin(permissions.BasePermission):
    """
    Only SUPER_ADMIN role (or Django superuser).
    """
    message = "Only a super admin can perform this action."

    def has_permission(self, request, view):
        user = request.user
        if not (user and user.is_authenticated):
            return False
        return user.is_superuser or _role(user) == Role.SUPERADMIN


class IsSuperAdminForUnsafe(permissions.BasePermission):
    """
    Admins can GET, only super admins can POST/PUT/PATCH/DELETE.
    """
    message = "Only a super admin can perform this action."

    def has_permission(self, request, view):
        if request.method in permissions.SAFE_METHODS:
            return IsAdminOrSuperAdmin().has_permission(request, view)
        return IsSuperAdmin().has_permission(request, view)
