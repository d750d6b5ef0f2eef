from rest_framework.permissions import BasePermission


def is_admin_user(user):
    """
    Check if user is an admin user.
    Returns True for the admin and superadmin roles and for Django superusers.
    """
    if not user or not user.is_authenticated:
        return False
    return user.is_superuser or getattr(user, 'role', None) in ('admin', 'superadmin')


def is_superadmin_user(user):
    """Check if user holds the superadmin role (or is a Django superuser)"""
    if not user or not user.is_authenticated:
        return False
    return user.is_superuser or getattr(user, 'role', None) == 'superadmin'


class IsAdminRole(BasePermission):
    message = 'Admin access required'

    def has_permission(self, request, view):
        return is_admin_user(request.user)
