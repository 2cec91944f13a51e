from rest_framework.permissions import BasePermission


class IsAdminRole(BasePermission):
    """
    Allows access only to admins (role admin or superadmin) and Django staff.
    """
    def has_permission(self, request, view):
        user = getattr(request, "user", None)
        if not user or not user.is_authenticated:
            return False
        return bool(user.is_admin_role or user.is_superuser or user.is_staff)


class IsSuperAdmin(BasePermission):
    """
    Allows access only to superadmins (role superadmin or is_superuser).
    """
    def has_permission(self, request, view):
        user = getattr(request, "user", None)
        if not user or not user.is_authenticated:
            return False
        return bool(user.is_superadmin)
