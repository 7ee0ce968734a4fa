from django.utils.translation import gettext_lazy as _
from rest_framework.permissions import BasePermission


class IsAdminRole(BasePermission):
    """Grants access to users with the admin role. Superusers always pass."""

    message = _("Only administrators can access this resource.")

    def has_permission(self, request, view):
        user = request.user
        return bool(user and user.is_authenticated and (user.is_superuser or user.is_admin))
