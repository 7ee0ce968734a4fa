"""
Django admin configuration for authentication models.
"""

from django.contrib import admin
from django.contrib.auth import get_user_model

User = get_user_model()


@admin.register(User)
class UserAdmin(admin.ModelAdmin):
    """Admin interface for User model."""
    list_display = ['email', 'name', 'role', 'is_active', 'created_at']
    list_filter = ['role', 'is_active', 'is_superuser']
    search_fields = ['email', 'name']
    readonly_fields = ['created_at', 'last_login', 'date_joined', 'version',
                       'avatar_public_id', 'avatar_url',
                       'reset_password_token', 'reset_password_expire']
    exclude = ['password', 'groups', 'user_permissions']
