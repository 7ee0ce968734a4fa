"""
Authentication app URL declarations.

Keeping this list centralized makes it easy to audit which endpoints are public
(`AllowAny`) versus protected; the project URLconf mounts it under ``/api/v1/``.
"""

from django.urls import path

from . import views

urlpatterns = [
    # Public endpoints used during onboarding, login and password recovery
    path("register/", views.register_user, name="auth-register"),
    path("login/", views.login_user, name="auth-login"),
    path("logout/", views.logout_user, name="auth-logout"),
    path("password/forgot/", views.forgot_password, name="auth-password-forgot"),
    path("password/reset/<str:token>/", views.reset_password, name="auth-password-reset"),
    # Authenticated self-service
    path("me/", views.me, name="auth-me"),
    path("me/update/", views.update_profile, name="auth-profile-update"),
    path("password/update/", views.update_password, name="auth-password-update"),
    # Administrative operations guarded by the IsAdminRole permission
    path("admin/users/", views.list_users, name="admin-users"),
    path("admin/users/<int:pk>/", views.user_detail, name="admin-user-detail"),
]
