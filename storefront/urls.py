"""
URL configuration for the storefront project.

This module defines URL patterns for the storefront API including:
- Product catalog and administrative product routes (ViewSets)
- Product review routes
- Authentication, profile and user administration endpoints
- Image generation and image proxy endpoints
- Admin interface
"""

from django.contrib import admin
from django.urls import include, path
from rest_framework.routers import DefaultRouter

from products.views import AdminProductViewSet, ProductViewSet

router = DefaultRouter()
router.register(r"products", ProductViewSet, basename="product")
router.register(r"admin/products", AdminProductViewSet, basename="admin-product")

urlpatterns = [
    # Admin interface
    path("admin/", admin.site.urls),

    # API routes
    path("api/v1/", include(router.urls)),
    path("api/v1/products/<int:product_id>/reviews/", include("reviews.urls")),
    path("api/v1/", include("authentication.urls")),
    path("api/v1/", include("designs.urls")),
]
