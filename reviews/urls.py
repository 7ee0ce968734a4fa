from django.urls import path

from . import views

# Mounted under /api/v1/products/<product_id>/reviews/
urlpatterns = [
    path("", views.product_reviews, name="product-reviews"),
    path("<int:review_id>/", views.product_review_detail, name="product-review-detail"),
]
