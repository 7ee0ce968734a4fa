"""
Review endpoints, nested under a product.

- Anyone can read the reviews of a product.
- Authenticated customers submit (create or overwrite) their own review.
- A review is deleted by its author or by an administrator.
"""

from django.utils.translation import gettext_lazy as _
from django_ratelimit.decorators import ratelimit
from rest_framework.decorators import api_view, permission_classes
from rest_framework.exceptions import NotFound, PermissionDenied
from rest_framework.permissions import IsAuthenticated, IsAuthenticatedOrReadOnly

from products.models import Product
from storefront.responses import envelope

from .models import Review
from .serializers import ReviewSerializer, ReviewSubmitSerializer
from .services import delete_review, upsert_review


@api_view(["GET", "PUT"])
@permission_classes([IsAuthenticatedOrReadOnly])
@ratelimit(key="user_or_ip", rate="10/m", method="PUT")
def product_reviews(request, product_id):
    if request.method == "GET":
        product = Product.objects.filter(pk=product_id).first()
        if product is None:
            raise NotFound(_("Product not found"))
        return envelope(reviews=ReviewSerializer(product.reviews.all(), many=True).data)

    serializer = ReviewSubmitSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    product, review, created = upsert_review(product_id, request.user, **serializer.validated_data)
    return envelope(
        review=ReviewSerializer(review).data,
        ratings=product.ratings,
        numOfReviews=product.num_of_reviews,
    )


@api_view(["DELETE"])
@permission_classes([IsAuthenticated])
@ratelimit(key="user", rate="10/m", method="DELETE")
def product_review_detail(request, product_id, review_id):
    if not Product.objects.filter(pk=product_id).exists():
        raise NotFound(_("Product not found"))
    review = Review.objects.filter(pk=review_id, product_id=product_id).first()
    if review is None:
        raise NotFound(_("Review not found"))

    user = request.user
    if not (user.is_superuser or user.is_admin or review.user_id == user.pk):
        raise PermissionDenied(_("You can only delete your own reviews."))

    product = delete_review(product_id, review_id)
    return envelope(ratings=product.ratings, numOfReviews=product.num_of_reviews)
