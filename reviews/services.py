"""
Review sub-aggregate logic.

Both mutations lock the product row, change the review list and recompute the
derived fields inside one transaction, so ``num_of_reviews`` and ``ratings``
always describe the reviews actually stored.
"""

import logging

from django.db import transaction
from django.db.models import Avg, Count
from rest_framework.exceptions import NotFound

from products.models import Product

from .models import Review

logger = logging.getLogger(__name__)


def rating_summary(reviews) -> dict:
    """Derived fields for a review queryset: count and mean rating (0 when empty)."""
    summary = reviews.aggregate(count=Count("id"), average=Avg("rating"))
    return {
        "num_of_reviews": summary["count"],
        "ratings": float(summary["average"] or 0),
    }


def _locked_product(product_id) -> Product:
    try:
        return Product.objects.select_for_update().get(pk=product_id)
    except Product.DoesNotExist:
        raise NotFound("Product not found")


def upsert_review(product_id, user, rating: int, comment: str):
    """
    Create the user's review of a product, or overwrite it if one exists.

    Only the derived rating fields of the product are written back; the rest
    of the product document is not re-validated.

    Returns:
        tuple: (product, review, created)
    """
    with transaction.atomic():
        product = _locked_product(product_id)
        review = product.reviews.filter(user=user).first()
        created = review is None
        if created:
            review = Review.objects.create(
                product=product, user=user, name=user.name, rating=rating, comment=comment
            )
        else:
            review.rating = rating
            review.comment = comment
            review.save(update_fields=["rating", "comment", "updated_at"])

        for field, value in rating_summary(product.reviews.all()).items():
            setattr(product, field, value)
        product.save(update_fields=["num_of_reviews", "ratings"])

    logger.info(
        f"{'Created' if created else 'Updated'} review {review.pk} of product {product.pk} by user {user.pk}"
    )
    return product, review, created


def delete_review(product_id, review_id):
    """
    Remove one review from a product and write the recomputed derived fields.

    Raises:
        NotFound: The product does not exist or has no review with that id.
    """
    with transaction.atomic():
        product = _locked_product(product_id)
        deleted, _per_model = product.reviews.filter(pk=review_id).delete()
        if not deleted:
            raise NotFound("Review not found")

        summary = rating_summary(Review.objects.filter(product_id=product.pk))
        Product.objects.filter(pk=product.pk).update(**summary)
        for field, value in summary.items():
            setattr(product, field, value)

    logger.info(f"Deleted review {review_id} of product {product.pk}")
    return product
