"""
Review models for the storefront.

Reviews are part of the Product aggregate. A customer has at most one review
per product: submitting again overwrites the existing one. That rule is
applied by ``reviews.services.upsert_review`` rather than by a database
constraint, so it stays a single code path for create and overwrite.
"""

from django.conf import settings
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from django.utils.translation import gettext_lazy as _

MIN_RATING = 1
MAX_RATING = 5


class Review(models.Model):
    """Customer feedback and rating for a product."""

    product = models.ForeignKey(
        "products.Product",
        on_delete=models.CASCADE,
        related_name="reviews",
    )
    # Kept when the account is deleted so the product's ratings stay consistent.
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="reviews",
    )
    name = models.CharField(
        max_length=30,
        help_text=_("Reviewer display name at the time of the review"),
    )
    rating = models.PositiveSmallIntegerField(
        validators=[
            MinValueValidator(MIN_RATING, message=_("Rating must be at least 1")),
            MaxValueValidator(MAX_RATING, message=_("Rating cannot exceed 5")),
        ],
    )
    comment = models.TextField()
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["created_at", "id"]
        indexes = [
            models.Index(fields=["product", "user"], name="review_product_user_idx"),
        ]
        verbose_name = _("Review")
        verbose_name_plural = _("Reviews")

    def __str__(self):
        return f"{self.name} - {self.product_id} - {self.rating}/5"
