"""
Product models for the storefront.

A ``Product`` is an aggregate: its ordered image list (``ProductImage``) and its
reviews (``reviews.Review``) belong to it and go away with it. Two fields are
derived from the reviews and kept in sync by ``reviews.services``:

- ``num_of_reviews`` always equals the number of reviews,
- ``ratings`` always equals the mean review rating, 0 when there are none.
"""

from decimal import Decimal

from django.conf import settings
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from django.utils.translation import gettext_lazy as _


class Product(models.Model):
    """
    Represents a product available for sale.

    Prices are Decimals to avoid floating-point rounding. ``version`` is bumped
    on every administrative write so concurrent edits cannot silently
    overwrite each other.
    """

    name = models.CharField(
        max_length=200,
        help_text=_("Product name"),
        db_index=True,
    )
    description = models.TextField(
        help_text=_("Detailed product description"),
    )
    price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0"))],
        help_text=_("Product price in the base currency"),
    )
    stock = models.PositiveIntegerField(
        default=1,
        validators=[MaxValueValidator(9999)],
        help_text=_("Units available, at most 4 digits"),
    )
    category = models.CharField(
        max_length=64,
        db_index=True,
        help_text=_("Catalog category, e.g. Laptop, Footwear, Camera"),
    )

    # Derived from the reviews; never written by clients.
    ratings = models.FloatField(default=0)
    num_of_reviews = models.PositiveIntegerField(default=0)

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="products",
        help_text=_("Administrator who created this product"),
    )

    version = models.PositiveIntegerField(default=1)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at", "-id"]
        indexes = [
            models.Index(fields=["category", "price"], name="product_category_price_idx"),
            models.Index(fields=["ratings"], name="product_ratings_idx"),
        ]
        verbose_name = _("Product")
        verbose_name_plural = _("Products")

    def __str__(self):
        return self.name

    @property
    def image_public_ids(self):
        return [image.public_id for image in self.images.all()]


class ProductImage(models.Model):
    """Reference to one product picture held by the object store."""

    product = models.ForeignKey(
        Product,
        on_delete=models.CASCADE,
        related_name="images",
    )
    public_id = models.CharField(max_length=255)
    url = models.CharField(max_length=500)
    position = models.PositiveSmallIntegerField(default=0)

    class Meta:
        ordering = ["position", "id"]

    def __str__(self):
        return self.public_id
