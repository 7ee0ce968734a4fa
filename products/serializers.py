"""
Product serializers for the storefront API.

Read and write shapes differ: clients send image payloads (data URIs, URLs or
files) and receive image references (``public_id`` + ``url``) back.
"""

from rest_framework import serializers

from assets.fields import AssetListField
from reviews.serializers import ReviewSerializer

from .models import Product, ProductImage


class ProductImageSerializer(serializers.ModelSerializer):
    class Meta:
        model = ProductImage
        fields = ["public_id", "url"]
        read_only_fields = fields


class ProductSerializer(serializers.ModelSerializer):
    """Representation used in listings and as the result of writes."""

    images = ProductImageSerializer(many=True, read_only=True)
    numOfReviews = serializers.IntegerField(source="num_of_reviews", read_only=True)

    class Meta:
        model = Product
        fields = [
            "id",
            "name",
            "description",
            "price",
            "stock",
            "category",
            "ratings",
            "numOfReviews",
            "images",
            "user",
            "version",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class ProductDetailSerializer(ProductSerializer):
    """Single product, with its reviews embedded."""

    reviews = ReviewSerializer(many=True, read_only=True)

    class Meta(ProductSerializer.Meta):
        fields = ProductSerializer.Meta.fields + ["reviews"]
        read_only_fields = fields


class ProductWriteSerializer(serializers.ModelSerializer):
    """
    Input of the administrative create/update endpoints.

    ``images`` replaces the whole image list when non-empty. ``version`` is
    optional; when sent it must match the stored version.
    """

    images = AssetListField(write_only=True, required=False)
    version = serializers.IntegerField(write_only=True, required=False, min_value=1)

    class Meta:
        model = Product
        fields = [
            "name",
            "description",
            "price",
            "stock",
            "category",
            "images",
            "version",
        ]

    def validate_price(self, value):
        if value < 0:
            raise serializers.ValidationError("Price cannot be negative.")
        return value
