"""
Review serializers for the storefront API.
"""

from rest_framework import serializers

from .models import MAX_RATING, MIN_RATING, Review


class ReviewSerializer(serializers.ModelSerializer):
    class Meta:
        model = Review
        fields = [
            "id",
            "user",
            "name",
            "rating",
            "comment",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class ReviewSubmitSerializer(serializers.Serializer):
    """
    Input of the review upsert.

    Ratings outside 1..5 are rejected rather than clamped.
    """

    rating = serializers.IntegerField(min_value=MIN_RATING, max_value=MAX_RATING)
    comment = serializers.CharField(max_length=2000)
