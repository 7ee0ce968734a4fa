"""Serializer fields for image payloads sent by clients."""

from django.utils.translation import gettext_lazy as _
from rest_framework import serializers


class AssetField(serializers.Field):
    """
    An image to upload: a data URI or remote URL string, or an uploaded file.

    The value is passed through untouched; the object store decides whether it
    can ingest it.
    """

    default_error_messages = {
        "invalid": _("Expected an image as a data URI, a URL or an uploaded file."),
    }

    def to_internal_value(self, data):
        if hasattr(data, "read"):
            return data
        if isinstance(data, str) and data.strip():
            return data.strip()
        self.fail("invalid")

    def to_representation(self, value):
        return None


class AssetListField(serializers.ListField):
    """Zero or more images; a single image is accepted and normalized to a one-element list."""

    child = AssetField()

    def to_internal_value(self, data):
        if isinstance(data, str) or hasattr(data, "read"):
            data = [data]
        return super().to_internal_value(data)
