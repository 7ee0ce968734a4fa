"""
Product write paths.

Each path keeps the object store and the database consistent in the same
order: new images are uploaded before the record changes, the record (and its
image list) is written in one transaction, and replaced images are discarded
only once that transaction has committed. Failing steps discard whatever was
uploaded for the request.
"""

import logging

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import transaction
from rest_framework import serializers

from assets.exceptions import ObjectStoreError
from assets.presets import PRODUCT_IMAGE_OPTIONS, PRODUCT_IMAGES_FOLDER
from assets.retry import discard_assets, discard_on_commit, upload_many
from storefront.concurrency import check_version, save_versioned
from storefront.exceptions import upstream_error

from .models import Product, ProductImage

logger = logging.getLogger(__name__)


def _upload_images(images):
    try:
        return upload_many(images, PRODUCT_IMAGES_FOLDER, **PRODUCT_IMAGE_OPTIONS)
    except ObjectStoreError as exc:
        raise upstream_error(exc) from exc


def _attach_images(product, stored_images):
    ProductImage.objects.bulk_create(
        ProductImage(product=product, public_id=stored.public_id, url=stored.url, position=index)
        for index, stored in enumerate(stored_images)
    )


def _full_clean(product):
    try:
        product.full_clean(exclude=["user"])
    except DjangoValidationError as exc:
        raise serializers.ValidationError(exc.message_dict)


def create_product(owner, validated_data) -> Product:
    images = validated_data.pop("images", None) or []
    validated_data.pop("version", None)

    stored_images = _upload_images(images)
    try:
        product = Product(user=owner, **validated_data)
        _full_clean(product)
        with transaction.atomic():
            product.save()
            _attach_images(product, stored_images)
    except Exception:
        discard_assets(stored.public_id for stored in stored_images)
        raise

    logger.info(f"Created product {product.pk} with {len(stored_images)} image(s)")
    return product


def update_product(product, validated_data) -> Product:
    """
    Apply field updates and, when images are supplied, replace the image list.

    Raises:
        Conflict: ``version`` was sent and is stale, or another write won the race.
    """
    images = validated_data.pop("images", None) or []
    expected_version = validated_data.pop("version", product.version)
    check_version(product, expected_version)

    stored_images = _upload_images(images) if images else []
    previous_images = product.image_public_ids

    for field, value in validated_data.items():
        setattr(product, field, value)

    try:
        _full_clean(product)
        with transaction.atomic():
            save_versioned(product, expected_version, list(validated_data))
            if stored_images:
                product.images.all().delete()
                _attach_images(product, stored_images)
                discard_on_commit(previous_images)
    except Exception:
        discard_assets(stored.public_id for stored in stored_images)
        raise

    product.refresh_from_db()
    logger.info(f"Updated product {product.pk} to version {product.version}")
    return product


def delete_product(product) -> None:
    public_ids = product.image_public_ids
    product_id = product.pk
    with transaction.atomic():
        product.delete()
        discard_on_commit(public_ids)
    logger.info(f"Deleted product {product_id}")
