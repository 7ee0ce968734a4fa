from decimal import Decimal

import pytest

from assets.exceptions import ObjectStoreError
from products.models import Product

from .conftest import IMAGE

pytestmark = pytest.mark.django_db

ADMIN_URL = "/api/v1/admin/products/"


def create_catalog(count, **fields):
    return [
        Product.objects.create(
            name=fields.get("name", "Trail Shoe {index}").format(index=index),
            description="Catalog item",
            price=fields.get("price", Decimal("50.00") + index),
            stock=10,
            category=fields.get("category", "Footwear"),
            ratings=fields.get("ratings", 0),
        )
        for index in range(count)
    ]


class TestCatalog:
    def test_first_page_and_totals(self, api_client):
        create_catalog(20)

        response = api_client.get("/api/v1/products/")

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert len(body["products"]) == 8
        assert body["productsCount"] == 20
        assert body["resultPerPage"] == 8
        assert body["filteredProductsCount"] == 20

    def test_last_page(self, api_client):
        create_catalog(20)

        body = api_client.get("/api/v1/products/", {"page": 3}).json()

        assert len(body["products"]) == 4

    def test_page_past_the_end(self, api_client):
        create_catalog(3)

        assert api_client.get("/api/v1/products/", {"page": 5}).status_code == 404

    def test_filters_combine(self, api_client):
        create_catalog(10)
        create_catalog(3, name="Gaming Laptop {index}", category="Laptop", price=Decimal("900"), ratings=4.5)
        create_catalog(2, name="Value Laptop {index}", category="Laptop", price=Decimal("300"), ratings=3)

        body = api_client.get(
            "/api/v1/products/",
            {"keyword": "LAPTOP", "category": "laptop", "price__gte": 500, "ratings__gte": 4},
        ).json()

        assert body["productsCount"] == 15
        assert body["filteredProductsCount"] == 3
        assert {product["name"] for product in body["products"]} == {
            "Gaming Laptop 0",
            "Gaming Laptop 1",
            "Gaming Laptop 2",
        }

    def test_price_range(self, api_client):
        create_catalog(10)

        body = api_client.get("/api/v1/products/", {"price__gte": 52, "price__lte": 54}).json()

        assert body["filteredProductsCount"] == 3

    def test_detail_embeds_images_and_reviews(self, api_client, product):
        response = api_client.get(f"/api/v1/products/{product.pk}/")

        assert response.status_code == 200
        body = response.json()["product"]
        assert body["name"] == "Ultrabook 14"
        assert body["price"] == "899.00"
        assert body["numOfReviews"] == 0
        assert [image["public_id"] for image in body["images"]] == product.image_public_ids
        assert body["reviews"] == []

    def test_unknown_product(self, api_client, db):
        response = api_client.get("/api/v1/products/987654/")

        assert response.status_code == 404
        assert response.json() == {"success": False, "message": "Product not found"}


class TestAdminProducts:
    def payload(self, **overrides):
        data = {
            "name": "Mirrorless Camera",
            "description": "24MP full frame",
            "price": "1299.99",
            "stock": 3,
            "category": "Camera",
            "images": [IMAGE, IMAGE],
        }
        data.update(overrides)
        return data

    def test_customer_is_forbidden(self, customer_client):
        response = customer_client.post(ADMIN_URL, self.payload(), format="json")

        assert response.status_code == 403
        assert not Product.objects.exists()

    def test_anonymous_is_unauthorized(self, api_client, db):
        assert api_client.get(ADMIN_URL).status_code == 401

    def test_create_uploads_images(self, admin_client, admin_user, store):
        response = admin_client.post(ADMIN_URL, self.payload(), format="json")

        assert response.status_code == 201
        body = response.json()["product"]
        assert body["user"] == admin_user.pk
        assert body["version"] == 1
        assert len(body["images"]) == 2
        assert all(image["public_id"].startswith("products/") for image in body["images"])
        assert all(image["public_id"] in store.assets for image in body["images"])

    def test_create_accepts_a_single_image(self, admin_client):
        response = admin_client.post(ADMIN_URL, self.payload(images=IMAGE), format="json")

        assert response.status_code == 201
        assert len(response.json()["product"]["images"]) == 1

    def test_invalid_product_is_rejected_and_images_discarded(self, admin_client, store):
        assets_before = set(store.assets)

        response = admin_client.post(ADMIN_URL, self.payload(stock=100000), format="json")

        assert response.status_code == 400
        assert set(store.assets) == assets_before
        assert not Product.objects.filter(name="Mirrorless Camera").exists()

    def test_create_fails_when_upload_keeps_failing(self, admin_client, store):
        store.fail_next(ObjectStoreError("provider down"), times=3)

        response = admin_client.post(ADMIN_URL, self.payload(), format="json")

        assert response.status_code == 500
        assert response.json()["success"] is False
        assert not Product.objects.filter(name="Mirrorless Camera").exists()

    def test_update_replaces_images_after_commit(
        self, admin_client, product, store, django_capture_on_commit_callbacks
    ):
        old_images = product.image_public_ids

        with django_capture_on_commit_callbacks(execute=True):
            response = admin_client.put(
                f"{ADMIN_URL}{product.pk}/",
                self.payload(name="Ultrabook 14 Pro", images=[IMAGE], version=1),
                format="json",
            )

        assert response.status_code == 200
        body = response.json()["product"]
        assert body["name"] == "Ultrabook 14 Pro"
        assert body["version"] == 2
        assert len(body["images"]) == 1
        assert body["images"][0]["public_id"] in store.assets
        assert not any(public_id in store.assets for public_id in old_images)

    def test_put_with_only_images_keeps_other_fields(
        self, admin_client, product, store, django_capture_on_commit_callbacks
    ):
        old_images = product.image_public_ids

        with django_capture_on_commit_callbacks(execute=True):
            response = admin_client.put(f"{ADMIN_URL}{product.pk}/", {"images": [IMAGE]}, format="json")

        assert response.status_code == 200
        body = response.json()["product"]
        assert (body["name"], body["price"], body["stock"]) == ("Ultrabook 14", "899.00", 5)
        assert len(body["images"]) == 1
        assert not any(public_id in store.assets for public_id in old_images)

    def test_update_without_images_keeps_them(self, admin_client, product, store):
        response = admin_client.patch(f"{ADMIN_URL}{product.pk}/", {"stock": 9}, format="json")

        assert response.status_code == 200
        product.refresh_from_db()
        assert product.stock == 9
        assert len(product.image_public_ids) == 2
        assert all(public_id in store.assets for public_id in product.image_public_ids)

    def test_stale_update_is_rejected(self, admin_client, product, store):
        Product.objects.filter(pk=product.pk).update(version=3)
        assets_before = set(store.assets)

        response = admin_client.patch(
            f"{ADMIN_URL}{product.pk}/", {"price": "10.00", "images": [IMAGE], "version": 1}, format="json"
        )

        assert response.status_code == 409
        assert set(store.assets) == assets_before
        product.refresh_from_db()
        assert product.price == Decimal("899.00")

    def test_delete_discards_images(
        self, admin_client, product, store, django_capture_on_commit_callbacks
    ):
        images = product.image_public_ids

        with django_capture_on_commit_callbacks(execute=True):
            response = admin_client.delete(f"{ADMIN_URL}{product.pk}/")

        assert response.status_code == 200
        assert response.json() == {"success": True, "message": "Product deleted successfully"}
        assert not Product.objects.filter(pk=product.pk).exists()
        assert not any(public_id in store.assets for public_id in images)

    def test_delete_unknown_product(self, admin_client):
        assert admin_client.delete(f"{ADMIN_URL}424242/").status_code == 404

    def test_admin_list_is_not_paginated(self, admin_client):
        create_catalog(12)

        body = admin_client.get(ADMIN_URL).json()

        assert len(body["products"]) == 12
