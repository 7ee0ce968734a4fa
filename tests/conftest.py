import pytest
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient

from assets.presets import AVATARS_FOLDER, PRODUCT_IMAGES_FOLDER
from assets.storage import get_object_store
from products.models import Product, ProductImage

User = get_user_model()

PASSWORD = "correct-horse-9"
IMAGE = "data:image/png;base64,iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNk+M9QDwADhgGAWjR9awAAAABJRU5ErkJggg=="


@pytest.fixture(autouse=True)
def storefront_settings(settings):
    settings.OBJECT_STORE = {"BACKEND": "assets.backends.InMemoryObjectStore", "OPTIONS": {}}
    settings.ASSET_UPLOAD_RETRY = {"MAX_ATTEMPTS": 3, "BASE_DELAY": 0}
    settings.RATELIMIT_ENABLE = False
    return settings


@pytest.fixture
def store(storefront_settings):
    return get_object_store()


@pytest.fixture
def api_client():
    return APIClient()


def make_user(store, email, name="Jane Doe", **extra):
    avatar = store.upload(IMAGE, AVATARS_FOLDER)
    return User.objects.create_user(
        email=email,
        password=PASSWORD,
        name=name,
        avatar_public_id=avatar.public_id,
        avatar_url=avatar.url,
        **extra,
    )


@pytest.fixture
def customer(db, store):
    return make_user(store, "jane@example.com")


@pytest.fixture
def other_customer(db, store):
    return make_user(store, "john@example.com", name="John Roe")


@pytest.fixture
def admin_user(db, store):
    return make_user(store, "admin@example.com", name="Store Admin", role=User.Role.ADMIN)


@pytest.fixture
def customer_client(customer):
    client = APIClient()
    client.force_authenticate(user=customer)
    return client


@pytest.fixture
def admin_client(admin_user):
    client = APIClient()
    client.force_authenticate(user=admin_user)
    return client


@pytest.fixture
def product(db, store, admin_user):
    product = Product.objects.create(
        name="Ultrabook 14",
        description="Light laptop",
        price="899.00",
        stock=5,
        category="Laptop",
        user=admin_user,
    )
    for position in range(2):
        stored = store.upload(IMAGE, PRODUCT_IMAGES_FOLDER)
        ProductImage.objects.create(
            product=product, public_id=stored.public_id, url=stored.url, position=position
        )
    return product
