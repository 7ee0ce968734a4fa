import re
from datetime import timedelta

import pytest
from django.contrib.auth import get_user_model
from django.core import mail
from django.utils import timezone
from rest_framework.test import APIClient

from assets.exceptions import ObjectStoreError, PayloadTooLargeError, RateLimitedError

from .conftest import IMAGE, PASSWORD

User = get_user_model()

pytestmark = pytest.mark.django_db

REGISTER_URL = "/api/v1/register/"
LOGIN_URL = "/api/v1/login/"


def registration(**overrides):
    data = {
        "name": "Grace Hopper",
        "email": "Grace@Example.com",
        "password": "cobol-1959",
        "avatar": IMAGE,
    }
    data.update(overrides)
    return data


class TestRegister:
    def test_creates_user_and_opens_session(self, api_client, store):
        response = api_client.post(REGISTER_URL, registration(), format="json")

        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        assert body["token"]
        assert body["user"]["email"] == "grace@example.com"
        assert body["user"]["role"] == "customer"
        assert "password" not in body["user"]
        assert body["user"]["avatar"]["public_id"] in store.assets
        assert response.cookies["token"].value == body["token"]
        assert response.cookies["token"]["httponly"]

        user = User.objects.get(email="grace@example.com")
        assert user.check_password("cobol-1959")

    def test_session_cookie_authenticates_following_requests(self, api_client, store):
        api_client.post(REGISTER_URL, registration(), format="json")

        response = api_client.get("/api/v1/me/")

        assert response.status_code == 200
        assert response.json()["user"]["name"] == "Grace Hopper"

    def test_bearer_token_authenticates(self, store):
        token = APIClient().post(REGISTER_URL, registration(), format="json").json()["token"]
        client = APIClient()
        client.credentials(HTTP_AUTHORIZATION=f"Bearer {token}")

        assert client.get("/api/v1/me/").status_code == 200

    def test_duplicate_email_is_rejected(self, api_client, customer):
        response = api_client.post(
            REGISTER_URL, registration(email="JANE@example.com"), format="json"
        )

        assert response.status_code == 400
        assert response.json()["success"] is False
        assert "email" in response.json()["errors"]

    def test_short_password_is_rejected_before_upload(self, api_client, store):
        response = api_client.post(REGISTER_URL, registration(password="short"), format="json")

        assert response.status_code == 400
        assert store.calls == []

    def test_throttled_upload_returns_429_without_creating_user(self, api_client, store):
        store.fail_next(RateLimitedError("Rate Limited", http_code=420), times=3)

        response = api_client.post(REGISTER_URL, registration(), format="json")

        assert response.status_code == 429
        assert response.json() == {
            "success": False,
            "message": "Too many upload requests. Please try again later.",
        }
        assert len(store.calls) == 3
        assert not User.objects.filter(email="grace@example.com").exists()

    def test_oversized_avatar_returns_413(self, api_client, store):
        store.fail_next(PayloadTooLargeError("File size too large"), times=3)

        response = api_client.post(REGISTER_URL, registration(), format="json")

        assert response.status_code == 413
        assert not User.objects.exists()

    def test_transient_upload_failure_is_retried(self, api_client, store):
        store.fail_next(ObjectStoreError("timeout"), times=2)

        response = api_client.post(REGISTER_URL, registration(), format="json")

        assert response.status_code == 201
        assert len(store.assets) == 1


class TestLogin:
    def test_valid_credentials(self, api_client, customer):
        response = api_client.post(
            LOGIN_URL, {"email": "JANE@example.com", "password": PASSWORD}, format="json"
        )

        assert response.status_code == 200
        assert response.json()["user"]["id"] == customer.pk
        assert "token" in response.cookies

    def test_unknown_email_and_wrong_password_look_the_same(self, api_client, customer):
        wrong_password = api_client.post(
            LOGIN_URL, {"email": "jane@example.com", "password": "nope-nope"}, format="json"
        )
        unknown_email = api_client.post(
            LOGIN_URL, {"email": "nobody@example.com", "password": PASSWORD}, format="json"
        )

        assert wrong_password.status_code == unknown_email.status_code == 401
        assert wrong_password.json() == unknown_email.json() == {
            "success": False,
            "message": "Invalid email or password",
        }

    def test_missing_fields(self, api_client):
        response = api_client.post(LOGIN_URL, {"email": "jane@example.com"}, format="json")

        assert response.status_code == 400
        assert response.json()["message"] == "Please Enter Email & Password"


def test_logout_clears_cookie(api_client, customer):
    api_client.post(LOGIN_URL, {"email": customer.email, "password": PASSWORD}, format="json")

    response = api_client.post("/api/v1/logout/")

    assert response.status_code == 200
    assert response.json() == {"success": True, "message": "Logged Out"}
    assert response.cookies["token"].value == ""
    assert api_client.get("/api/v1/me/").status_code == 401


class TestPasswordRecovery:
    def _request_token(self, api_client, email):
        response = api_client.post("/api/v1/password/forgot/", {"email": email}, format="json")
        assert response.status_code == 200
        return re.search(r"/password/reset/([0-9a-f]{40})", mail.outbox[-1].body).group(1)

    def test_reset_with_mailed_token(self, api_client, customer):
        token = self._request_token(api_client, customer.email)
        customer.refresh_from_db()
        assert customer.reset_password_token and customer.reset_password_token != token

        response = api_client.put(
            f"/api/v1/password/reset/{token}/",
            {"password": "brand-new-pass", "confirm_password": "brand-new-pass"},
            format="json",
        )

        assert response.status_code == 200
        assert response.json()["token"]
        customer.refresh_from_db()
        assert customer.check_password("brand-new-pass")
        assert customer.reset_password_token is None
        assert customer.reset_password_expire is None

    def test_token_is_single_use(self, api_client, customer):
        token = self._request_token(api_client, customer.email)
        payload = {"password": "brand-new-pass", "confirm_password": "brand-new-pass"}
        api_client.put(f"/api/v1/password/reset/{token}/", payload, format="json")

        response = api_client.put(f"/api/v1/password/reset/{token}/", payload, format="json")

        assert response.status_code == 401
        assert response.json()["message"] == "Reset Password Token is invalid or has been expired."

    def test_expired_token(self, api_client, customer):
        token = self._request_token(api_client, customer.email)
        User.objects.filter(pk=customer.pk).update(
            reset_password_expire=timezone.now() - timedelta(minutes=1)
        )

        response = api_client.put(
            f"/api/v1/password/reset/{token}/",
            {"password": "brand-new-pass", "confirm_password": "brand-new-pass"},
            format="json",
        )

        assert response.status_code == 401
        customer.refresh_from_db()
        assert customer.check_password(PASSWORD)

    def test_mismatched_confirmation(self, api_client, customer):
        token = self._request_token(api_client, customer.email)

        response = api_client.put(
            f"/api/v1/password/reset/{token}/",
            {"password": "brand-new-pass", "confirm_password": "other-pass-1"},
            format="json",
        )

        assert response.status_code == 400
        customer.refresh_from_db()
        assert customer.check_password(PASSWORD)

    def test_unknown_email(self, api_client, db):
        response = api_client.post(
            "/api/v1/password/forgot/", {"email": "ghost@example.com"}, format="json"
        )

        assert response.status_code == 404
        assert mail.outbox == []


class TestPasswordUpdate:
    def test_changes_password(self, customer_client, customer):
        response = customer_client.put(
            "/api/v1/password/update/",
            {"old_password": PASSWORD, "new_password": "fresh-secret-1", "confirm_password": "fresh-secret-1"},
            format="json",
        )

        assert response.status_code == 200
        customer.refresh_from_db()
        assert customer.check_password("fresh-secret-1")

    def test_wrong_old_password(self, customer_client, customer):
        response = customer_client.put(
            "/api/v1/password/update/",
            {"old_password": "guess-guess", "new_password": "fresh-secret-1", "confirm_password": "fresh-secret-1"},
            format="json",
        )

        assert response.status_code == 400
        assert "old_password" in response.json()["errors"]


class TestProfileUpdate:
    def test_replaces_avatar_after_commit(
        self, customer_client, customer, store, django_capture_on_commit_callbacks
    ):
        old_avatar = customer.avatar_public_id

        with django_capture_on_commit_callbacks(execute=True):
            response = customer_client.put(
                "/api/v1/me/update/", {"name": "Jane Smith", "avatar": IMAGE}, format="json"
            )

        assert response.status_code == 200
        user = response.json()["user"]
        assert user["name"] == "Jane Smith"
        assert user["version"] == 2
        assert user["avatar"]["public_id"] != old_avatar
        assert user["avatar"]["public_id"] in store.assets
        assert old_avatar not in store.assets

    def test_empty_avatar_keeps_current_one(self, customer_client, customer, store):
        response = customer_client.put(
            "/api/v1/me/update/", {"name": "Jane Smith", "avatar": ""}, format="json"
        )

        assert response.status_code == 200
        assert response.json()["user"]["avatar"]["public_id"] == customer.avatar_public_id
        assert [call for call in store.calls if call[0] == "upload"] == [("upload", "avatars")]

    def test_stale_version_is_rejected_without_upload(self, customer_client, customer, store):
        uploads_before = len(store.assets)

        response = customer_client.put(
            "/api/v1/me/update/", {"name": "Jane Smith", "avatar": IMAGE, "version": 7}, format="json"
        )

        assert response.status_code == 409
        assert len(store.assets) == uploads_before
        customer.refresh_from_db()
        assert customer.name == "Jane Doe"

    def test_concurrent_write_loses(self, customer_client, customer):
        User.objects.filter(pk=customer.pk).update(version=2)

        response = customer_client.put(
            "/api/v1/me/update/", {"name": "Jane Smith"}, format="json"
        )

        assert response.status_code == 409
        customer.refresh_from_db()
        assert customer.name == "Jane Doe"

    def test_email_taken_by_someone_else(self, customer_client, other_customer):
        response = customer_client.put(
            "/api/v1/me/update/", {"email": other_customer.email}, format="json"
        )

        assert response.status_code == 400


class TestUserAdministration:
    def test_list_requires_admin_role(self, customer_client):
        response = customer_client.get("/api/v1/admin/users/")

        assert response.status_code == 403
        assert response.json() == {
            "success": False,
            "message": "Only administrators can access this resource.",
        }

    def test_anonymous_is_unauthorized(self, api_client, db):
        assert api_client.get("/api/v1/admin/users/").status_code == 401

    def test_superuser_passes_the_same_gate_as_products(self, db):
        superuser = User.objects.create_superuser(
            email="root@example.com", password=PASSWORD, name="Root User", role=User.Role.CUSTOMER
        )
        client = APIClient()
        client.force_authenticate(user=superuser)

        assert client.get("/api/v1/admin/users/").status_code == 200
        assert client.get("/api/v1/admin/products/").status_code == 200

    def test_list_users(self, admin_client, customer, admin_user):
        response = admin_client.get("/api/v1/admin/users/")

        assert response.status_code == 200
        emails = {user["email"] for user in response.json()["users"]}
        assert emails == {customer.email, admin_user.email}

    def test_promote_user(self, admin_client, customer):
        response = admin_client.put(
            f"/api/v1/admin/users/{customer.pk}/", {"role": "admin", "version": 1}, format="json"
        )

        assert response.status_code == 200
        customer.refresh_from_db()
        assert customer.role == User.Role.ADMIN
        assert customer.version == 2

    def test_unknown_user(self, admin_client):
        assert admin_client.get("/api/v1/admin/users/424242/").status_code == 404

    def test_delete_survives_avatar_deletion_failure(
        self, admin_client, customer, store, django_capture_on_commit_callbacks
    ):
        avatar = customer.avatar_public_id
        store.fail_next(ObjectStoreError("provider down"), operation="delete")

        with django_capture_on_commit_callbacks(execute=True):
            response = admin_client.delete(f"/api/v1/admin/users/{customer.pk}/")

        assert response.status_code == 200
        assert response.json()["message"] == "User Deleted Successfully"
        assert not User.objects.filter(pk=customer.pk).exists()
        assert ("delete", avatar) in store.calls
        assert avatar in store.assets


class TestStaleSessionCookie:
    @pytest.fixture
    def stale_client(self, api_client):
        api_client.cookies["token"] = "not-a-valid-jwt"
        return api_client

    def test_login_still_works(self, stale_client, customer):
        response = stale_client.post(
            LOGIN_URL, {"email": customer.email, "password": PASSWORD}, format="json"
        )

        assert response.status_code == 200
        assert response.cookies["token"].value == response.json()["token"]

    def test_public_catalog_is_reachable(self, stale_client, db):
        assert stale_client.get("/api/v1/products/").status_code == 200

    def test_logout_clears_the_cookie(self, stale_client):
        response = stale_client.get("/api/v1/logout/")

        assert response.status_code == 200
        assert response.cookies["token"].value == ""

    def test_protected_endpoint_reports_not_authenticated(self, stale_client):
        assert stale_client.get("/api/v1/me/").status_code == 401

    def test_cookie_of_deleted_user_is_ignored(self, api_client, customer):
        api_client.post(LOGIN_URL, {"email": customer.email, "password": PASSWORD}, format="json")
        customer.delete()

        assert api_client.get("/api/v1/logout/").status_code == 200
        assert api_client.get("/api/v1/me/").status_code == 401

    def test_invalid_bearer_token_is_still_rejected(self, db):
        client = APIClient()
        client.credentials(HTTP_AUTHORIZATION="Bearer not-a-valid-jwt")

        assert client.get("/api/v1/products/").status_code == 401
