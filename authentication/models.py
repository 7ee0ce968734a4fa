"""
Authentication models for the storefront.

The ``User`` aggregate uses the e-mail address as login identifier and carries:
- a role (customer or admin) that gates the administrative endpoints,
- an avatar stored in the external object store,
- a password-reset token hash and its expiry, always set or cleared together,
- a ``version`` counter used to reject stale concurrent writes.
"""

import hashlib
import secrets
from datetime import timedelta

from django.conf import settings
from django.contrib.auth.models import AbstractUser, BaseUserManager
from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _


def hash_reset_token(raw_token: str) -> str:
    return hashlib.sha256(raw_token.encode()).hexdigest()


class UserManager(BaseUserManager):
    """Manager creating users keyed by e-mail instead of username."""

    use_in_migrations = True

    def _create_user(self, email, password, **extra_fields):
        if not email:
            raise ValueError("The e-mail address must be set")
        user = self.model(email=self.normalize_email(email).lower(), **extra_fields)
        user.set_password(password)
        user.save(using=self._db)
        return user

    def create_user(self, email, password=None, **extra_fields):
        extra_fields.setdefault("role", User.Role.CUSTOMER)
        extra_fields.setdefault("is_staff", False)
        extra_fields.setdefault("is_superuser", False)
        return self._create_user(email, password, **extra_fields)

    def create_superuser(self, email, password=None, **extra_fields):
        extra_fields.setdefault("role", User.Role.ADMIN)
        extra_fields.setdefault("is_staff", True)
        extra_fields.setdefault("is_superuser", True)
        return self._create_user(email, password, **extra_fields)


class User(AbstractUser):
    """
    Storefront account.

    The password hash is handled by Django's hashers and is never part of any
    serializer. The avatar is a reference to an asset in the object store: its
    ``public_id`` is the only handle needed to delete it.
    """

    class Role(models.TextChoices):
        CUSTOMER = "customer", _("Customer")
        ADMIN = "admin", _("Admin")

    username = None
    first_name = None
    last_name = None

    name = models.CharField(
        max_length=30,
        help_text=_("Display name, 4-30 characters."),
    )
    email = models.EmailField(unique=True)
    role = models.CharField(
        max_length=16,
        choices=Role.choices,
        default=Role.CUSTOMER,
        db_index=True,
    )

    avatar_public_id = models.CharField(max_length=255, blank=True)
    avatar_url = models.CharField(max_length=500, blank=True)

    reset_password_token = models.CharField(max_length=64, null=True, blank=True, db_index=True)
    reset_password_expire = models.DateTimeField(null=True, blank=True)

    version = models.PositiveIntegerField(
        default=1,
        help_text=_("Incremented on every profile write; stale writes are rejected."),
    )
    created_at = models.DateTimeField(auto_now_add=True)

    USERNAME_FIELD = "email"
    REQUIRED_FIELDS = ["name"]

    objects = UserManager()

    class Meta:
        ordering = ("-created_at",)
        constraints = [
            models.CheckConstraint(
                condition=(
                    models.Q(reset_password_token__isnull=True, reset_password_expire__isnull=True)
                    | models.Q(reset_password_token__isnull=False, reset_password_expire__isnull=False)
                ),
                name="reset_token_and_expiry_together",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.email} ({self.name})"

    @property
    def is_admin(self) -> bool:
        return self.role == self.Role.ADMIN

    @property
    def avatar(self) -> dict:
        return {"public_id": self.avatar_public_id, "url": self.avatar_url}

    def set_avatar(self, stored_asset) -> None:
        self.avatar_public_id = stored_asset.public_id
        self.avatar_url = stored_asset.url

    def set_reset_token(self) -> str:
        """
        Generate a password-reset token.

        Only the SHA-256 hash is kept on the model; the raw token is returned so
        it can be delivered to the user out-of-band. The caller saves the model.
        """
        raw_token = secrets.token_hex(20)
        self.reset_password_token = hash_reset_token(raw_token)
        self.reset_password_expire = timezone.now() + timedelta(
            minutes=getattr(settings, "PASSWORD_RESET_TIMEOUT_MINUTES", 15)
        )
        return raw_token

    def clear_reset_token(self) -> None:
        self.reset_password_token = None
        self.reset_password_expire = None
