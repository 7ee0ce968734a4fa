from django.contrib.auth import authenticate
from django.contrib.auth.password_validation import validate_password
from django.utils.translation import gettext_lazy as _
from rest_framework import serializers
from rest_framework.exceptions import AuthenticationFailed

from assets.fields import AssetField

from .models import User


class ImageSerializer(serializers.Serializer):
    public_id = serializers.CharField(read_only=True)
    url = serializers.CharField(read_only=True)


class UserSerializer(serializers.ModelSerializer):
    avatar = ImageSerializer(read_only=True)

    class Meta:
        model = User
        fields = [
            "id",
            "name",
            "email",
            "role",
            "avatar",
            "version",
            "created_at",
        ]
        read_only_fields = fields


class UserRegistrationSerializer(serializers.ModelSerializer):
    password = serializers.CharField(
        write_only=True,
        style={"input_type": "password"},
        help_text="At least 8 characters; checked against Django's password validators.",
    )
    avatar = AssetField(write_only=True)

    class Meta:
        model = User
        fields = ["name", "email", "password", "avatar"]
        extra_kwargs = {"name": {"min_length": 4}}

    def validate_email(self, value: str) -> str:
        value = value.lower()
        if User.objects.filter(email__iexact=value).exists():
            raise serializers.ValidationError(_("A user with this email already exists."))
        return value

    def validate_password(self, value: str) -> str:
        validate_password(value)
        return value

    def create(self, validated_data):
        stored_avatar = validated_data.pop("avatar")
        password = validated_data.pop("password")
        return User.objects.create_user(
            password=password,
            avatar_public_id=stored_avatar.public_id,
            avatar_url=stored_avatar.url,
            **validated_data,
        )


class LoginSerializer(serializers.Serializer):
    default_error_messages = {
        "required": _("Please Enter Email & Password"),
    }

    email = serializers.CharField(required=False, allow_blank=True)
    password = serializers.CharField(
        required=False, allow_blank=True, write_only=True, style={"input_type": "password"}
    )

    def validate(self, attrs):
        email = attrs.get("email", "").strip().lower()
        password = attrs.get("password", "")
        if not email or not password:
            raise serializers.ValidationError(self.error_messages["required"], code="required")

        # Unknown e-mail and wrong password must be indistinguishable to the caller.
        user = authenticate(self.context.get("request"), username=email, password=password)
        if user is None:
            raise AuthenticationFailed(_("Invalid email or password"), code="authorization")

        attrs["user"] = user
        return attrs


class ForgotPasswordSerializer(serializers.Serializer):
    email = serializers.EmailField()


class PasswordConfirmationMixin:
    password_field = "password"

    def validate(self, attrs):
        if attrs[self.password_field] != attrs["confirm_password"]:
            raise serializers.ValidationError({"confirm_password": _("Password does not match.")})
        validate_password(attrs[self.password_field])
        return attrs


class PasswordResetSerializer(PasswordConfirmationMixin, serializers.Serializer):
    password = serializers.CharField(write_only=True, style={"input_type": "password"})
    confirm_password = serializers.CharField(write_only=True, style={"input_type": "password"})


class PasswordUpdateSerializer(PasswordConfirmationMixin, serializers.Serializer):
    password_field = "new_password"

    old_password = serializers.CharField(write_only=True, style={"input_type": "password"})
    new_password = serializers.CharField(write_only=True, style={"input_type": "password"})
    confirm_password = serializers.CharField(write_only=True, style={"input_type": "password"})

    def validate_old_password(self, value):
        user = self.context["request"].user
        if not user.check_password(value):
            raise serializers.ValidationError(_("Old password is incorrect."))
        return value


class ProfileUpdateSerializer(serializers.ModelSerializer):
    """Self-service profile update: name, e-mail and optionally a new avatar."""

    avatar = AssetField(write_only=True, required=False, allow_null=True)
    version = serializers.IntegerField(write_only=True, required=False, min_value=1)

    class Meta:
        model = User
        fields = ["name", "email", "avatar", "version"]
        extra_kwargs = {"name": {"min_length": 4}}

    def to_internal_value(self, data):
        # Clients send an empty avatar to mean "keep the current one".
        if hasattr(data, "get") and data.get("avatar") == "":
            data = data.copy()
            data.pop("avatar")
        return super().to_internal_value(data)

    def validate_email(self, value: str) -> str:
        value = value.lower()
        taken = User.objects.filter(email__iexact=value).exclude(pk=self.instance.pk)
        if taken.exists():
            raise serializers.ValidationError(_("A user with this email already exists."))
        return value


class AdminUserUpdateSerializer(ProfileUpdateSerializer):
    """Administrative update: name, e-mail and role of any user."""

    class Meta(ProfileUpdateSerializer.Meta):
        fields = ["name", "email", "role", "version"]
