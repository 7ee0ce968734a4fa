import logging
from smtplib import SMTPException

from django.contrib.auth import get_user_model
from django.core.mail import send_mail
from django.db import transaction
from django.shortcuts import get_object_or_404
from django.utils import timezone
from django.utils.translation import gettext_lazy as _
from django_ratelimit.decorators import ratelimit
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.exceptions import NotFound
from rest_framework.permissions import AllowAny, IsAuthenticated

from assets.exceptions import ObjectStoreError
from assets.presets import AVATAR_OPTIONS, AVATARS_FOLDER
from assets.retry import discard_assets, discard_on_commit, upload_with_retry
from storefront.concurrency import check_version, save_versioned
from storefront.exceptions import InvalidResetToken, UpstreamFailure, upstream_error
from storefront.responses import envelope

from .models import hash_reset_token
from .permissions import IsAdminRole
from .serializers import (
    AdminUserUpdateSerializer,
    ForgotPasswordSerializer,
    LoginSerializer,
    PasswordResetSerializer,
    PasswordUpdateSerializer,
    ProfileUpdateSerializer,
    UserRegistrationSerializer,
    UserSerializer,
)
from .tokens import clear_session_cookie, session_response

User = get_user_model()
logger = logging.getLogger(__name__)


def _upload_avatar(asset):
    try:
        return upload_with_retry(asset, AVATARS_FOLDER, **AVATAR_OPTIONS)
    except ObjectStoreError as exc:
        raise upstream_error(exc) from exc


def _apply_user_update(user, validated_data, avatar=None):
    """
    Write profile fields (and a replacement avatar) if ``user`` is not stale.

    The new avatar is already uploaded; the old one is discarded only after the
    record update commits. If the write fails, the new avatar is discarded.
    """
    expected_version = validated_data.pop("version", user.version)
    check_version(user, expected_version)

    stored_avatar = _upload_avatar(avatar) if avatar else None
    previous_avatar = user.avatar_public_id
    fields = list(validated_data)
    for field, value in validated_data.items():
        setattr(user, field, value)
    if stored_avatar:
        user.set_avatar(stored_avatar)
        fields += ["avatar_public_id", "avatar_url"]

    try:
        with transaction.atomic():
            save_versioned(user, expected_version, fields)
            if stored_avatar:
                discard_on_commit([previous_avatar])
    except Exception:
        if stored_avatar:
            discard_assets([stored_avatar.public_id])
        raise
    return user


@api_view(["POST"])
@permission_classes([AllowAny])
@ratelimit(key="ip", rate="10/m", method="POST", block=True)
def register_user(request):
    serializer = UserRegistrationSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    stored_avatar = _upload_avatar(serializer.validated_data["avatar"])
    try:
        user = serializer.save(avatar=stored_avatar)
    except Exception:
        discard_assets([stored_avatar.public_id])
        raise

    logger.info(f"Registered user {user.pk} ({user.email})")
    return session_response(user, status=status.HTTP_201_CREATED)


@api_view(["POST"])
@permission_classes([AllowAny])
@ratelimit(key="ip", rate="20/m", method="POST", block=True)
def login_user(request):
    serializer = LoginSerializer(data=request.data, context={"request": request})
    serializer.is_valid(raise_exception=True)
    return session_response(serializer.validated_data["user"])


@api_view(["GET", "POST"])
@permission_classes([AllowAny])
def logout_user(request):
    return clear_session_cookie(envelope(message=_("Logged Out")))


@api_view(["POST"])
@permission_classes([AllowAny])
@ratelimit(key="ip", rate="5/m", method="POST", block=True)
def forgot_password(request):
    serializer = ForgotPasswordSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    user = User.objects.filter(email__iexact=serializer.validated_data["email"]).first()
    if user is None:
        raise NotFound(_("User not found"))

    raw_token = user.set_reset_token()
    user.save(update_fields=["reset_password_token", "reset_password_expire"])

    reset_url = request.build_absolute_uri(f"/password/reset/{raw_token}")
    message = (
        f"Your password reset token is :- \n\n {reset_url} \n\n"
        "If you have not requested this email then, please ignore it."
    )
    try:
        send_mail("Storefront Password Recovery", message, None, [user.email])
    except (SMTPException, OSError) as exc:
        user.clear_reset_token()
        user.save(update_fields=["reset_password_token", "reset_password_expire"])
        logger.error(f"Could not send password reset e-mail to user {user.pk}: {exc}")
        raise UpstreamFailure(detail=str(exc))

    return envelope(message=_("Email sent to %(email)s successfully") % {"email": user.email})


@api_view(["PUT"])
@permission_classes([AllowAny])
def reset_password(request, token):
    user = User.objects.filter(
        reset_password_token=hash_reset_token(token),
        reset_password_expire__gt=timezone.now(),
    ).first()
    if user is None:
        raise InvalidResetToken()

    serializer = PasswordResetSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    user.set_password(serializer.validated_data["password"])
    user.clear_reset_token()
    user.save(update_fields=["password", "reset_password_token", "reset_password_expire"])
    return session_response(user)


@api_view(["GET"])
@permission_classes([IsAuthenticated])
def me(request):
    return envelope(user=UserSerializer(request.user).data)


@api_view(["PUT"])
@permission_classes([IsAuthenticated])
def update_password(request):
    serializer = PasswordUpdateSerializer(data=request.data, context={"request": request})
    serializer.is_valid(raise_exception=True)

    user = request.user
    user.set_password(serializer.validated_data["new_password"])
    user.save(update_fields=["password"])
    return session_response(user)


@api_view(["PUT"])
@permission_classes([IsAuthenticated])
def update_profile(request):
    user = request.user
    serializer = ProfileUpdateSerializer(user, data=request.data, partial=True)
    serializer.is_valid(raise_exception=True)

    data = dict(serializer.validated_data)
    avatar = data.pop("avatar", None)
    _apply_user_update(user, data, avatar=avatar)
    return envelope(user=UserSerializer(user).data)


@api_view(["GET"])
@permission_classes([IsAuthenticated, IsAdminRole])
def list_users(request):
    users = User.objects.all()
    return envelope(users=UserSerializer(users, many=True).data)


@api_view(["GET", "PUT", "DELETE"])
@permission_classes([IsAuthenticated, IsAdminRole])
def user_detail(request, pk):
    user = get_object_or_404(User, pk=pk)

    if request.method == "GET":
        return envelope(user=UserSerializer(user).data)

    if request.method == "PUT":
        serializer = AdminUserUpdateSerializer(user, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        _apply_user_update(user, dict(serializer.validated_data))
        logger.info(f"Admin {request.user.pk} updated user {user.pk}")
        return envelope(user=UserSerializer(user).data)

    # The avatar goes once the record is gone; failing to delete it never blocks the user deletion.
    avatar_public_id = user.avatar_public_id
    with transaction.atomic():
        user.delete()
        discard_on_commit([avatar_public_id])
    logger.info(f"Admin {request.user.pk} deleted user {pk}")
    return envelope(message=_("User Deleted Successfully"))
