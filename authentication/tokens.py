"""
Session credential issuance.

A session credential is a signed, time-limited JWT carrying the user id. It is
delivered twice on every successful login-like response: in the JSON body for
bearer-token clients, and as an http-only cookie for browser clients.
"""

import logging

from django.conf import settings
from rest_framework import status
from rest_framework.exceptions import AuthenticationFailed
from rest_framework_simplejwt.authentication import JWTAuthentication
from rest_framework_simplejwt.tokens import AccessToken

from storefront.responses import envelope

from .serializers import UserSerializer

logger = logging.getLogger(__name__)


class CookieJWTAuthentication(JWTAuthentication):
    """
    Authenticate from the ``Authorization: Bearer`` header, falling back to the auth cookie.

    A bearer token the client chose to send must be valid. A stale cookie is
    only a leftover of an old session: the request continues anonymously so
    public endpoints, login and logout stay reachable.
    """

    def authenticate(self, request):
        if self.get_header(request) is not None:
            return super().authenticate(request)

        raw_token = request.COOKIES.get(settings.AUTH_COOKIE["NAME"])
        if not raw_token:
            return None

        try:
            validated_token = self.get_validated_token(raw_token)
            return self.get_user(validated_token), validated_token
        except AuthenticationFailed as exc:
            logger.debug(f"Ignoring unusable auth cookie: {exc}")
            return None


def issue_token(user) -> str:
    return str(AccessToken.for_user(user))


def session_response(user, status=status.HTTP_200_OK, **payload):
    """Envelope with the user and a fresh credential, also set as the auth cookie."""
    token = issue_token(user)
    response = envelope(status=status, user=UserSerializer(user).data, token=token, **payload)

    cookie = settings.AUTH_COOKIE
    response.set_cookie(
        cookie["NAME"],
        token,
        max_age=cookie["MAX_AGE"],
        httponly=True,
        secure=cookie["SECURE"],
        samesite=cookie["SAMESITE"],
    )
    return response


def clear_session_cookie(response):
    cookie = settings.AUTH_COOKIE
    response.delete_cookie(cookie["NAME"], samesite=cookie["SAMESITE"])
    return response
