"""
API error taxonomy and the DRF exception handler.

Validation, authentication and not-found errors come straight from DRF. The
classes below cover conditions DRF has no exception for: stale writes and
failures of upstream services (object store, image generation API).

Every error leaves the API in the same envelope as successful responses::

    {"success": false, "message": "...", "errors": {...}}

``errors`` is only present for field-level validation failures.
"""

import logging

from django_ratelimit.exceptions import Ratelimited
from django.utils.translation import gettext_lazy as _
from rest_framework import status
from rest_framework.exceptions import APIException, AuthenticationFailed, Throttled
from rest_framework.response import Response
from rest_framework.views import exception_handler

from assets.exceptions import ObjectStoreError, PayloadTooLargeError, RateLimitedError

logger = logging.getLogger(__name__)


class Conflict(APIException):
    status_code = status.HTTP_409_CONFLICT
    default_detail = _("This resource was modified by another request. Reload it and try again.")
    default_code = "conflict"


class InvalidResetToken(AuthenticationFailed):
    default_detail = _("Reset Password Token is invalid or has been expired.")
    default_code = "invalid_reset_token"


class UpstreamRateLimited(APIException):
    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    default_detail = _("Too many upload requests. Please try again later.")
    default_code = "upstream_rate_limited"


class UpstreamPayloadTooLarge(APIException):
    status_code = status.HTTP_413_REQUEST_ENTITY_TOO_LARGE
    default_detail = _("Image is too large. Please upload a smaller image (max 10MB).")
    default_code = "upstream_payload_too_large"


class UpstreamFailure(APIException):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = _("An upstream service failed to complete the request.")
    default_code = "upstream_failure"


def upstream_error(exc: ObjectStoreError) -> APIException:
    """Map an object store failure onto the API error the client should see."""
    if isinstance(exc, RateLimitedError):
        return UpstreamRateLimited()
    if isinstance(exc, PayloadTooLargeError):
        return UpstreamPayloadTooLarge()
    return UpstreamFailure(detail=exc.message or None)


def _first_message(data):
    if isinstance(data, (list, tuple)):
        return _first_message(data[0]) if data else ""
    if isinstance(data, dict):
        for key, value in data.items():
            message = _first_message(value)
            if key in ("detail", "non_field_errors"):
                return message
            return f"{key}: {message}"
        return ""
    return str(data)


def envelope_exception_handler(exc, context):
    """
    DRF ``EXCEPTION_HANDLER`` producing the ``success: false`` envelope.

    Exceptions DRF does not know about are logged with their traceback and
    reported as a generic 500 so internals never leak to the client.
    """
    if isinstance(exc, Ratelimited):
        exc = Throttled()
    elif isinstance(exc, ObjectStoreError):
        exc = upstream_error(exc)

    response = exception_handler(exc, context)
    if response is None:
        view = context.get("view")
        logger.error(
            f"Unhandled error in {view.__class__.__name__ if view else 'unknown view'}: {exc}",
            exc_info=exc,
        )
        return Response(
            {"success": False, "message": _("Internal server error.")},
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    data = response.data
    body = {"success": False, "message": _first_message(data)}
    if isinstance(data, dict) and not set(data) <= {"detail"}:
        body["errors"] = data
    if response.status_code >= 500:
        logger.error(f"Request failed with {response.status_code}: {body['message']}")
    response.data = body
    return response
