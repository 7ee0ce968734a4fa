"""
Request logging middleware for the storefront API.

Every state-changing API request (POST, PUT, PATCH, DELETE) is logged once it
completes, with the caller, client IP, response status and duration. Failures
(4xx/5xx) are logged at WARNING so they stand out from normal traffic.
"""

import logging
import time

from django.utils.deprecation import MiddlewareMixin

logger = logging.getLogger(__name__)


class RequestLoggingMiddleware(MiddlewareMixin):
    """Log write requests under ``/api/`` with their outcome."""

    LOGGED_METHODS = ['POST', 'PUT', 'PATCH', 'DELETE']

    def process_request(self, request):
        if request.path.startswith('/api/') and request.method in self.LOGGED_METHODS:
            request._request_started = time.monotonic()
        return None

    def process_response(self, request, response):
        started = getattr(request, '_request_started', None)
        if started is None:
            return response

        elapsed_ms = (time.monotonic() - started) * 1000
        level = logging.INFO if response.status_code < 400 else logging.WARNING
        logger.log(
            level,
            f"{request.method} {request.path} -> {response.status_code} "
            f"user={self._get_user_id(request)} ip={self._get_client_ip(request)} "
            f"({elapsed_ms:.0f}ms)",
        )
        return response

    def _get_client_ip(self, request):
        """
        Get client IP address from request.

        Handles proxies and load balancers that add X-Forwarded-For header.
        """
        x_forwarded_for = request.META.get('HTTP_X_FORWARDED_FOR')
        if x_forwarded_for:
            # X-Forwarded-For can contain multiple IPs, take the first one
            return x_forwarded_for.split(',')[0].strip()
        return request.META.get('REMOTE_ADDR')

    def _get_user_id(self, request):
        user = getattr(request, 'user', None)
        if user is not None and user.is_authenticated:
            return user.pk
        return 'anonymous'
