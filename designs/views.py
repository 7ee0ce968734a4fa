"""
Thin proxies to external image services.

- ``generate_design`` asks a generative image API for one picture and returns
  its URL.
- ``proxy_image`` fetches a public http(s) URL and streams the bytes back
  with the upstream content type, so browsers can use images from hosts that
  do not send CORS headers.
"""

import ipaddress
import logging
import socket
from urllib.parse import urlparse

import requests
from django.conf import settings
from django.http import StreamingHttpResponse
from django.utils.translation import gettext_lazy as _
from django_ratelimit.decorators import ratelimit
from rest_framework import serializers
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny, IsAuthenticated

from storefront.exceptions import UpstreamFailure, UpstreamRateLimited
from storefront.responses import envelope

logger = logging.getLogger(__name__)

PROXY_CHUNK_SIZE = 64 * 1024


class DesignRequestSerializer(serializers.Serializer):
    prompts = serializers.CharField(max_length=4000)


class ProxyImageSerializer(serializers.Serializer):
    default_error_messages = {
        "required": _("Image URL is required"),
        "scheme": _("Only http and https URLs can be proxied."),
        "unresolvable": _("Image URL host could not be resolved."),
        "private_host": _("Image URL must point to a public host."),
    }

    imageUrl = serializers.URLField(required=False, allow_blank=True)

    def validate(self, attrs):
        image_url = attrs.get("imageUrl")
        if not image_url:
            raise serializers.ValidationError(self.error_messages["required"], code="required")
        parsed = urlparse(image_url)
        if parsed.scheme not in ("http", "https"):
            raise serializers.ValidationError(self.error_messages["scheme"], code="scheme")
        self._check_public_host(parsed.hostname)
        return attrs

    def _check_public_host(self, hostname):
        """Refuse hosts resolving to loopback, private, link-local or otherwise non-global addresses."""
        try:
            addresses = {info[4][0] for info in socket.getaddrinfo(hostname, None)}
        except (socket.gaierror, UnicodeError):
            raise serializers.ValidationError(self.error_messages["unresolvable"], code="unresolvable")
        for address in addresses:
            # IPv6 link-local results carry a zone suffix ("fe80::1%eth0").
            if not ipaddress.ip_address(address.split("%")[0]).is_global:
                raise serializers.ValidationError(self.error_messages["private_host"], code="private_host")


def _upstream_message(response) -> str:
    try:
        return response.json()["error"]["message"]
    except (ValueError, KeyError, TypeError):
        return ""


@api_view(["POST"])
@permission_classes([IsAuthenticated])
@ratelimit(key="user", rate="5/m", method="POST")
def generate_design(request):
    serializer = DesignRequestSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    config = settings.IMAGE_GENERATION
    try:
        response = requests.post(
            config["API_URL"],
            json={
                "model": config["MODEL"],
                "prompt": serializer.validated_data["prompts"],
                "n": 1,
                "size": config["SIZE"],
            },
            headers={"Authorization": f"Bearer {config['API_KEY']}"},
            timeout=config["TIMEOUT"],
        )
    except requests.RequestException as exc:
        logger.error(f"Error generating design: {exc}")
        raise UpstreamFailure(detail=_("Error generating design"))

    if response.status_code == 429:
        raise UpstreamRateLimited(detail=_upstream_message(response) or None)
    if not response.ok:
        message = _upstream_message(response)
        logger.error(f"Design API answered {response.status_code}: {message}")
        raise UpstreamFailure(detail=message or _("Error generating design"))

    try:
        design_url = response.json()["data"][0]["url"]
    except (ValueError, KeyError, IndexError, TypeError):
        logger.error("Design API returned an unexpected payload")
        raise UpstreamFailure(detail=_("Error generating design"))

    return envelope(designUrl=design_url)


class UpstreamBody:
    """
    Streaming body of a proxied response.

    ``StreamingHttpResponse`` calls ``close()`` when the response is closed,
    including when the client disconnects mid-stream, which releases the
    upstream connection.
    """

    def __init__(self, upstream):
        self.upstream = upstream

    def __iter__(self):
        return self.upstream.iter_content(chunk_size=PROXY_CHUNK_SIZE)

    def close(self):
        self.upstream.close()


@api_view(["POST"])
@permission_classes([AllowAny])
@ratelimit(key="ip", rate="60/m", method="POST")
def proxy_image(request):
    serializer = ProxyImageSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    image_url = serializer.validated_data["imageUrl"]

    try:
        upstream = requests.get(image_url, stream=True, timeout=settings.IMAGE_PROXY_TIMEOUT)
    except requests.RequestException as exc:
        logger.error(f"Error proxying image {image_url}: {exc}")
        raise UpstreamFailure(detail=_("Error proxying image"))
    try:
        upstream.raise_for_status()
    except requests.RequestException as exc:
        upstream.close()
        logger.error(f"Error proxying image {image_url}: {exc}")
        raise UpstreamFailure(detail=_("Error proxying image"))

    return StreamingHttpResponse(
        UpstreamBody(upstream),
        content_type=upstream.headers.get("Content-Type", "application/octet-stream"),
    )
