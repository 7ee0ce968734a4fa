"""
Errors raised by object store backends.

Backends translate provider-specific failures into these classes so the rest
of the application can tell a throttled request from an oversized payload
without knowing which provider is configured.
"""


class ObjectStoreError(Exception):
    """Any failure reported by the external object store."""

    def __init__(self, message: str = "Object store request failed.", http_code=None):
        super().__init__(message)
        self.message = message
        self.http_code = http_code


class RateLimitedError(ObjectStoreError):
    """The provider refused the request because too many were sent."""


class PayloadTooLargeError(ObjectStoreError):
    """The provider rejected the asset because of its size."""
