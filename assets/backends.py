"""
Object store backends.

A backend uploads binary assets (data URIs, remote URLs or file objects),
deletes them by ``public_id`` and lists what a folder holds. The application
only ever talks to the interface defined by ``ObjectStore``; the concrete
backend is chosen with ``settings.OBJECT_STORE["BACKEND"]``.
"""

import re
import uuid
from collections import deque
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterator, Optional, Tuple

import cloudinary
import cloudinary.api
import cloudinary.exceptions
import cloudinary.uploader
from django.utils.dateparse import parse_datetime

from .exceptions import ObjectStoreError, PayloadTooLargeError, RateLimitedError


@dataclass(frozen=True)
class StoredAsset:
    """Reference to an uploaded asset: the handle to delete it and where to fetch it."""

    public_id: str
    url: str


class ObjectStore:
    """Interface every object store backend implements."""

    def upload(self, asset, folder: str, **options) -> StoredAsset:
        raise NotImplementedError

    def delete(self, public_id: str) -> bool:
        raise NotImplementedError

    def list_assets(self, folder: str) -> Iterator[Tuple[str, Optional[datetime]]]:
        """Yield (public_id, uploaded_at) for every asset in ``folder``."""
        raise NotImplementedError


_STATUS_CODE_RE = re.compile(r"status code - (\d{3})")


class CloudinaryObjectStore(ObjectStore):
    """
    Backend for Cloudinary.

    The SDK reports most HTTP failures as a bare ``cloudinary.exceptions.Error``
    whose message embeds the status code, so the code is recovered from the
    message before mapping it onto our own exception classes.
    """

    LIST_PAGE_SIZE = 500

    def __init__(self, cloud_name=None, api_key=None, api_secret=None, secure=True):
        cloudinary.config(
            cloud_name=cloud_name,
            api_key=api_key,
            api_secret=api_secret,
            secure=secure,
        )

    def upload(self, asset, folder: str, **options) -> StoredAsset:
        chunk_size = options.pop("chunk_size", None)
        try:
            if chunk_size and hasattr(asset, "read"):
                result = cloudinary.uploader.upload_large(
                    asset, folder=folder, chunk_size=chunk_size, **options
                )
            else:
                result = cloudinary.uploader.upload(asset, folder=folder, **options)
        except cloudinary.exceptions.Error as exc:
            raise self._translate(exc) from exc
        return StoredAsset(public_id=result["public_id"], url=result["secure_url"])

    def delete(self, public_id: str) -> bool:
        try:
            result = cloudinary.uploader.destroy(public_id)
        except cloudinary.exceptions.Error as exc:
            raise self._translate(exc) from exc
        return result.get("result") == "ok"

    def list_assets(self, folder: str) -> Iterator[Tuple[str, Optional[datetime]]]:
        cursor = None
        while True:
            params = {"type": "upload", "prefix": f"{folder}/", "max_results": self.LIST_PAGE_SIZE}
            if cursor:
                params["next_cursor"] = cursor
            try:
                page = cloudinary.api.resources(**params)
            except cloudinary.exceptions.Error as exc:
                raise self._translate(exc) from exc
            for resource in page.get("resources", []):
                yield resource["public_id"], parse_datetime(resource.get("created_at") or "")
            cursor = page.get("next_cursor")
            if not cursor:
                return

    @staticmethod
    def _translate(exc: Exception) -> ObjectStoreError:
        message = str(exc) or exc.__class__.__name__
        match = _STATUS_CODE_RE.search(message)
        http_code = int(match.group(1)) if match else None

        if isinstance(exc, cloudinary.exceptions.RateLimited) or http_code in (420, 429):
            return RateLimitedError(message, http_code=http_code or 429)
        if http_code == 413 or "file size too large" in message.lower():
            return PayloadTooLargeError(message, http_code=413)
        return ObjectStoreError(message, http_code=http_code)


class InMemoryObjectStore(ObjectStore):
    """
    Process-local backend used in development and tests.

    ``fail_next()`` queues exceptions that the next calls to an operation raise
    instead of succeeding, which is how provider outages are simulated.
    """

    def __init__(self, base_url="memory://assets"):
        self.base_url = base_url.rstrip("/")
        self.assets = {}
        self.uploaded_at = {}
        self.calls = []
        self._failures = {"upload": deque(), "delete": deque()}

    def fail_next(self, error: ObjectStoreError, times: int = 1, operation: str = "upload") -> None:
        self._failures[operation].extend([error] * times)

    def upload(self, asset, folder: str, **options) -> StoredAsset:
        self.calls.append(("upload", folder))
        self._raise_queued("upload")
        public_id = f"{folder}/{uuid.uuid4().hex[:20]}"
        stored = StoredAsset(public_id=public_id, url=f"{self.base_url}/{public_id}")
        self.assets[public_id] = stored
        self.uploaded_at[public_id] = datetime.now(timezone.utc)
        return stored

    def delete(self, public_id: str) -> bool:
        self.calls.append(("delete", public_id))
        self._raise_queued("delete")
        self.uploaded_at.pop(public_id, None)
        return self.assets.pop(public_id, None) is not None

    def list_assets(self, folder: str) -> Iterator[Tuple[str, Optional[datetime]]]:
        prefix = f"{folder}/"
        return iter([
            (public_id, self.uploaded_at.get(public_id))
            for public_id in self.assets
            if public_id.startswith(prefix)
        ])

    def _raise_queued(self, operation: str) -> None:
        if self._failures[operation]:
            raise self._failures[operation].popleft()
