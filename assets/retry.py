"""
Guarded object store operations.

Every handler that creates or destroys an asset goes through this module:

- uploads are retried with exponential backoff and fail loudly once the
  attempts are exhausted,
- deletions are best-effort: failures are logged and swallowed so they never
  abort the request that triggered them.

Replacing assets follows a forward-validating order: upload the new assets,
commit the record, and only then discard the old assets (``discard_on_commit``).
A crash in between leaves an orphaned asset, which the ``sweep_orphan_assets``
command reclaims, rather than a record pointing at a deleted asset.
"""

import logging
import time
from typing import Iterable, List, Optional

from django.conf import settings
from django.db import transaction

from .backends import StoredAsset
from .exceptions import ObjectStoreError
from .storage import get_object_store

logger = logging.getLogger(__name__)


def upload_with_retry(asset, folder: str, *, max_attempts: Optional[int] = None,
                      base_delay: Optional[float] = None, sleep=time.sleep, **options) -> StoredAsset:
    """
    Upload ``asset`` into ``folder``, retrying failed attempts.

    After the n-th failed attempt the call waits ``base_delay * 2 ** n`` seconds
    (4s then 8s with the defaults). When the last attempt fails its exception is
    re-raised unchanged.

    Args:
        asset: Data URI, remote URL or file object accepted by the backend.
        folder: Destination folder in the object store.
        max_attempts: Defaults to ``ASSET_UPLOAD_RETRY["MAX_ATTEMPTS"]``.
        base_delay: Seconds; defaults to ``ASSET_UPLOAD_RETRY["BASE_DELAY"]``.
        sleep: Called with the backoff in seconds between attempts.
        **options: Provider upload options (transformations, timeout, ...).

    Returns:
        StoredAsset: The ``public_id`` and URL of the uploaded asset.
    """
    retry_config = getattr(settings, "ASSET_UPLOAD_RETRY", {})
    if max_attempts is None:
        max_attempts = retry_config.get("MAX_ATTEMPTS", 3)
    if base_delay is None:
        base_delay = retry_config.get("BASE_DELAY", 2.0)

    store = get_object_store()
    attempt = 0
    while True:
        try:
            return store.upload(asset, folder, **options)
        except ObjectStoreError as exc:
            attempt += 1
            if attempt >= max_attempts:
                logger.error(f"Upload to '{folder}' failed after {attempt} attempt(s): {exc}")
                raise
            backoff = base_delay * 2 ** attempt
            logger.warning(
                f"Upload attempt {attempt} to '{folder}' failed: {exc}. Retrying in {backoff:g}s"
            )
            sleep(backoff)


def upload_many(assets: Iterable, folder: str, **options) -> List[StoredAsset]:
    """
    Upload assets one at a time, keeping their order.

    If any upload fails, the assets already uploaded for this batch are
    discarded before the failure propagates.
    """
    uploaded = []
    try:
        for asset in assets:
            uploaded.append(upload_with_retry(asset, folder, **options))
    except ObjectStoreError:
        discard_assets(stored.public_id for stored in uploaded)
        raise
    return uploaded


def best_effort(operation, *args, **kwargs):
    """Run an object store call; log and swallow its failure, returning None."""
    try:
        return operation(*args, **kwargs)
    except ObjectStoreError as exc:
        name = getattr(operation, "__name__", repr(operation))
        logger.warning(f"Best-effort object store call {name}{args} failed: {exc}")
        return None


def discard_assets(public_ids: Iterable[str]) -> None:
    store = get_object_store()
    for public_id in public_ids:
        if public_id:
            best_effort(store.delete, public_id)


def discard_on_commit(public_ids: Iterable[str]) -> None:
    """Discard assets once the surrounding transaction commits (immediately outside one)."""
    public_ids = [public_id for public_id in public_ids if public_id]
    if public_ids:
        transaction.on_commit(lambda: discard_assets(public_ids))
