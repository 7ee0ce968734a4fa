"""
Optimistic concurrency for versioned aggregates.

Models taking part expose a ``version`` integer. A write only succeeds when the
row still carries the version the writer loaded (or the one the client sent);
the version is bumped in the same UPDATE statement so two writers racing on the
same row cannot both win.
"""

from django.db.models import F
from django.utils import timezone

from .exceptions import Conflict


def check_version(instance, expected_version) -> None:
    """Fail fast, before any side effect, when the client already holds a stale version."""
    if expected_version is not None and expected_version != instance.version:
        raise Conflict()


def save_versioned(instance, expected_version, update_fields) -> None:
    """
    Persist ``update_fields`` of ``instance`` if its row is still at ``expected_version``.

    Raises:
        Conflict: Another request wrote the row since it was loaded.
    """
    model = type(instance)
    values = {field: getattr(instance, field) for field in update_fields}
    if any(field.name == "updated_at" for field in model._meta.concrete_fields):
        values["updated_at"] = instance.updated_at = timezone.now()

    updated = model._default_manager.filter(pk=instance.pk, version=expected_version).update(
        version=F("version") + 1, **values
    )
    if not updated:
        raise Conflict()
    instance.version = expected_version + 1
