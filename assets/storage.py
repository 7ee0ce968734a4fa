"""
Access to the configured object store.

The backend is built once from ``settings.OBJECT_STORE`` and reused; changing
the setting (``override_settings`` or the pytest ``settings`` fixture) drops
the cached instance so the next call builds the new backend.
"""

from django.conf import settings
from django.core.signals import setting_changed
from django.dispatch import receiver
from django.utils.module_loading import import_string

_object_store = None


def get_object_store():
    global _object_store
    if _object_store is None:
        config = dict(settings.OBJECT_STORE)
        backend_class = import_string(config.pop("BACKEND"))
        options = {key.lower(): value for key, value in config.pop("OPTIONS", {}).items()}
        _object_store = backend_class(**options)
    return _object_store


@receiver(setting_changed)
def reset_object_store(*, setting, **kwargs):
    global _object_store
    if setting == "OBJECT_STORE":
        _object_store = None
