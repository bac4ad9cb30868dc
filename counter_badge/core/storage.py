"""Counter store wiring for FastAPI routes.

Storage settings are re-read from the environment on every call, so setting
or removing durable-store credentials takes effect without a restart. The
store itself is only rebuilt when that configuration actually changes, and
the store it replaces is closed.
"""

from __future__ import annotations

import logging
import threading

from pydantic import ValidationError

from counter_badge.adapters.storage.base import AbstractCounterStore
from counter_badge.adapters.storage.factory import create_counter_store
from counter_badge.core.config import StorageSettings, load_storage_settings
from counter_badge.core.errors import StorageConfigError

logger = logging.getLogger(__name__)

_store: AbstractCounterStore | None = None
_store_config: tuple | None = None
# Guards _store/_store_config; never held across an await
_store_lock = threading.Lock()


def _current_storage_settings() -> StorageSettings:
    try:
        return load_storage_settings()
    except ValidationError as exc:
        fields = sorted({str(err["loc"][0]) for err in exc.errors() if err.get("loc")})
        logger.error("storage.settings_invalid", extra={"fields": fields})
        raise StorageConfigError(
            code="storage_misconfigured",
            message=f"Invalid storage settings: {', '.join(fields) or 'unknown'}",
            details={"setting": ", ".join(fields), "operation": "configure"},
        ) from exc


async def get_counter_store() -> AbstractCounterStore:
    """Return the counter store for the current storage configuration.

    Raises:
        StorageConfigError: If the environment cannot produce a store.
    """

    global _store, _store_config

    storage_settings = _current_storage_settings()
    config = storage_settings.cache_key()

    with _store_lock:
        replaced = None
        if _store is None or _store_config != config:
            replaced = _store
            _store = create_counter_store(storage_settings)
            _store_config = config
        store = _store

    if replaced is not None:
        logger.info(
            "storage.reconfigured",
            extra={"previous_backend": replaced.name, "backend": store.name},
        )
        await replaced.aclose()

    return store


async def close_counter_store() -> None:
    """Close the active store."""

    global _store, _store_config

    with _store_lock:
        store = _store
        _store = None
        _store_config = None

    if store is not None:
        await store.aclose()


def reset_counter_store() -> None:
    """Forget the cached store without closing it."""

    global _store, _store_config
    with _store_lock:
        _store = None
        _store_config = None
