"""Factory for counter stores based on storage settings."""

from __future__ import annotations

import logging

from counter_badge.adapters.storage.base import AbstractCounterStore
from counter_badge.adapters.storage.file_store import JsonFileCounterStore
from counter_badge.adapters.storage.kv_clients import (
    AbstractKVClient,
    RedisKVClient,
    RestKVClient,
)
from counter_badge.adapters.storage.kv_store import KVCounterStore
from counter_badge.core.config import StorageSettings
from counter_badge.core.errors import StorageConfigError

logger = logging.getLogger(__name__)


def has_durable_store_configured(storage_settings: StorageSettings) -> bool:
    """Whether a complete durable-store endpoint/token pair is configured."""

    return storage_settings.durable_credentials() is not None


def create_kv_client(storage_settings: StorageSettings) -> AbstractKVClient:
    """Pick the durable-store access path.

    A Redis connection URL selects the Redis client; otherwise the REST API
    is used with the configured endpoint and token.

    Raises:
        ValueError: If no durable store is configured.
        StorageConfigError: If the client rejects the configured endpoint.
    """
    credentials = storage_settings.durable_credentials()
    if credentials is None:
        raise ValueError("durable store is not configured")

    timeout = storage_settings.request_timeout_seconds
    try:
        if storage_settings.kv_url:
            return RedisKVClient(storage_settings.kv_url, timeout_seconds=timeout)

        endpoint, token = credentials
        return RestKVClient(endpoint, token, timeout_seconds=timeout)
    except ValueError as exc:
        setting = "KV_URL" if storage_settings.kv_url else "KV_REST_API_URL"
        logger.error(
            "storage.client_rejected_config",
            extra={"setting": setting, "error_type": type(exc).__name__},
        )
        raise StorageConfigError(
            code="storage_misconfigured",
            message=f"{setting} is not usable: {exc}",
            details={"setting": setting, "operation": "connect"},
        ) from exc


def create_counter_store(storage_settings: StorageSettings) -> AbstractCounterStore:
    """Build the counter store described by the settings.

    Args:
        storage_settings: Explicit storage configuration.

    Returns:
        ``KVCounterStore`` when a durable store is configured, else
        ``JsonFileCounterStore``.
    """
    if has_durable_store_configured(storage_settings):
        store: AbstractCounterStore = KVCounterStore(
            create_kv_client(storage_settings),
            key=storage_settings.counter_key,
        )
    else:
        store = JsonFileCounterStore(storage_settings.counter_file)

    logger.info("storage.selected", extra={"backend": store.name})
    return store
