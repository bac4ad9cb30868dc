"""Counter storage adapters - local JSON file or durable key-value store."""

from counter_badge.adapters.storage.base import AbstractCounterStore
from counter_badge.adapters.storage.factory import (
    create_counter_store,
    has_durable_store_configured,
)
from counter_badge.adapters.storage.file_store import JsonFileCounterStore
from counter_badge.adapters.storage.kv_clients import (
    AbstractKVClient,
    RedisKVClient,
    RestKVClient,
)
from counter_badge.adapters.storage.kv_store import KVCounterStore

__all__ = [
    "AbstractCounterStore",
    "AbstractKVClient",
    "JsonFileCounterStore",
    "KVCounterStore",
    "RedisKVClient",
    "RestKVClient",
    "create_counter_store",
    "has_durable_store_configured",
]
