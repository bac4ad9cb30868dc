"""Counter store backed by a durable key-value store."""

from __future__ import annotations

import json
import logging
from typing import Any

from counter_badge.adapters.storage.base import AbstractCounterStore, validate_count
from counter_badge.adapters.storage.kv_clients import AbstractKVClient
from counter_badge.core.errors import BackendUnavailableError

logger = logging.getLogger(__name__)

DEFAULT_COUNTER_KEY = "visit-counter"


def coerce_count(raw: Any) -> int:
    """Interpret a raw stored value as a counter.

    ``None`` and the empty string read as 0. Strings may carry a JSON-quoted
    integer (``'"5"'``), which is what the REST API stores when the value is
    sent as a JSON string.

    Raises:
        ValueError: If the value is not a non-negative integer.
    """
    if raw is None:
        return 0
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8")
    if isinstance(raw, bool):
        raise ValueError("boolean is not a counter value")
    if isinstance(raw, int):
        if raw < 0:
            raise ValueError("counter value must be >= 0")
        return raw
    if isinstance(raw, str):
        text = raw.strip()
        if not text:
            return 0
        if len(text) >= 2 and text[0] == text[-1] == '"':
            return coerce_count(json.loads(text))
        if text.isdecimal():
            return int(text)
    raise ValueError(f"unexpected counter value: {raw!r}")


class KVCounterStore(AbstractCounterStore):
    """Counter stored under a single key of a durable key-value store.

    The access path (Redis protocol or REST) is the injected client, chosen
    once by the factory.
    """

    def __init__(self, client: AbstractKVClient, key: str = DEFAULT_COUNTER_KEY) -> None:
        if not key:
            raise ValueError("key must be a non-empty string")
        self._client = client
        self._key = key
        self.name = f"kv-{client.name}"

    @property
    def key(self) -> str:
        return self._key

    async def get_count(self) -> int:
        raw = await self._client.get(self._key)
        try:
            return coerce_count(raw)
        except ValueError as exc:
            logger.warning(
                "storage.kv.malformed_value",
                extra={"backend": self.name, "value_type": type(raw).__name__},
            )
            raise BackendUnavailableError(
                code="storage_backend_unavailable",
                message="KV store returned a value that is not a counter",
                details={"backend": self.name, "operation": "get"},
            ) from exc

    async def set_count(self, value: int) -> bool:
        validate_count(value)
        await self._client.set(self._key, str(value))
        return True

    async def aclose(self) -> None:
        await self._client.aclose()
