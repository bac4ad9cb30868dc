"""Durable key-value store clients.

Two ways of talking to the same store (Vercel KV / Upstash Redis):

- ``RedisKVClient``: the Redis protocol through ``redis.asyncio``, used when
  a connection URL is configured.
- ``RestKVClient``: the store's REST API through ``httpx``.

Both return the raw stored value (or ``None`` when the key is absent) and
raise ``BackendUnavailableError`` for any transport or protocol failure.
Interpreting the value as a counter is left to ``KVCounterStore``.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any
from urllib.parse import quote

import httpx
import redis.asyncio as redis_asyncio
from redis.exceptions import RedisError

from counter_badge.core.errors import BackendUnavailableError

logger = logging.getLogger(__name__)


class AbstractKVClient(ABC):
    """Minimal get/set interface over a durable key-value store."""

    name: str = "abstract"

    @abstractmethod
    async def get(self, key: str) -> Any | None:
        """Return the raw value stored under key, or None when absent."""
        raise NotImplementedError

    @abstractmethod
    async def set(self, key: str, value: str) -> None:
        """Store value under key, overwriting any prior value."""
        raise NotImplementedError

    async def aclose(self) -> None:
        return None


class RestKVClient(AbstractKVClient):
    """Client for the store's REST API.

    Wire contract:
        ``GET {endpoint}/get/{key}`` answers 404 when the key is absent, else a
        JSON object with the value under ``result`` (or ``value``).
        ``POST {endpoint}/set/{key}`` takes the value as a JSON string body.
        Both are authorized with ``Authorization: Bearer {token}``.
    """

    name = "rest"

    def __init__(
        self,
        endpoint: str,
        token: str,
        *,
        timeout_seconds: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the REST client.

        Args:
            endpoint: Base URL of the REST API.
            token: Bearer token for authorization.
            timeout_seconds: Per-request timeout.
            transport: Optional httpx transport (tests use ``httpx.MockTransport``).
        """
        if not endpoint:
            raise ValueError("endpoint must be a non-empty string")
        if not token:
            raise ValueError("token must be a non-empty string")

        self._endpoint = endpoint.rstrip("/")
        self._token = token
        self._timeout = timeout_seconds
        self._transport = transport

    def _url(self, operation: str, key: str) -> str:
        return f"{self._endpoint}/{operation}/{quote(key, safe='')}"

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self._timeout,
            transport=self._transport,
            headers={"Authorization": f"Bearer {self._token}"},
        )

    def _unavailable(self, operation: str, message: str, **details: Any) -> BackendUnavailableError:
        return BackendUnavailableError(
            code="storage_backend_unavailable",
            message=message,
            details={"backend": "kv-rest", "operation": operation, **details},
        )

    async def get(self, key: str) -> Any | None:
        try:
            async with self._client() as client:
                response = await client.get(self._url("get", key))
        except httpx.HTTPError as exc:
            logger.warning(
                "storage.kv_rest.read_failed",
                extra={"error_type": type(exc).__name__},
            )
            raise self._unavailable("get", f"KV read failed: {exc}") from exc

        if response.status_code == httpx.codes.NOT_FOUND:
            return None

        if not response.is_success:
            logger.warning(
                "storage.kv_rest.read_failed",
                extra={"http_status": response.status_code},
            )
            raise self._unavailable(
                "get",
                f"KV read failed: {response.status_code} {response.reason_phrase}",
                http_status=response.status_code,
            )

        try:
            body = response.json()
        except ValueError as exc:
            logger.warning("storage.kv_rest.malformed_response", extra={"operation": "get"})
            raise self._unavailable("get", "KV read returned a non-JSON body") from exc

        if not isinstance(body, dict):
            logger.warning("storage.kv_rest.malformed_response", extra={"operation": "get"})
            raise self._unavailable("get", "KV read returned an unexpected body")

        value = body.get("result")
        if value is None:
            value = body.get("value")
        return value

    async def set(self, key: str, value: str) -> None:
        try:
            async with self._client() as client:
                response = await client.post(self._url("set", key), json=value)
        except httpx.HTTPError as exc:
            logger.warning(
                "storage.kv_rest.write_failed",
                extra={"error_type": type(exc).__name__},
            )
            raise self._unavailable("set", f"KV write failed: {exc}") from exc

        if not response.is_success:
            logger.warning(
                "storage.kv_rest.write_failed",
                extra={"http_status": response.status_code},
            )
            raise self._unavailable(
                "set",
                f"KV write failed: {response.status_code} {response.reason_phrase}",
                http_status=response.status_code,
            )


class RedisKVClient(AbstractKVClient):
    """Client speaking the Redis protocol to the store."""

    name = "redis"

    def __init__(
        self,
        url: str | None = None,
        *,
        timeout_seconds: float = 10.0,
        client: Any | None = None,
    ) -> None:
        """Initialize the Redis client.

        Args:
            url: Redis connection URL (``redis://`` or ``rediss://``).
            timeout_seconds: Socket connect/read timeout.
            client: Pre-built ``redis.asyncio.Redis`` compatible client.
        """
        if client is None:
            if not url:
                raise ValueError("url is required when no client is given")
            client = redis_asyncio.from_url(
                url,
                decode_responses=True,
                socket_connect_timeout=timeout_seconds,
                socket_timeout=timeout_seconds,
            )
        self._redis = client

    async def get(self, key: str) -> Any | None:
        try:
            return await self._redis.get(key)
        except RedisError as exc:
            logger.warning(
                "storage.kv_redis.read_failed",
                extra={"error_type": type(exc).__name__},
            )
            raise BackendUnavailableError(
                code="storage_backend_unavailable",
                message=f"KV read failed: {exc}",
                details={"backend": "kv-redis", "operation": "get"},
            ) from exc

    async def set(self, key: str, value: str) -> None:
        try:
            await self._redis.set(key, value)
        except RedisError as exc:
            logger.warning(
                "storage.kv_redis.write_failed",
                extra={"error_type": type(exc).__name__},
            )
            raise BackendUnavailableError(
                code="storage_backend_unavailable",
                message=f"KV write failed: {exc}",
                details={"backend": "kv-redis", "operation": "set"},
            ) from exc

    async def aclose(self) -> None:
        await self._redis.aclose()
