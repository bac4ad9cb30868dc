"""Tests for storage settings and backend selection."""

import asyncio
import threading
import time
from pathlib import Path
from unittest.mock import AsyncMock

import pytest

from counter_badge.adapters.storage.factory import (
    create_counter_store,
    create_kv_client,
    has_durable_store_configured,
)
from counter_badge.adapters.storage.file_store import JsonFileCounterStore
from counter_badge.adapters.storage.kv_clients import RedisKVClient, RestKVClient
from counter_badge.adapters.storage.kv_store import KVCounterStore
from counter_badge.core import storage as storage_wiring
from counter_badge.core.config import StorageSettings, load_storage_settings
from counter_badge.core.errors import StorageConfigError
from counter_badge.core.storage import close_counter_store, get_counter_store


class TestDurableCredentials:
    def test_none_when_nothing_configured(self) -> None:
        assert StorageSettings().durable_credentials() is None

    def test_standard_pair(self) -> None:
        cfg = StorageSettings(kv_rest_api_url="https://std", kv_rest_api_token="t1")

        assert cfg.durable_credentials() == ("https://std", "t1")

    def test_legacy_pair(self) -> None:
        cfg = StorageSettings(vercel_rest_api_url="https://legacy", vercel_rest_api_token="t2")

        assert cfg.durable_credentials() == ("https://legacy", "t2")

    def test_standard_pair_wins(self) -> None:
        cfg = StorageSettings(
            kv_rest_api_url="https://std",
            kv_rest_api_token="t1",
            vercel_rest_api_url="https://legacy",
            vercel_rest_api_token="t2",
        )

        assert cfg.durable_credentials() == ("https://std", "t1")

    def test_incomplete_standard_pair_falls_back_to_legacy(self) -> None:
        cfg = StorageSettings(
            kv_rest_api_url="https://std",
            vercel_rest_api_url="https://legacy",
            vercel_rest_api_token="t2",
        )

        assert cfg.durable_credentials() == ("https://legacy", "t2")

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"kv_rest_api_url": "https://std"},
            {"kv_rest_api_token": "t1"},
            {"vercel_rest_api_url": "https://legacy"},
            {"kv_rest_api_url": "https://std", "vercel_rest_api_token": "t2"},
        ],
    )
    def test_incomplete_pairs_are_ignored(self, kwargs: dict) -> None:
        assert StorageSettings(**kwargs).durable_credentials() is None

    def test_reads_environment_at_call_time(self, monkeypatch: pytest.MonkeyPatch) -> None:
        assert load_storage_settings().durable_credentials() is None

        monkeypatch.setenv("KV_REST_API_URL", "https://env")
        monkeypatch.setenv("KV_REST_API_TOKEN", "env-token")

        assert load_storage_settings().durable_credentials() == ("https://env", "env-token")

    def test_counter_settings_from_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("COUNTER_KEY", "readme-visits")
        monkeypatch.setenv("COUNTER_REQUEST_TIMEOUT_SECONDS", "2.5")

        cfg = load_storage_settings()

        assert cfg.counter_key == "readme-visits"
        assert cfg.request_timeout_seconds == 2.5

    def test_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("COUNTER_FILE", raising=False)

        cfg = StorageSettings()

        assert cfg.counter_key == "visit-counter"
        assert cfg.counter_file == "counter.json"
        assert cfg.kv_url is None


class TestSelection:
    def test_file_store_without_durable_config(self, tmp_path: Path) -> None:
        cfg = StorageSettings(counter_file=str(tmp_path / "c.json"))

        store = create_counter_store(cfg)

        assert has_durable_store_configured(cfg) is False
        assert isinstance(store, JsonFileCounterStore)
        assert store.path == tmp_path / "c.json"
        assert store.name == "file"

    def test_rest_store_with_durable_config(self) -> None:
        cfg = StorageSettings(kv_rest_api_url="https://std", kv_rest_api_token="t1", counter_key="k")

        store = create_counter_store(cfg)

        assert has_durable_store_configured(cfg) is True
        assert isinstance(store, KVCounterStore)
        assert store.name == "kv-rest"
        assert store.key == "k"

    def test_redis_client_when_url_configured(self) -> None:
        cfg = StorageSettings(
            kv_rest_api_url="https://std",
            kv_rest_api_token="t1",
            kv_url="redis://localhost:6379/0",
        )

        client = create_kv_client(cfg)

        assert isinstance(client, RedisKVClient)

    def test_rest_client_without_redis_url(self) -> None:
        cfg = StorageSettings(vercel_rest_api_url="https://legacy", vercel_rest_api_token="t2")

        assert isinstance(create_kv_client(cfg), RestKVClient)

    def test_redis_url_alone_does_not_enable_durable_store(self) -> None:
        cfg = StorageSettings(kv_url="redis://localhost:6379/0")

        assert has_durable_store_configured(cfg) is False
        assert isinstance(create_counter_store(cfg), JsonFileCounterStore)

    def test_create_kv_client_requires_configuration(self) -> None:
        with pytest.raises(ValueError):
            create_kv_client(StorageSettings())

    def test_unusable_redis_url_raises_config_error(self) -> None:
        cfg = StorageSettings(
            kv_rest_api_url="https://std",
            kv_rest_api_token="t1",
            kv_url="bogus-url",
        )

        with pytest.raises(StorageConfigError) as exc_info:
            create_counter_store(cfg)

        assert exc_info.value.code == "storage_misconfigured"
        assert exc_info.value.details["setting"] == "KV_URL"


class TestCounterStoreWiring:
    @pytest.mark.asyncio
    async def test_store_is_reused_while_configuration_is_unchanged(self) -> None:
        assert await get_counter_store() is await get_counter_store()

    @pytest.mark.asyncio
    async def test_store_is_rebuilt_when_environment_changes(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        file_store = await get_counter_store()

        monkeypatch.setenv("KV_REST_API_URL", "https://kv.example.com")
        monkeypatch.setenv("KV_REST_API_TOKEN", "secret")
        kv_store = await get_counter_store()

        assert file_store.name == "file"
        assert kv_store.name == "kv-rest"

        monkeypatch.delenv("KV_REST_API_URL")
        assert (await get_counter_store()).name == "file"

    @pytest.mark.asyncio
    async def test_replaced_store_is_closed(self, monkeypatch: pytest.MonkeyPatch) -> None:
        first = await get_counter_store()
        first.aclose = AsyncMock()

        monkeypatch.setenv("COUNTER_KEY", "other")
        monkeypatch.setenv("KV_REST_API_URL", "https://kv.example.com")
        monkeypatch.setenv("KV_REST_API_TOKEN", "secret")
        second = await get_counter_store()

        first.aclose.assert_awaited_once()
        assert second is not first

    @pytest.mark.asyncio
    async def test_close_releases_active_store(self) -> None:
        store = await get_counter_store()
        store.aclose = AsyncMock()

        await close_counter_store()

        store.aclose.assert_awaited_once()
        assert await get_counter_store() is not store

    @pytest.mark.asyncio
    async def test_invalid_environment_raises_config_error(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("COUNTER_REQUEST_TIMEOUT_SECONDS", "soon")

        with pytest.raises(StorageConfigError) as exc_info:
            await get_counter_store()

        assert exc_info.value.code == "storage_misconfigured"

    def test_concurrent_first_calls_share_one_store(self, monkeypatch: pytest.MonkeyPatch) -> None:
        real_create = storage_wiring.create_counter_store
        built = []

        def slow_create(storage_settings):
            time.sleep(0.05)
            store = real_create(storage_settings)
            built.append(store)
            return store

        monkeypatch.setattr(storage_wiring, "create_counter_store", slow_create)

        barrier = threading.Barrier(2)
        results = []

        def worker():
            barrier.wait()
            results.append(asyncio.run(get_counter_store()))

        threads = [threading.Thread(target=worker) for _ in range(2)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(built) == 1
        assert results[0] is results[1]
