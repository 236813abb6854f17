from __future__ import annotations

from typing import Any

import pytest

from storefront.infrastructure.profile_storage import InMemoryProfileStorage, StorageTab
from storefront.repositories.guest_store import GuestStore


class _FakeRedisClient:
    def __init__(self) -> None:
        self.store: dict[str, Any] = {}

    def set(self, key: str, value: str, ex: int | None = None) -> None:
        self.store[key] = value.encode("utf-8")

    def get(self, key: str) -> Any:
        return self.store.get(key)

    def delete(self, key: str) -> None:
        self.store.pop(key, None)

    def close(self) -> None:
        pass


@pytest.fixture
def fake_redis_client() -> _FakeRedisClient:
    return _FakeRedisClient()


@pytest.fixture
def storage_tab(storage: InMemoryProfileStorage) -> StorageTab:
    return storage.tab("tab-a")


@pytest.fixture
def guest_store(storage_tab: StorageTab) -> GuestStore:
    return GuestStore(storage=storage_tab)
