"""Durable key/value storage scoped to one browser profile.

Values are strings (callers store JSON). Every write emits a `StorageEvent` to
the listeners registered by *other* origins, mirroring how a browser delivers
`storage` events to every tab except the one that made the change.
"""
from __future__ import annotations

import json
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from threading import RLock
from typing import Any, Callable

from storefront.core.errors import StorageUnavailableError
from storefront.infrastructure.logging import get_logger
from storefront.infrastructure.persistence_clients import RedisClientManager

logger = get_logger(__name__)


@dataclass(frozen=True)
class StorageEvent:
    key: str
    old_value: str | None
    new_value: str | None
    origin: str | None


StorageListener = Callable[[StorageEvent], None]


class ProfileStorage(ABC):
    def __init__(self) -> None:
        self._listeners: list[tuple[str | None, StorageListener]] = []
        self._lock = RLock()

    @abstractmethod
    def _read(self, key: str) -> str | None: ...

    @abstractmethod
    def _write(self, key: str, value: str) -> None: ...

    @abstractmethod
    def _delete(self, key: str) -> None: ...

    def get_item(self, key: str) -> str | None:
        return self._read(key)

    def set_item(self, key: str, value: str, *, origin: str | None = None) -> None:
        with self._lock:
            old_value = self._read(key)
            self._write(key, value)
        if old_value != value:
            self._emit(StorageEvent(key=key, old_value=old_value, new_value=value, origin=origin))

    def remove_item(self, key: str, *, origin: str | None = None) -> None:
        with self._lock:
            old_value = self._read(key)
            if old_value is None:
                return
            self._delete(key)
        self._emit(StorageEvent(key=key, old_value=old_value, new_value=None, origin=origin))

    def add_listener(
        self, listener: StorageListener, *, origin: str | None = None
    ) -> Callable[[], None]:
        entry = (origin, listener)
        with self._lock:
            self._listeners.append(entry)

        def unsubscribe() -> None:
            with self._lock:
                if entry in self._listeners:
                    self._listeners.remove(entry)

        return unsubscribe

    def tab(self, origin: str) -> "StorageTab":
        return StorageTab(storage=self, origin=origin)

    def _emit(self, event: StorageEvent) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for listener_origin, listener in listeners:
            if listener_origin is not None and listener_origin == event.origin:
                continue
            try:
                listener(event)
            except Exception:
                logger.exception("storage.listener_failed", key=event.key)


class StorageTab:
    """A view of a profile storage bound to one origin (one open tab)."""

    def __init__(self, *, storage: ProfileStorage, origin: str) -> None:
        self.storage = storage
        self.origin = origin

    def get_item(self, key: str) -> str | None:
        return self.storage.get_item(key)

    def set_item(self, key: str, value: str) -> None:
        self.storage.set_item(key, value, origin=self.origin)

    def remove_item(self, key: str) -> None:
        self.storage.remove_item(key, origin=self.origin)

    def add_listener(self, listener: StorageListener) -> Callable[[], None]:
        return self.storage.add_listener(listener, origin=self.origin)


class InMemoryProfileStorage(ProfileStorage):
    def __init__(self, initial: dict[str, str] | None = None) -> None:
        super().__init__()
        self._items: dict[str, str] = dict(initial or {})

    def _read(self, key: str) -> str | None:
        return self._items.get(key)

    def _write(self, key: str, value: str) -> None:
        self._items[key] = value

    def _delete(self, key: str) -> None:
        self._items.pop(key, None)


class JsonFileProfileStorage(ProfileStorage):
    """Keeps the whole profile in one JSON object file, rewritten on every write."""

    def __init__(self, path: str | Path) -> None:
        super().__init__()
        self.path = Path(path)

    def _load(self) -> dict[str, Any]:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        except OSError as exc:
            raise StorageUnavailableError(f"Cannot read profile {self.path}: {exc}") from exc
        try:
            payload = json.loads(raw)
        except json.JSONDecodeError:
            logger.debug("storage.profile_corrupt", path=str(self.path))
            return {}
        return payload if isinstance(payload, dict) else {}

    def _dump(self, payload: dict[str, Any]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
            tmp_path.write_text(json.dumps(payload), encoding="utf-8")
            tmp_path.replace(self.path)
        except OSError as exc:
            raise StorageUnavailableError(f"Cannot write profile {self.path}: {exc}") from exc

    def _read(self, key: str) -> str | None:
        value = self._load().get(key)
        return value if isinstance(value, str) else None

    def _write(self, key: str, value: str) -> None:
        payload = self._load()
        payload[key] = value
        self._dump(payload)

    def _delete(self, key: str) -> None:
        payload = self._load()
        if payload.pop(key, None) is not None:
            self._dump(payload)


class RedisProfileStorage(ProfileStorage):
    def __init__(self, *, redis_manager: RedisClientManager, namespace: str = "default") -> None:
        super().__init__()
        self.redis_manager = redis_manager
        self.namespace = namespace

    def _redis_client(self) -> Any:
        client = self.redis_manager.client
        if client is None:
            raise StorageUnavailableError(f"Redis is {self.redis_manager.status}")
        return client

    def _redis_key(self, key: str) -> str:
        return f"profile:{self.namespace}:{key}"

    def _read(self, key: str) -> str | None:
        payload = self._redis_client().get(self._redis_key(key))
        if payload is None:
            return None
        if isinstance(payload, bytes):
            payload = payload.decode("utf-8")
        return str(payload)

    def _write(self, key: str, value: str) -> None:
        self._redis_client().set(self._redis_key(key), value)

    def _delete(self, key: str) -> None:
        self._redis_client().delete(self._redis_key(key))
