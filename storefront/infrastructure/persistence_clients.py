from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from storefront.infrastructure.logging import get_logger

logger = get_logger(__name__)


@dataclass
class RedisClientManager:
    url: str
    enabled: bool
    _client: Any = None
    _last_error: str | None = None

    def connect(self) -> None:
        if not self.enabled:
            return

        if "localhost" in self.url or "127.0.0.1" in self.url:
            logger.info("redis.localhost_url", url=self.url)

        try:
            import redis

            self._client = redis.from_url(self.url, socket_timeout=2)
            self._client.ping()
            self._last_error = None
        except Exception as exc:
            self._client = None
            self._last_error = str(exc)
            logger.warning("redis.connect_failed", url=self.url, error=str(exc))

    def disconnect(self) -> None:
        if self._client is None:
            return
        try:
            self._client.close()
        finally:
            self._client = None

    @property
    def status(self) -> str:
        if not self.enabled:
            return "disabled"
        if self._client is None:
            return "unavailable"
        return "connected"

    @property
    def error(self) -> str | None:
        return self._last_error

    @property
    def client(self) -> Any:
        return self._client
