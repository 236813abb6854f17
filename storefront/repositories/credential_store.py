from __future__ import annotations

from typing import Callable

from storefront.core.errors import StorageUnavailableError
from storefront.infrastructure.logging import get_logger
from storefront.infrastructure.profile_storage import StorageEvent, StorageTab

logger = get_logger(__name__)

TOKEN_KEY = "token"


class CredentialStore:
    def __init__(self, *, storage: StorageTab) -> None:
        self.storage = storage

    def get_token(self) -> str | None:
        try:
            token = self.storage.get_item(TOKEN_KEY)
        except StorageUnavailableError as exc:
            logger.debug("credentials.storage_unavailable", error=str(exc))
            return None
        return token or None

    def set_token(self, token: str) -> None:
        try:
            self.storage.set_item(TOKEN_KEY, token)
        except StorageUnavailableError as exc:
            logger.debug("credentials.storage_unavailable", error=str(exc))

    def clear_token(self) -> None:
        try:
            self.storage.remove_item(TOKEN_KEY)
        except StorageUnavailableError as exc:
            logger.debug("credentials.storage_unavailable", error=str(exc))

    def on_change(self, callback: Callable[[str | None], None]) -> Callable[[], None]:
        """Calls `callback(new_token)` when another tab changes the stored token."""

        def listener(event: StorageEvent) -> None:
            if event.key == TOKEN_KEY:
                callback(event.new_value or None)

        return self.storage.add_listener(listener)
