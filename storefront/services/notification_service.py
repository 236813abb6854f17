from __future__ import annotations

from dataclasses import dataclass, field
from itertools import count
from typing import Callable

from storefront.core.config import Settings
from storefront.core.utils import iso_now
from storefront.infrastructure.logging import get_logger

logger = get_logger(__name__)


@dataclass
class Notification:
    id: str
    level: str
    message: str
    created_at: str = field(default_factory=iso_now)
    dismissed: bool = False


NotificationListener = Callable[[Notification], None]


class NotificationService:
    def __init__(self, *, settings: Settings) -> None:
        self.settings = settings
        self._notifications: list[Notification] = []
        self._listeners: list[NotificationListener] = []
        self._sequence = count(1)

    def success(self, message: str) -> Notification:
        return self._push("success", message)

    def error(self, message: str) -> Notification:
        return self._push("error", message)

    def info(self, message: str) -> Notification:
        return self._push("info", message)

    def active(self) -> list[Notification]:
        return [item for item in self._notifications if not item.dismissed]

    def history(self) -> list[Notification]:
        return list(self._notifications)

    def dismiss(self, notification_id: str) -> None:
        for item in self._notifications:
            if item.id == notification_id:
                item.dismissed = True
                return

    def clear(self) -> None:
        for item in self._notifications:
            item.dismissed = True

    def subscribe(self, listener: NotificationListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _push(self, level: str, message: str) -> Notification:
        notification = Notification(id=f"toast_{next(self._sequence)}", level=level, message=message)
        self._notifications.append(notification)
        active = self.active()
        for stale in active[: max(0, len(active) - self.settings.notification_limit)]:
            stale.dismissed = True
        if level == "error":
            logger.warning("notification.error", message=message)
        else:
            logger.info("notification.push", level=level, message=message)
        for listener in list(self._listeners):
            listener(notification)
        return notification
