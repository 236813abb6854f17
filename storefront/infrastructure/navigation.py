from __future__ import annotations

from dataclasses import dataclass
from typing import Callable
from urllib.parse import parse_qs, quote, urlsplit

from storefront.infrastructure.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class NavigationRecord:
    path: str
    full_reload: bool


NavigationListener = Callable[[NavigationRecord], None]


class Navigator:
    """Tracks where the UI of one tab should be and notifies the renderer."""

    def __init__(self, initial_path: str = "/") -> None:
        self.current_path = initial_path
        self.history: list[NavigationRecord] = []
        self._listeners: list[NavigationListener] = []

    def navigate(self, path: str, *, full_reload: bool = False) -> None:
        record = NavigationRecord(path=path, full_reload=full_reload)
        self.history.append(record)
        self.current_path = path
        logger.info("navigation.navigate", path=path, full_reload=full_reload)
        for listener in list(self._listeners):
            listener(record)

    def subscribe(self, listener: NavigationListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe


def login_redirect(login_path: str, target: str) -> str:
    return f"{login_path}?redirect={quote(target, safe='')}"


def redirect_target(url: str, default: str = "/") -> str:
    """Returns the `redirect` query target of `url` when it is a local path."""
    values = parse_qs(urlsplit(url).query).get("redirect", [])
    target = values[0] if values else ""
    # Only same-origin paths; "//host" would leave the storefront.
    if target.startswith("/") and not target.startswith("//"):
        return target
    return default
