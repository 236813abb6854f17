from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable

from storefront.infrastructure.logging import get_logger

logger = get_logger(__name__)


class AuthStatus(str, Enum):
    UNKNOWN = "unknown"
    GUEST = "guest"
    AUTHENTICATED = "authenticated"


@dataclass(frozen=True)
class AuthSnapshot:
    status: AuthStatus
    is_admin: bool

    @property
    def is_authenticated(self) -> bool:
        return self.status is AuthStatus.AUTHENTICATED

    @property
    def is_loading(self) -> bool:
        return self.status is AuthStatus.UNKNOWN


AuthListener = Callable[[AuthSnapshot], None]


class AuthState:
    """Shared login flags every view reads and subscribes to.

    Transitions are driven by `AuthService`; this object only holds the
    current snapshot and notifies subscribers when it changes.
    """

    def __init__(self) -> None:
        self._snapshot = AuthSnapshot(status=AuthStatus.UNKNOWN, is_admin=False)
        self._listeners: list[AuthListener] = []

    @property
    def snapshot(self) -> AuthSnapshot:
        return self._snapshot

    @property
    def status(self) -> AuthStatus:
        return self._snapshot.status

    @property
    def is_authenticated(self) -> bool:
        return self._snapshot.is_authenticated

    @property
    def is_admin(self) -> bool:
        return self._snapshot.is_admin

    @property
    def is_loading(self) -> bool:
        return self._snapshot.is_loading

    def mark_authenticated(self, *, is_admin: bool) -> None:
        self._set(AuthSnapshot(status=AuthStatus.AUTHENTICATED, is_admin=is_admin))

    def mark_guest(self) -> None:
        self._set(AuthSnapshot(status=AuthStatus.GUEST, is_admin=False))

    def mark_unknown(self) -> None:
        self._set(AuthSnapshot(status=AuthStatus.UNKNOWN, is_admin=False))

    def subscribe(self, listener: AuthListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _set(self, snapshot: AuthSnapshot) -> None:
        if snapshot == self._snapshot:
            return
        previous, self._snapshot = self._snapshot, snapshot
        logger.info(
            "auth.transition",
            previous=previous.status.value,
            current=snapshot.status.value,
            is_admin=snapshot.is_admin,
        )
        for listener in list(self._listeners):
            listener(snapshot)
