from __future__ import annotations

from dataclasses import dataclass

from storefront.core.config import Settings
from storefront.infrastructure.navigation import login_redirect
from storefront.repositories.credential_store import CredentialStore
from storefront.services.auth_service import AuthService
from storefront.services.notification_service import NotificationService


@dataclass(frozen=True)
class RouteDecision:
    allowed: bool
    redirect_to: str | None = None


class RouteGuard:
    """Decides whether the current visitor may open a route."""

    def __init__(
        self,
        *,
        settings: Settings,
        credential_store: CredentialStore,
        auth_service: AuthService,
        notification_service: NotificationService,
    ) -> None:
        self.settings = settings
        self.credential_store = credential_store
        self.auth_service = auth_service
        self.notification_service = notification_service

    def is_public(self, path: str) -> bool:
        return path in self.settings.public_routes or path.startswith("/products/")

    def is_protected(self, path: str) -> bool:
        return path in self.settings.protected_routes

    def is_admin(self, path: str) -> bool:
        if path == self.settings.admin_login_path:
            return False
        return path in self.settings.admin_routes or path.startswith("/admin/")

    async def check(self, path: str) -> RouteDecision:
        if self.is_public(path):
            return RouteDecision(allowed=True)

        token = self.credential_store.get_token()
        if self.is_protected(path) and not token:
            return RouteDecision(
                allowed=False,
                redirect_to=login_redirect(self.settings.login_path, path),
            )

        if self.is_admin(path):
            if not token:
                return self._deny_admin("Admin access required")
            snapshot = await self.auth_service.probe()
            if not snapshot.is_authenticated:
                return self._deny_admin("Authentication failed. Please log in again.")
            if not snapshot.is_admin:
                return self._deny_admin("Admin access required")

        return RouteDecision(allowed=True)

    def _deny_admin(self, message: str) -> RouteDecision:
        self.notification_service.error(message)
        return RouteDecision(allowed=False, redirect_to=self.settings.admin_login_path)
