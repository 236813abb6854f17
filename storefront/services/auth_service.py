from __future__ import annotations

import asyncio
from typing import Callable

from pydantic import ValidationError

from storefront.core.config import Settings
from storefront.core.errors import ApiError, AuthenticationError, PermissionDeniedError
from storefront.infrastructure.api_client import StorefrontApiClient
from storefront.infrastructure.logging import get_logger
from storefront.infrastructure.navigation import Navigator, redirect_target
from storefront.models.schemas import (
    Identity,
    LoginRequest,
    RegisterRequest,
    TokenResponse,
)
from storefront.repositories.credential_store import CredentialStore
from storefront.services.auth_state import AuthSnapshot, AuthState
from storefront.services.notification_service import NotificationService
from storefront.services.reconciliation_service import (
    ReconciliationReport,
    ReconciliationService,
)

logger = get_logger(__name__)


class AuthService:
    def __init__(
        self,
        *,
        settings: Settings,
        auth_state: AuthState,
        credential_store: CredentialStore,
        api_client: StorefrontApiClient,
        reconciliation_service: ReconciliationService,
        notification_service: NotificationService,
        navigator: Navigator,
    ) -> None:
        self.settings = settings
        self.auth_state = auth_state
        self.credential_store = credential_store
        self.api_client = api_client
        self.reconciliation_service = reconciliation_service
        self.notification_service = notification_service
        self.navigator = navigator
        self.last_reconciliation: ReconciliationReport | None = None
        self._unsubscribers: list[Callable[[], None]] = []
        self._pending_probes: set[asyncio.Task[AuthSnapshot]] = set()

    async def start(self) -> AuthSnapshot:
        if not self._unsubscribers:
            self._unsubscribers.append(self.credential_store.on_change(self._on_token_changed))
            self._unsubscribers.append(
                self.api_client.add_unauthorized_listener(self.auth_state.mark_guest)
            )
        return await self.probe()

    async def stop(self) -> None:
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers.clear()
        pending = list(self._pending_probes)
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
        self._pending_probes.clear()

    async def probe(self) -> AuthSnapshot:
        """Validates the stored token against the identity endpoint."""
        if not self.credential_store.get_token():
            self.auth_state.mark_guest()
            return self.auth_state.snapshot
        try:
            identity = await self.fetch_identity()
        except (ApiError, ValidationError) as exc:
            logger.info("auth.probe_failed", error=str(exc))
            self.credential_store.clear_token()
            self.auth_state.mark_guest()
            return self.auth_state.snapshot
        self.auth_state.mark_authenticated(is_admin=identity.isAdmin)
        return self.auth_state.snapshot

    async def fetch_identity(self) -> Identity:
        payload = await self.api_client.get("/auth/me")
        return Identity.model_validate(payload or {})

    async def login(self, email: str, password: str, *, redirect: str | None = None) -> AuthSnapshot:
        """Signs in, merges guest data and moves to `redirect`.

        Without an explicit `redirect` the `?redirect=` target of the current
        path is used, falling back to the home page.
        """
        target = redirect or redirect_target(self.navigator.current_path)
        request = LoginRequest(email=email, password=password)
        token = await self._obtain_token("/auth/login", request.model_dump(), "Login failed")
        return await self._complete_login(token, target)

    async def admin_login(self, email: str, password: str) -> AuthSnapshot:
        request = LoginRequest(email=email, password=password)
        token = await self._obtain_token(
            "/auth/login", request.model_dump(), "Login failed. Please check your credentials."
        )
        self.credential_store.set_token(token)
        snapshot = await self.probe()
        if not snapshot.is_admin:
            message = "You don't have administrative access."
            self.credential_store.clear_token()
            self.auth_state.mark_guest()
            self.notification_service.error(message)
            raise PermissionDeniedError(message)
        self.navigator.navigate(self.settings.admin_dashboard_path)
        return snapshot

    async def register(self, name: str, email: str, password: str) -> AuthSnapshot:
        try:
            request = RegisterRequest(name=name, email=email, password=password)
        except ValidationError as exc:
            self.notification_service.error("Registration failed")
            raise AuthenticationError("Registration failed") from exc
        token = await self._obtain_token(
            "/auth/register", request.model_dump(), "Registration failed"
        )
        return await self._complete_login(token, "/")

    async def wait_for_pending_probes(self) -> None:
        if self._pending_probes:
            await asyncio.gather(*list(self._pending_probes), return_exceptions=True)

    def logout(self) -> None:
        self.credential_store.clear_token()
        self.auth_state.mark_guest()
        self.navigator.navigate(self.settings.login_path)

    async def _obtain_token(self, path: str, body: dict[str, str], fallback: str) -> str:
        try:
            payload = await self.api_client.post(path, json=body)
            return TokenResponse.model_validate(payload).token
        except ApiError as exc:
            if exc.status_code is None:
                message = "Something went wrong"
            else:
                message = exc.server_message or fallback
            self.notification_service.error(message)
            raise AuthenticationError(message) from exc
        except ValidationError as exc:
            self.notification_service.error(fallback)
            raise AuthenticationError(fallback) from exc

    async def _complete_login(self, token: str, target: str) -> AuthSnapshot:
        self.credential_store.set_token(token)
        snapshot = await self.probe()
        if not snapshot.is_authenticated:
            self.notification_service.error("Login failed")
            raise AuthenticationError("Identity check failed after login")
        self.last_reconciliation = await self.reconciliation_service.reconcile()
        self.navigator.navigate(target)
        self.notification_service.success("Logged in successfully")
        return self.auth_state.snapshot

    def _on_token_changed(self, token: str | None) -> None:
        if token is None:
            self.auth_state.mark_guest()
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # No loop to run the probe on; stay pending until the next probe().
            self.auth_state.mark_unknown()
            return
        task = loop.create_task(self.probe())
        self._pending_probes.add(task)
        task.add_done_callback(self._pending_probes.discard)
