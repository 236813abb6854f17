from __future__ import annotations

import uuid

import httpx

from storefront.core.config import Settings
from storefront.infrastructure.api_client import StorefrontApiClient
from storefront.infrastructure.logging import setup_logging
from storefront.infrastructure.navigation import Navigator
from storefront.infrastructure.persistence_clients import RedisClientManager
from storefront.infrastructure.profile_storage import (
    InMemoryProfileStorage,
    JsonFileProfileStorage,
    ProfileStorage,
    RedisProfileStorage,
)
from storefront.repositories.credential_store import CredentialStore
from storefront.repositories.guest_store import GuestStore
from storefront.services.account_service import AccountService
from storefront.services.admin_product_service import AdminProductService
from storefront.services.auth_service import AuthService
from storefront.services.auth_state import AuthState
from storefront.services.cart_service import CartService
from storefront.services.catalog_service import CatalogService
from storefront.services.checkout_service import CheckoutService
from storefront.services.notification_service import NotificationService
from storefront.services.order_service import OrderService
from storefront.services.reconciliation_service import ReconciliationService
from storefront.services.route_guard import RouteGuard
from storefront.services.wishlist_service import WishlistService


class Container:
    """Object graph of one open tab. Tabs of one profile share `storage`."""

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        storage: ProfileStorage | None = None,
        origin: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.settings = settings or Settings.from_env()
        self.origin = origin or uuid.uuid4().hex
        self.redis_manager = RedisClientManager(
            url=self.settings.redis_url,
            enabled=storage is None and self.settings.storage_backend == "redis",
        )
        self.storage = storage or self._build_storage()
        self.storage_tab = self.storage.tab(self.origin)

        self.navigator = Navigator()
        self.notification_service = NotificationService(settings=self.settings)
        self.auth_state = AuthState()

        self.credential_store = CredentialStore(storage=self.storage_tab)
        self.guest_store = GuestStore(storage=self.storage_tab)
        self.api_client = StorefrontApiClient(
            settings=self.settings,
            credential_store=self.credential_store,
            navigator=self.navigator,
            transport=transport,
        )

        self.reconciliation_service = ReconciliationService(
            guest_store=self.guest_store,
            api_client=self.api_client,
            notification_service=self.notification_service,
        )
        self.auth_service = AuthService(
            settings=self.settings,
            auth_state=self.auth_state,
            credential_store=self.credential_store,
            api_client=self.api_client,
            reconciliation_service=self.reconciliation_service,
            notification_service=self.notification_service,
            navigator=self.navigator,
        )
        self.cart_service = CartService(
            auth_state=self.auth_state,
            guest_store=self.guest_store,
            api_client=self.api_client,
            notification_service=self.notification_service,
        )
        self.wishlist_service = WishlistService(
            auth_state=self.auth_state,
            guest_store=self.guest_store,
            api_client=self.api_client,
            cart_service=self.cart_service,
            notification_service=self.notification_service,
        )
        self.catalog_service = CatalogService(
            api_client=self.api_client,
            notification_service=self.notification_service,
        )
        self.order_service = OrderService(
            api_client=self.api_client,
            notification_service=self.notification_service,
        )
        self.account_service = AccountService(
            api_client=self.api_client,
            notification_service=self.notification_service,
        )
        self.checkout_service = CheckoutService(
            settings=self.settings,
            credential_store=self.credential_store,
            api_client=self.api_client,
            notification_service=self.notification_service,
            navigator=self.navigator,
        )
        self.admin_product_service = AdminProductService(
            settings=self.settings,
            api_client=self.api_client,
            auth_service=self.auth_service,
            notification_service=self.notification_service,
            navigator=self.navigator,
        )
        self.route_guard = RouteGuard(
            settings=self.settings,
            credential_store=self.credential_store,
            auth_service=self.auth_service,
            notification_service=self.notification_service,
        )

    def _build_storage(self) -> ProfileStorage:
        if self.settings.storage_backend == "file":
            return JsonFileProfileStorage(self.settings.storage_path)
        if self.settings.storage_backend == "redis":
            return RedisProfileStorage(
                redis_manager=self.redis_manager,
                namespace=self.settings.profile_namespace,
            )
        return InMemoryProfileStorage()

    async def start(self) -> None:
        setup_logging(self.settings.log_level, log_format=self.settings.log_format)
        self.redis_manager.connect()
        await self.auth_service.start()

    async def stop(self) -> None:
        await self.auth_service.stop()
        await self.api_client.aclose()
        self.redis_manager.disconnect()

    async def __aenter__(self) -> "Container":
        await self.start()
        return self

    async def __aexit__(self, *_exc_info: object) -> None:
        await self.stop()
