from __future__ import annotations

from dataclasses import dataclass, field

from storefront.core.errors import ApiError
from storefront.infrastructure.api_client import StorefrontApiClient
from storefront.infrastructure.logging import get_logger
from storefront.models.schemas import CartEntry, WishlistEntry
from storefront.repositories.guest_store import GuestStore
from storefront.services.notification_service import NotificationService

logger = get_logger(__name__)


@dataclass
class ReconciliationReport:
    cart_synced: list[str] = field(default_factory=list)
    cart_failed: list[str] = field(default_factory=list)
    wishlist_synced: list[str] = field(default_factory=list)
    wishlist_failed: list[str] = field(default_factory=list)
    aborted: bool = False

    @property
    def failed_count(self) -> int:
        return len(self.cart_failed) + len(self.wishlist_failed)


class ReconciliationService:
    """Pushes the guest cart and wishlist to the account right after login.

    Entries go out one request at a time, cart first, in stored order. A failed
    push is reported and skipped; each guest collection is emptied once its loop
    finishes, whatever the individual outcomes.
    """

    def __init__(
        self,
        *,
        guest_store: GuestStore,
        api_client: StorefrontApiClient,
        notification_service: NotificationService,
    ) -> None:
        self.guest_store = guest_store
        self.api_client = api_client
        self.notification_service = notification_service

    async def reconcile(self) -> ReconciliationReport:
        report = ReconciliationReport()
        try:
            await self._sync_cart(report)
            await self._sync_wishlist(report)
        except Exception:
            logger.exception("reconciliation.aborted")
            report.aborted = True
            self.notification_service.error("Failed to sync cart or wishlist with server")
        logger.info(
            "reconciliation.finished",
            cart_synced=len(report.cart_synced),
            cart_failed=len(report.cart_failed),
            wishlist_synced=len(report.wishlist_synced),
            wishlist_failed=len(report.wishlist_failed),
            aborted=report.aborted,
        )
        return report

    async def _sync_cart(self, report: ReconciliationReport) -> None:
        for entry in self.guest_store.get_cart():
            try:
                await self.api_client.post("/cart", json=self._cart_payload(entry))
            except ApiError as exc:
                report.cart_failed.append(entry.productId)
                self.notification_service.error(
                    f"Failed to sync cart item {entry.name or entry.productId}: {exc.server_message or 'Error'}"
                )
                continue
            report.cart_synced.append(entry.productId)
        self.guest_store.set_cart([])

    async def _sync_wishlist(self, report: ReconciliationReport) -> None:
        for entry in self.guest_store.get_wishlist():
            try:
                await self.api_client.post("/wishlist", json=self._wishlist_payload(entry))
            except ApiError as exc:
                report.wishlist_failed.append(entry.product)
                self.notification_service.error(
                    f"Failed to sync wishlist item {entry.name or entry.product}: {exc.server_message or 'Error'}"
                )
                continue
            report.wishlist_synced.append(entry.product)
        self.guest_store.set_wishlist([])

    @staticmethod
    def _cart_payload(entry: CartEntry) -> dict[str, object]:
        payload: dict[str, object] = {"productId": entry.productId, "quantity": entry.quantity}
        if entry.color is not None:
            payload["color"] = entry.color
        if entry.size is not None:
            payload["size"] = entry.size
        return payload

    @staticmethod
    def _wishlist_payload(entry: WishlistEntry) -> dict[str, object]:
        return {"productId": entry.product}
