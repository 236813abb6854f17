from __future__ import annotations

from typing import Any

from pydantic import ValidationError

from storefront.core.errors import ApiError
from storefront.infrastructure.api_client import StorefrontApiClient
from storefront.infrastructure.logging import get_logger
from storefront.models.schemas import CartEntry, WishlistEntry
from storefront.repositories.guest_store import GuestStore
from storefront.services.auth_state import AuthState
from storefront.services.cart_service import CartService
from storefront.services.notification_service import NotificationService

logger = get_logger(__name__)


class WishlistService:
    def __init__(
        self,
        *,
        auth_state: AuthState,
        guest_store: GuestStore,
        api_client: StorefrontApiClient,
        cart_service: CartService,
        notification_service: NotificationService,
    ) -> None:
        self.auth_state = auth_state
        self.guest_store = guest_store
        self.api_client = api_client
        self.cart_service = cart_service
        self.notification_service = notification_service

    async def get_items(self) -> list[WishlistEntry]:
        if not self.auth_state.is_authenticated:
            return self.guest_store.get_wishlist()
        try:
            payload = await self.api_client.get("/wishlist")
        except ApiError as exc:
            if exc.is_unauthorized:
                return self.guest_store.get_wishlist()
            self.notification_service.error(exc.server_message or "Failed to fetch wishlist")
            return []
        return self._parse_items(payload)

    async def contains(self, product_id: str) -> bool:
        return any(item.product == product_id for item in await self.get_items())

    async def add_item(self, entry: WishlistEntry) -> list[WishlistEntry]:
        if not self.auth_state.is_authenticated:
            items = self.guest_store.add_to_wishlist(entry)
            self.notification_service.success(f"{entry.name} added to wishlist")
            return items
        try:
            payload = await self.api_client.post("/wishlist", json={"productId": entry.product})
        except ApiError as exc:
            self.notification_service.error(exc.server_message or "Failed to add to wishlist")
            raise
        self.notification_service.success(f"{entry.name} added to wishlist")
        return self._parse_items(payload)

    async def remove_item(self, product_id: str) -> list[WishlistEntry]:
        if not self.auth_state.is_authenticated:
            items = self.guest_store.remove_from_wishlist(product_id)
            self.notification_service.success("Item removed from wishlist")
            return items
        try:
            payload = await self.api_client.delete(f"/wishlist/{product_id}")
        except ApiError as exc:
            self.notification_service.error(
                exc.server_message or "Failed to remove item from wishlist"
            )
            raise
        self.notification_service.success("Item removed from wishlist")
        return self._parse_items(payload)

    async def move_to_cart(self, entry: WishlistEntry) -> list[WishlistEntry]:
        cart_entry = CartEntry(
            productId=entry.product,
            name=entry.name,
            price=entry.price,
            image=entry.image,
            quantity=1,
        )
        await self.cart_service.add_item(cart_entry)
        return await self.remove_item(entry.product)

    @staticmethod
    def _parse_items(payload: Any) -> list[WishlistEntry]:
        rows = payload.get("items", []) if isinstance(payload, dict) else payload
        if not isinstance(rows, list):
            return []
        items: list[WishlistEntry] = []
        for row in rows:
            try:
                items.append(WishlistEntry.model_validate(row))
            except ValidationError:
                logger.warning("wishlist.unparseable_item", item=row)
        return items
