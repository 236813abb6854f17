from __future__ import annotations

from typing import Any

from pydantic import ValidationError

from storefront.core.errors import ApiError
from storefront.infrastructure.api_client import StorefrontApiClient
from storefront.infrastructure.logging import get_logger
from storefront.models.schemas import CartEntry, CartSummary
from storefront.repositories.guest_store import GuestStore
from storefront.services.auth_state import AuthState
from storefront.services.notification_service import NotificationService

logger = get_logger(__name__)


class CartService:
    def __init__(
        self,
        *,
        auth_state: AuthState,
        guest_store: GuestStore,
        api_client: StorefrontApiClient,
        notification_service: NotificationService,
    ) -> None:
        self.auth_state = auth_state
        self.guest_store = guest_store
        self.api_client = api_client
        self.notification_service = notification_service

    async def get_items(self) -> list[CartEntry]:
        if not self.auth_state.is_authenticated:
            return self.guest_store.get_cart()
        try:
            payload = await self.api_client.get("/cart")
        except ApiError as exc:
            if exc.is_unauthorized:
                return self.guest_store.get_cart()
            self.notification_service.error(exc.server_message or "Failed to fetch cart")
            return []
        return self.parse_items(payload)

    async def add_item(self, entry: CartEntry) -> list[CartEntry]:
        if not self.auth_state.is_authenticated:
            items = self.guest_store.add_to_cart(entry)
            self.notification_service.success(f"{entry.name} added to cart")
            return items
        try:
            payload = await self.api_client.post("/cart", json=self._add_payload(entry))
        except ApiError:
            self.notification_service.error("Failed to add to cart")
            raise
        self.notification_service.success(f"{entry.name} added to cart")
        return self.parse_items(payload)

    async def update_quantity(self, item_id: str, quantity: int) -> list[CartEntry]:
        if not self.auth_state.is_authenticated:
            items = self.guest_store.update_cart_item(item_id, quantity)
            self.notification_service.success("Quantity updated")
            return items
        try:
            await self.api_client.put(f"/cart/{item_id}", json={"quantity": quantity})
        except ApiError as exc:
            self.notification_service.error(exc.server_message or "Failed to update quantity")
            raise
        self.notification_service.success("Quantity updated")
        return await self.get_items()

    async def remove_item(self, item_id: str) -> list[CartEntry]:
        if not self.auth_state.is_authenticated:
            items = self.guest_store.remove_from_cart(item_id)
            self.notification_service.success("Item removed from cart")
            return items
        try:
            await self.api_client.delete(f"/cart/{item_id}")
        except ApiError as exc:
            self.notification_service.error(exc.server_message or "Failed to remove item")
            raise
        self.notification_service.success("Item removed from cart")
        return await self.get_items()

    @staticmethod
    def summarize(items: list[CartEntry]) -> CartSummary:
        subtotal = round(sum(item.price * item.quantity for item in items), 2)
        return CartSummary(
            subtotal=subtotal,
            itemCount=sum(item.quantity for item in items),
            shipping=0,
            total=subtotal,
        )

    @staticmethod
    def _add_payload(entry: CartEntry) -> dict[str, Any]:
        return entry.model_dump(include={"productId", "quantity", "color", "size"}, exclude_none=True)

    @staticmethod
    def parse_items(payload: Any) -> list[CartEntry]:
        rows = payload.get("items", []) if isinstance(payload, dict) else payload
        if not isinstance(rows, list):
            return []
        items: list[CartEntry] = []
        for row in rows:
            try:
                items.append(CartEntry.model_validate(row))
            except ValidationError:
                logger.warning("cart.unparseable_item", item=row)
        return items
