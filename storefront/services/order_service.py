from __future__ import annotations

from storefront.core.errors import ApiError
from storefront.infrastructure.api_client import StorefrontApiClient
from storefront.models.schemas import Order, TrackingInfo
from storefront.services.notification_service import NotificationService


class OrderService:
    def __init__(
        self,
        *,
        api_client: StorefrontApiClient,
        notification_service: NotificationService,
    ) -> None:
        self.api_client = api_client
        self.notification_service = notification_service

    async def list_orders(self) -> list[Order]:
        try:
            payload = await self.api_client.get("/orders")
        except ApiError as exc:
            self.notification_service.error(exc.server_message or "Failed to load orders")
            raise
        rows = payload.get("orders", []) if isinstance(payload, dict) else payload or []
        return [Order.model_validate(row) for row in rows]

    async def get_order(self, order_id: str) -> Order:
        try:
            payload = await self.api_client.get(f"/orders/{order_id}")
        except ApiError as exc:
            self.notification_service.error(exc.server_message or "Failed to load order details")
            raise
        return Order.model_validate(payload)

    async def track_order(self, order_id: str) -> TrackingInfo:
        try:
            payload = await self.api_client.get(f"/orders/track/{order_id}")
        except ApiError as exc:
            self.notification_service.error(exc.server_message or "Order not found")
            raise
        details = payload if isinstance(payload, dict) else {}
        info = TrackingInfo.model_validate({"orderId": order_id, **details})
        self.notification_service.success("Order tracking information retrieved!")
        return info

    async def cancel_order(self, order_id: str) -> None:
        try:
            await self.api_client.put(f"/orders/{order_id}/cancel")
        except ApiError as exc:
            self.notification_service.error(exc.server_message or "Failed to cancel order")
            raise
        self.notification_service.success("Order cancelled successfully")
