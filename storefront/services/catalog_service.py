from __future__ import annotations

from typing import Any

from storefront.core.errors import ApiError
from storefront.infrastructure.api_client import StorefrontApiClient
from storefront.models.schemas import CartEntry, Product, ProductPage, WishlistEntry
from storefront.services.notification_service import NotificationService

PLACEHOLDER_IMAGE = "/placeholder.svg"


class CatalogService:
    def __init__(
        self,
        *,
        api_client: StorefrontApiClient,
        notification_service: NotificationService,
    ) -> None:
        self.api_client = api_client
        self.notification_service = notification_service

    async def list_products(self, page: int = 1, limit: int = 12, **filters: Any) -> ProductPage:
        params: dict[str, Any] = {"page": page, "limit": limit}
        params.update({key: value for key, value in filters.items() if value is not None})
        try:
            payload = await self.api_client.get("/products", params=params)
        except ApiError:
            self.notification_service.error("Failed to load products.")
            raise
        return self.build_page(payload, page=page, limit=limit)

    async def get_product(self, product_id: str) -> Product:
        try:
            payload = await self.api_client.get(f"/products/{product_id}")
        except ApiError as exc:
            self.notification_service.error(exc.server_message or "Failed to load product.")
            raise
        return Product.model_validate(payload)

    @staticmethod
    def build_page(payload: Any, *, page: int, limit: int) -> ProductPage:
        if isinstance(payload, dict) and isinstance(payload.get("products"), list):
            rows, total = payload["products"], payload.get("total")
        elif isinstance(payload, list):
            rows, total = payload, None
        else:
            rows, total = [], 0
        products = [Product.model_validate(row) for row in rows]
        if total is None:
            # Without a total, a full page is the only hint that another one follows.
            return ProductPage(
                products=products, total=len(products), page=page, hasMore=len(products) == limit
            )
        total = int(total)
        return ProductPage(products=products, total=total, page=page, hasMore=page * limit < total)

    @staticmethod
    def cart_entry_for(product: Product, quantity: int = 1) -> CartEntry:
        return CartEntry(
            productId=product.id,
            name=product.name,
            price=product.price,
            image=product.images[0] if product.images else PLACEHOLDER_IMAGE,
            quantity=quantity,
            color=product.colors[0].name if product.colors else None,
            size=product.sizes[0].value if product.sizes else None,
        )

    @staticmethod
    def wishlist_entry_for(product: Product) -> WishlistEntry:
        return WishlistEntry(
            product=product.id,
            name=product.name,
            price=product.price,
            image=product.images[0] if product.images else PLACEHOLDER_IMAGE,
            category=product.category,
        )
