from __future__ import annotations

from typing import Any

from pydantic import ValidationError

from storefront.core.config import Settings
from storefront.core.errors import ApiError, PermissionDeniedError
from storefront.infrastructure.api_client import StorefrontApiClient
from storefront.infrastructure.logging import get_logger
from storefront.infrastructure.navigation import Navigator
from storefront.models.schemas import Product, ProductPage, ProductWriteRequest
from storefront.services.auth_service import AuthService
from storefront.services.catalog_service import CatalogService
from storefront.services.notification_service import NotificationService

logger = get_logger(__name__)


class AdminProductService:
    def __init__(
        self,
        *,
        settings: Settings,
        api_client: StorefrontApiClient,
        auth_service: AuthService,
        notification_service: NotificationService,
        navigator: Navigator,
    ) -> None:
        self.settings = settings
        self.api_client = api_client
        self.auth_service = auth_service
        self.notification_service = notification_service
        self.navigator = navigator

    async def ensure_admin(self) -> None:
        snapshot = await self.auth_service.probe()
        if snapshot.is_authenticated and snapshot.is_admin:
            return
        self.notification_service.error("You need admin privileges to access this page.")
        self.navigator.navigate(self.settings.admin_login_path)
        raise PermissionDeniedError("Admin privileges required")

    async def list_products(self, page: int = 1, limit: int = 10) -> ProductPage:
        await self.ensure_admin()
        try:
            payload = await self.api_client.get("/products", params={"page": page, "limit": limit})
        except ApiError:
            self.notification_service.error("Failed to load products.")
            raise
        return CatalogService.build_page(payload, page=page, limit=limit)

    async def create_product(self, payload: ProductWriteRequest | dict[str, Any]) -> Product:
        await self.ensure_admin()
        body = self._validate(payload, "Error adding product.")
        try:
            created = await self.api_client.post("/products", json=body)
        except ApiError as exc:
            self._report_failure(exc, "Error adding product.")
            raise
        self.notification_service.success("Product has been successfully added.")
        return Product.model_validate(created)

    async def update_product(
        self, product_id: str, payload: ProductWriteRequest | dict[str, Any]
    ) -> Product:
        await self.ensure_admin()
        body = self._validate(payload, "Error updating product.")
        try:
            updated = await self.api_client.put(f"/products/{product_id}", json=body)
        except ApiError as exc:
            self._report_failure(exc, "Error updating product.")
            raise
        product = Product.model_validate(updated)
        self.notification_service.success(f"{product.name} has been successfully updated.")
        return product

    async def delete_product(self, product_id: str) -> None:
        await self.ensure_admin()
        try:
            await self.api_client.delete(f"/products/{product_id}")
        except ApiError:
            self.notification_service.error("Error deleting the product.")
            raise
        self.notification_service.success("The product has been successfully deleted.")

    def _validate(self, payload: ProductWriteRequest | dict[str, Any], fallback: str) -> dict[str, Any]:
        if isinstance(payload, ProductWriteRequest):
            return payload.model_dump(mode="json", exclude_none=True)
        try:
            request = ProductWriteRequest.model_validate(payload)
        except ValidationError:
            self.notification_service.error(f"{fallback} Invalid product data.")
            raise
        return request.model_dump(mode="json", exclude_none=True)

    def _report_failure(self, exc: ApiError, fallback: str) -> None:
        if exc.status_code in (401, 403):
            message = "Unauthorized: Please log in again."
            # A 401 has already sent the tab to the login view.
            if exc.status_code == 403:
                self.navigator.navigate(self.settings.admin_login_path)
        elif exc.status_code == 400:
            message = exc.server_message or "Invalid product data."
        elif exc.status_code == 500:
            message = exc.server_message or "Server error. Please try again later."
        else:
            message = fallback
        logger.warning("admin.product_write_failed", status_code=exc.status_code, fields=exc.field_errors)
        self.notification_service.error(message)
