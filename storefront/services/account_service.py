from __future__ import annotations

from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from storefront.core.errors import ApiError, InvalidInputError
from storefront.infrastructure.api_client import StorefrontApiClient
from storefront.infrastructure.logging import get_logger
from storefront.models.schemas import (
    Address,
    AddressRequest,
    ChangePasswordRequest,
    Identity,
    ProfileUpdateRequest,
)
from storefront.services.notification_service import NotificationService

logger = get_logger(__name__)

RequestT = TypeVar("RequestT", bound=BaseModel)


def parse_addresses(payload: Any) -> list[Address]:
    rows = payload.get("addresses", []) if isinstance(payload, dict) else payload
    if not isinstance(rows, list):
        return []
    addresses: list[Address] = []
    for row in rows:
        try:
            addresses.append(Address.model_validate(row))
        except ValidationError:
            logger.warning("account.unparseable_address", address=row)
    return addresses


class AccountService:
    """Profile, password and address book of the signed-in shopper."""

    def __init__(
        self,
        *,
        api_client: StorefrontApiClient,
        notification_service: NotificationService,
    ) -> None:
        self.api_client = api_client
        self.notification_service = notification_service

    async def get_profile(self) -> Identity:
        try:
            payload = await self.api_client.get("/auth/me")
        except ApiError as exc:
            self.notification_service.error(exc.server_message or "Failed to load profile")
            raise
        return Identity.model_validate(payload or {})

    async def update_profile(self, *, name: str, email: str) -> Identity:
        request = self._validate(
            ProfileUpdateRequest, {"name": name, "email": email}, "Invalid email address"
        )
        try:
            payload = await self.api_client.put("/auth/me", json=request.model_dump())
        except ApiError as exc:
            self.notification_service.error(exc.server_message or "Failed to update profile")
            raise
        self.notification_service.success("Profile updated successfully")
        return Identity.model_validate(payload or request.model_dump())

    async def change_password(
        self,
        current_password: str,
        new_password: str,
        confirm_password: str | None = None,
    ) -> None:
        if confirm_password is not None and confirm_password != new_password:
            self.notification_service.error("Passwords do not match")
            raise InvalidInputError("Passwords do not match")
        request = self._validate(
            ChangePasswordRequest,
            {"currentPassword": current_password, "newPassword": new_password},
            "New password must be at least 8 characters",
        )
        try:
            await self.api_client.put("/auth/change-password", json=request.model_dump())
        except ApiError as exc:
            self.notification_service.error(exc.server_message or "Failed to change password")
            raise
        self.notification_service.success("Password changed successfully")

    async def list_addresses(self) -> list[Address]:
        try:
            payload = await self.api_client.get("/addresses")
        except ApiError as exc:
            self.notification_service.error(exc.server_message or "Failed to load addresses")
            raise
        return parse_addresses(payload)

    async def add_address(self, address: dict[str, Any]) -> Address:
        request = self._validate_address(address)
        try:
            payload = await self.api_client.post("/addresses", json=request.model_dump(exclude_none=True))
        except ApiError as exc:
            self.notification_service.error(exc.server_message or "Failed to add address")
            raise
        self.notification_service.success("Address added successfully")
        return Address.model_validate(payload or request.model_dump())

    async def update_address(self, address_id: str, address: dict[str, Any]) -> Address:
        request = self._validate_address(address)
        try:
            payload = await self.api_client.put(
                f"/addresses/{address_id}", json=request.model_dump(exclude_none=True)
            )
        except ApiError as exc:
            self.notification_service.error(exc.server_message or "Failed to update address")
            raise
        self.notification_service.success("Address updated successfully")
        return Address.model_validate(payload or {"id": address_id, **request.model_dump()})

    async def delete_address(self, address_id: str) -> None:
        try:
            await self.api_client.delete(f"/addresses/{address_id}")
        except ApiError as exc:
            self.notification_service.error(exc.server_message or "Failed to delete address")
            raise
        self.notification_service.success("Address deleted successfully")

    def _validate_address(self, address: dict[str, Any]) -> AddressRequest:
        return self._validate(
            AddressRequest, address, "All address fields are required and phone must be valid"
        )

    def _validate(self, model: type[RequestT], data: dict[str, Any], message: str) -> RequestT:
        try:
            return model.model_validate(data)
        except ValidationError as exc:
            self.notification_service.error(message)
            raise InvalidInputError(message) from exc
