from __future__ import annotations

import asyncio
import re
from dataclasses import dataclass, field
from typing import Any

from storefront.core.config import Settings
from storefront.core.errors import ApiError, AuthenticationError, InvalidInputError
from storefront.infrastructure.api_client import StorefrontApiClient
from storefront.infrastructure.navigation import Navigator, login_redirect
from storefront.models.schemas import Address, CartEntry, CartSummary
from storefront.repositories.credential_store import CredentialStore
from storefront.services.account_service import parse_addresses
from storefront.services.cart_service import CartService
from storefront.services.notification_service import NotificationService

CHECKOUT_PATH = "/checkout"

LETTERS_ONLY = re.compile(r"^[A-Za-z\s]+$")
DIGITS_ONLY = re.compile(r"^\d+$")
CHECKOUT_PHONE = re.compile(r"^\d{10}$")


@dataclass
class CheckoutContext:
    items: list[CartEntry]
    addresses: list[Address] = field(default_factory=list)
    selected_address_id: str | None = None

    @property
    def summary(self) -> CartSummary:
        return CartService.summarize(self.items)

    @property
    def selected_address(self) -> Address | None:
        return next(
            (address for address in self.addresses if address.id == self.selected_address_id),
            None,
        )


class CheckoutService:
    def __init__(
        self,
        *,
        settings: Settings,
        credential_store: CredentialStore,
        api_client: StorefrontApiClient,
        notification_service: NotificationService,
        navigator: Navigator,
    ) -> None:
        self.settings = settings
        self.credential_store = credential_store
        self.api_client = api_client
        self.notification_service = notification_service
        self.navigator = navigator

    async def load(self) -> CheckoutContext:
        """Fetches the server cart and address book together."""
        if not self.credential_store.get_token():
            self.navigator.navigate(login_redirect(self.settings.login_path, CHECKOUT_PATH))
            raise AuthenticationError("Login required to check out")
        try:
            cart_payload, address_payload = await asyncio.gather(
                self.api_client.get("/cart"),
                self.api_client.get("/addresses"),
            )
        except ApiError as exc:
            self.notification_service.error(exc.server_message or "Failed to load data")
            raise
        addresses = parse_addresses(address_payload)
        default = next((address for address in addresses if address.isDefault), None)
        return CheckoutContext(
            items=CartService.parse_items(cart_payload),
            addresses=addresses,
            selected_address_id=default.id if default else None,
        )

    async def save_address(self, context: CheckoutContext, address: dict[str, Any]) -> Address:
        """Stores a new shipping address and selects it.

        The first address of an empty address book becomes the default.
        """
        self._check_address(address)
        body = {**address, "isDefault": not context.addresses}
        try:
            payload = await self.api_client.post("/addresses", json=body)
        except ApiError as exc:
            self.notification_service.error(exc.server_message or "Failed to save address")
            raise
        saved = Address.model_validate(payload or body)
        context.addresses.append(saved)
        context.selected_address_id = saved.id
        self.notification_service.success("Address saved successfully")
        return saved

    def _check_address(self, address: dict[str, Any]) -> None:
        def value(key: str) -> str:
            return str(address.get(key) or "")

        checks = (
            (LETTERS_ONLY.match(value("name")), "Name can only contain letters and spaces"),
            (CHECKOUT_PHONE.match(value("phone")), "Phone number must be exactly 10 digits"),
            (LETTERS_ONLY.match(value("city")), "City can only contain letters and spaces"),
            (LETTERS_ONLY.match(value("state")), "State can only contain letters and spaces"),
            (LETTERS_ONLY.match(value("country")), "Country can only contain letters and spaces"),
            (DIGITS_ONLY.match(value("pincode")), "Pincode can only contain digits"),
        )
        for passed, message in checks:
            if not passed:
                self.notification_service.error(message)
                raise InvalidInputError(message)
