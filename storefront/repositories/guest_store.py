from __future__ import annotations

import json
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from storefront.core.errors import StorageUnavailableError
from storefront.core.utils import generate_local_id
from storefront.infrastructure.logging import get_logger
from storefront.infrastructure.profile_storage import StorageTab
from storefront.models.schemas import CartEntry, WishlistEntry

logger = get_logger(__name__)

CART_KEY = "cart"
WISHLIST_KEY = "wishlist"

EntryT = TypeVar("EntryT", bound=BaseModel)


class GuestStore:
    """Cart and wishlist of an unauthenticated visitor, kept in profile storage.

    Every mutation reads the whole collection, changes it and writes it back.
    Unavailable storage reads as an empty collection and swallows writes; a
    malformed collection reads as empty and is replaced on the next write.
    """

    def __init__(self, *, storage: StorageTab) -> None:
        self.storage = storage

    def get_cart(self) -> list[CartEntry]:
        return self._read(CART_KEY, CartEntry)

    def set_cart(self, cart: list[CartEntry]) -> None:
        self._write(CART_KEY, cart)

    def add_to_cart(self, entry: CartEntry) -> list[CartEntry]:
        cart = self.get_cart()
        existing = next((item for item in cart if item.variant_key == entry.variant_key), None)
        if existing:
            existing.quantity += entry.quantity
        else:
            local_id = generate_local_id(item.id for item in cart)
            cart.append(entry.model_copy(update={"id": local_id}))
        self.set_cart(cart)
        return cart

    def update_cart_item(self, item_id: str, quantity: int) -> list[CartEntry]:
        cart = self.get_cart()
        target = next((item for item in cart if item.id == item_id), None)
        if target is None:
            return cart
        if quantity <= 0:
            cart = [item for item in cart if item.id != item_id]
        else:
            target.quantity = quantity
        self.set_cart(cart)
        return cart

    def remove_from_cart(self, item_id: str) -> list[CartEntry]:
        cart = [item for item in self.get_cart() if item.id != item_id]
        self.set_cart(cart)
        return cart

    def get_wishlist(self) -> list[WishlistEntry]:
        return self._read(WISHLIST_KEY, WishlistEntry)

    def set_wishlist(self, wishlist: list[WishlistEntry]) -> None:
        self._write(WISHLIST_KEY, wishlist)

    def add_to_wishlist(self, entry: WishlistEntry) -> list[WishlistEntry]:
        wishlist = self.get_wishlist()
        if any(item.product == entry.product for item in wishlist):
            return wishlist
        local_id = generate_local_id(item.id for item in wishlist)
        wishlist.append(entry.model_copy(update={"id": local_id}))
        self.set_wishlist(wishlist)
        return wishlist

    def remove_from_wishlist(self, product_id: str) -> list[WishlistEntry]:
        wishlist = [item for item in self.get_wishlist() if item.product != product_id]
        self.set_wishlist(wishlist)
        return wishlist

    def _read(self, key: str, model: type[EntryT]) -> list[EntryT]:
        try:
            raw = self.storage.get_item(key)
        except StorageUnavailableError as exc:
            logger.debug("guest_store.storage_unavailable", key=key, error=str(exc))
            return []
        if not raw:
            return []
        try:
            rows = json.loads(raw)
        except json.JSONDecodeError:
            logger.debug("guest_store.malformed", key=key)
            return []
        if not isinstance(rows, list):
            logger.debug("guest_store.malformed", key=key)
            return []
        try:
            return [model.model_validate(row) for row in rows]
        except ValidationError:
            logger.debug("guest_store.malformed", key=key)
            return []

    def _write(self, key: str, entries: list[Any]) -> None:
        payload = json.dumps([entry.model_dump(mode="json") for entry in entries])
        try:
            self.storage.set_item(key, payload)
        except StorageUnavailableError as exc:
            logger.debug("guest_store.storage_unavailable", key=key, error=str(exc))
