from __future__ import annotations

from typing import Any, Callable

import httpx
import pytest
from fastapi import APIRouter, Depends, FastAPI, Header
from fastapi.responses import JSONResponse

from storefront.container import Container
from storefront.core.config import Settings
from storefront.infrastructure.profile_storage import InMemoryProfileStorage

INTEGRATION_BASE = "http://storefront.test/api"


class ShopBackend:
    """State behind the FastAPI stand-in for the storefront API."""

    def __init__(self) -> None:
        self.users = {
            "shopper@example.com": {"_id": "u1", "name": "Shopper", "password": "secret-pass", "token": "tok-shopper", "isAdmin": False},
        }
        self.products = {
            "P1": {"_id": "P1", "name": "Silk Saree", "price": 2499, "category": "sarees", "images": ["/img/p1.jpg"]},
            "P2": {"_id": "P2", "name": "Cotton Kurta", "price": 899, "category": "kurtas", "images": []},
        }
        self.carts: dict[str, list[dict[str, Any]]] = {"tok-shopper": []}
        self.wishlists: dict[str, list[dict[str, Any]]] = {"tok-shopper": []}
        self.rejected_products: set[str] = set()

    def user_for_token(self, token: str | None) -> dict[str, Any] | None:
        return next((user for user in self.users.values() if user["token"] == token), None)


class Unauthorized(Exception):
    pass


def build_app(backend: ShopBackend) -> FastAPI:
    app = FastAPI()
    router = APIRouter(prefix="/api")

    @app.exception_handler(Unauthorized)
    async def unauthorized_handler(_request, _exc: Unauthorized) -> JSONResponse:
        return JSONResponse(status_code=401, content={"msg": "Token is not valid"})

    def current_user(authorization: str | None = Header(default=None)) -> dict[str, Any]:
        token = (authorization or "").removeprefix("Bearer ")
        user = backend.user_for_token(token)
        if user is None:
            raise Unauthorized()
        return user

    @router.post("/auth/login")
    def login(body: dict[str, Any]) -> Any:
        user = backend.users.get(body.get("email", ""))
        if user is None or user["password"] != body.get("password"):
            return JSONResponse(status_code=400, content={"msg": "Invalid credentials"})
        return {"token": user["token"]}

    @router.get("/auth/me")
    def me(user: dict[str, Any] = Depends(current_user)) -> Any:
        return {key: user[key] for key in ("_id", "name", "isAdmin")}

    @router.get("/products")
    def list_products(page: int = 1, limit: int = 12) -> Any:
        rows = list(backend.products.values())
        return {"products": rows[(page - 1) * limit : page * limit], "total": len(rows)}

    @router.get("/products/{product_id}")
    def get_product(product_id: str) -> Any:
        product = backend.products.get(product_id)
        if product is None:
            return JSONResponse(status_code=404, content={"msg": "Product not found"})
        return product

    @router.get("/cart")
    def get_cart(user: dict[str, Any] = Depends(current_user)) -> Any:
        return {"items": backend.carts[user["token"]]}

    @router.post("/cart")
    def add_to_cart(body: dict[str, Any], user: dict[str, Any] = Depends(current_user)) -> Any:
        if body["productId"] in backend.rejected_products:
            return JSONResponse(status_code=400, content={"msg": "Product unavailable"})
        product = backend.products[body["productId"]]
        items = backend.carts[user["token"]]
        items.append(
            {
                "_id": f"line{len(items) + 1}",
                "productId": product["_id"],
                "name": product["name"],
                "price": product["price"],
                "quantity": body["quantity"],
                "color": body.get("color"),
                "size": body.get("size"),
            }
        )
        return {"items": items}

    @router.get("/wishlist")
    def get_wishlist(user: dict[str, Any] = Depends(current_user)) -> Any:
        return backend.wishlists[user["token"]]

    @router.post("/wishlist")
    def add_to_wishlist(body: dict[str, Any], user: dict[str, Any] = Depends(current_user)) -> Any:
        items = backend.wishlists[user["token"]]
        product = backend.products[body["productId"]]
        if not any(item["product"] == product["_id"] for item in items):
            items.append({"_id": f"wish{len(items) + 1}", "product": product, "name": product["name"], "price": product["price"]})
        return items

    app.include_router(router)
    return app


@pytest.fixture
def backend() -> ShopBackend:
    return ShopBackend()


@pytest.fixture
def profile() -> InMemoryProfileStorage:
    return InMemoryProfileStorage()


@pytest.fixture
def open_tab(backend: ShopBackend, profile: InMemoryProfileStorage) -> Callable[[str], Container]:
    app = build_app(backend)

    def factory(origin: str) -> Container:
        return Container(
            Settings(api_base_url=INTEGRATION_BASE),
            storage=profile,
            origin=origin,
            transport=httpx.ASGITransport(app=app),
        )

    return factory
