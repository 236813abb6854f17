from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Callable

import httpx
import pytest

from storefront.container import Container
from storefront.core.config import Settings
from storefront.infrastructure.profile_storage import InMemoryProfileStorage

API_BASE = "http://api.test/api"


@dataclass
class RecordedRequest:
    method: str
    path: str
    body: Any
    authorization: str | None


@dataclass
class FakeStorefrontApi:
    """In-memory stand-in for the remote storefront API."""

    users: dict[str, dict[str, Any]] = field(default_factory=dict)
    carts: dict[str, list[dict[str, Any]]] = field(default_factory=dict)
    wishlists: dict[str, list[dict[str, Any]]] = field(default_factory=dict)
    products: dict[str, dict[str, Any]] = field(default_factory=dict)
    orders: dict[str, dict[str, Any]] = field(default_factory=dict)
    addresses: dict[str, list[dict[str, Any]]] = field(default_factory=dict)
    failures: dict[tuple[str, str], tuple[int, Any]] = field(default_factory=dict)
    product_failures: dict[tuple[str, str], tuple[int, Any]] = field(default_factory=dict)
    requests: list[RecordedRequest] = field(default_factory=list)
    _sequence: int = 0

    def add_user(self, email: str, password: str, *, token: str, is_admin: bool = False) -> None:
        self.users[email] = {
            "_id": f"user_{len(self.users) + 1}",
            "email": email,
            "name": email.split("@")[0],
            "password": password,
            "token": token,
            "isAdmin": is_admin,
        }
        self.carts.setdefault(token, [])
        self.wishlists.setdefault(token, [])

    def add_product(self, product_id: str, name: str, price: float, **extra: Any) -> dict[str, Any]:
        product = {"_id": product_id, "name": name, "price": price, "images": [], **extra}
        self.products[product_id] = product
        return product

    def fail(self, method: str, path: str, status: int, payload: Any = None) -> None:
        self.failures[(method, path)] = (status, payload)

    def fail_for_product(self, method: str, path: str, product_id: str, status: int, payload: Any = None) -> None:
        self.product_failures[(method, f"{path}:{product_id}")] = (status, payload)

    def calls(self, method: str, path: str) -> list[RecordedRequest]:
        return [req for req in self.requests if req.method == method and req.path == path]

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    def handle(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path.removeprefix("/api")
        body = json.loads(request.content) if request.content else None
        authorization = request.headers.get("Authorization")
        self.requests.append(RecordedRequest(request.method, path, body, authorization))

        if (request.method, path) in self.failures:
            status, payload = self.failures[(request.method, path)]
            return httpx.Response(status, json=payload)
        if isinstance(body, dict) and body.get("productId"):
            key = (request.method, f"{path}:{body['productId']}")
            if key in self.product_failures:
                status, payload = self.product_failures[key]
                return httpx.Response(status, json=payload)

        handler = self._route(request.method, path)
        if handler is None:
            return httpx.Response(404, json={"msg": "Not found"})
        return handler(request, path, body)

    def _route(self, method: str, path: str) -> Callable[..., httpx.Response] | None:
        parts = [part for part in path.split("/") if part]
        if parts == ["auth", "login"] and method == "POST":
            return self._login
        if parts == ["auth", "register"] and method == "POST":
            return self._register
        if parts == ["auth", "me"] and method == "GET":
            return self._me
        if parts == ["auth", "me"] and method == "PUT":
            return self._update_me
        if parts == ["auth", "change-password"] and method == "PUT":
            return self._change_password
        if parts[:1] == ["cart"]:
            return self._cart
        if parts[:1] == ["wishlist"]:
            return self._wishlist
        if parts[:1] == ["products"]:
            return self._products
        if parts[:1] == ["orders"]:
            return self._orders
        if parts[:1] == ["addresses"]:
            return self._addresses
        return None

    def _user_for(self, request: httpx.Request) -> dict[str, Any] | None:
        header = request.headers.get("Authorization", "")
        if not header.startswith("Bearer "):
            return None
        token = header.removeprefix("Bearer ")
        return next((user for user in self.users.values() if user["token"] == token), None)

    def _next_id(self, prefix: str) -> str:
        self._sequence += 1
        return f"{prefix}_{self._sequence}"

    def _login(self, request: httpx.Request, _path: str, body: Any) -> httpx.Response:
        user = self.users.get(body.get("email", ""))
        if not user or user["password"] != body.get("password"):
            return httpx.Response(400, json={"msg": "Invalid credentials"})
        return httpx.Response(200, json={"token": user["token"]})

    def _register(self, request: httpx.Request, _path: str, body: Any) -> httpx.Response:
        if body["email"] in self.users:
            return httpx.Response(400, json={"msg": "User already exists"})
        token = f"token-{body['email']}"
        self.add_user(body["email"], body["password"], token=token)
        return httpx.Response(201, json={"token": token})

    def _me(self, request: httpx.Request, _path: str, _body: Any) -> httpx.Response:
        user = self._user_for(request)
        if user is None:
            return httpx.Response(401, json={"msg": "Token is not valid"})
        return httpx.Response(
            200,
            json={"_id": user["_id"], "name": user["name"], "email": user["email"], "isAdmin": user["isAdmin"]},
        )

    def _update_me(self, request: httpx.Request, _path: str, body: Any) -> httpx.Response:
        user = self._user_for(request)
        if user is None:
            return httpx.Response(401, json={"msg": "Token is not valid"})
        user.update(name=body["name"], email=body["email"])
        return httpx.Response(
            200,
            json={"_id": user["_id"], "name": user["name"], "email": user["email"], "isAdmin": user["isAdmin"]},
        )

    def _change_password(self, request: httpx.Request, _path: str, body: Any) -> httpx.Response:
        user = self._user_for(request)
        if user is None:
            return httpx.Response(401, json={"msg": "Token is not valid"})
        if user["password"] != body["currentPassword"]:
            return httpx.Response(400, json={"msg": "Current password is incorrect"})
        user["password"] = body["newPassword"]
        return httpx.Response(200, json={"msg": "Password updated"})

    def _addresses(self, request: httpx.Request, path: str, body: Any) -> httpx.Response:
        user = self._user_for(request)
        if user is None:
            return httpx.Response(401, json={"msg": "No token, authorization denied"})
        book = self.addresses.setdefault(user["token"], [])
        parts = [part for part in path.split("/") if part]
        if request.method == "GET":
            return httpx.Response(200, json=book)
        if request.method == "POST":
            address = {"_id": self._next_id("addr"), **body}
            book.append(address)
            return httpx.Response(201, json=address)
        target = next((address for address in book if address["_id"] == parts[1]), None)
        if target is None:
            return httpx.Response(404, json={"msg": "Address not found"})
        if request.method == "PUT":
            target.update(body)
            return httpx.Response(200, json=target)
        if request.method == "DELETE":
            book.remove(target)
            return httpx.Response(200, json={"msg": "Address removed"})
        return httpx.Response(405, json={"msg": "Method not allowed"})

    def _cart(self, request: httpx.Request, path: str, body: Any) -> httpx.Response:
        user = self._user_for(request)
        if user is None:
            return httpx.Response(401, json={"msg": "No token, authorization denied"})
        items = self.carts.setdefault(user["token"], [])
        parts = [part for part in path.split("/") if part]
        if request.method == "GET":
            return httpx.Response(200, json={"items": items})
        if request.method == "POST":
            product = self.products.get(body["productId"], {})
            items.append(
                {
                    "_id": self._next_id("cartitem"),
                    "productId": body["productId"],
                    "name": product.get("name", ""),
                    "price": product.get("price", 0),
                    "image": "",
                    "quantity": body["quantity"],
                    "color": body.get("color"),
                    "size": body.get("size"),
                }
            )
            return httpx.Response(200, json={"items": items})
        target = next((item for item in items if item["_id"] == parts[1]), None)
        if target is None:
            return httpx.Response(404, json={"msg": "Item not found"})
        if request.method == "PUT":
            target["quantity"] = body["quantity"]
        elif request.method == "DELETE":
            items.remove(target)
        return httpx.Response(200, json={"items": items})

    def _wishlist(self, request: httpx.Request, path: str, body: Any) -> httpx.Response:
        user = self._user_for(request)
        if user is None:
            return httpx.Response(401, json={"msg": "No token, authorization denied"})
        items = self.wishlists.setdefault(user["token"], [])
        parts = [part for part in path.split("/") if part]
        if request.method == "GET":
            return httpx.Response(200, json=items)
        if request.method == "POST":
            product = self.products.get(body["productId"], {})
            if not any(item["product"] == body["productId"] for item in items):
                items.append(
                    {
                        "_id": self._next_id("wish"),
                        "product": body["productId"],
                        "name": product.get("name", ""),
                        "price": product.get("price", 0),
                        "image": "",
                        "category": product.get("category", ""),
                    }
                )
            return httpx.Response(200, json=items)
        if request.method == "DELETE":
            items[:] = [item for item in items if item["product"] != parts[1]]
            return httpx.Response(200, json=items)
        return httpx.Response(405, json={"msg": "Method not allowed"})

    def _products(self, request: httpx.Request, path: str, body: Any) -> httpx.Response:
        parts = [part for part in path.split("/") if part]
        if request.method == "GET" and len(parts) == 1:
            page = int(request.url.params.get("page", "1"))
            limit = int(request.url.params.get("limit", "12"))
            rows = list(self.products.values())
            start = (page - 1) * limit
            return httpx.Response(200, json={"products": rows[start : start + limit], "total": len(rows)})
        if request.method == "GET":
            product = self.products.get(parts[1])
            if product is None:
                return httpx.Response(404, json={"msg": "Product not found"})
            return httpx.Response(200, json=product)

        user = self._user_for(request)
        if user is None:
            return httpx.Response(401, json={"msg": "No token, authorization denied"})
        if not user["isAdmin"]:
            return httpx.Response(403, json={"msg": "Admin access required"})
        if request.method == "POST":
            product_id = self._next_id("prod")
            return httpx.Response(201, json=self.add_product(product_id, **body))
        if request.method == "PUT":
            if parts[1] not in self.products:
                return httpx.Response(404, json={"msg": "Product not found"})
            return httpx.Response(200, json=self.add_product(parts[1], **body))
        if request.method == "DELETE":
            self.products.pop(parts[1], None)
            return httpx.Response(200, json={"msg": "Product removed"})
        return httpx.Response(405, json={"msg": "Method not allowed"})

    def _orders(self, request: httpx.Request, path: str, _body: Any) -> httpx.Response:
        user = self._user_for(request)
        if user is None:
            return httpx.Response(401, json={"msg": "No token, authorization denied"})
        parts = [part for part in path.split("/") if part]
        if len(parts) == 1:
            return httpx.Response(200, json=list(self.orders.values()))
        if parts[1] == "track":
            order = self.orders.get(parts[2])
            if order is None:
                return httpx.Response(404, json={"msg": "Order not found"})
            return httpx.Response(200, json={"status": order["status"], "trackingUrl": "https://track.test/1"})
        order = self.orders.get(parts[1])
        if order is None:
            return httpx.Response(404, json={"msg": "Order not found"})
        if request.method == "PUT" and parts[2:] == ["cancel"]:
            if order["status"].lower() not in ("pending", "processing"):
                return httpx.Response(400, json={"msg": "Order can no longer be cancelled"})
            order["status"] = "Cancelled"
        return httpx.Response(200, json=order)


@pytest.fixture
def settings() -> Settings:
    return Settings(api_base_url=API_BASE)


@pytest.fixture
def storage() -> InMemoryProfileStorage:
    return InMemoryProfileStorage()


@pytest.fixture
def fake_api() -> FakeStorefrontApi:
    api = FakeStorefrontApi()
    api.add_user("shopper@example.com", "secret-pass", token="shopper-token")
    api.add_user("admin@example.com", "admin-pass", token="admin-token", is_admin=True)
    api.add_product("P1", "Silk Saree", 2499.0, category="sarees", colors=[{"name": "Red"}], sizes=[{"value": "Free"}])
    api.add_product("P2", "Cotton Kurta", 899.0, category="kurtas")
    api.add_product("P3", "Linen Dupatta", 499.0, category="dupattas")
    return api


@pytest.fixture
def make_container(
    settings: Settings, storage: InMemoryProfileStorage, fake_api: FakeStorefrontApi
) -> Callable[..., Container]:
    def factory(origin: str = "tab-a") -> Container:
        return Container(settings, storage=storage, origin=origin, transport=fake_api.transport())

    return factory
