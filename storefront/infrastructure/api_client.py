from __future__ import annotations

from typing import Any, Callable

import httpx

from storefront.core.config import Settings
from storefront.core.errors import ApiError
from storefront.infrastructure.logging import get_logger
from storefront.infrastructure.navigation import Navigator
from storefront.repositories.credential_store import CredentialStore

logger = get_logger(__name__)

UnauthorizedListener = Callable[[], None]


class StorefrontApiClient:
    """HTTP access to the storefront API.

    Attaches the stored bearer token to every request. Any 401 response clears
    the token and performs a full navigation to the login view, whichever
    endpoint produced it; the caller still receives the `ApiError`.
    """

    def __init__(
        self,
        *,
        settings: Settings,
        credential_store: CredentialStore,
        navigator: Navigator,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.settings = settings
        self.credential_store = credential_store
        self.navigator = navigator
        self._unauthorized_listeners: list[UnauthorizedListener] = []
        self._client = httpx.AsyncClient(
            base_url=settings.api_base_url.rstrip("/") + "/",
            headers={"Content-Type": "application/json"},
            timeout=httpx.Timeout(settings.api_timeout_seconds),
            transport=transport,
            event_hooks={
                "request": [self._attach_credential],
                "response": [self._handle_unauthorized],
            },
        )

    def add_unauthorized_listener(self, listener: UnauthorizedListener) -> Callable[[], None]:
        self._unauthorized_listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._unauthorized_listeners:
                self._unauthorized_listeners.remove(listener)

        return unsubscribe

    async def request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: dict[str, Any] | None = None,
    ) -> Any:
        try:
            response = await self._client.request(
                method,
                path.lstrip("/"),
                json=json,
                params=params,
            )
        except httpx.HTTPError as exc:
            logger.warning("api.transport_error", method=method, path=path, error=str(exc))
            raise ApiError(f"Network error: {exc}") from exc

        payload = self._decode(response)
        if response.is_error:
            message = "Request failed"
            if isinstance(payload, dict) and payload.get("msg"):
                message = str(payload["msg"])
            logger.info(
                "api.error_response",
                method=method,
                path=path,
                status_code=response.status_code,
            )
            raise ApiError(message, status_code=response.status_code, payload=payload)
        return payload

    async def get(self, path: str, *, params: dict[str, Any] | None = None) -> Any:
        return await self.request("GET", path, params=params)

    async def post(self, path: str, *, json: Any = None) -> Any:
        return await self.request("POST", path, json=json)

    async def put(self, path: str, *, json: Any = None) -> Any:
        return await self.request("PUT", path, json=json)

    async def delete(self, path: str) -> Any:
        return await self.request("DELETE", path)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "StorefrontApiClient":
        return self

    async def __aexit__(self, *_exc_info: Any) -> None:
        await self.aclose()

    async def _attach_credential(self, request: httpx.Request) -> None:
        token = self.credential_store.get_token()
        if token:
            request.headers["Authorization"] = f"Bearer {token}"

    async def _handle_unauthorized(self, response: httpx.Response) -> None:
        if response.status_code != 401:
            return
        logger.warning("api.unauthorized", path=response.request.url.path)
        self.credential_store.clear_token()
        for listener in list(self._unauthorized_listeners):
            listener()
        self.navigator.navigate(self.settings.login_path, full_reload=True)

    @staticmethod
    def _decode(response: httpx.Response) -> Any:
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            return response.text
