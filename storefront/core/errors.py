from __future__ import annotations

from typing import Any


class StorefrontError(Exception):
    """Base class for storefront client errors."""


class ConfigurationError(StorefrontError):
    pass


class StorageUnavailableError(StorefrontError):
    """Raised by a profile storage backend that cannot serve the request."""


class ApiError(StorefrontError):
    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        payload: Any = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.payload = payload

    @property
    def server_message(self) -> str | None:
        if isinstance(self.payload, dict) and self.payload.get("msg"):
            return str(self.payload["msg"])
        return None

    @property
    def is_unauthorized(self) -> bool:
        return self.status_code == 401

    @property
    def field_errors(self) -> dict[str, str]:
        if not isinstance(self.payload, dict):
            return {}
        errors = self.payload.get("errors")
        if not isinstance(errors, dict):
            return {}
        result: dict[str, str] = {}
        for field, detail in errors.items():
            if isinstance(detail, dict):
                result[str(field)] = str(detail.get("message", ""))
            else:
                result[str(field)] = str(detail)
        return result


class AuthenticationError(StorefrontError):
    pass


class PermissionDeniedError(StorefrontError):
    pass


class InvalidInputError(StorefrontError):
    """Raised when form input is rejected before any request is sent."""
