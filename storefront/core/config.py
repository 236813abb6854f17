from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

from storefront.core.errors import ConfigurationError

STORAGE_BACKENDS = ("memory", "file", "redis")
LOG_FORMATS = ("auto", "console", "json")

DEFAULT_PUBLIC_ROUTES = (
    "/",
    "/products",
    "/login",
    "/register",
    "/admin/login",
    "/cart",
    "/wishlist",
    "/privacy-policy",
    "/return-refund-policy",
    "/terms-conditions",
    "/faq",
)
DEFAULT_PROTECTED_ROUTES = ("/profile", "/account", "/checkout", "/track-order")
DEFAULT_ADMIN_ROUTES = ("/admin/dashboard",)


def _get_env(*keys: str, default: str | None = None) -> str | None:
    for key in keys:
        value = os.getenv(key)
        if value is not None and value.strip() != "":
            return value.strip()
    return default


def _get_int(*keys: str, default: int) -> int:
    value = _get_env(*keys)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError as exc:
        raise ConfigurationError(f"{keys[0]} must be an integer, got {value!r}") from exc


def _get_float(*keys: str) -> float | None:
    value = _get_env(*keys)
    if value is None:
        return None
    try:
        return float(value)
    except ValueError as exc:
        raise ConfigurationError(f"{keys[0]} must be a number, got {value!r}") from exc


@dataclass(frozen=True)
class Settings:
    api_base_url: str = "http://localhost:5000/api"
    api_timeout_seconds: float | None = None
    storage_backend: str = "memory"
    storage_path: str = ".storefront/profile.json"
    redis_url: str = "redis://localhost:6379/0"
    profile_namespace: str = "default"
    login_path: str = "/login"
    admin_login_path: str = "/admin/login"
    admin_dashboard_path: str = "/admin/dashboard"
    notification_limit: int = 5
    log_level: str = "INFO"
    log_format: str = "auto"
    public_routes: tuple[str, ...] = field(default=DEFAULT_PUBLIC_ROUTES)
    protected_routes: tuple[str, ...] = field(default=DEFAULT_PROTECTED_ROUTES)
    admin_routes: tuple[str, ...] = field(default=DEFAULT_ADMIN_ROUTES)

    def __post_init__(self) -> None:
        if self.storage_backend not in STORAGE_BACKENDS:
            raise ConfigurationError(
                f"Unknown storage backend {self.storage_backend!r}; "
                f"expected one of {', '.join(STORAGE_BACKENDS)}"
            )
        if self.notification_limit < 1:
            raise ConfigurationError("notification_limit must be at least 1")
        if self.log_format not in LOG_FORMATS:
            raise ConfigurationError(
                f"Unknown log format {self.log_format!r}; expected one of {', '.join(LOG_FORMATS)}"
            )

    @classmethod
    def from_env(cls, env_file: str | Path | None = None) -> "Settings":
        load_dotenv(dotenv_path=env_file)
        return cls(
            api_base_url=_get_env(
                "STOREFRONT_API_BASE_URL",
                "API_BASE_URL",
                default="http://localhost:5000/api",
            )
            or "http://localhost:5000/api",
            api_timeout_seconds=_get_float("STOREFRONT_API_TIMEOUT_SECONDS"),
            storage_backend=(_get_env("STOREFRONT_STORAGE_BACKEND", default="memory") or "memory").lower(),
            storage_path=_get_env("STOREFRONT_STORAGE_PATH", default=".storefront/profile.json")
            or ".storefront/profile.json",
            redis_url=_get_env("REDIS_URL", default="redis://localhost:6379/0") or "redis://localhost:6379/0",
            profile_namespace=_get_env("STOREFRONT_PROFILE", default="default") or "default",
            notification_limit=_get_int("STOREFRONT_NOTIFICATION_LIMIT", default=5),
            log_level=(_get_env("LOG_LEVEL", default="INFO") or "INFO").upper(),
            log_format=(_get_env("LOG_FORMAT", default="auto") or "auto").lower(),
        )
