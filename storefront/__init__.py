from .container import Container
from .core.config import Settings
from .core.errors import (
    ApiError,
    AuthenticationError,
    PermissionDeniedError,
    StorefrontError,
)

__all__ = [
    "Container",
    "Settings",
    "ApiError",
    "AuthenticationError",
    "PermissionDeniedError",
    "StorefrontError",
]
