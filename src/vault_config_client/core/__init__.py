"""Core functionality for the Vault config client."""

from .config import (
    AppRoleAuthConfig,
    RenewalConfig,
    RequestOptions,
    TokenAuthConfig,
    VaultSettings,
    get_settings,
)
from .exceptions import (
    AuthError,
    ConfigInjectionError,
    ConfigurationError,
    HttpError,
    TransportError,
    VaultClientError,
)
from .logging import get_logger, setup_logging

__all__ = [
    "VaultSettings",
    "TokenAuthConfig",
    "AppRoleAuthConfig",
    "RequestOptions",
    "RenewalConfig",
    "get_settings",
    "VaultClientError",
    "ConfigurationError",
    "AuthError",
    "HttpError",
    "TransportError",
    "ConfigInjectionError",
    "get_logger",
    "setup_logging",
]
