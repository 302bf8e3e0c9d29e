"""Vault config client - async HashiCorp Vault client with token renewal
and secret injection into application configuration trees.
"""

__version__ = "0.1.0"

from .auth.tokens import Token
from .client import VaultClient
from .core.config import (
    AppRoleAuthConfig,
    RequestOptions,
    TokenAuthConfig,
    VaultSettings,
    get_settings,
)
from .core.exceptions import (
    AuthError,
    ConfigInjectionError,
    ConfigurationError,
    HttpError,
    TransportError,
    VaultClientError,
)
from .core.logging import setup_logging
from .http.executor import VaultResponse
from .secrets.injection import SecretRef, load_secret_refs

__all__ = [
    "__version__",
    "VaultClient",
    "VaultSettings",
    "TokenAuthConfig",
    "AppRoleAuthConfig",
    "RequestOptions",
    "get_settings",
    "Token",
    "VaultResponse",
    "SecretRef",
    "load_secret_refs",
    "VaultClientError",
    "ConfigurationError",
    "AuthError",
    "HttpError",
    "TransportError",
    "ConfigInjectionError",
    "setup_logging",
]
