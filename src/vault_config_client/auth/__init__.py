"""Authentication: tokens, auth strategies and background renewal."""

from .renewal import TokenRenewalDaemon
from .strategies import (
    AUTH_STRATEGIES,
    AppRoleAuth,
    AuthStrategy,
    StaticTokenAuth,
    create_auth_strategy,
)
from .tokens import Token, TokenHolder

__all__ = [
    "Token",
    "TokenHolder",
    "AuthStrategy",
    "StaticTokenAuth",
    "AppRoleAuth",
    "AUTH_STRATEGIES",
    "create_auth_strategy",
    "TokenRenewalDaemon",
]
