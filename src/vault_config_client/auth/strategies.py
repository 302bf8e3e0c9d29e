"""Authentication strategies.

Each auth method is a small class exposing the same two coroutines,
``authenticate`` and ``renew``. The method is picked from the config's
``type`` tag through ``AUTH_STRATEGIES``; adding a backend means adding a
config model and an entry in that registry.
"""

from collections.abc import Callable, Mapping
from typing import Any, Protocol

from pydantic import ValidationError

from ..core.config import AppRoleAuthConfig, TokenAuthConfig, parse_auth_config
from ..core.exceptions import AuthError, HttpError, RenewalNotSupportedError
from ..core.logging import get_logger
from ..http.executor import RequestExecutor, VaultResponse
from .tokens import Token

logger = get_logger(__name__)

TOKEN_RENEW_PATH = "auth/token/renew-self"

# Statuses on renew-self that mean the token itself is no longer accepted
_TOKEN_REJECTED = frozenset({400, 403})


class AuthStrategy(Protocol):
    """Capability every auth method provides."""

    method: str
    supports_renewal: bool

    async def authenticate(self) -> Token: ...

    async def renew(self, token: Token) -> Token: ...


class StaticTokenAuth:
    """Uses a pre-issued token as-is. The token is treated as non-expiring."""

    method = "token"
    supports_renewal = False

    def __init__(self, config: TokenAuthConfig) -> None:
        self.config = config

    async def authenticate(self) -> Token:
        return Token(client_token=self.config.token, lease_duration=0, renewable=False)

    async def renew(self, token: Token) -> Token:
        raise RenewalNotSupportedError(self.method)


class AppRoleAuth:
    """AppRole login with role ID and optional secret ID."""

    method = "approle"
    supports_renewal = True

    def __init__(
        self,
        config: AppRoleAuthConfig,
        executor: RequestExecutor,
        token_header: str = "X-Vault-Token",
        headers: dict[str, str] | None = None,
    ) -> None:
        self.config = config
        self.executor = executor
        self.token_header = token_header
        self.headers = headers or {}

    @property
    def login_path(self) -> str:
        return f"auth/{self.config.mount_path.strip('/')}/login"

    async def authenticate(self) -> Token:
        """Log in and return a fresh token.

        Raises:
            AuthError: If the service rejects the credentials, cannot be
                reached, or answers without a usable ``auth`` block
        """
        payload = {"role_id": self.config.role_id}
        if self.config.secret_id is not None:
            payload["secret_id"] = self.config.secret_id

        logger.debug(
            "Authenticating with Vault",
            auth_method=self.method,
            login_path=self.login_path,
            with_secret_id=self.config.secret_id is not None,
        )

        try:
            response = await self.executor.execute(
                "POST", self.login_path, payload, dict(self.headers)
            )
        except HttpError as e:
            raise AuthError(
                f"AppRole login failed: {'; '.join(e.errors) or e.message}",
                method=self.method,
                status_code=e.status_code,
                errors=e.errors,
                cause=e,
            ) from e

        token = self._token_from(response)
        logger.info(
            "Successfully authenticated with Vault",
            auth_method=self.method,
            lease_duration=token.lease_duration,
            renewable=token.renewable,
        )
        return token

    async def renew(self, token: Token) -> Token:
        """Extend the token lease, logging in again when it cannot be renewed."""
        if not token.renewable:
            logger.info("Token is not renewable, re-authenticating", auth_method=self.method)
            return await self.authenticate()

        headers = {**self.headers, self.token_header: token.client_token}
        try:
            response = await self.executor.execute("POST", TOKEN_RENEW_PATH, None, headers)
        except HttpError as e:
            if e.status_code in _TOKEN_REJECTED:
                logger.warning(
                    "Token renewal rejected, re-authenticating",
                    auth_method=self.method,
                    status_code=e.status_code,
                )
                return await self.authenticate()
            raise AuthError(
                f"Token renewal failed: {e.message}",
                method=self.method,
                status_code=e.status_code,
                errors=e.errors,
                cause=e,
            ) from e

        renewed = self._token_from(response)
        logger.info(
            "Successfully renewed token",
            auth_method=self.method,
            new_lease_duration=renewed.lease_duration,
        )
        return renewed

    def _token_from(self, response: VaultResponse) -> Token:
        auth = response.auth
        if not isinstance(auth, dict) or not auth.get("client_token"):
            raise AuthError(
                "Vault response has no auth block",
                method=self.method,
                status_code=response.status_code,
            )
        try:
            return Token.from_auth_block(auth)
        except (TypeError, ValueError) as e:
            raise AuthError(
                f"Malformed auth block in Vault response: {e}",
                method=self.method,
                status_code=response.status_code,
                cause=e,
            ) from e


StrategyFactory = Callable[[Any, RequestExecutor, str, dict[str, str]], AuthStrategy]

AUTH_STRATEGIES: dict[str, StrategyFactory] = {
    "token": lambda config, executor, token_header, headers: StaticTokenAuth(config),
    "approle": lambda config, executor, token_header, headers: AppRoleAuth(
        config, executor, token_header, headers
    ),
}


def create_auth_strategy(
    config: TokenAuthConfig | AppRoleAuthConfig | Mapping[str, Any],
    executor: RequestExecutor,
    token_header: str = "X-Vault-Token",
    headers: dict[str, str] | None = None,
) -> AuthStrategy:
    """Create the strategy for an auth config based on its ``type`` tag.

    ``config`` may also be a raw mapping such as ``{"type": "token", "token": "..."}``.
    """
    try:
        config = parse_auth_config(config)
    except ValidationError as e:
        raise AuthError(f"Invalid auth configuration: {e}", cause=e) from e

    try:
        factory = AUTH_STRATEGIES[config.type]
    except KeyError:
        raise AuthError(f"Unsupported auth method: {config.type}", method=config.type) from None
    return factory(config, executor, token_header, headers or {})
