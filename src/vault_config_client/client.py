"""Vault client: authentication, token renewal, secret operations and config injection."""

from collections.abc import Mapping, MutableMapping
from typing import Any

from pydantic import ValidationError

from .auth.renewal import TokenRenewalDaemon
from .auth.strategies import AuthStrategy, create_auth_strategy
from .auth.tokens import Token, TokenHolder
from .core.config import VaultSettings
from .core.exceptions import AuthError, ConfigurationError, VaultClientError
from .core.logging import get_logger
from .http.executor import RequestExecutor, VaultResponse
from .http.transport import AiohttpTransport, Transport
from .secrets.injection import ConfigInjector
from .secrets.operations import SecretOperations

logger = get_logger(__name__)


def _load_settings(settings: VaultSettings | None, overrides: dict[str, Any]) -> VaultSettings:
    try:
        if settings is None:
            return VaultSettings(**overrides)
        if overrides:
            return VaultSettings(**{**settings.model_dump(), **overrides})
        return settings
    except ValidationError as e:
        if any(err["loc"] and err["loc"][0] == "auth" for err in e.errors()):
            raise AuthError(f"Invalid auth configuration: {e}", cause=e) from e
        raise ConfigurationError(f"Invalid Vault client configuration: {e}", cause=e) from e


class VaultClient:
    """
    Async HashiCorp Vault client.

    Construction only validates configuration. ``start()`` (or entering the
    client as an async context manager) authenticates and starts the token
    renewal daemon; ``close()`` stops it.

    Example:
        async with VaultClient(url="http://127.0.0.1:8200",
                               auth={"type": "token", "token": "..."}) as client:
            await client.write("kv/app", {"password": "s3cret"})
            config = {"db": {"password": {"ref": "kv/app", "key": "password"}}}
            await client.fill_node_config(config)
    """

    def __init__(
        self,
        settings: VaultSettings | None = None,
        *,
        transport: Transport | None = None,
        **overrides: Any,
    ) -> None:
        self.settings = _load_settings(settings, overrides)

        self._owns_transport = transport is None
        self.transport: Transport = transport or AiohttpTransport(self.settings.request_options)

        self.executor = RequestExecutor(
            self.settings.url,
            self.transport,
            api_version=self.settings.api_version,
            options=self.settings.request_options,
        )

        base_headers = {}
        if self.settings.namespace:
            base_headers["X-Vault-Namespace"] = self.settings.namespace

        self.holder = TokenHolder()
        self.strategy: AuthStrategy = create_auth_strategy(
            self.settings.auth, self.executor, self.settings.token_header, base_headers
        )
        self.daemon = TokenRenewalDaemon(self.holder, self.strategy, self.settings.renewal)
        self.operations = SecretOperations(
            self.executor, self.holder, self.settings.token_header, base_headers
        )
        self.injector = ConfigInjector(self.operations)
        self._closed = False

        logger.info(
            "Initialized Vault client",
            vault_addr=self.settings.url,
            api_version=self.settings.api_version,
            auth_method=self.settings.auth_method,
        )

    @classmethod
    async def create(
        cls,
        settings: VaultSettings | None = None,
        *,
        transport: Transport | None = None,
        **overrides: Any,
    ) -> "VaultClient":
        """Construct and start a client."""
        client = cls(settings, transport=transport, **overrides)
        await client.start()
        return client

    async def __aenter__(self) -> "VaultClient":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    @property
    def is_started(self) -> bool:
        return self.holder.current is not None

    @property
    def token(self) -> Token | None:
        """Snapshot of the current token."""
        return self.holder.current

    async def start(self) -> None:
        """Authenticate once and start background renewal.

        Raises:
            AuthError: If authentication fails; the client is closed and unusable
        """
        if self._closed:
            raise ConfigurationError("Vault client is closed")
        if self.is_started:
            return

        try:
            token = await self.strategy.authenticate()
        except VaultClientError as e:
            logger.error(
                "Failed to authenticate with Vault",
                auth_method=self.strategy.method,
                error=str(e),
            )
            await self.close()
            if isinstance(e, AuthError):
                raise
            raise AuthError(
                f"Authentication failed: {e}", method=self.strategy.method, cause=e
            ) from e

        self.holder.swap(token)
        self.daemon.start()

    async def close(self) -> None:
        """Stop renewal and release the transport. Safe to call more than once."""
        await self.daemon.stop()
        self.holder.clear()
        if self._owns_transport and not self._closed:
            await self.transport.close()
        if not self._closed:
            self._closed = True
            logger.info("Vault client closed")

    async def read(self, path: str, timeout: float | None = None) -> VaultResponse:
        return await self.operations.read(path, timeout=timeout)

    async def write(
        self, path: str, data: dict[str, Any], timeout: float | None = None
    ) -> VaultResponse:
        return await self.operations.write(path, data, timeout=timeout)

    async def list(self, path: str, timeout: float | None = None) -> VaultResponse:
        return await self.operations.list(path, timeout=timeout)

    async def delete(self, path: str, timeout: float | None = None) -> VaultResponse:
        return await self.operations.delete(path, timeout=timeout)

    async def fill_node_config(
        self,
        config: MutableMapping[str, Any],
        overrides: Mapping[str, Any] | None = None,
    ) -> MutableMapping[str, Any]:
        """Resolve secret references in ``config`` in place. See ``ConfigInjector``."""
        return await self.injector.fill_node_config(config, overrides)
