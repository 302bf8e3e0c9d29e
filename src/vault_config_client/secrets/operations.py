"""Read, write, list and delete operations on Vault paths."""

from typing import Any

from ..auth.tokens import TokenHolder
from ..core.exceptions import ConfigurationError
from ..core.logging import get_logger
from ..http.executor import RequestExecutor, VaultResponse

logger = get_logger(__name__)


def normalize_path(path: str) -> str:
    """Strip leading slashes so ``/kv/x`` and ``kv/x`` address the same secret."""
    return path.lstrip("/")


class SecretOperations:
    """Secret operations that attach the current token to every request."""

    def __init__(
        self,
        executor: RequestExecutor,
        holder: TokenHolder,
        token_header: str = "X-Vault-Token",
        headers: dict[str, str] | None = None,
    ) -> None:
        self.executor = executor
        self.holder = holder
        self.token_header = token_header
        self.headers = headers or {}

    def _auth_headers(self) -> dict[str, str]:
        # One snapshot per call; a concurrent renewal cannot change it mid-request
        token = self.holder.current
        if token is None:
            raise ConfigurationError("Vault client is not authenticated")
        return {**self.headers, self.token_header: token.client_token}

    async def _request(
        self,
        method: str,
        path: str,
        data: Any | None = None,
        timeout: float | None = None,
    ) -> VaultResponse:
        return await self.executor.execute(
            method, normalize_path(path), data, self._auth_headers(), timeout=timeout
        )

    async def read(self, path: str, timeout: float | None = None) -> VaultResponse:
        """Read the secret at ``path``. A missing path raises ``HttpError`` with status 404."""
        return await self._request("GET", path, timeout=timeout)

    async def write(
        self, path: str, data: dict[str, Any], timeout: float | None = None
    ) -> VaultResponse:
        """Write ``data`` to ``path``. Some engines return a payload (e.g. generated credentials)."""
        logger.debug("Writing secret", path=normalize_path(path), data_keys=list(data))
        return await self._request("POST", path, data, timeout=timeout)

    async def list(self, path: str, timeout: float | None = None) -> VaultResponse:
        """List child keys below ``path``; the data payload holds ``keys``."""
        return await self._request("LIST", path, timeout=timeout)

    async def delete(self, path: str, timeout: float | None = None) -> VaultResponse:
        return await self._request("DELETE", path, timeout=timeout)
