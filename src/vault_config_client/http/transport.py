"""HTTP transport used by the request executor.

The executor only depends on the ``Transport`` protocol, so tests and
embedding applications can supply their own implementation. Transports
must hand 3xx responses back instead of following them.
"""

import ssl
from dataclasses import dataclass, field
from typing import Protocol

import aiohttp

from ..core.config import RequestOptions
from ..core.exceptions import TransportError
from ..core.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class TransportResponse:
    """Raw HTTP response as returned by a transport."""

    status_code: int
    headers: dict[str, str] = field(default_factory=dict)
    body: bytes = b""


class Transport(Protocol):
    """Interface an HTTP transport must satisfy."""

    async def send(
        self,
        method: str,
        url: str,
        headers: dict[str, str],
        body: bytes | None = None,
    ) -> TransportResponse: ...

    async def close(self) -> None: ...


class AiohttpTransport:
    """Transport backed by a shared ``aiohttp.ClientSession``."""

    def __init__(self, options: RequestOptions | None = None) -> None:
        self.options = options or RequestOptions()
        self._session: aiohttp.ClientSession | None = None

        self._ssl: ssl.SSLContext | bool | None = None
        if not self.options.verify_ssl:
            self._ssl = False
        elif self.options.ca_cert_path:
            self._ssl = ssl.create_default_context(cafile=str(self.options.ca_cert_path))

    async def _ensure_session(self) -> aiohttp.ClientSession:
        """Ensure HTTP session is created."""
        if self._session is None or self._session.closed:
            connector = aiohttp.TCPConnector(
                limit=20,
                limit_per_host=10,
                ssl=self._ssl if self._ssl is not None else True,
            )
            self._session = aiohttp.ClientSession(
                connector=connector,
                headers={"User-Agent": "vault-config-client/0.1"},
            )
        return self._session

    async def send(
        self,
        method: str,
        url: str,
        headers: dict[str, str],
        body: bytes | None = None,
    ) -> TransportResponse:
        session = await self._ensure_session()
        try:
            async with session.request(
                method,
                url,
                data=body,
                headers=headers,
                allow_redirects=False,
            ) as response:
                payload = await response.read()
                return TransportResponse(
                    status_code=response.status,
                    headers={k: v for k, v in response.headers.items()},
                    body=payload,
                )
        except (aiohttp.ClientError, OSError) as e:
            raise TransportError(
                f"Unable to reach Vault: {e}", method=method, url=url, cause=e
            ) from e

    async def close(self) -> None:
        """Close the underlying session."""
        if self._session and not self._session.closed:
            await self._session.close()
            logger.debug("HTTP session closed")
        self._session = None
