"""Request execution against the Vault HTTP API.

Builds URLs from the configured base URL and API version, encodes JSON
bodies, follows a single redirect hop and turns every non-2xx terminal
response into an ``HttpError``. Tokens are not handled here; callers pass
the auth header in ``headers``.
"""

import asyncio
import json
from typing import Any
from urllib.parse import urljoin

from pydantic import BaseModel, ConfigDict, Field

from ..core.config import RequestOptions
from ..core.exceptions import HttpError, TransportError
from ..core.logging import get_logger
from .transport import Transport, TransportResponse

logger = get_logger(__name__)

REDIRECT_STATUSES = frozenset({301, 302})


class VaultResponse(BaseModel):
    """Parsed response of a Vault API call."""

    model_config = ConfigDict(frozen=True)

    path: str
    method: str
    status_code: int
    body: Any | None = None
    headers: dict[str, str] = Field(default_factory=dict)

    def get_data(self) -> Any | None:
        """Return the decoded ``data`` payload, or the whole body if there is none."""
        if isinstance(self.body, dict) and "data" in self.body:
            return self.body["data"]
        return self.body

    @property
    def auth(self) -> dict[str, Any] | None:
        if isinstance(self.body, dict):
            return self.body.get("auth")
        return None


def join_url(base_url: str, *segments: str) -> str:
    """Join URL segments with exactly one slash between each."""
    parts = [base_url.rstrip("/")]
    parts.extend(s.strip("/") for s in segments if s.strip("/"))
    return "/".join(parts)


def _header(headers: dict[str, str], name: str) -> str | None:
    wanted = name.lower()
    for key, value in headers.items():
        if key.lower() == wanted:
            return value
    return None


def _redact(body: Any) -> Any:
    if isinstance(body, dict) and isinstance(body.get("auth"), dict):
        return {**body, "auth": {**body["auth"], "client_token": "***"}}
    return body


def _decode_body(raw: bytes) -> Any | None:
    if not raw or not raw.strip():
        return None
    return json.loads(raw)


class RequestExecutor:
    """Issues requests to Vault and returns parsed responses."""

    def __init__(
        self,
        base_url: str,
        transport: Transport,
        api_version: str = "v1",
        options: RequestOptions | None = None,
    ) -> None:
        self.base_url = base_url
        self.api_version = api_version
        self.transport = transport
        self.options = options or RequestOptions()

    def build_url(self, path: str) -> str:
        return join_url(self.base_url, self.api_version, path)

    async def execute(
        self,
        method: str,
        path: str,
        body: Any | None = None,
        headers: dict[str, str] | None = None,
        timeout: float | None = None,
    ) -> VaultResponse:
        """Send a request and return the parsed response.

        Args:
            method: HTTP method (GET, POST, LIST, DELETE, ...)
            path: API path below the version segment
            body: JSON-serializable payload; ``None`` sends no body at all
            headers: Extra headers for this call
            timeout: Deadline in seconds, defaults to ``RequestOptions.timeout``

        Returns:
            VaultResponse for the final 2xx response

        Raises:
            HttpError: On a non-2xx terminal response
            TransportError: When no response was received or the deadline expired
        """
        method = method.upper()
        url = self.build_url(path)
        request_headers = {
            "Content-Type": "application/json",
            **self.options.headers,
            **(headers or {}),
        }
        payload = json.dumps(body).encode("utf-8") if body is not None else None
        deadline = timeout if timeout is not None else self.options.timeout

        logger.debug("making request", method=method, url=url)

        try:
            async with asyncio.timeout(deadline):
                response = await self._send_following_redirects(
                    method, url, request_headers, payload
                )
        except TimeoutError as e:
            raise TransportError(
                f"Request timed out after {deadline}s",
                reason="timeout",
                method=method,
                url=url,
                cause=e,
            ) from e

        try:
            parsed = _decode_body(response.body)
        except ValueError as e:
            raise HttpError(
                "Invalid JSON in Vault response",
                status_code=response.status_code,
                body=response.body.decode("utf-8", errors="replace"),
                method=method,
                url=url,
                cause=e,
            ) from e

        logger.debug("response body", method=method, url=url, body=_redact(parsed))

        if not 200 <= response.status_code < 300:
            raise HttpError(
                f"{method} {url} failed with status {response.status_code}",
                status_code=response.status_code,
                body=parsed,
                method=method,
                url=url,
            )

        return VaultResponse(
            path=path,
            method=method,
            status_code=response.status_code,
            body=parsed,
            headers=response.headers,
        )

    async def _send_following_redirects(
        self,
        method: str,
        url: str,
        headers: dict[str, str],
        payload: bytes | None,
    ) -> TransportResponse:
        response = await self.transport.send(method, url, headers, payload)
        hops = 0
        while response.status_code in REDIRECT_STATUSES and hops < self.options.max_redirects:
            location = _header(response.headers, "Location")
            if not location:
                break
            url = urljoin(url, location)
            hops += 1
            logger.debug("following redirect", method=method, url=url, hop=hops)
            response = await self.transport.send(method, url, headers, payload)
        return response
