"""Vault authentication token and the cell holding the current one."""

import time
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class Token(BaseModel):
    """Vault authentication token information.

    Tokens are immutable; renewal produces a new instance.
    """

    model_config = ConfigDict(frozen=True)

    client_token: str = Field(repr=False)
    lease_duration: float = 0
    renewable: bool = False
    issued_at: float = Field(default_factory=time.time)
    accessor: str | None = None
    policies: tuple[str, ...] = ()

    @classmethod
    def from_auth_block(cls, auth: dict[str, Any]) -> "Token":
        """Build a token from the ``auth`` block of a login or renew response."""
        return cls(
            client_token=auth["client_token"],
            lease_duration=auth.get("lease_duration") or 0,
            renewable=bool(auth.get("renewable", False)),
            accessor=auth.get("accessor"),
            policies=tuple(auth.get("policies") or ()),
        )

    @property
    def expires_at(self) -> float | None:
        """Calculate when the token expires (None for non-expiring tokens)."""
        if self.lease_duration == 0:
            return None
        return self.issued_at + self.lease_duration

    @property
    def is_expired(self) -> bool:
        expires_at = self.expires_at
        return expires_at is not None and time.time() >= expires_at


class TokenHolder:
    """Holds the current token.

    The renewal daemon is the only writer. Readers take one snapshot per
    request via ``current``; ``swap`` replaces the reference, so a reader
    sees either the old token or the new one.
    """

    def __init__(self, token: Token | None = None) -> None:
        self._token = token

    @property
    def current(self) -> Token | None:
        return self._token

    def swap(self, token: Token) -> Token | None:
        previous, self._token = self._token, token
        return previous

    def clear(self) -> None:
        self._token = None
