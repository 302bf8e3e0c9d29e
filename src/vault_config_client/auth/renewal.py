"""Background token renewal.

One daemon per client keeps the current token alive: it sleeps for a
fraction of the token's lease, renews (or re-authenticates) through the
auth strategy, publishes the new token and schedules the next wake.
"""

import asyncio
import time

from ..core.config import RenewalConfig
from ..core.exceptions import VaultClientError
from ..core.logging import get_logger
from .strategies import AuthStrategy
from .tokens import Token, TokenHolder

logger = get_logger(__name__)


class TokenRenewalDaemon:
    """Keeps the token in a ``TokenHolder`` valid until stopped."""

    def __init__(
        self,
        holder: TokenHolder,
        strategy: AuthStrategy,
        config: RenewalConfig | None = None,
    ) -> None:
        self.holder = holder
        self.strategy = strategy
        self.config = config or RenewalConfig()
        self.renewal_count = 0
        self.failure_count = 0
        self._stopping = asyncio.Event()
        self._task: asyncio.Task[None] | None = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start the renewal loop on the running event loop."""
        if self.is_running:
            logger.warning("Token renewal daemon already running")
            return

        self._stopping.clear()
        self._task = asyncio.create_task(self._renewal_loop(), name="vault-token-renewal")
        logger.info("Token renewal daemon started", auth_method=self.strategy.method)

    async def stop(self) -> None:
        """Stop future wakes. A renewal already in flight is allowed to finish."""
        if self._task is None:
            return

        self._stopping.set()
        task, self._task = self._task, None
        await task
        logger.info("Token renewal daemon stopped", renewals=self.renewal_count)

    def next_wait(self, token: Token) -> float | None:
        """Seconds until the next renewal, or None if the token never needs one."""
        if not self.strategy.supports_renewal or token.lease_duration == 0:
            return None
        wake_at = token.issued_at + token.lease_duration * self.config.lease_fraction
        return max(self.config.min_wait_seconds, wake_at - time.time())

    async def _sleep(self, seconds: float | None) -> bool:
        """Sleep until the timeout or a stop request; True if stopping."""
        try:
            await asyncio.wait_for(self._stopping.wait(), timeout=seconds)
        except TimeoutError:
            return False
        return True

    async def _renewal_loop(self) -> None:
        """Main renewal loop."""
        while not self._stopping.is_set():
            token = self.holder.current
            if token is None:
                return

            wait = self.next_wait(token)
            if wait is None:
                logger.debug(
                    "Token does not expire, renewal idle",
                    auth_method=self.strategy.method,
                )
            else:
                logger.debug("Next token renewal scheduled", wait_seconds=round(wait, 3))

            if await self._sleep(wait):
                return

            while True:
                try:
                    renewed = await self.strategy.renew(token)
                except Exception as e:
                    self.failure_count += 1
                    # Unexpected errors are logged with a traceback
                    log = logger.error if isinstance(e, VaultClientError) else logger.exception
                    log(
                        "Token renewal failed, retrying",
                        auth_method=self.strategy.method,
                        error=str(e),
                        failures=self.failure_count,
                        retry_in_seconds=self.config.retry_backoff_seconds,
                    )
                    if await self._sleep(self.config.retry_backoff_seconds):
                        return
                    continue
                break

            self.holder.swap(renewed)
            self.renewal_count += 1
            self.failure_count = 0
            logger.debug(
                "Published renewed token",
                lease_duration=renewed.lease_duration,
                renewable=renewed.renewable,
            )
