"""
Reconnection policy for long-lived client channels

The default policy retries every 5 seconds forever. Capped exponential
backoff with jitter is available for deployments that want it, and every
wait can be interrupted through an asyncio.Event.
"""

import asyncio
import logging
import random
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, List, Optional, Tuple, Type

logger = logging.getLogger(__name__)


class ConnectionStatus(str, Enum):
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"
    RECONNECTING = "reconnecting"
    CLOSED = "closed"


@dataclass
class ReconnectPolicy:
    base_delay: float = 5.0
    max_delay: float = 5.0
    multiplier: float = 1.0
    jitter: float = 0.0  # fraction of the delay, applied +/-
    max_attempts: Optional[int] = None  # None retries forever

    @classmethod
    def fixed(cls, delay: float = 5.0) -> "ReconnectPolicy":
        return cls(base_delay=delay, max_delay=delay, multiplier=1.0, jitter=0.0)

    @classmethod
    def exponential(cls, base_delay: float = 1.0, max_delay: float = 30.0,
                    multiplier: float = 2.0, jitter: float = 0.1) -> "ReconnectPolicy":
        return cls(base_delay=base_delay, max_delay=max_delay, multiplier=multiplier, jitter=jitter)

    def delay(self, attempt: int) -> float:
        """Delay before reconnect number `attempt` (0-based)"""
        delay = min(self.base_delay * (self.multiplier ** attempt), self.max_delay)
        if self.jitter:
            spread = delay * self.jitter
            delay = max(0.0, delay + random.uniform(-spread, spread))
        return delay

    def exhausted(self, attempt: int) -> bool:
        return self.max_attempts is not None and attempt >= self.max_attempts


async def cancellable_sleep(delay: float, cancel: asyncio.Event) -> bool:
    """Sleep for `delay`; returns True if `cancel` fired first"""
    try:
        await asyncio.wait_for(cancel.wait(), timeout=delay)
        return True
    except asyncio.TimeoutError:
        return False


class Reconnector:
    """
    Runs a connect function until cancelled, waiting between attempts.

    `connect` returns True when the connection was established before it
    ended; that resets the backoff. A connect function that raises after
    the channel opened calls `mark_established` first so the drop is not
    counted as a failure. Other exceptions listed in `retry_on` count as a
    failed attempt, anything else propagates.

    Usage:
        cancel = asyncio.Event()
        reconnector = Reconnector(ReconnectPolicy.fixed(5), cancel)
        await reconnector.run(stream.connect_once)
    """

    def __init__(
        self,
        policy: Optional[ReconnectPolicy] = None,
        cancel: Optional[asyncio.Event] = None,
        retry_on: Tuple[Type[BaseException], ...] = (ConnectionError, OSError),
        sleep: Optional[Callable[[float, asyncio.Event], Awaitable[bool]]] = None,
    ):
        self.policy = policy or ReconnectPolicy.fixed()
        self.cancel = cancel or asyncio.Event()
        self.retry_on = retry_on
        self._sleep = sleep or cancellable_sleep
        self.status = ConnectionStatus.DISCONNECTED
        self.attempts = 0
        self.delays: List[float] = []
        self._established = False

    def mark_established(self) -> None:
        self._established = True

    async def run(self, connect: Callable[[], Awaitable[bool]]) -> None:
        failures = 0
        while not self.cancel.is_set():
            self.attempts += 1
            self._established = False
            try:
                established = await connect()
            except self.retry_on as e:
                logger.warning(f"Connection lost: {type(e).__name__}: {e}")
                established = self._established

            if self.cancel.is_set():
                break

            failures = 0 if established else failures + 1
            if self.policy.exhausted(failures):
                logger.error(f"Giving up after {failures} failed attempts")
                break

            self.status = ConnectionStatus.RECONNECTING
            delay = self.policy.delay(max(failures - 1, 0))
            self.delays.append(delay)
            logger.info(f"Reconnecting in {delay:.1f}s")
            if await self._sleep(delay, self.cancel):
                break

        self.status = ConnectionStatus.CLOSED
