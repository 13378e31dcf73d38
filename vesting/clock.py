"""
Token Vesting Ledger Time Sources

The unlock engine reads "now" once per unlock pass from one of these.
Clocks return whole Unix seconds.

- SystemClock: local wall clock
- NTPClock: network time via ntplib, with retries and backoff
- MonotonicClock: wraps another clock and never goes backwards
- MockClock: controllable clock for tests and simulations

Async callers use read_clock(), which awaits the clock's now_async() when
it has one so network reads never block the event loop.
"""

from __future__ import annotations
import asyncio
import logging
import time
from typing import Optional, Protocol, runtime_checkable

import ntplib

from vesting.constants import NTP_DEFAULT_HOST, NTP_QUERY_TIMEOUT_MS, NTP_RETRY_COUNT
from vesting.errors import ClockUnavailableError

logger = logging.getLogger(__name__)


@runtime_checkable
class Clock(Protocol):
    """Current-time source."""

    def now(self) -> int: ...


class SystemClock:
    """Local wall clock."""

    def now(self) -> int:
        return int(time.time())

    async def now_async(self) -> int:
        return self.now()


class NTPClock:
    """
    Network time from an NTP server.

    Each read queries the server; failures are retried with exponential
    backoff (100ms, 200ms, 400ms...) before ClockUnavailableError is raised.
    """

    def __init__(
        self,
        host: str = NTP_DEFAULT_HOST,
        timeout_ms: int = NTP_QUERY_TIMEOUT_MS,
        retries: int = NTP_RETRY_COUNT,
        client: Optional[ntplib.NTPClient] = None
    ):
        self.host = host
        self.timeout_ms = timeout_ms
        self.retries = max(1, retries)
        self._client = client or ntplib.NTPClient()
        self.last_offset: Optional[float] = None

    def query(self) -> "ntplib.NTPStats":
        """Query the server once."""
        return self._client.request(self.host, version=4, timeout=self.timeout_ms / 1000.0)

    def now(self) -> int:
        last_error = ""
        for attempt in range(self.retries):
            try:
                response = self.query()
                self.last_offset = response.offset
                return int(response.tx_time)
            except (ntplib.NTPException, OSError) as e:
                last_error = str(e)
                logger.debug(f"NTP query to {self.host} failed (attempt {attempt + 1}): {e}")
                if attempt < self.retries - 1:
                    time.sleep(0.1 * (2 ** attempt))

        logger.warning(f"NTP server {self.host} unavailable after {self.retries} attempts")
        raise ClockUnavailableError(self.host, last_error)

    async def now_async(self) -> int:
        """now() with the query in an executor and non-blocking backoff."""
        loop = asyncio.get_running_loop()
        last_error = ""
        for attempt in range(self.retries):
            try:
                response = await loop.run_in_executor(None, self.query)
                self.last_offset = response.offset
                return int(response.tx_time)
            except (ntplib.NTPException, OSError) as e:
                last_error = str(e)
                logger.debug(f"NTP query to {self.host} failed (attempt {attempt + 1}): {e}")
                if attempt < self.retries - 1:
                    # Exponential backoff: 100ms, 200ms, 400ms...
                    await asyncio.sleep(0.1 * (2 ** attempt))

        logger.warning(f"NTP server {self.host} unavailable after {self.retries} attempts")
        raise ClockUnavailableError(self.host, last_error)


class MonotonicClock:
    """Never reports a time earlier than one it already reported."""

    def __init__(self, source: Clock):
        self.source = source
        self._last = 0

    def now(self) -> int:
        return self._hold(self.source.now())

    async def now_async(self) -> int:
        return self._hold(await read_clock(self.source))

    def _hold(self, current: int) -> int:
        if current < self._last:
            logger.warning(f"Clock went backwards: {current} < {self._last}, holding")
            return self._last
        self._last = current
        return current


class MockClock:
    """
    Controllable clock for testing.

    Mirrors the usual chain test helpers: advance by a delta or jump to an
    absolute time, never backwards.
    """

    def __init__(self, base_time: Optional[int] = None):
        self._time = base_time if base_time is not None else int(time.time())

    def now(self) -> int:
        return self._time

    async def now_async(self) -> int:
        return self._time

    def advance(self, seconds: int) -> int:
        """Advance by `seconds`; returns the new time."""
        if seconds < 0:
            raise ValueError(f"Cannot advance by negative amount: {seconds}")
        self._time += seconds
        return self._time

    def increase_to(self, target: int) -> int:
        """Jump to absolute time `target`; returns the new time."""
        if target < self._time:
            raise ValueError(f"Cannot increase time to {target}, already at {self._time}")
        self._time = target
        return self._time


async def read_clock(clock: Clock) -> int:
    """Read `clock` without blocking the running event loop."""
    now_async = getattr(clock, "now_async", None)
    if now_async is not None:
        return await now_async()
    return clock.now()


def create_clock(source: str = "system", **kwargs) -> Clock:
    """
    Create a clock by name.

    Args:
        source: "system", "ntp" or "mock"
        kwargs: passed to the clock constructor

    The system and NTP clocks are wrapped in MonotonicClock.
    """
    if source == "system":
        return MonotonicClock(SystemClock())
    if source == "ntp":
        return MonotonicClock(NTPClock(**kwargs))
    if source == "mock":
        return MockClock(**kwargs)
    raise ValueError(f"Unknown clock source: {source}")
