"""
Clock Synchronizer — waits for the target start time on the exchange's clock.

Polls /v5/market/time, and while the target is still ahead keeps one
countdown on screen and sleeps min(ping interval, seconds remaining).
Failed polls back off for a fixed interval and retry forever.
"""

from __future__ import annotations
import asyncio
from datetime import datetime
from typing import Awaitable, Callable, Optional, TYPE_CHECKING
import logging

from notifications.console import CountdownLine
from trading.countdown import Countdown

if TYPE_CHECKING:
    from exchange.bybit_rest import BybitRestClient

logger = logging.getLogger(__name__)


class ClockSynchronizer:
    """Blocks (asynchronously) until the server clock reaches the start time."""

    def __init__(
        self,
        client: "BybitRestClient",
        start_time: datetime,
        ping_interval_sec: int = 60,
        backoff_sec: int = 5,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        countdown_factory: Callable[[int, int], Countdown] = Countdown,
        line: Optional[CountdownLine] = None,
    ):
        self.client = client
        self.start_time = start_time
        self.ping_interval_sec = ping_interval_sec
        self.backoff_sec = backoff_sec
        self._sleep = sleep
        self._countdown_factory = countdown_factory
        self._line = line or CountdownLine()
        self._countdown: Optional[Countdown] = None

    @property
    def start_timestamp(self) -> int:
        return int(self.start_time.timestamp())

    async def fetch_server_time(self) -> Optional[int]:
        """Server epoch seconds, or None if the exchange could not be reached."""
        error = None
        try:
            res = await self.client.get_server_time()
            if res.get("retCode") == 0:
                return int(res["result"]["timeSecond"])
            error = res.get("retMsg")
        except (KeyError, TypeError, ValueError) as e:
            error = f"malformed response: {e}"
        except Exception as e:
            # aiohttp.ClientError, timeouts, bad JSON: all transient here
            error = str(e) or type(e).__name__

        logger.error(f"Failed to ping server [error={error}]", extra={"color": "red"})
        return None

    async def wait_until_start(self):
        """Return once the server time reaches the start time. No upper bound."""
        try:
            while True:
                self._line.clear()
                self._cancel_countdown()

                server_time = await self.fetch_server_time()
                if server_time is None:
                    await self._sleep(self.backoff_sec)
                    continue

                seconds_remaining = self.start_timestamp - server_time
                if seconds_remaining <= 0:
                    return

                self._countdown = self._countdown_factory(seconds_remaining, server_time)
                self._countdown.start()

                await self._sleep(min(self.ping_interval_sec, seconds_remaining))
        finally:
            self._cancel_countdown()

    def _cancel_countdown(self):
        if self._countdown is not None:
            self._countdown.cancel()
            self._countdown = None
