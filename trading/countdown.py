"""
Countdown — redraws "Trading will start in ..." once per second.

The remaining time is recomputed from the wall clock against the last
server time sample, so the display keeps moving between server polls.
"""

from __future__ import annotations
import asyncio
import time
from typing import Callable, Optional, TextIO

from notifications.console import CountdownLine


def format_duration(seconds: int) -> str:
    """
    "h hours, m minutes, s seconds" with leading zero units dropped.
    59 -> "59 seconds", 3660 -> "1 hours, 1 minutes, 0 seconds"
    """
    seconds = max(int(seconds), 0)
    hours, rest = divmod(seconds, 3600)
    minutes, secs = divmod(rest, 60)

    if hours:
        return f"{hours} hours, {minutes} minutes, {secs} seconds"
    if minutes:
        return f"{minutes} minutes, {secs} seconds"
    return f"{secs} seconds"


class Countdown:
    """Cancellable periodic display task. Performs no I/O besides the terminal."""

    def __init__(
        self,
        seconds_before_start: int,
        server_time: int,
        clock: Callable[[], float] = time.time,
        stream: Optional[TextIO] = None,
        interval: float = 1.0,
    ):
        self.seconds_before_start = seconds_before_start
        self.server_time = server_time
        self.clock = clock
        self.interval = interval
        self._line = CountdownLine(stream)
        self._task: Optional[asyncio.Task] = None

    @property
    def active(self) -> bool:
        return self._task is not None and not self._task.done()

    def remaining(self, now: Optional[float] = None) -> int:
        if now is None:
            now = self.clock()
        # Partial seconds are truncated
        return self.seconds_before_start - (int(now) - self.server_time)

    def render(self, now: Optional[float] = None) -> str:
        return f"Trading will start in {format_duration(self.remaining(now))}."

    def start(self):
        if self.active:
            return
        self._task = asyncio.get_running_loop().create_task(self._run())

    def cancel(self):
        if self._task is not None:
            self._task.cancel()
            self._task = None

    async def _run(self):
        while True:
            await asyncio.sleep(self.interval)
            self._line.write(self.render())
