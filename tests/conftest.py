"""Pytest configuration and shared fakes."""

import io
from datetime import datetime, timezone
from typing import Any, Dict, List

import pytest

START_TIME = datetime(2024, 4, 2, 7, 59, 55, tzinfo=timezone.utc)
START_TS = int(START_TIME.timestamp())


def time_response(epoch_seconds: int) -> Dict[str, Any]:
    return {
        "retCode": 0,
        "retMsg": "OK",
        "result": {"timeSecond": str(epoch_seconds), "timeNano": str(epoch_seconds * 10**9)},
    }


def order_ok(order_id: str = "1321003749386327552") -> Dict[str, Any]:
    return {"retCode": 0, "retMsg": "OK", "result": {"orderId": order_id, "orderLinkId": ""}}


def order_rejected(msg: str = "Symbol is not supported") -> Dict[str, Any]:
    return {"retCode": 170130, "retMsg": msg, "result": {}}


class FakeClient:
    """Stands in for BybitRestClient. Scripted items that are exceptions get raised."""

    def __init__(self, time_responses: List = None, order_responses: List = None):
        self.time_responses = list(time_responses or [])
        self.order_responses = list(order_responses or [])
        self.time_calls = 0
        self.orders = []
        self.closed = False

    async def get_server_time(self):
        self.time_calls += 1
        item = self.time_responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    async def place_order(self, order):
        self.orders.append(order)
        item = self.order_responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    async def close(self):
        self.closed = True


class RecordingSleep:
    """Replaces asyncio.sleep; records requested delays without waiting."""

    def __init__(self):
        self.calls = []

    async def __call__(self, seconds):
        self.calls.append(seconds)


class FakeCountdown:
    """Countdown double that tracks how many are live at once."""

    live = 0
    max_live = 0
    created = []

    def __init__(self, seconds_before_start, server_time):
        self.seconds_before_start = seconds_before_start
        self.server_time = server_time
        self.started = False
        self.cancel_calls = 0
        FakeCountdown.created.append(self)

    def start(self):
        self.started = True
        FakeCountdown.live += 1
        FakeCountdown.max_live = max(FakeCountdown.max_live, FakeCountdown.live)

    def cancel(self):
        self.cancel_calls += 1
        if self.started:
            self.started = False
            FakeCountdown.live -= 1


@pytest.fixture
def fake_countdown():
    FakeCountdown.live = 0
    FakeCountdown.max_live = 0
    FakeCountdown.created = []
    return FakeCountdown


@pytest.fixture
def recording_sleep():
    return RecordingSleep()


class TtyStream(io.StringIO):
    """In-memory stream that reports itself as a terminal."""

    def isatty(self):
        return True
