"""
Tests for the Bybit REST client: signing, request building, endpoints.
"""

import asyncio
import hashlib
import hmac
import json
import logging

import pytest

from exchange.bybit_rest import BybitRestClient
from exchange.models import OrderRequest


class FakeResponse:
    def __init__(self, payload, headers=None):
        self.payload = payload
        self.headers = headers or {}

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False

    async def json(self):
        if isinstance(self.payload, Exception):
            raise self.payload
        return self.payload


class FakeSession:
    def __init__(self, payload, headers=None):
        self.payload = payload
        self.headers = headers
        self.calls = []
        self.closed = False

    def get(self, url, headers=None, params=None):
        self.calls.append(("GET", url, headers, params))
        return FakeResponse(self.payload, self.headers)

    def post(self, url, headers=None, data=None):
        self.calls.append(("POST", url, headers, data))
        return FakeResponse(self.payload, self.headers)


def make_client(session):
    client = BybitRestClient("test-key", "test-secret", "https://api.bybit.com")

    async def get_session():
        return session

    client._get_session = get_session
    return client


def test_sign_matches_v5_hmac_scheme():
    client = BybitRestClient("test-key", "test-secret", "https://api.bybit.com")
    expected = hmac.new(
        b"test-secret",
        b"1712044795000test-key5000{\"symbol\": \"XRPUSDT\"}",
        hashlib.sha256,
    ).hexdigest()
    assert client._sign("1712044795000", '{"symbol": "XRPUSDT"}') == expected


def test_custom_recv_window_is_sent():
    client = BybitRestClient("k", "s", "https://api.bybit.com", recv_window=10000)
    headers = client._auth_headers("1", "sig")
    assert headers["X-BAPI-RECV-WINDOW"] == "10000"
    assert headers["X-BAPI-SIGN-TYPE"] == "2"


def test_get_server_time_is_unsigned_get():
    session = FakeSession({"retCode": 0, "retMsg": "OK", "result": {"timeSecond": "1712044795"}})
    client = make_client(session)

    data = asyncio.run(client.get_server_time())

    assert data["result"]["timeSecond"] == "1712044795"
    method, url, headers, params = session.calls[0]
    assert method == "GET"
    assert url == "https://api.bybit.com/v5/market/time"
    assert "X-BAPI-SIGN" not in headers


def test_place_order_signs_the_exact_body_sent():
    session = FakeSession(
        {"retCode": 0, "retMsg": "OK", "result": {"orderId": "1"}},
        headers={"X-Bapi-Limit-Status": "19", "X-Bapi-Limit": "20"},
    )
    client = make_client(session)
    order = OrderRequest(symbol="XRPUSDT", qty="1")

    data = asyncio.run(client.place_order(order))

    assert data["result"]["orderId"] == "1"
    method, url, headers, body = session.calls[0]
    assert method == "POST"
    assert url == "https://api.bybit.com/v5/order/create"
    assert json.loads(body) == order.to_params()
    assert headers["X-BAPI-API-KEY"] == "test-key"
    assert headers["X-BAPI-SIGN"] == client._sign(headers["X-BAPI-TIMESTAMP"], body)


def test_error_payload_is_returned_not_raised():
    session = FakeSession({"retCode": 10003, "retMsg": "API key is invalid.", "result": {}})
    client = make_client(session)

    data = asyncio.run(client.place_order(OrderRequest(symbol="XRPUSDT", qty="1")))

    assert data["retCode"] == 10003


def test_transport_exception_is_reraised():
    session = FakeSession(ValueError("not json"))
    client = make_client(session)

    with pytest.raises(ValueError):
        asyncio.run(client.get_server_time())


def test_close_without_session_is_noop():
    client = BybitRestClient("k", "s", "https://api.bybit.com")
    asyncio.run(client.close())


def test_rate_limit_headers_logged_at_debug(caplog):
    session = FakeSession(
        {"retCode": 0, "retMsg": "OK", "result": {"orderId": "1"}},
        headers={"X-Bapi-Limit-Status": "19", "X-Bapi-Limit": "20", "X-Bapi-Limit-Reset-Timestamp": "1712044796000"},
    )
    client = make_client(session)

    with caplog.at_level(logging.DEBUG, logger="exchange.bybit_rest"):
        asyncio.run(client.place_order(OrderRequest(symbol="XRPUSDT", qty="1")))

    records = [r for r in caplog.records if "rate limit" in r.getMessage()]
    assert len(records) == 1
    assert records[0].levelno == logging.DEBUG
    assert "'X-Bapi-Limit-Status': '19'" in records[0].getMessage()


def test_server_time_failure_not_logged_as_error(caplog):
    session = FakeSession({"retCode": 10016, "retMsg": "Server error", "result": {}})
    client = make_client(session)

    with caplog.at_level(logging.DEBUG, logger="exchange.bybit_rest"):
        asyncio.run(client.get_server_time())

    assert "Server error" in caplog.text
    assert all(r.levelno < logging.WARNING for r in caplog.records)


def test_order_rejection_logged_as_warning(caplog):
    session = FakeSession({"retCode": 10003, "retMsg": "API key is invalid.", "result": {}})
    client = make_client(session)

    with caplog.at_level(logging.DEBUG, logger="exchange.bybit_rest"):
        asyncio.run(client.place_order(OrderRequest(symbol="XRPUSDT", qty="1")))

    assert not [r for r in caplog.records if r.levelno >= logging.ERROR]
    assert [r for r in caplog.records if r.levelno == logging.WARNING]
