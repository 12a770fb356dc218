"""
Bybit V5 REST API Client.
Handles authentication and the two endpoints the bot needs: server time and order create.
"""

from __future__ import annotations
import hashlib
import hmac
import json
import time
from typing import Any, Dict, Mapping, Optional
import aiohttp
import logging

from exchange.models import OrderRequest

logger = logging.getLogger(__name__)

RATE_LIMIT_HEADERS = (
    "X-Bapi-Limit-Status",
    "X-Bapi-Limit",
    "X-Bapi-Limit-Reset-Timestamp",
)


class BybitRestClient:
    """Async Bybit V5 REST API wrapper."""

    def __init__(self, api_key: str, api_secret: str, base_url: str, recv_window: int = 5000):
        self.api_key = api_key
        self.api_secret = api_secret
        self.base_url = base_url
        self._session: Optional[aiohttp.ClientSession] = None
        self._recv_window = str(recv_window)

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
        return self._session

    async def close(self):
        if self._session and not self._session.closed:
            await self._session.close()

    def _sign(self, timestamp: str, params_str: str) -> str:
        """Generate HMAC-SHA256 signature."""
        param_str = f"{timestamp}{self.api_key}{self._recv_window}{params_str}"
        return hmac.new(
            self.api_secret.encode("utf-8"),
            param_str.encode("utf-8"),
            hashlib.sha256,
        ).hexdigest()

    def _auth_headers(self, timestamp: str, signature: str) -> Dict[str, str]:
        return {
            "X-BAPI-API-KEY": self.api_key,
            "X-BAPI-SIGN": signature,
            "X-BAPI-SIGN-TYPE": "2",
            "X-BAPI-TIMESTAMP": timestamp,
            "X-BAPI-RECV-WINDOW": self._recv_window,
            "Content-Type": "application/json",
        }

    def _log_rate_limit(self, endpoint: str, headers: Mapping[str, str]):
        limits = {name: headers[name] for name in RATE_LIMIT_HEADERS if name in headers}
        if limits:
            logger.debug(f"[REST] {endpoint} rate limit: {limits}")

    async def _request(
        self,
        method: str,
        endpoint: str,
        params: Optional[Dict] = None,
        signed: bool = False,
        error_level: int = logging.ERROR,
    ) -> Dict[str, Any]:
        """
        Make an API request with optional authentication.
        Failures are logged at error_level; callers that report them
        themselves pass a lower level.
        """
        session = await self._get_session()
        url = f"{self.base_url}{endpoint}"
        timestamp = str(int(time.time() * 1000))

        headers = {"Content-Type": "application/json"}
        body_str = None

        if signed:
            if method == "GET":
                query = "&".join(f"{k}={v}" for k, v in sorted((params or {}).items()))
                sig = self._sign(timestamp, query)
                headers = self._auth_headers(timestamp, sig)
                url = f"{url}?{query}" if query else url
                params = None
            else:
                body_str = json.dumps(params or {})
                sig = self._sign(timestamp, body_str)
                headers = self._auth_headers(timestamp, sig)
        elif method != "GET":
            body_str = json.dumps(params or {})

        try:
            if method == "GET":
                async with session.get(url, headers=headers, params=params) as resp:
                    self._log_rate_limit(endpoint, resp.headers)
                    data = await resp.json()
            else:
                # Body must be byte-identical to what was signed
                async with session.post(url, headers=headers, data=body_str) as resp:
                    self._log_rate_limit(endpoint, resp.headers)
                    data = await resp.json()

            if data.get("retCode") != 0:
                logger.log(
                    error_level,
                    f"[REST] {method} {endpoint} Error: "
                    f"code={data.get('retCode')}, msg={data.get('retMsg')}"
                )
            return data

        except Exception as e:
            logger.log(error_level, f"[REST] {method} {endpoint} Exception: {e}")
            raise

    # ==================== Market Endpoints ====================

    async def get_server_time(self) -> Dict:
        """
        Get the exchange's clock.
        result.timeSecond is epoch seconds as a string.
        """
        # Failed polls are reported by the clock synchronizer
        return await self._request("GET", "/v5/market/time", error_level=logging.DEBUG)

    # ==================== Trading Endpoints ====================

    async def place_order(self, order: OrderRequest) -> Dict:
        """Place an order."""
        params = order.to_params()
        logger.info(
            f"[ORDER] Placing: {params['side']} {params['qty']} {params['symbol']} "
            f"({params['orderType']}, {params['category']})"
        )
        return await self._request(
            "POST", "/v5/order/create", params, signed=True, error_level=logging.WARNING,
        )
