"""
Bybit V5 REST client (conservative test-net default).

• Credentials are passed in by the caller; nothing is read from the environment here.
• Defaults to test-net base. Set testnet=False or base_url to switch to main-net.
• GET requests back off and retry on 429/5xx/network errors; order POSTs are sent once.
• Exposes get_tickers / get_wallet_balance / get_position_info / submit_order.
"""

from __future__ import annotations

import hashlib
import hmac
import json
import time
from typing import Any, Dict, Optional
from urllib.parse import urlencode

import requests
from loguru import logger

from .errors import ExchangeError, ExchangeTransportError
from .exchange_base import ExchangeBase

DEFAULT_TESTNET_BASE = "https://api-testnet.bybit.com"
DEFAULT_MAINNET_BASE = "https://api.bybit.com"

RETRY_STATUS = (429, 502, 503, 504)


class BybitExchange(ExchangeBase):
    def __init__(
        self,
        api_key: str,
        api_secret: str,
        base_url: Optional[str] = None,
        timeout: int = 10,
        max_retries: int = 2,
        backoff: float = 0.5,
        recv_window: int = 5000,
        testnet: bool = True,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.api_key = api_key
        self.api_secret = api_secret
        self.timeout = timeout
        self.max_retries = max_retries
        self.backoff = backoff
        self.recv_window = str(recv_window)
        self.session = session or requests.Session()
        self.base_url = base_url or (DEFAULT_TESTNET_BASE if testnet else DEFAULT_MAINNET_BASE)
        if not (self.api_key and self.api_secret):
            logger.warning("Bybit client instantiated without credentials; private requests will fail.")

    # ---------------------------------------------------------------------
    # Signing helpers
    # ---------------------------------------------------------------------
    def _sign(self, payload: str, ts: str) -> str:
        message = f"{ts}{self.api_key}{self.recv_window}{payload}"
        return hmac.new(self.api_secret.encode(), message.encode(), hashlib.sha256).hexdigest()

    def _headers(self, payload: str) -> Dict[str, str]:
        ts = str(int(time.time() * 1000))
        return {
            "Content-Type": "application/json",
            "X-BAPI-API-KEY": self.api_key,
            "X-BAPI-TIMESTAMP": ts,
            "X-BAPI-RECV-WINDOW": self.recv_window,
            "X-BAPI-SIGN": self._sign(payload, ts),
        }

    def _send(self, method: str, path: str, params: Dict[str, Any] | None, body: Dict[str, Any] | None):
        url = self.base_url.rstrip("/") + path
        if method == "GET":
            query = urlencode(params or {})
            return self.session.request(
                method,
                url + (f"?{query}" if query else ""),
                headers=self._headers(query),
                timeout=self.timeout,
            )
        body_str = json.dumps(body or {}, separators=(",", ":"))
        return self.session.request(
            method,
            url,
            data=body_str,
            headers=self._headers(body_str),
            timeout=self.timeout,
        )

    def _request(
        self,
        method: str,
        path: str,
        params: Dict[str, Any] | None = None,
        body: Dict[str, Any] | None = None,
    ) -> Dict[str, Any]:
        # order placement is not idempotent: one attempt only
        retries = self.max_retries if method == "GET" else 0
        attempt = 0
        while True:
            try:
                resp = self._send(method, path, params, body)
            except requests.RequestException as exc:
                if attempt >= retries:
                    raise ExchangeTransportError(f"{method} {path} failed: {exc}") from exc
                wait = self.backoff * (2 ** attempt)
                logger.warning("Request error {} {}: {} (retry {:.2f}s)", method, path, exc, wait)
                time.sleep(wait)
                attempt += 1
                continue
            if resp.status_code in RETRY_STATUS and attempt < retries:
                wait = self.backoff * (2 ** attempt)
                logger.warning("{} {} returned {}, retry in {:.2f}s", method, path, resp.status_code, wait)
                time.sleep(wait)
                attempt += 1
                continue
            return self._unwrap(method, path, resp)

    @staticmethod
    def _unwrap(method: str, path: str, resp) -> Dict[str, Any]:
        if resp.status_code != 200:
            logger.error("Error {} {} {}: {}", method, path, resp.status_code, resp.text)
            raise ExchangeTransportError(f"{method} {path} returned HTTP {resp.status_code}")
        try:
            data = resp.json()
        except ValueError as exc:
            raise ExchangeTransportError(f"{method} {path} returned non-JSON body") from exc
        if not isinstance(data, dict):
            raise ExchangeTransportError(f"{method} {path} returned malformed body")
        ret_code = data.get("retCode")
        if ret_code != 0:
            raise ExchangeError(str(data.get("retMsg") or "unknown error"), ret_code=ret_code)
        result = data.get("result")
        if result is None or result == "":
            return {}
        if not isinstance(result, dict):
            raise ExchangeTransportError(f"{method} {path} returned malformed result")
        return result

    # ------------------------------------------------------------------
    # Public API wrappers
    # ------------------------------------------------------------------
    def get_tickers(self, category: str, symbol: str) -> Dict[str, Any]:
        return self._request("GET", "/v5/market/tickers", params={"category": category, "symbol": symbol})

    def get_wallet_balance(self, account_type: str, coin: str) -> Dict[str, Any]:
        return self._request("GET", "/v5/account/wallet-balance", params={"accountType": account_type, "coin": coin})

    def get_position_info(self, category: str, symbol: str) -> Dict[str, Any]:
        return self._request("GET", "/v5/position/list", params={"category": category, "symbol": symbol})

    def submit_order(self, body: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("POST", "/v5/order/create", body=body)
