"""
Thin Kraken Futures REST client used by the trading tools.

Only what the tools need: account balances, open positions/orders, order
cancellation and OHLC history. No retries and no pagination; callers (the
conversation engine) bound each call with their own timeout and report
failures back to the model.
"""

from __future__ import annotations

import base64
import hashlib
import hmac
import logging
import threading
import time
from typing import Any, Dict, Optional
from urllib.parse import urlencode

import requests

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://futures.kraken.com"
API_PREFIX = "/derivatives/api/v3"
CHARTS_PREFIX = "/api/charts/v1"

# Minutes -> chart resolution accepted by the charts endpoint.
RESOLUTIONS = {
    1: "1m",
    5: "5m",
    15: "15m",
    30: "30m",
    60: "1h",
    240: "4h",
    720: "12h",
    1440: "1d",
    10080: "1w",
}


class KrakenAPIError(Exception):
    """Raised for transport errors and for responses whose result is not 'success'."""


class KrakenFuturesClient:
    def __init__(
        self,
        api_key: str,
        api_secret: str,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 30,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.api_key = api_key
        self.api_secret = api_secret
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self._last_nonce = 0
        # Sibling tool calls sign from worker threads concurrently.
        self._nonce_lock = threading.Lock()

    # ------------------------------------------------------------------ auth

    def _nonce(self) -> str:
        with self._nonce_lock:
            nonce = max(int(time.time() * 1000), self._last_nonce + 1)
            self._last_nonce = nonce
        return str(nonce)

    def sign(self, endpoint_path: str, post_data: str, nonce: str) -> str:
        """
        Authent header: base64(HMAC-SHA512(base64decode(secret), SHA256(postData + nonce + path))).

        ``endpoint_path`` is the path without the ``/derivatives`` prefix, e.g. ``/api/v3/accounts``.
        """
        message = (post_data + nonce + endpoint_path).encode("utf-8")
        digest = hashlib.sha256(message).digest()
        secret = base64.b64decode(self.api_secret)
        return base64.b64encode(hmac.new(secret, digest, hashlib.sha512).digest()).decode("utf-8")

    # ------------------------------------------------------------- transport

    def _request(self, method: str, path: str, params: Optional[Dict[str, Any]] = None, private: bool = True) -> Dict[str, Any]:
        url = f"{self.base_url}{path}"
        post_data = urlencode(params or {})
        headers: Dict[str, str] = {}
        if private:
            nonce = self._nonce()
            headers = {
                "APIKey": self.api_key,
                "Nonce": nonce,
                "Authent": self.sign(path.replace("/derivatives", "", 1), post_data, nonce),
            }

        logger.debug("%s %s", method, path)
        try:
            if method == "GET":
                response = self.session.get(url, params=params or None, headers=headers, timeout=self.timeout)
            else:
                headers["Content-Type"] = "application/x-www-form-urlencoded"
                response = self.session.post(url, data=post_data, headers=headers, timeout=self.timeout)
            response.raise_for_status()
            body = response.json()
        except requests.RequestException as e:
            raise KrakenAPIError(f"Request failed: {e}") from e
        except ValueError as e:
            raise KrakenAPIError(f"Invalid JSON from {path}: {e}") from e

        if isinstance(body, dict) and body.get("result") not in (None, "success"):
            raise KrakenAPIError(str(body.get("error") or body))
        return body

    # ------------------------------------------------------------ endpoints

    def get_accounts(self) -> Dict[str, Any]:
        return self._request("GET", f"{API_PREFIX}/accounts")

    def get_open_positions(self) -> Dict[str, Any]:
        return self._request("GET", f"{API_PREFIX}/openpositions")

    def get_open_orders(self) -> Dict[str, Any]:
        return self._request("GET", f"{API_PREFIX}/openorders")

    def cancel_order(self, order_id: str) -> Dict[str, Any]:
        if not order_id:
            raise ValueError("order_id is required")
        return self._request("POST", f"{API_PREFIX}/cancelorder", {"order_id": order_id})

    def get_history(self, pair: str, interval: int = 60, tick_type: str = "trade") -> Dict[str, Any]:
        """OHLC candles for ``pair`` at ``interval`` minutes."""
        if not pair:
            raise ValueError("pair is required")
        try:
            resolution = RESOLUTIONS[int(interval)]
        except (KeyError, TypeError, ValueError):
            raise ValueError(
                f"Unsupported interval {interval!r}; expected one of {sorted(RESOLUTIONS)}"
            ) from None
        return self._request("GET", f"{CHARTS_PREFIX}/{tick_type}/{pair}/{resolution}", private=False)


__all__ = ["KrakenFuturesClient", "KrakenAPIError", "RESOLUTIONS"]
