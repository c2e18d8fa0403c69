"""Spot price lookups against the CoinGecko API."""
from __future__ import annotations

import logging
from typing import Optional

import requests

LOGGER = logging.getLogger(__name__)

COINGECKO_URL = "https://api.coingecko.com/api/v3"


class PriceUnavailable(RuntimeError):
    """Raised when the price API does not report a usable price."""


class PriceClient:
    def __init__(
        self,
        *,
        base_url: str = COINGECKO_URL,
        session: Optional[requests.Session] = None,
        timeout: float = 10,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._session = session or requests.Session()
        self._timeout = timeout

    def fetch_spot_price(self, asset_id: str = "ripple", vs_currency: str = "usd") -> float:
        params = {"ids": asset_id, "vs_currencies": vs_currency}
        url = f"{self._base_url}/simple/price"
        LOGGER.debug("Price request %s params=%s", url, params)
        response = self._session.request("GET", url, params=params, timeout=self._timeout)
        response.raise_for_status()
        payload = response.json()
        raw_price = (payload.get(asset_id) or {}).get(vs_currency)
        try:
            price = float(raw_price)
        except (TypeError, ValueError) as exc:
            raise PriceUnavailable(f"no {vs_currency} price for {asset_id}") from exc
        if price <= 0:
            raise PriceUnavailable(f"non-positive {vs_currency} price for {asset_id}: {price}")
        return price
