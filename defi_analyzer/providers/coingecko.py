import logging
import math
from datetime import datetime
from typing import Any, Dict, Optional

import httpx

from .base import PriceProvider
from ..config import Settings, settings
from ..services.tokens import coingecko_id_for_symbol

logger = logging.getLogger(__name__)


class CoingeckoProvider(PriceProvider):
    """Coingecko API provider for token prices"""

    name = "coingecko"

    def __init__(
        self,
        config: Settings = settings,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = config.coingecko_api_key
        self.base_url = config.coingecko_base_url.rstrip("/")
        self.timeout_s = config.price_timeout_seconds
        self._transport = transport

    def _build_headers(self) -> Dict[str, str]:
        headers: Dict[str, str] = {}
        if self.api_key:
            headers["X-CG-Demo-API-Key"] = self.api_key
        return headers

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout_s, transport=self._transport)

    async def ready(self) -> bool:
        return True  # API key is optional for basic tier

    async def health_check(self) -> Dict[str, Any]:
        try:
            async with self._client() as client:
                response = await client.get(
                    f"{self.base_url}/ping",
                    headers=self._build_headers(),
                )
                response.raise_for_status()
                return {"status": "healthy", "latency_ms": int(response.elapsed.total_seconds() * 1000)}
        except Exception as e:
            return {"status": "error", "reason": str(e)}

    async def get_token_price(self, symbol: str) -> float:
        """Current USD price for a token symbol; 0.0 on any failure"""
        coin_id = coingecko_id_for_symbol(symbol)
        params = {"ids": coin_id, "vs_currencies": "usd"}

        try:
            async with self._client() as client:
                response = await client.get(
                    f"{self.base_url}/simple/price",
                    headers=self._build_headers(),
                    params=params,
                )
                response.raise_for_status()
                data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("Error fetching price for %s: %s", symbol, e)
            return 0.0

        return _usd_price((data.get(coin_id) or {}).get("usd"))

    async def get_historical_token_price(self, symbol: str, date: datetime) -> float:
        """USD price for a token on the given day; 0.0 on any failure"""
        coin_id = coingecko_id_for_symbol(symbol)
        # Coingecko expects dd-mm-yyyy
        params = {"date": date.strftime("%d-%m-%Y"), "localization": "false"}

        try:
            async with self._client() as client:
                response = await client.get(
                    f"{self.base_url}/coins/{coin_id}/history",
                    headers=self._build_headers(),
                    params=params,
                )
                response.raise_for_status()
                data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("Error fetching historical price for %s: %s", symbol, e)
            return 0.0

        market_data = data.get("market_data") or {}
        return _usd_price((market_data.get("current_price") or {}).get("usd"))

    async def get_token_info(self, token_address: str) -> Dict[str, Any]:
        """Get token metadata from Coingecko"""
        async with self._client() as client:
            response = await client.get(
                f"{self.base_url}/coins/ethereum/contract/{token_address}",
                headers=self._build_headers(),
            )

            if response.status_code == 404:
                return {}  # Token not found

            response.raise_for_status()
            data = response.json()

        return {
            "id": data.get("id"),
            "symbol": data.get("symbol", "").upper(),
            "name": data.get("name", ""),
            "decimals": data.get("detail_platforms", {}).get("ethereum", {}).get("decimal_place"),
            "contract_address": data.get("contract_address") or token_address.lower(),
            "_source": {"name": "coingecko", "url": "https://coingecko.com"}
        }


def _usd_price(value: Any) -> float:
    try:
        price = float(value)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(price) or price < 0:
        return 0.0
    return price
