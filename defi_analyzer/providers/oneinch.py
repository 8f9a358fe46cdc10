"""
1inch Swap API provider for best-route quotes.

Only the quote endpoint is used: the aggregator's estimate of output amount,
gas and route for a swap, without building a transaction.

Docs: https://portal.1inch.dev/documentation/apis/swap/classic-swap/introduction
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional

import httpx

from .base import QuoteProvider
from ..config import Settings, settings
from ..errors import InvalidInputError, RateLimitedError, UpstreamFailureError
from ..services.tokens import resolve_token_address

logger = logging.getLogger(__name__)

DEFAULT_ESTIMATED_GAS = 150_000
DEFAULT_PROTOCOL = "1inch Aggregated"


@dataclass
class QuoteResult:
    """Normalized aggregator quote."""
    to_amount: str  # smallest unit
    estimated_gas: int
    protocols: List[List[str]] = field(default_factory=lambda: [[DEFAULT_PROTOCOL]])
    from_amount: str = "0"

    @property
    def best_protocol(self) -> str:
        if self.protocols and self.protocols[0]:
            return self.protocols[0][0]
        return DEFAULT_PROTOCOL


def to_base_units(amount: str, decimals: int) -> str:
    """Scale a decimal token amount to an integer string of base units."""

    if "." not in amount:
        return amount
    try:
        scaled = Decimal(amount) * (Decimal(10) ** decimals)
    except InvalidOperation as exc:
        raise InvalidInputError(f"Invalid token amount: {amount}") from exc
    return str(int(scaled))


def _route_names(route: Any) -> List[str]:
    """Flatten one route (hops → parts) into the venue names it touches."""

    names: List[str] = []

    def visit(node: Any) -> None:
        if isinstance(node, str):
            names.append(node)
        elif isinstance(node, dict):
            name = node.get("name")
            if name:
                names.append(str(name))
        elif isinstance(node, list):
            for child in node:
                visit(child)

    visit(route)
    return names


def normalize_protocols(raw: Any) -> List[List[str]]:
    if not isinstance(raw, list) or not raw:
        return [[DEFAULT_PROTOCOL]]
    routes = [_route_names(route) for route in raw]
    routes = [route for route in routes if route]
    return routes or [[DEFAULT_PROTOCOL]]


def _to_gas(value: Any) -> int:
    try:
        gas = int(value)
    except (TypeError, ValueError):
        return DEFAULT_ESTIMATED_GAS
    return gas if gas > 0 else DEFAULT_ESTIMATED_GAS


class OneInchProvider(QuoteProvider):
    """Quote client for the 1inch classic swap API."""

    name = "1inch"

    def __init__(
        self,
        config: Settings = settings,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.api_key = config.oneinch_api_key
        self.base_url = config.oneinch_base_url.rstrip("/")
        self.timeout_s = config.oneinch_timeout_seconds
        self._transport = transport

    def _headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    async def ready(self) -> bool:
        return True  # API key is optional; public tier is rate limited

    async def health_check(self) -> Dict[str, Any]:
        return {
            "status": "healthy",
            "tier": "authenticated" if self.api_key else "public",
        }

    async def get_quote(
        self,
        src: str,
        dst: str,
        amount: str,
        *,
        src_symbol: Optional[str] = None,
        dst_symbol: Optional[str] = None,
        src_decimals: int = 18,
    ) -> QuoteResult:
        """
        Get a swap quote from 1inch.

        Args:
            src: Token address or symbol being sold
            dst: Token address or symbol being bought
            amount: Amount in base units, or a decimal amount in token units
            src_symbol: Symbol used when `src` is not an address
            dst_symbol: Symbol used when `dst` is not an address
            src_decimals: Decimals used to scale a decimal `amount`

        Raises:
            UnresolvedTokenError: a symbol has no known address
            RateLimitedError: 1inch answered HTTP 429
            UpstreamFailureError: any other request failure
        """
        src_address = src if src.startswith("0x") else resolve_token_address(src_symbol or src)
        dst_address = dst if dst.startswith("0x") else resolve_token_address(dst_symbol or dst)
        amount_in = to_base_units(str(amount), src_decimals)

        params = {
            "src": src_address,
            "dst": dst_address,
            "amount": amount_in,
            "includeProtocols": "true",
            "includeGas": "true",
        }

        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout_s,
                transport=self._transport,
            ) as client:
                response = await client.get("/quote", headers=self._headers(), params=params)
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            if status == 429:
                raise RateLimitedError(
                    "1inch API rate limit exceeded. Please try again later.",
                    provider=self.name,
                    status_code=status,
                ) from exc
            raise UpstreamFailureError(
                f"Failed to get 1inch quote: HTTP {status}",
                provider=self.name,
                status_code=status,
            ) from exc
        except (httpx.RequestError, ValueError) as exc:
            raise UpstreamFailureError(f"Failed to get 1inch quote: {exc}", provider=self.name) from exc

        to_amount = data.get("toAmount") or data.get("toTokenAmount") or "0"
        return QuoteResult(
            to_amount=str(to_amount),
            estimated_gas=_to_gas(data.get("gas") or data.get("estimatedGas")),
            protocols=normalize_protocols(data.get("protocols")),
            from_amount=amount_in,
        )
