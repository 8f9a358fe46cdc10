"""
Token metadata used when talking to the quote and price providers.

Major Ethereum mainnet tokens are served from a static table. Anything else
has its decimals looked up through the metadata provider and memoised for the
life of the process.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Protocol

from ..errors import UnresolvedTokenError
from .address import is_token_address

logger = logging.getLogger(__name__)

DEFAULT_DECIMALS = 18


@dataclass(frozen=True)
class TokenConfig:
    symbol: str
    address: str
    decimals: int
    coingecko_id: str


KNOWN_TOKENS: Dict[str, TokenConfig] = {
    "WETH": TokenConfig("WETH", "0xC02aaA39b223FE8D0A0e5C4F27eAD9083C756Cc2", 18, "weth"),
    "USDC": TokenConfig("USDC", "0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48", 6, "usd-coin"),
    "USDT": TokenConfig("USDT", "0xdAC17F958D2ee523a2206206994597C13D831ec7", 6, "tether"),
    "DAI": TokenConfig("DAI", "0x6B175474E89094C44Da98b954EedeAC495271d0F", 18, "dai"),
    "WBTC": TokenConfig("WBTC", "0x2260FAC5E5542a773Aa44fBCfeDf7C193bc2C599", 8, "wrapped-bitcoin"),
}

_BY_ADDRESS: Dict[str, TokenConfig] = {token.address.lower(): token for token in KNOWN_TOKENS.values()}

# Price-only aliases that have no entry in the quote table
_COINGECKO_IDS: Dict[str, str] = {
    "ETH": "ethereum",
    "BTC": "bitcoin",
}


def _normalize_symbol(symbol: str) -> str:
    return (symbol or "").upper().strip()


def resolve_token_address(identifier: str) -> str:
    """Return a contract address for an address or known symbol.

    Raises:
        UnresolvedTokenError: symbol is not in the static table
    """
    if is_token_address(identifier):
        return identifier
    token = KNOWN_TOKENS.get(_normalize_symbol(identifier))
    if token is None:
        raise UnresolvedTokenError(identifier)
    return token.address


def coingecko_id_for_symbol(symbol: str) -> str:
    normalized = _normalize_symbol(symbol)
    token = KNOWN_TOKENS.get(normalized)
    if token is not None:
        return token.coingecko_id
    return _COINGECKO_IDS.get(normalized, normalized.lower())


def known_decimals(address: str) -> Optional[int]:
    token = _BY_ADDRESS.get((address or "").lower())
    return token.decimals if token else None


class TokenMetadataSource(Protocol):
    async def get_token_info(self, token_address: str) -> Dict[str, Any]:
        ...


class TokenRegistry:
    """Resolve token decimals: static table, then metadata provider, then 18."""

    def __init__(self, metadata: Optional[TokenMetadataSource] = None):
        self._metadata = metadata
        self._decimals_cache: Dict[str, int] = {}
        self._lock = asyncio.Lock()

    async def get_decimals(self, address: str) -> int:
        static = known_decimals(address)
        if static is not None:
            return static

        key = (address or "").lower()
        # Held across the lookup so concurrent misses hit Coingecko once
        async with self._lock:
            cached = self._decimals_cache.get(key)
            if cached is not None:
                return cached

            decimals = await self._lookup_decimals(address)
            if decimals is not None:
                self._decimals_cache[key] = decimals
                return decimals

        logger.warning("No decimals for token %s; assuming %d", address, DEFAULT_DECIMALS)
        return DEFAULT_DECIMALS

    async def _lookup_decimals(self, address: str) -> Optional[int]:
        if self._metadata is None or not is_token_address(address):
            return None
        try:
            info = await self._metadata.get_token_info(address)
        except Exception as exc:
            # transient failures are not cached
            logger.warning("Token metadata lookup failed for %s: %s", address, exc)
            return None

        decimals = info.get("decimals") if info else None
        if isinstance(decimals, int) and decimals >= 0:
            return decimals
        return None
