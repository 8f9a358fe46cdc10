from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, List, Optional

from ..types import SwapTransaction


class Provider(ABC):
    """Base provider interface"""

    name: str
    timeout_s: int = 10

    @abstractmethod
    async def ready(self) -> bool:
        """Check if provider is ready to serve requests"""
        pass

    @abstractmethod
    async def health_check(self) -> Dict[str, Any]:
        """Return provider health status"""
        pass


class HistoryProvider(Provider):
    """Provider for a wallet's historical DEX trades"""

    @abstractmethod
    async def fetch_swaps(self, wallet_address: str, limit: int = 10) -> List[SwapTransaction]:
        """Get recent swaps for a wallet in provider order"""
        pass


class QuoteProvider(Provider):
    """Provider for aggregator swap quotes"""

    @abstractmethod
    async def get_quote(
        self,
        src: str,
        dst: str,
        amount: str,
        *,
        src_symbol: Optional[str] = None,
        dst_symbol: Optional[str] = None,
        src_decimals: int = 18,
    ) -> Any:
        """Get the best-route quote for swapping `amount` of src into dst"""
        pass


class PriceProvider(Provider):
    """Provider for token price data"""

    @abstractmethod
    async def get_token_price(self, symbol: str) -> float:
        """Current USD price, 0.0 when unavailable"""
        pass

    @abstractmethod
    async def get_historical_token_price(self, symbol: str, date: datetime) -> float:
        """USD price on a given day, 0.0 when unavailable"""
        pass

    @abstractmethod
    async def get_token_info(self, token_address: str) -> Dict[str, Any]:
        """Get token metadata (symbol, name, decimals)"""
        pass
