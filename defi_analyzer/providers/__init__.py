from .base import HistoryProvider, PriceProvider, Provider, QuoteProvider
from .coingecko import CoingeckoProvider
from .dune import DuneProvider
from .oneinch import OneInchProvider, QuoteResult

__all__ = [
    "Provider",
    "HistoryProvider",
    "QuoteProvider",
    "PriceProvider",
    "CoingeckoProvider",
    "DuneProvider",
    "OneInchProvider",
    "QuoteResult",
]
