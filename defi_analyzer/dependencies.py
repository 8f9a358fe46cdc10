"""Wire providers and services from a single Settings object."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List

from .config import Settings
from .providers import CoingeckoProvider, DuneProvider, OneInchProvider, Provider
from .services.comparison import ComparisonEngine
from .services.report import ReportGenerator
from .services.tokens import TokenRegistry
from .services.transactions import TransactionService


@dataclass
class AnalyzerServices:
    transactions: TransactionService
    comparison: ComparisonEngine
    report: ReportGenerator
    providers: List[Provider]

    @classmethod
    def from_settings(cls, config: Settings) -> "AnalyzerServices":
        history = DuneProvider(config)
        quotes = OneInchProvider(config)
        prices = CoingeckoProvider(config)

        transactions = TransactionService(history)
        comparison = ComparisonEngine(
            transactions,
            quotes,
            TokenRegistry(prices),
            transaction_limit=config.comparison_transaction_limit,
            throttle_s=config.quote_throttle_seconds,
        )
        report = ReportGenerator(
            transactions,
            comparison,
            prices,
            transaction_limit=config.report_transaction_limit,
            price_source=config.volume_price_source,
        )
        return cls(
            transactions=transactions,
            comparison=comparison,
            report=report,
            providers=[history, quotes, prices],
        )

    async def health(self) -> Dict[str, Dict[str, Any]]:
        return {provider.name: await provider.health_check() for provider in self.providers}
