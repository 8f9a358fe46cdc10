"""Composite swap efficiency report for a wallet."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Awaitable, List, Literal, Sequence

from ..providers.base import PriceProvider
from ..types import (
    ComparisonRecord,
    ComparisonResult,
    GasAnalysis,
    ReportSummary,
    RoutingAnalysis,
    SwapReportData,
    SwapTransaction,
    TimeRange,
)
from .address import require_wallet_address
from .comparison import ComparisonEngine, most_used_venue
from .rounding import round_half_up
from .transactions import TransactionService

logger = logging.getLogger(__name__)

SIGNIFICANT_GAS_DIFFERENCE = 50_000
BETTER_RATE_MARGIN = 1.01
HIGH_GAS_PRICE_WEI = 100e9
LOW_GAS_PRICE_WEI = 20e9
HIGH_VOLUME_USD = 100_000
LOW_VOLUME_USD = 1_000
FREQUENT_TRADER_SWAPS = 20

PriceSource = Literal["spot", "historical"]


@dataclass
class GasStats:
    total_gas_spent: float
    total_gas_used: int
    average_gas_used: int
    average_gas_price: float


def summarize_gas(transactions: Sequence[SwapTransaction]) -> GasStats:
    """Gas totals and means; zero gas used yields a zero mean price, never NaN."""

    total_gas_spent = sum(tx.gas_cost for tx in transactions)
    total_gas_used = sum(tx.gas_used for tx in transactions)
    average_gas_used = round_half_up(total_gas_used / len(transactions)) if transactions else 0
    average_gas_price = total_gas_spent / total_gas_used if total_gas_used > 0 else 0.0
    return GasStats(
        total_gas_spent=total_gas_spent,
        total_gas_used=total_gas_used,
        average_gas_used=average_gas_used,
        average_gas_price=average_gas_price,
    )


def is_outdated_venue(dex: str) -> bool:
    return "V1" in dex or "SushiSwap" in dex


def calculate_efficiency_score(
    gas_savings_potential: float,
    total_gas_spent: float,
    average_slippage: float,
    transactions: Sequence[SwapTransaction],
) -> float:
    score = 100.0

    if total_gas_spent > 0:
        score -= (gas_savings_potential / total_gas_spent) * 50

    score -= min(average_slippage * 10, 30)

    if transactions:
        outdated = sum(1 for tx in transactions if is_outdated_venue(tx.dex))
        score -= (outdated / len(transactions)) * 20

        # focused trading bonus
        unique_venues = len({tx.dex for tx in transactions})
        if unique_venues <= 3 and len(transactions) > 5:
            score += 5

    return max(0.0, min(100.0, score))


def calculate_routing_analysis(comparisons: Sequence[ComparisonRecord]) -> RoutingAnalysis:
    if not comparisons:
        return RoutingAnalysis(
            optimal_routes=0,
            suboptimal_routes=0,
            missed_opportunities=["No comparison data available"],
        )

    optimal_routes = sum(1 for c in comparisons if c.gas_difference <= 0)
    missed: List[str] = []

    significant_savings = sum(1 for c in comparisons if c.gas_difference > SIGNIFICANT_GAS_DIFFERENCE)
    if significant_savings:
        missed.append(f"{significant_savings} transactions could have saved significant gas")

    better_rates = sum(
        1 for c in comparisons if c.optimal_amount_out > c.actual_amount_out * BETTER_RATE_MARGIN
    )
    if better_rates:
        missed.append(f"{better_rates} transactions could have gotten better rates")

    if not missed:
        missed.append("Your routing choices were generally optimal!")

    return RoutingAnalysis(
        optimal_routes=optimal_routes,
        suboptimal_routes=len(comparisons) - optimal_routes,
        missed_opportunities=missed,
    )


def generate_report_recommendations(
    transactions: Sequence[SwapTransaction],
    comparison: ComparisonResult,
    efficiency_score: float,
    average_gas_price: float,
    total_volume_usd: float,
) -> List[str]:
    recommendations = list(comparison.recommendations)

    if efficiency_score < 50:
        recommendations.append("Your trading efficiency is below average - consider using DEX aggregators")
    elif efficiency_score < 70:
        recommendations.append("There's room for improvement in your trading efficiency")
    elif efficiency_score >= 90:
        recommendations.append("Excellent trading efficiency! You're doing great!")

    if average_gas_price > HIGH_GAS_PRICE_WEI:
        recommendations.append(
            "Consider timing your trades during lower gas periods (weekends, early morning UTC)"
        )
    elif average_gas_price < LOW_GAS_PRICE_WEI:
        recommendations.append("Great job timing your trades during low gas periods!")

    if total_volume_usd > HIGH_VOLUME_USD:
        recommendations.append(
            "For high-volume trading, consider using professional tools like DeFiSaver or Instadapp"
        )
    elif total_volume_usd < LOW_VOLUME_USD:
        recommendations.append("For small trades, consider batching transactions to save on gas costs")

    if len({tx.dex for tx in transactions}) == 1:
        recommendations.append(
            "Consider diversifying across multiple DEXes for better rates and reduced slippage"
        )

    if len(transactions) > FREQUENT_TRADER_SWAPS:
        recommendations.append("Consider using DCA (Dollar Cost Averaging) strategies for frequent trading")

    return recommendations


async def run_together(*coros: Awaitable[Any]) -> List[Any]:
    """Run coroutines concurrently; the first failure cancels the rest.

    Results come back in argument order. Sibling tasks are awaited after
    cancellation so their cleanup (e.g. releasing a Dune execution) finishes
    before the error propagates.
    """
    tasks = [asyncio.ensure_future(coro) for coro in coros]
    try:
        done, pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_EXCEPTION)
    except asyncio.CancelledError:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise

    if pending:
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)

    for task in tasks:
        if task in done and not task.cancelled() and task.exception() is not None:
            raise task.exception()
    return [task.result() for task in tasks]


def _empty_report(wallet_address: str) -> SwapReportData:
    return SwapReportData(
        wallet=wallet_address,
        report_generated_at=datetime.now(timezone.utc),
        summary=ReportSummary(
            total_swaps=0,
            total_volume_usd=0,
            average_gas_used=0,
            most_used_dex="N/A",
            efficiency_score=0,
        ),
        gas_analysis=GasAnalysis(
            total_gas_spent=0,
            average_gas_price=0,
            potential_savings=0,
            savings_percentage=0,
        ),
        routing_analysis=RoutingAnalysis(
            optimal_routes=0,
            suboptimal_routes=0,
            missed_opportunities=["No transactions found"],
        ),
        recommendations=["Start making some swaps to get analysis!"],
        time_range=TimeRange(),
    )


class ReportGenerator:
    def __init__(
        self,
        transactions: TransactionService,
        comparison: ComparisonEngine,
        prices: PriceProvider,
        *,
        transaction_limit: int = 50,
        price_source: PriceSource = "spot",
    ):
        self.transactions = transactions
        self.comparison = comparison
        self.prices = prices
        self.transaction_limit = transaction_limit
        self.price_source = price_source

    async def _price_for(self, tx: SwapTransaction) -> float:
        if self.price_source == "historical":
            return await self.prices.get_historical_token_price(tx.from_token, tx.timestamp)
        return await self.prices.get_token_price(tx.from_token)

    async def calculate_volume_usd(self, transactions: Sequence[SwapTransaction]) -> float:
        total_volume = 0.0

        for tx in transactions:
            if tx.usd_value and tx.usd_value > 0:
                total_volume += tx.usd_value
                continue
            try:
                price = await self._price_for(tx)
            except Exception as exc:
                logger.error("Error calculating volume for transaction %s: %s", tx.hash, exc)
                continue
            if price > 0:
                total_volume += tx.from_amount * price

        return total_volume

    async def generate(self, wallet_address: str) -> SwapReportData:
        require_wallet_address(wallet_address)

        # Independent fetches; counts may differ slightly between the two
        transactions, comparison = await run_together(
            self.transactions.get_user_transactions(wallet_address, self.transaction_limit),
            self.comparison.compare(wallet_address),
        )

        if not transactions:
            return _empty_report(wallet_address)

        total_volume_usd = await self.calculate_volume_usd(transactions)
        gas = summarize_gas(transactions)

        efficiency_score = calculate_efficiency_score(
            comparison.gas_savings_potential,
            gas.total_gas_spent,
            comparison.average_slippage_actual,
            transactions,
        )
        routing_analysis = calculate_routing_analysis(comparison.detailed_comparisons)
        recommendations = generate_report_recommendations(
            transactions,
            comparison,
            efficiency_score,
            gas.average_gas_price,
            total_volume_usd,
        )

        potential_savings = max(0.0, comparison.gas_savings_potential)
        savings_percentage = (
            potential_savings / gas.total_gas_spent * 100 if gas.total_gas_spent > 0 else 0.0
        )
        timestamps = [tx.timestamp for tx in transactions]

        return SwapReportData(
            wallet=wallet_address,
            report_generated_at=datetime.now(timezone.utc),
            summary=ReportSummary(
                total_swaps=len(transactions),
                total_volume_usd=round_half_up(total_volume_usd, 2),
                average_gas_used=gas.average_gas_used,
                most_used_dex=most_used_venue(transactions) or "Unknown",
                efficiency_score=round_half_up(efficiency_score),
            ),
            gas_analysis=GasAnalysis(
                total_gas_spent=round_half_up(gas.total_gas_spent),
                average_gas_price=round_half_up(gas.average_gas_price),
                potential_savings=round_half_up(potential_savings),
                savings_percentage=round_half_up(savings_percentage, 2),
            ),
            routing_analysis=routing_analysis,
            recommendations=recommendations,
            time_range=TimeRange(from_=min(timestamps), to=max(timestamps)),
        )
