"""Compare executed swaps against aggregator quotes for the same trade."""

from __future__ import annotations

import asyncio
import logging
from collections import Counter
from decimal import Decimal
from typing import List, NamedTuple, Optional, Sequence

from ..errors import AnalyzerError
from ..providers.base import QuoteProvider
from ..types import ComparisonRecord, ComparisonResult, SwapTransaction
from .address import require_wallet_address
from .rounding import round_half_up
from .tokens import TokenRegistry
from .transactions import TransactionService

logger = logging.getLogger(__name__)

SUBOPTIMAL_SHARE_THRESHOLD = 0.3
HIGH_VALUE_TRADE_USD = 1000


class PairedComparison(NamedTuple):
    record: ComparisonRecord
    actual_gas: float
    optimal_gas: float


def most_used_venue(transactions: Sequence[SwapTransaction]) -> Optional[str]:
    """Venue with the most swaps; ties go to the venue seen first."""

    counts = Counter(tx.dex for tx in transactions)
    top = counts.most_common(1)
    return top[0][0] if top else None


def generate_recommendations(
    transactions: Sequence[SwapTransaction],
    gas_savings_potential: float,
    total_actual_gas: float,
    average_slippage: float,
    comparisons: Sequence[ComparisonRecord],
) -> List[str]:
    recommendations: List[str] = []

    if gas_savings_potential > 0:
        savings_percentage = (gas_savings_potential / total_actual_gas) * 100 if total_actual_gas else 0.0
        recommendations.append("Consider using 1inch aggregator for better gas efficiency")
        recommendations.append(
            f"Potential gas savings: {gas_savings_potential / 1e9:.4f} Gwei ({savings_percentage:.1f}%)"
        )
    else:
        recommendations.append("Your gas usage is already quite efficient!")

    if most_used_venue(transactions) == "Uniswap V2":
        recommendations.append(
            "Consider upgrading to Uniswap V3 for better capital efficiency and lower slippage"
        )

    if average_slippage > 1.0:
        recommendations.append(
            f"Your average slippage is {average_slippage:.2f}% - consider using limit orders or splitting large trades"
        )
    elif average_slippage > 0.5:
        recommendations.append(
            "Consider adjusting slippage tolerance or timing trades during less volatile periods"
        )

    suboptimal_routes = sum(1 for c in comparisons if c.gas_difference > 0)
    if suboptimal_routes > len(comparisons) * SUBOPTIMAL_SHARE_THRESHOLD:
        recommendations.append(
            "Many of your trades used suboptimal routes - consider using DEX aggregators"
        )

    if any((tx.usd_value or 0) > HIGH_VALUE_TRADE_USD for tx in transactions):
        recommendations.append(
            "For high-value trades, consider using professional trading interfaces with better routing"
        )

    return recommendations


def _empty_result(wallet_address: str) -> ComparisonResult:
    return ComparisonResult(
        wallet=wallet_address,
        total_transactions=0,
        total_actual_gas=0,
        total_optimal_gas=0,
        gas_savings_potential=0,
        average_slippage_actual=0,
        recommendations=["No transactions found for analysis"],
        detailed_comparisons=[],
    )


class ComparisonEngine:
    def __init__(
        self,
        transactions: TransactionService,
        quotes: QuoteProvider,
        tokens: TokenRegistry,
        *,
        transaction_limit: int = 10,
        throttle_s: float = 0.1,
    ):
        self.transactions = transactions
        self.quotes = quotes
        self.tokens = tokens
        self.transaction_limit = transaction_limit
        self.throttle_s = throttle_s

    async def compare_transaction(self, tx: SwapTransaction) -> PairedComparison:
        from_decimals = await self.tokens.get_decimals(tx.from_token_address)
        to_decimals = await self.tokens.get_decimals(tx.to_token_address)

        amount_in = int(Decimal(str(tx.from_amount)) * (Decimal(10) ** from_decimals))
        quote = await self.quotes.get_quote(
            tx.from_token_address,
            tx.to_token_address,
            str(amount_in),
            src_symbol=tx.from_token,
            dst_symbol=tx.to_token,
            src_decimals=from_decimals,
        )

        actual_gas = tx.gas_cost
        optimal_gas = quote.estimated_gas * tx.gas_price
        optimal_amount_out = float(Decimal(quote.to_amount) / (Decimal(10) ** to_decimals))

        record = ComparisonRecord(
            tx_hash=tx.hash,
            actual_route=tx.dex,
            optimal_route=quote.best_protocol,
            gas_difference=actual_gas - optimal_gas,
            slippage_difference=tx.slippage or 0,
            actual_amount_out=tx.to_amount,
            optimal_amount_out=optimal_amount_out,
        )
        return PairedComparison(record, actual_gas, optimal_gas)

    async def compare(self, wallet_address: str) -> ComparisonResult:
        require_wallet_address(wallet_address)

        transactions = await self.transactions.get_user_transactions(
            wallet_address, self.transaction_limit
        )
        if not transactions:
            return _empty_result(wallet_address)

        detailed_comparisons: List[ComparisonRecord] = []
        total_actual_gas = 0.0
        total_optimal_gas = 0.0
        total_slippage = 0.0

        for tx in transactions:
            if not tx.from_token_address or not tx.to_token_address:
                logger.warning("Skipping transaction %s: missing token addresses", tx.hash)
                continue

            try:
                paired = await self.compare_transaction(tx)
            except (AnalyzerError, ArithmeticError, ValueError) as exc:
                logger.error("Error comparing transaction %s: %s", tx.hash, exc)
                continue

            total_actual_gas += paired.actual_gas
            total_optimal_gas += paired.optimal_gas
            total_slippage += paired.record.slippage_difference
            detailed_comparisons.append(paired.record)

            await asyncio.sleep(self.throttle_s)

        gas_savings_potential = max(0.0, total_actual_gas - total_optimal_gas)
        average_slippage = total_slippage / len(detailed_comparisons) if detailed_comparisons else 0.0

        recommendations = generate_recommendations(
            transactions,
            gas_savings_potential,
            total_actual_gas,
            average_slippage,
            detailed_comparisons,
        )

        return ComparisonResult(
            wallet=wallet_address,
            total_transactions=len(transactions),
            total_actual_gas=total_actual_gas,
            total_optimal_gas=total_optimal_gas,
            gas_savings_potential=gas_savings_potential,
            average_slippage_actual=round_half_up(average_slippage, 2),
            recommendations=recommendations,
            detailed_comparisons=detailed_comparisons,
        )
