from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class _Payload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class ComparisonRecord(_Payload):
    tx_hash: str = Field(alias="txHash", description="Compared transaction")
    actual_route: str = Field(alias="actualRoute", description="Venue the swap executed on")
    optimal_route: str = Field(alias="optimalRoute", description="First venue of the aggregator's best route")
    gas_difference: float = Field(alias="gasDifference", description="Actual minus optimal gas cost (wei)")
    slippage_difference: float = Field(alias="slippageDifference", description="Slippage of the executed swap")
    actual_amount_out: float = Field(alias="actualAmountOut", description="Tokens received")
    optimal_amount_out: float = Field(alias="optimalAmountOut", description="Tokens the aggregator quoted")


class ComparisonResult(_Payload):
    success: bool = Field(default=True)
    wallet: str = Field(description="Analyzed wallet")
    total_transactions: int = Field(alias="totalTransactions")
    total_actual_gas: float = Field(alias="totalActualGas")
    total_optimal_gas: float = Field(alias="totalOptimalGas")
    gas_savings_potential: float = Field(alias="gasSavingsPotential", ge=0)
    average_slippage_actual: float = Field(alias="averageSlippageActual")
    recommendations: List[str] = Field(default_factory=list)
    detailed_comparisons: List[ComparisonRecord] = Field(alias="detailedComparisons", default_factory=list)


class ReportSummary(_Payload):
    total_swaps: int = Field(alias="totalSwaps")
    total_volume_usd: float = Field(alias="totalVolumeUSD")
    average_gas_used: int = Field(alias="averageGasUsed")
    most_used_dex: str = Field(alias="mostUsedDEX")
    efficiency_score: int = Field(alias="efficiencyScore", ge=0, le=100)


class GasAnalysis(_Payload):
    total_gas_spent: int = Field(alias="totalGasSpent")
    average_gas_price: int = Field(alias="averageGasPrice")
    potential_savings: int = Field(alias="potentialSavings")
    savings_percentage: float = Field(alias="savingsPercentage")


class RoutingAnalysis(_Payload):
    optimal_routes: int = Field(alias="optimalRoutes")
    suboptimal_routes: int = Field(alias="suboptimalRoutes")
    missed_opportunities: List[str] = Field(alias="missedOpportunities")


class TimeRange(_Payload):
    from_: Optional[datetime] = Field(alias="from", default=None)
    to: Optional[datetime] = Field(default=None)


class SwapReportData(_Payload):
    success: bool = Field(default=True)
    wallet: str
    report_generated_at: datetime = Field(alias="reportGeneratedAt")
    summary: ReportSummary
    gas_analysis: GasAnalysis = Field(alias="gasAnalysis")
    routing_analysis: RoutingAnalysis = Field(alias="routingAnalysis")
    recommendations: List[str] = Field(default_factory=list)
    time_range: TimeRange = Field(alias="timeRange")
