from .analysis import (
    ComparisonRecord,
    ComparisonResult,
    GasAnalysis,
    ReportSummary,
    RoutingAnalysis,
    SwapReportData,
    TimeRange,
)
from .envelope import TextContent, ToolCallRequest, ToolFailure, ToolResponse
from .swaps import SwapTransaction, TransactionsPayload

__all__ = [
    "SwapTransaction",
    "TransactionsPayload",
    "ComparisonRecord",
    "ComparisonResult",
    "ReportSummary",
    "GasAnalysis",
    "RoutingAnalysis",
    "TimeRange",
    "SwapReportData",
    "TextContent",
    "ToolCallRequest",
    "ToolFailure",
    "ToolResponse",
]
