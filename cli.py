#!/usr/bin/env python3
"""Simple CLI for running the DeFi analyzer tools locally"""

import argparse
import asyncio
import json
import logging
from typing import Any, Dict

from defi_analyzer.config import settings
from defi_analyzer.dependencies import AnalyzerServices
from defi_analyzer.logging_config import setup_logging
from defi_analyzer.tools import ToolRegistry

logger = logging.getLogger("cli")


def print_report(report: Dict[str, Any]) -> None:
    """Pretty print a swap report payload"""
    if not report.get("success"):
        print(f"❌ Error: {report.get('error')}")
        return

    summary = report["summary"]
    gas = report["gasAnalysis"]
    routing = report["routingAnalysis"]

    print("\n📊 Swap Efficiency Report")
    print("=" * 50)
    print(f"Wallet: {report['wallet']}")
    print(f"Swaps: {summary['totalSwaps']}")
    print(f"Volume: ${summary['totalVolumeUSD']:,.2f} USD")
    print(f"Most used DEX: {summary['mostUsedDEX']}")
    print(f"Efficiency score: {summary['efficiencyScore']}/100")

    print("\nGas:")
    print("-" * 50)
    print(f"Total spent: {gas['totalGasSpent']:,} wei")
    print(f"Average price: {gas['averageGasPrice'] / 1e9:,.2f} gwei")
    print(f"Potential savings: {gas['potentialSavings']:,} wei ({gas['savingsPercentage']}%)")

    print("\nRouting:")
    print("-" * 50)
    print(f"Optimal: {routing['optimalRoutes']}  Suboptimal: {routing['suboptimalRoutes']}")
    for note in routing["missedOpportunities"]:
        print(f" - {note}")

    if report.get("recommendations"):
        print("\nRecommendations:")
        for item in report["recommendations"]:
            print(f" • {item}")

    time_range = report.get("timeRange") or {}
    if time_range.get("from"):
        print(f"\nTimeframe: {time_range['from']} → {time_range['to']}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="DeFi Swap Analyzer CLI")
    parser.add_argument("--log-level", default=None, help="Override LOG_LEVEL")
    parser.add_argument("--log-format", choices=["auto", "json", "console"], default=None, help="Override LOG_FORMAT")
    subparsers = parser.add_subparsers(dest="command")

    tx_parser = subparsers.add_parser("transactions", help="Recent swap transactions")
    tx_parser.add_argument("address", help="Wallet address")
    tx_parser.add_argument("--limit", type=int, default=10, help="Number of transactions (default: 10)")

    compare_parser = subparsers.add_parser("compare", help="Compare swaps with 1inch routes")
    compare_parser.add_argument("address", help="Wallet address")

    report_parser = subparsers.add_parser("report", help="Full swap efficiency report")
    report_parser.add_argument("address", help="Wallet address")
    report_parser.add_argument("--json", action="store_true", help="Print the raw JSON payload")

    subparsers.add_parser("tools", help="List available tools")

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API")
    serve_parser.add_argument("--host", default=settings.host)
    serve_parser.add_argument("--port", type=int, default=settings.port)

    return parser


async def run_tool(registry: ToolRegistry, name: str, arguments: Dict[str, Any]) -> Dict[str, Any]:
    response = await registry.call_tool(name, arguments)
    return json.loads(response.content[0].text)


async def main(args: argparse.Namespace) -> None:
    registry = ToolRegistry(AnalyzerServices.from_settings(settings))
    command = args.command

    if command == "tools":
        for tool in registry.list_tools():
            print(f"{tool['name']}: {tool['description']}")

    elif command == "transactions":
        print(f"🔍 Fetching swaps for {args.address}...")
        payload = await run_tool(
            registry, "get_user_transactions", {"walletAddress": args.address, "limit": args.limit}
        )
        print(json.dumps(payload, indent=2))

    elif command == "compare":
        print(f"🔍 Comparing swaps for {args.address} with 1inch...")
        payload = await run_tool(registry, "compare_with_1inch", {"walletAddress": args.address})
        print(json.dumps(payload, indent=2))

    elif command == "report":
        payload = await run_tool(registry, "generate_swap_report", {"walletAddress": args.address})
        if args.json:
            print(json.dumps(payload, indent=2))
        else:
            print_report(payload)


def run() -> None:
    parser = build_parser()
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        return

    if args.command == "serve":
        import uvicorn

        uvicorn.run("defi_analyzer.main:app", host=args.host, port=args.port)
        return

    setup_logging(args.log_level, args.log_format)
    for warning in settings.startup_warnings():
        logger.warning(warning)

    asyncio.run(main(args))


if __name__ == "__main__":
    run()
