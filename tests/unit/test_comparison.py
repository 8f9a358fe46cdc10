from datetime import datetime, timedelta, timezone

import pytest

from defi_analyzer.errors import InvalidInputError, UpstreamTimeoutError
from defi_analyzer.services.comparison import (
    ComparisonEngine,
    generate_recommendations,
    most_used_venue,
)
from defi_analyzer.services.tokens import TokenRegistry
from defi_analyzer.services.transactions import TransactionService
from defi_analyzer.types import ComparisonRecord

from fakes import USDC, WALLET, WETH, FakeHistory, FakeQuotes, make_swap

T0 = datetime(2024, 1, 1, tzinfo=timezone.utc)


def _engine(swaps=(), quotes=None, history=None):
    history = history or FakeHistory(swaps)
    quotes = quotes or FakeQuotes()
    engine = ComparisonEngine(TransactionService(history), quotes, TokenRegistry(), throttle_s=0)
    return engine, history, quotes


def _record(gas_difference=0.0, actual_out=1.0, optimal_out=1.0):
    return ComparisonRecord(
        tx_hash="0x1",
        actual_route="Uniswap V3",
        optimal_route="UNISWAP_V3",
        gas_difference=gas_difference,
        slippage_difference=0,
        actual_amount_out=actual_out,
        optimal_amount_out=optimal_out,
    )


@pytest.mark.asyncio
async def test_single_swap_savings():
    engine, _, quotes = _engine([make_swap(gas_used=100_000, gas_price=50)], FakeQuotes(estimated_gas=80_000))

    result = await engine.compare(WALLET)

    assert result.success is True
    assert result.total_transactions == 1
    assert result.total_actual_gas == 5_000_000
    assert result.total_optimal_gas == 4_000_000
    assert result.gas_savings_potential == 1_000_000
    assert result.recommendations[:2] == [
        "Consider using 1inch aggregator for better gas efficiency",
        "Potential gas savings: 0.0010 Gwei (20.0%)",
    ]

    record = result.detailed_comparisons[0]
    assert record.gas_difference == 1_000_000
    assert record.optimal_route == "UNISWAP_V3"
    assert record.optimal_amount_out == 2500.0
    assert quotes.calls[0]["amount"] == "1000000000000000000"


@pytest.mark.asyncio
async def test_no_transactions_returns_advisory():
    engine, _, quotes = _engine([])

    result = await engine.compare(WALLET)

    assert result.total_transactions == 0
    assert result.gas_savings_potential == 0
    assert result.detailed_comparisons == []
    assert result.recommendations == ["No transactions found for analysis"]
    assert quotes.calls == []


@pytest.mark.asyncio
async def test_failed_quote_is_skipped():
    swaps = [make_swap(hash=f"0x{i}", timestamp=T0 - timedelta(minutes=i)) for i in range(5)]
    engine, _, _ = _engine(swaps, FakeQuotes(fail_on_calls=[3]))

    result = await engine.compare(WALLET)

    assert result.total_transactions == 5
    assert [c.tx_hash for c in result.detailed_comparisons] == ["0x0", "0x1", "0x3", "0x4"]


@pytest.mark.asyncio
async def test_swap_without_token_addresses_is_skipped():
    swaps = [
        make_swap(hash="0xa", timestamp=T0),
        make_swap(hash="0xb", timestamp=T0 - timedelta(minutes=1), to_token_address=""),
    ]
    engine, _, quotes = _engine(swaps)

    result = await engine.compare(WALLET)

    assert [c.tx_hash for c in result.detailed_comparisons] == ["0xa"]
    assert len(quotes.calls) == 1


@pytest.mark.asyncio
async def test_savings_never_negative():
    engine, _, _ = _engine([make_swap()], FakeQuotes(estimated_gas=200_000))

    result = await engine.compare(WALLET)

    assert result.gas_savings_potential == 0
    assert result.total_optimal_gas > result.total_actual_gas
    assert result.recommendations[0] == "Your gas usage is already quite efficient!"


@pytest.mark.asyncio
async def test_amounts_scaled_by_token_decimals():
    swap = make_swap(
        from_token="USDC",
        to_token="WETH",
        from_token_address=USDC,
        to_token_address=WETH,
        from_amount=1.5,
    )
    engine, _, quotes = _engine([swap], FakeQuotes(to_amount="2000000000000000000"))

    result = await engine.compare(WALLET)

    assert quotes.calls[0]["amount"] == "1500000"
    assert quotes.calls[0]["src_decimals"] == 6
    assert result.detailed_comparisons[0].optimal_amount_out == 2.0


@pytest.mark.asyncio
async def test_average_slippage_uses_compared_swaps():
    swaps = [
        make_swap(hash="0xa", timestamp=T0, slippage=1.5),
        make_swap(hash="0xb", timestamp=T0 - timedelta(minutes=1), slippage=None),
    ]
    engine, _, _ = _engine(swaps)

    result = await engine.compare(WALLET)

    assert result.average_slippage_actual == 0.75


@pytest.mark.asyncio
async def test_invalid_wallet_rejected():
    engine, history, _ = _engine([make_swap()])

    with pytest.raises(InvalidInputError):
        await engine.compare("not-a-wallet")

    assert history.calls == []


@pytest.mark.asyncio
async def test_retrieval_failure_aborts():
    history = FakeHistory(error=UpstreamTimeoutError("Dune query execution timeout", provider="dune"))
    engine, _, _ = _engine(history=history)

    with pytest.raises(UpstreamTimeoutError):
        await engine.compare(WALLET)


def test_most_used_venue_prefers_first_seen_on_tie():
    swaps = [make_swap(dex="Uniswap V3"), make_swap(dex="Uniswap V2")]

    assert most_used_venue(swaps) == "Uniswap V3"
    assert most_used_venue([]) is None


def test_recommendations_for_uniswap_v2_users():
    swaps = [make_swap(dex="Uniswap V2"), make_swap(dex="Uniswap V2"), make_swap(dex="Curve")]

    recommendations = generate_recommendations(swaps, 0, 100, 0, [])

    assert "Consider upgrading to Uniswap V3 for better capital efficiency and lower slippage" in recommendations


def test_recommendations_for_slippage():
    high = generate_recommendations([make_swap()], 0, 100, 1.2, [])
    moderate = generate_recommendations([make_swap()], 0, 100, 0.7, [])
    low = generate_recommendations([make_swap()], 0, 100, 0.3, [])

    assert "Your average slippage is 1.20% - consider using limit orders or splitting large trades" in high
    assert "Consider adjusting slippage tolerance or timing trades during less volatile periods" in moderate
    assert low == ["Your gas usage is already quite efficient!"]


def test_recommendations_for_suboptimal_routes():
    route_warning = "Many of your trades used suboptimal routes - consider using DEX aggregators"
    mostly_optimal = [_record(-1), _record(-1), _record(-1), _record(-1)]
    one_in_three = [_record(10), _record(-1), _record(-1)]

    assert route_warning not in generate_recommendations([make_swap()], 0, 100, 0, mostly_optimal)
    assert route_warning in generate_recommendations([make_swap()], 0, 100, 0, one_in_three)


def test_recommendations_for_high_value_trades():
    recommendations = generate_recommendations([make_swap(usd_value=5000.0)], 0, 100, 0, [])

    assert recommendations[-1] == (
        "For high-value trades, consider using professional trading interfaces with better routing"
    )
