import asyncio
import json
from datetime import datetime, timezone

import httpx
import pytest

from defi_analyzer.config import Settings
from defi_analyzer.errors import (
    MissingCredentialError,
    RateLimitedError,
    UpstreamFailureError,
    UpstreamTimeoutError,
)
from defi_analyzer.providers.dune import DuneProvider, swap_from_row

WALLET = "0xAbC0000000000000000000000000000000000001"


def _settings(**overrides):
    values = {
        "dune_api_key": "dune-key",
        "dune_poll_interval_seconds": 0,
        "dune_max_poll_attempts": 3,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


def _row(**overrides):
    row = {
        "tx_hash": "0xfeed",
        "block_time": "2024-03-05 10:20:30.000 UTC",
        "token_sold_symbol": "WETH",
        "token_bought_symbol": "USDC",
        "token_sold_address": "0xC02aaA39b223FE8D0A0e5C4F27eAD9083C756Cc2",
        "token_bought_address": "0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48",
        "token_sold_amount": 1.5,
        "token_bought_amount": "3750.25",
        "gas_used": 120000,
        "gas_price": 30000000000,
        "project": "uniswap",
        "version": "3",
        "amount_usd": 3750.0,
    }
    row.update(overrides)
    return row


class _DuneStub:
    """Scripted Dune API: one execute call, then the given result states."""

    def __init__(self, states, rows=None):
        self.states = list(states)
        self.rows = rows or []
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if path.endswith("/execute"):
            return httpx.Response(200, json={"execution_id": "01HEXEC", "state": "QUERY_STATE_PENDING"})
        if path.endswith("/cancel"):
            return httpx.Response(200, json={"success": True})
        state = self.states.pop(0) if self.states else "QUERY_STATE_EXECUTING"
        body = {"execution_id": "01HEXEC", "state": state}
        if state == "QUERY_STATE_COMPLETED":
            body["result"] = {"rows": self.rows}
        return httpx.Response(200, json=body)

    def paths(self):
        return [request.url.path for request in self.requests]


def test_swap_from_row_maps_fields():
    tx = swap_from_row(_row())

    assert tx.hash == "0xfeed"
    assert tx.timestamp == datetime(2024, 3, 5, 10, 20, 30, tzinfo=timezone.utc)
    assert tx.from_token == "WETH"
    assert tx.to_amount == 3750.25
    assert tx.gas_used == 120000
    assert tx.dex == "Uniswap V3"
    assert tx.usd_value == 3750.0
    assert tx.slippage is None


def test_swap_from_row_defaults_missing_fields():
    tx = swap_from_row({"project": "curve"})

    assert tx.hash == "unknown"
    assert tx.from_token == "UNKNOWN"
    assert tx.to_token == "UNKNOWN"
    assert tx.from_token_address == ""
    assert tx.from_amount == 0
    assert tx.gas_used == 0
    assert tx.dex == "curve"
    assert tx.timestamp.tzinfo is not None


def test_swap_from_row_rejects_non_numeric_usd_value():
    tx = swap_from_row(_row(amount_usd="NaN", slippage="0.4"))

    assert tx.usd_value is None
    assert tx.slippage == 0.4


@pytest.mark.asyncio
async def test_fetch_swaps_executes_and_polls_until_complete():
    stub = _DuneStub(["QUERY_STATE_EXECUTING", "QUERY_STATE_COMPLETED"], rows=[_row()])
    provider = DuneProvider(_settings(), transport=httpx.MockTransport(stub))

    swaps = await provider.fetch_swaps(WALLET, limit=5)

    assert len(swaps) == 1
    execute = stub.requests[0]
    assert execute.method == "POST"
    assert execute.url.path == "/api/v1/query/3238827/execute"
    assert execute.headers["X-Dune-API-Key"] == "dune-key"
    assert json.loads(execute.content) == {
        "query_parameters": {"wallet_address": WALLET.lower(), "limit_count": 5}
    }
    assert stub.paths()[1:] == ["/api/v1/execution/01HEXEC/results"] * 2


@pytest.mark.asyncio
async def test_fetch_swaps_reports_failed_execution():
    stub = _DuneStub(["QUERY_STATE_FAILED"])
    provider = DuneProvider(_settings(), transport=httpx.MockTransport(stub))

    with pytest.raises(UpstreamFailureError, match="QUERY_STATE_FAILED"):
        await provider.fetch_swaps(WALLET)


@pytest.mark.asyncio
async def test_fetch_swaps_times_out_after_attempt_budget():
    stub = _DuneStub([])
    provider = DuneProvider(_settings(dune_max_poll_attempts=3), transport=httpx.MockTransport(stub))

    with pytest.raises(UpstreamTimeoutError, match="Dune query execution timeout"):
        await provider.fetch_swaps(WALLET)

    assert len(stub.paths()) == 1 + 3


@pytest.mark.asyncio
async def test_missing_key_fails_without_network():
    stub = _DuneStub(["QUERY_STATE_COMPLETED"])
    provider = DuneProvider(_settings(dune_api_key=""), transport=httpx.MockTransport(stub))

    with pytest.raises(MissingCredentialError, match="DUNE_API_KEY"):
        await provider.fetch_swaps(WALLET)

    assert stub.requests == []
    assert (await provider.health_check())["status"] == "unavailable"


@pytest.mark.asyncio
async def test_rate_limit_is_reported():
    transport = httpx.MockTransport(lambda request: httpx.Response(429, json={"error": "slow down"}))
    provider = DuneProvider(_settings(), transport=transport)

    with pytest.raises(RateLimitedError) as exc:
        await provider.fetch_swaps(WALLET)

    assert exc.value.status_code == 429
    assert exc.value.provider == "dune"


@pytest.mark.asyncio
async def test_transport_error_becomes_upstream_failure():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    provider = DuneProvider(_settings(), transport=httpx.MockTransport(handler))

    with pytest.raises(UpstreamFailureError, match="Dune request failed"):
        await provider.fetch_swaps(WALLET)


@pytest.mark.asyncio
async def test_cancellation_cancels_remote_execution():
    stub = _DuneStub([])
    provider = DuneProvider(
        _settings(dune_poll_interval_seconds=0.01, dune_max_poll_attempts=1000),
        transport=httpx.MockTransport(stub),
    )

    task = asyncio.create_task(provider.fetch_swaps(WALLET))
    await asyncio.sleep(0.05)
    task.cancel()

    with pytest.raises(asyncio.CancelledError):
        await task

    assert stub.paths()[-1] == "/api/v1/execution/01HEXEC/cancel"
