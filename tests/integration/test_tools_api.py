import json

from fastapi.testclient import TestClient

from defi_analyzer.errors import MissingCredentialError
from defi_analyzer.main import create_app
from defi_analyzer.types.envelope import FAILURE_MESSAGE

from fakes import WALLET, FakeHistory, FakePrices, build_services, make_swap


def _client(history=None):
    services = build_services(history or FakeHistory([make_swap()]), prices=FakePrices(spot={"WETH": 2000.0}))
    return TestClient(create_app(services=services))


def _payload(response):
    assert response.status_code == 200
    body = response.json()
    assert body["content"][0]["type"] == "text"
    return json.loads(body["content"][0]["text"])


def test_root_describes_service():
    resp = _client().get("/")

    assert resp.status_code == 200
    assert resp.json()["name"] == "defi-analyzer"
    assert resp.json()["version"] == "1.0.0"


def test_list_tools():
    resp = _client().get("/tools")

    assert resp.status_code == 200
    tools = {tool["name"]: tool for tool in resp.json()["tools"]}
    assert set(tools) == {"get_user_transactions", "compare_with_1inch", "generate_swap_report"}
    assert tools["compare_with_1inch"]["inputSchema"]["required"] == ["walletAddress"]
    assert tools["get_user_transactions"]["inputSchema"]["properties"]["limit"]["default"] == 10


def test_get_user_transactions_tool():
    resp = _client().post(
        "/tools/call",
        json={"name": "get_user_transactions", "arguments": {"walletAddress": WALLET, "limit": 5}},
    )

    payload = _payload(resp)
    assert payload["success"] is True
    assert payload["message"] == "Found 1 recent swap transactions"
    assert payload["data"][0]["dex"] == "Uniswap V3"


def test_compare_tool_uses_camel_case_fields():
    payload = _payload(_client().post("/tools/compare_with_1inch", json={"walletAddress": WALLET}))

    assert payload["success"] is True
    assert payload["totalTransactions"] == 1
    assert payload["gasSavingsPotential"] == 1_000_000
    assert payload["detailedComparisons"][0]["txHash"] == "0xabc"


def test_report_tool():
    payload = _payload(_client().post("/tools/generate_swap_report", json={"walletAddress": WALLET}))

    assert payload["success"] is True
    assert payload["summary"]["totalSwaps"] == 1
    assert payload["summary"]["totalVolumeUSD"] == 2000.0
    assert set(payload["timeRange"]) == {"from", "to"}


def test_invalid_wallet_is_reported_in_payload():
    payload = _payload(
        _client().post("/tools/call", json={"name": "compare_with_1inch", "arguments": {"walletAddress": "0x12"}})
    )

    assert payload == {
        "success": False,
        "error": "Invalid wallet address length",
        "message": FAILURE_MESSAGE,
    }


def test_missing_wallet_argument():
    payload = _payload(_client().post("/tools/call", json={"name": "generate_swap_report"}))

    assert payload["success"] is False
    assert payload["error"] == "walletAddress is required and must be a string"


def test_invalid_limit_argument():
    payload = _payload(
        _client().post(
            "/tools/call",
            json={"name": "get_user_transactions", "arguments": {"walletAddress": WALLET, "limit": "ten"}},
        )
    )

    assert payload["success"] is False
    assert payload["error"] == "limit must be a positive integer"


def test_unknown_tool():
    payload = _payload(_client().post("/tools/call", json={"name": "nope", "arguments": {}}))

    assert payload["success"] is False
    assert payload["error"] == "Unknown tool: nope"


def test_provider_failure_is_reported_in_payload():
    history = FakeHistory(error=MissingCredentialError("DUNE_API_KEY not found in environment variables"))

    payload = _payload(_client(history).post("/tools/generate_swap_report", json={"walletAddress": WALLET}))

    assert payload["success"] is False
    assert payload["error"] == "DUNE_API_KEY not found in environment variables"


def test_healthz_reports_providers():
    resp = _client().get("/healthz")

    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "healthy"
    assert body["total_providers"] == 3
    assert set(body["providers"]) == {"fake-history", "fake-quotes", "fake-prices"}
