"""
Dune Analytics provider for a wallet's historical DEX trades.

Runs a saved query asynchronously: the query is submitted for execution, then
the execution is polled at a fixed interval until Dune reports a terminal
state or the attempt budget runs out.

Docs: https://docs.dune.com/api-reference/executions/
"""

from __future__ import annotations

import asyncio
import logging
import math
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import httpx

from .base import HistoryProvider
from ..config import Settings, settings
from ..errors import (
    MissingCredentialError,
    RateLimitedError,
    UpstreamFailureError,
    UpstreamTimeoutError,
)
from ..types import SwapTransaction

logger = logging.getLogger(__name__)

STATE_COMPLETED = "QUERY_STATE_COMPLETED"
TERMINAL_FAILURE_STATES = {
    "QUERY_STATE_FAILED",
    "QUERY_STATE_CANCELLED",
    "QUERY_STATE_EXPIRED",
}

_VENUE_NAMES = {
    "uniswap": "Uniswap",
    "sushiswap": "SushiSwap",
    "pancakeswap": "PancakeSwap",
    "curve": "Curve",
    "balancer": "Balancer",
}


class DuneProvider(HistoryProvider):
    """Dune query execution client returning normalized swaps"""

    name = "dune"

    def __init__(
        self,
        config: Settings = settings,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.api_key = config.dune_api_key
        self.base_url = config.dune_base_url.rstrip("/")
        self.query_id = config.dune_query_id
        self.poll_interval_s = config.dune_poll_interval_seconds
        self.max_poll_attempts = config.dune_max_poll_attempts
        self.timeout_s = config.dune_timeout_seconds
        self._transport = transport

    def _headers(self) -> Dict[str, str]:
        return {
            "X-Dune-API-Key": self.api_key,
            "Content-Type": "application/json",
        }

    async def ready(self) -> bool:
        return bool(self.api_key)

    async def health_check(self) -> Dict[str, Any]:
        if not await self.ready():
            return {"status": "unavailable", "reason": "DUNE_API_KEY not configured"}
        return {"status": "healthy", "query_id": self.query_id}

    async def _request(self, method: str, path: str, **kwargs: Any) -> Dict[str, Any]:
        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout_s,
                transport=self._transport,
            ) as client:
                response = await client.request(method, path, headers=self._headers(), **kwargs)
                response.raise_for_status()
                return response.json()
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            if status == 429:
                raise RateLimitedError(
                    "Dune API rate limit exceeded", provider=self.name, status_code=status
                ) from exc
            raise UpstreamFailureError(
                f"Dune API returned HTTP {status}: {exc.response.text[:200]}",
                provider=self.name,
                status_code=status,
            ) from exc
        except httpx.RequestError as exc:
            raise UpstreamFailureError(f"Dune request failed: {exc}", provider=self.name) from exc
        except ValueError as exc:
            raise UpstreamFailureError("Dune returned a non-JSON response", provider=self.name) from exc

    async def execute_query(self, wallet_address: str, limit: int) -> str:
        """Submit the saved query and return its execution id."""

        payload = {
            "query_parameters": {
                "wallet_address": wallet_address.lower(),
                "limit_count": limit,
            }
        }
        data = await self._request("POST", f"/query/{self.query_id}/execute", json=payload)
        execution_id = data.get("execution_id")
        if not execution_id:
            raise UpstreamFailureError("Dune did not return an execution id", provider=self.name)
        return execution_id

    async def get_execution_results(self, execution_id: str) -> Dict[str, Any]:
        return await self._request("GET", f"/execution/{execution_id}/results")

    async def cancel_execution(self, execution_id: str) -> None:
        try:
            await self._request("POST", f"/execution/{execution_id}/cancel")
        except UpstreamFailureError as exc:
            logger.warning("Could not cancel Dune execution %s: %s", execution_id, exc)

    async def wait_for_results(self, execution_id: str) -> Dict[str, Any]:
        """
        Poll an execution until it completes.

        Raises:
            UpstreamFailureError: Dune reported a failed, cancelled or expired run
            UpstreamTimeoutError: no terminal state within the attempt budget
        """
        for attempt in range(1, self.max_poll_attempts + 1):
            await asyncio.sleep(self.poll_interval_s)

            payload = await self.get_execution_results(execution_id)
            state = payload.get("state")

            if state == STATE_COMPLETED:
                return payload
            if state in TERMINAL_FAILURE_STATES:
                raise UpstreamFailureError(
                    f"Dune query execution failed ({state})",
                    provider=self.name,
                )
            logger.debug("Dune execution %s state=%s attempt=%d", execution_id, state, attempt)

        logger.warning(
            "Dune execution %s still running after %d attempts", execution_id, self.max_poll_attempts
        )
        raise UpstreamTimeoutError("Dune query execution timeout", provider=self.name)

    async def fetch_swaps(self, wallet_address: str, limit: int = 10) -> List[SwapTransaction]:
        if not self.api_key:
            raise MissingCredentialError("DUNE_API_KEY not found in environment variables")

        execution_id = await self.execute_query(wallet_address, limit)
        try:
            payload = await self.wait_for_results(execution_id)
        except asyncio.CancelledError:
            logger.info("Request cancelled; releasing Dune execution %s", execution_id)
            await self.cancel_execution(execution_id)
            raise

        rows = (payload.get("result") or {}).get("rows") or []
        return [swap_from_row(row) for row in rows]


def _to_float(value: Any, default: float = 0.0) -> float:
    parsed = _to_optional_float(value)
    return default if parsed is None else parsed


def _to_optional_float(value: Any) -> Optional[float]:
    if value in (None, ""):
        return None
    try:
        parsed = float(value)
    except (TypeError, ValueError):
        return None
    return parsed if math.isfinite(parsed) else None


def _to_int(value: Any) -> int:
    return int(_to_float(value))


def _parse_block_time(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, str) and value:
        # Dune renders "2024-01-02 03:04:05.000 UTC"
        text = value.strip().replace(" UTC", "+00:00").replace("Z", "+00:00")
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            logger.debug("Unparseable block_time %r", value)
        else:
            return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
    return datetime.now(timezone.utc)


def _venue_name(row: Dict[str, Any]) -> str:
    project = row.get("project") or "unknown"
    version = row.get("version")
    if not version:
        return project
    display = _VENUE_NAMES.get(str(project).lower(), str(project))
    return f"{display} V{version}"


def swap_from_row(row: Dict[str, Any]) -> SwapTransaction:
    """Map a dex.trades style row onto a SwapTransaction with defaults."""

    return SwapTransaction(
        hash=row.get("tx_hash") or "unknown",
        timestamp=_parse_block_time(row.get("block_time")),
        from_token=row.get("token_sold_symbol") or "UNKNOWN",
        to_token=row.get("token_bought_symbol") or "UNKNOWN",
        from_token_address=row.get("token_sold_address") or "",
        to_token_address=row.get("token_bought_address") or "",
        from_amount=_to_float(row.get("token_sold_amount")),
        to_amount=_to_float(row.get("token_bought_amount")),
        gas_used=_to_int(row.get("gas_used")),
        gas_price=_to_float(row.get("gas_price")),
        dex=_venue_name(row),
        usd_value=_to_optional_float(row.get("amount_usd")),
        slippage=_to_optional_float(row.get("slippage")),
    )
