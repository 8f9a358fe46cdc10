"""
Tool registry and dispatcher for the analyzer's remote-callable operations.

Every call returns a text envelope holding a JSON payload. Failures are
reported inside the payload as ``{"success": false, ...}`` so callers never
see a protocol-level fault.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Coroutine, Dict, List, Optional

import structlog
from pydantic import BaseModel

from ..dependencies import AnalyzerServices
from ..errors import AnalyzerError, InvalidInputError
from ..services.transactions import DEFAULT_LIMIT
from ..types import TextContent, ToolFailure, ToolResponse, TransactionsPayload

logger = logging.getLogger(__name__)

_WALLET_PROPERTY = {
    "walletAddress": {
        "type": "string",
        "description": "Ethereum wallet address to analyze",
    },
}


@dataclass
class ToolDefinition:
    name: str
    description: str
    properties: Dict[str, Any] = field(default_factory=lambda: dict(_WALLET_PROPERTY))
    required: List[str] = field(default_factory=lambda: ["walletAddress"])

    def to_schema(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": {
                "type": "object",
                "properties": self.properties,
                "required": self.required,
            },
        }


@dataclass
class RegisteredTool:
    definition: ToolDefinition
    handler: Callable[[Dict[str, Any]], Coroutine[Any, Any, BaseModel]]


def _wallet_argument(arguments: Dict[str, Any]) -> str:
    wallet = arguments.get("walletAddress")
    if not isinstance(wallet, str) or not wallet:
        raise InvalidInputError("walletAddress is required and must be a string")
    return wallet


def _limit_argument(arguments: Dict[str, Any]) -> int:
    limit = arguments.get("limit")
    if limit is None:
        return DEFAULT_LIMIT
    # JSON numbers may arrive as 5.0
    if isinstance(limit, float) and limit.is_integer():
        limit = int(limit)
    if isinstance(limit, bool) or not isinstance(limit, int) or limit <= 0:
        raise InvalidInputError("limit must be a positive integer")
    return limit


def _text_response(payload: Dict[str, Any]) -> ToolResponse:
    return ToolResponse(content=[TextContent(text=json.dumps(payload, indent=2))])


class ToolRegistry:
    """Catalogue of analyzer tools bound to a set of services."""

    def __init__(self, services: AnalyzerServices):
        self.services = services
        self._tools: Dict[str, RegisteredTool] = {}
        self._register_default_tools()

    def register(self, definition: ToolDefinition, handler: Callable[..., Any]) -> None:
        self._tools[definition.name] = RegisteredTool(definition=definition, handler=handler)

    def get_tool(self, name: str) -> Optional[RegisteredTool]:
        return self._tools.get(name)

    def list_tools(self) -> List[Dict[str, Any]]:
        return [tool.definition.to_schema() for tool in self._tools.values()]

    def _register_default_tools(self) -> None:
        self.register(
            ToolDefinition(
                name="get_user_transactions",
                description="Get recent swap transactions for a wallet address from Dune Analytics",
                properties={
                    **_WALLET_PROPERTY,
                    "limit": {
                        "type": "integer",
                        "description": "Number of recent transactions to fetch (default: 10)",
                        "default": DEFAULT_LIMIT,
                    },
                },
            ),
            self._handle_get_user_transactions,
        )
        self.register(
            ToolDefinition(
                name="compare_with_1inch",
                description="Compare actual swaps with optimal 1inch routes to calculate potential savings",
            ),
            self._handle_compare_with_1inch,
        )
        self.register(
            ToolDefinition(
                name="generate_swap_report",
                description="Generate a comprehensive DeFi swap efficiency report with recommendations",
            ),
            self._handle_generate_swap_report,
        )

    async def _handle_get_user_transactions(self, arguments: Dict[str, Any]) -> BaseModel:
        wallet = _wallet_argument(arguments)
        limit = _limit_argument(arguments)
        transactions = await self.services.transactions.get_user_transactions(wallet, limit)
        return TransactionsPayload(
            data=transactions,
            message=f"Found {len(transactions)} recent swap transactions",
        )

    async def _handle_compare_with_1inch(self, arguments: Dict[str, Any]) -> BaseModel:
        return await self.services.comparison.compare(_wallet_argument(arguments))

    async def _handle_generate_swap_report(self, arguments: Dict[str, Any]) -> BaseModel:
        return await self.services.report.generate(_wallet_argument(arguments))

    async def call_tool(self, name: str, arguments: Optional[Dict[str, Any]] = None) -> ToolResponse:
        tool = self.get_tool(name)
        # provider and service logs for this call carry the tool name
        with structlog.contextvars.bound_contextvars(tool=name):
            try:
                if tool is None:
                    raise InvalidInputError(f"Unknown tool: {name}")
                result = await tool.handler(arguments or {})
            except AnalyzerError as exc:
                logger.warning("Tool %s failed: %s", name, exc)
                return _text_response(ToolFailure(error=str(exc)).model_dump())
            except Exception as exc:
                logger.exception("Unexpected error in tool %s", name)
                return _text_response(ToolFailure(error=str(exc) or "Unknown error").model_dump())

        return _text_response(result.model_dump(mode="json", by_alias=True))
