from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, Request

from ..tools import ToolRegistry
from ..types import ToolCallRequest, ToolResponse

router = APIRouter(prefix="/tools")


def _registry(request: Request) -> ToolRegistry:
    return request.app.state.tool_registry


@router.get("")
async def list_tools(request: Request) -> Dict[str, List[Dict[str, Any]]]:
    """List the available analyzer tools and their input schemas"""
    return {"tools": _registry(request).list_tools()}


@router.post("/call")
async def call_tool(request: Request, call: ToolCallRequest) -> ToolResponse:
    """Invoke a tool by name; failures are reported inside the payload"""
    return await _registry(request).call_tool(call.name, call.arguments)


@router.post("/{name}")
async def call_named_tool(
    request: Request,
    name: str,
    arguments: Optional[Dict[str, Any]] = Body(default=None),
) -> ToolResponse:
    return await _registry(request).call_tool(name, arguments)
