"""
Request logging for the tool API.

Each request gets a short id bound into the structlog context, so provider
and service logs emitted while a tool runs can be traced back to the call.
Requests addressed as ``/tools/<name>`` also carry the tool name; calls made
through ``/tools/call`` get it from the registry once the body is parsed.
"""

import time
import uuid
from typing import Dict, Optional

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

logger = structlog.stdlib.get_logger("defi_analyzer.http")

REQUEST_ID_HEADER = "x-request-id"
QUIET_PATHS = frozenset({"/healthz"})


def tool_from_path(path: str) -> Optional[str]:
    """Tool name for ``/tools/<name>`` routes, None for everything else."""

    prefix, _, name = path.strip("/").partition("/")
    if prefix != "tools" or not name or name == "call" or "/" in name:
        return None
    return name


def request_context(request: Request) -> Dict[str, str]:
    context = {
        "request_id": request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex[:8],
    }
    tool = tool_from_path(request.url.path)
    if tool:
        context["tool"] = tool
    return context


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Bind request and tool context, then log one line per request."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        context = request_context(request)
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(**context)

        started = time.perf_counter()
        response: Optional[Response] = None
        try:
            response = await call_next(request)
        finally:
            status = response.status_code if response is not None else 500
            fields = {
                "method": request.method,
                "path": request.url.path,
                "status": status,
                "duration_ms": round((time.perf_counter() - started) * 1000, 1),
            }
            if status >= 500:
                logger.error("http_request", **fields)
            elif status >= 400:
                logger.warning("http_request", **fields)
            elif request.url.path in QUIET_PATHS:
                logger.debug("http_request", **fields)
            else:
                logger.info("http_request", **fields)

        response.headers[REQUEST_ID_HEADER] = context["request_id"]
        return response
