"""Streamable HTTP transport for the MCP server.

stdio is the default transport. HTTP mode serves the same FastMCP app behind
a small ASGI guard that checks an optional bearer key, rejects non-localhost
browser origins and refuses MCP protocol versions we do not speak.
"""

from __future__ import annotations

import re
import secrets
from typing import TYPE_CHECKING

import structlog
import uvicorn
from starlette.datastructures import Headers
from starlette.responses import Response

if TYPE_CHECKING:
    from mcp.server.fastmcp import FastMCP
    from starlette.types import ASGIApp, Receive, Scope, Send

    from godoc_mcp.config import Settings

log = structlog.get_logger()

SUPPORTED_PROTOCOL_VERSIONS: frozenset[str] = frozenset({"2025-11-25", "2025-06-18", "2025-03-26"})
_LOCALHOST_ORIGIN = re.compile(r"^https?://(localhost|127\.0\.0\.1|\[::1\])(:\d+)?$")


class HTTPGuardMiddleware:
    """Pure ASGI middleware; never buffers streamed responses."""

    def __init__(self, app: ASGIApp, *, auth_key: str | None = None) -> None:
        self.app = app
        self.auth_key = auth_key

    def _rejection(self, headers: Headers) -> tuple[int, str] | None:
        if self.auth_key is not None:
            supplied = headers.get("authorization", "").removeprefix("Bearer ")
            if not secrets.compare_digest(supplied, self.auth_key):
                return 401, "Unauthorized"

        origin = headers.get("origin", "")
        if origin and not _LOCALHOST_ORIGIN.match(origin):
            return 403, "Forbidden"

        proto_version = headers.get("mcp-protocol-version", "")
        if proto_version and proto_version not in SUPPORTED_PROTOCOL_VERSIONS:
            return 400, f"Unsupported protocol version: {proto_version}"
        return None

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "http":
            rejection = self._rejection(Headers(scope=scope))
            if rejection is not None:
                status, reason = rejection
                log.info("http_request_rejected", status=status, path=scope.get("path", ""))
                await Response(reason, status_code=status)(scope, receive, send)
                return

        await self.app(scope, receive, send)


def run_http_server(mcp: FastMCP, settings: Settings) -> None:
    """Serve ``mcp`` over Streamable HTTP until interrupted."""
    http_log = log.bind(transport="http")

    auth_key: str | None = None
    if settings.server.auth_enabled:
        auth_key = settings.server.auth_key or secrets.token_urlsafe(32)
        if not settings.server.auth_key:
            http_log.warning("http_auth_key_auto_generated", auth_key=auth_key)
    else:
        http_log.warning("http_auth_disabled")

    uvicorn.run(
        HTTPGuardMiddleware(mcp.streamable_http_app(), auth_key=auth_key),
        host=settings.server.host,
        port=settings.server.port,
        log_config=None,  # structlog handles logging
    )
