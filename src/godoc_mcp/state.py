"""Runtime state shared by tool calls.

Built by the server lifespan and reached from handlers through
``ctx.request_context.lifespan_context``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from godoc_mcp.config import Settings
    from godoc_mcp.docs import DocInvoker
    from godoc_mcp.projects import ProjectStore
    from godoc_mcp.protocols import CacheProtocol


@dataclass
class AppState:
    """Holds all shared runtime state. Passed to every tool handler."""

    settings: Settings
    projects: ProjectStore
    docs: DocInvoker
    cache: CacheProtocol | None = None
