from __future__ import annotations

from godoc_mcp.models.cache import DocCacheEntry
from godoc_mcp.models.projects import ResolvedProject, ScratchProject, ScratchState
from godoc_mcp.models.tools import GetDocInput, GetDocOutput

__all__ = [
    # cache
    "DocCacheEntry",
    # projects
    "ResolvedProject",
    "ScratchProject",
    "ScratchState",
    # tools
    "GetDocInput",
    "GetDocOutput",
]
