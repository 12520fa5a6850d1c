"""Structural interfaces for the go runner and the doc cache.

ProjectStore and DocInvoker depend on these rather than on GoCommand and
Cache, so tests can hand them a scripted runner or an in-memory cache.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path

    from godoc_mcp.models.cache import DocCacheEntry
    from godoc_mcp.runner import CommandResult


class CacheProtocol(Protocol):
    """Interface for the documentation cache backend."""

    async def get_doc(self, cache_key: str) -> DocCacheEntry | None: ...

    async def set_doc(
        self,
        cache_key: str,
        working_dir: str,
        args: Sequence[str],
        content: str,
        ttl_seconds: int,
    ) -> None: ...

    async def cleanup_expired(self) -> None: ...


class CommandRunnerProtocol(Protocol):
    """Interface for running the go toolchain."""

    async def run(self, *args: str, cwd: str | Path | None = None) -> CommandResult: ...
