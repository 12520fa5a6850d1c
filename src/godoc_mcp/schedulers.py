"""Background sweeper coroutines for the doc cache and scratch projects.

Both loops are started as asyncio tasks in the server lifespan and cancelled
there on shutdown. They share no state with each other.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from godoc_mcp.state import AppState

log = structlog.get_logger()


async def run_doc_cache_sweeper(state: AppState) -> None:
    """Delete expired doc cache entries on the configured interval."""
    interval = state.settings.cache.cleanup_interval_seconds
    while True:
        await asyncio.sleep(interval)
        if state.cache is None:
            continue
        try:
            await state.cache.cleanup_expired()
        except Exception:
            log.warning("doc_cache_sweeper_error", exc_info=True)


async def run_project_sweeper(state: AppState) -> None:
    """Evict expired scratch projects until the store is cleaned up."""
    interval = state.settings.projects.sweep_interval_seconds
    while not state.projects.closed:
        await asyncio.sleep(interval)
        try:
            evicted = await state.projects.evict_expired()
        except Exception:
            log.warning("project_sweeper_error", exc_info=True)
            continue
        if evicted:
            log.debug("project_sweep_complete", evicted=evicted)
