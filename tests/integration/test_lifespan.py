"""Integration tests for the server lifespan: startup wiring and ordered shutdown."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import pytest

import godoc_mcp.server as server
from godoc_mcp.projects import ProjectStore

if TYPE_CHECKING:
    from pathlib import Path

    from tests.conftest import FakeGo

SWEEPERS = {"run_doc_cache_sweeper", "run_project_sweeper"}


def _sweeper_tasks() -> list[asyncio.Task]:
    return [task for task in asyncio.all_tasks() if task.get_coro().__name__ in SWEEPERS]


@pytest.fixture()
def lifespan_env(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path, fake_go: FakeGo
) -> None:
    monkeypatch.setenv("GODOC_MCP__CACHE__DB_PATH", str(tmp_path / "db" / "cache.db"))
    monkeypatch.setattr(server, "GoCommand", lambda *args, **kwargs: fake_go)
    # Global structlog configuration would leak into other tests' capture_logs
    monkeypatch.setattr(server, "_setup_logging", lambda settings: None)


@pytest.mark.usefixtures("lifespan_env")
async def test_shutdown_removes_scratch_projects(fake_go: FakeGo) -> None:
    async with server.lifespan(server.mcp) as state:
        resolved = await state.projects.get_or_create("io")
        assert resolved.working_dir.is_dir()
        assert state.docs._go is fake_go

    assert not resolved.working_dir.exists()
    assert state.projects.closed is True
    assert state.projects.scratch_dirs() == []


@pytest.mark.usefixtures("lifespan_env")
async def test_sweepers_stop_before_store_cleanup_and_db_close(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    observed: dict[str, object] = {}
    real_cleanup = ProjectStore.cleanup

    async def recording_cleanup(self: ProjectStore) -> None:
        observed["sweepers_done"] = [task.done() for task in sweepers]
        cursor = await state.cache._db.execute("SELECT 1")
        observed["db_row"] = await cursor.fetchone()
        await real_cleanup(self)

    monkeypatch.setattr(ProjectStore, "cleanup", recording_cleanup)

    async with server.lifespan(server.mcp) as state:
        await asyncio.sleep(0)  # let both sweeper tasks start
        sweepers = _sweeper_tasks()
        assert len(sweepers) == 2
        assert not any(task.done() for task in sweepers)

    assert observed["sweepers_done"] == [True, True]
    assert observed["db_row"] == (1,)
    assert all(task.cancelled() for task in sweepers)


@pytest.mark.usefixtures("lifespan_env")
async def test_cache_database_is_created_at_configured_path(tmp_path: Path) -> None:
    async with server.lifespan(server.mcp) as state:
        assert state.cache is not None

    assert (tmp_path / "db" / "cache.db").is_file()
