"""Integration test fixtures.

Provides a fully wired AppState with in-memory SQLite, a scripted go binary
(``fake_go`` from tests/conftest.py) and a ProjectStore rooted in tmp_path.
"""

from __future__ import annotations

import json
import os
import subprocess
import sys
from typing import TYPE_CHECKING

import pytest

from godoc_mcp.config import Settings
from godoc_mcp.docs import DocInvoker
from godoc_mcp.state import AppState

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator, Callable
    from pathlib import Path

    from godoc_mcp.cache import Cache
    from godoc_mcp.projects import ProjectStore
    from tests.conftest import FakeGo


@pytest.fixture()
def subprocess_env(tmp_path: Path) -> dict[str, str]:
    """Baseline env for subprocess-based MCP tests.

    Forces stdio transport and keeps the doc cache inside tmp_path so a local
    godoc-mcp.yaml or an existing cache cannot leak into the run.
    """
    env = os.environ.copy()
    env["GODOC_MCP__SERVER__TRANSPORT"] = "stdio"
    env["GODOC_MCP__CACHE__DB_PATH"] = str(tmp_path / "cache.db")
    env["GODOC_MCP__LOGGING__LEVEL"] = "WARNING"
    return env


@pytest.fixture()
async def app_state(
    fake_go: FakeGo, cache: Cache, projects: ProjectStore
) -> AsyncGenerator[AppState, None]:
    yield AppState(
        settings=Settings(),
        projects=projects,
        docs=DocInvoker(fake_go, cache, ttl_seconds=300),
        cache=cache,
    )


def _initialize_messages() -> list[dict]:
    return [
        {
            "jsonrpc": "2.0",
            "id": 1,
            "method": "initialize",
            "params": {
                "protocolVersion": "2025-11-25",
                "capabilities": {},
                "clientInfo": {"name": "pytest", "version": "0"},
            },
        },
        {"jsonrpc": "2.0", "method": "notifications/initialized"},
    ]


def _run_mcp_exchange(env: dict[str, str], messages: list[dict]) -> list[dict]:
    proc = subprocess.Popen(
        [sys.executable, "-m", "godoc_mcp.server"],
        stdin=subprocess.PIPE,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        text=True,
        env=env,
    )

    assert proc.stdin is not None
    assert proc.stdout is not None
    assert proc.stderr is not None

    for message in messages:
        proc.stdin.write(json.dumps(message) + "\n")
    proc.stdin.flush()

    # Keep stdin open until every request has been answered. Closing it early
    # ends the receive loop and drops responses from handlers still in flight.
    expected_ids = frozenset(msg["id"] for msg in messages if "id" in msg)
    responses: list[dict] = []
    seen_ids: set = set()
    while seen_ids < expected_ids:
        line = proc.stdout.readline()
        if not line:  # server exited before answering all requests
            break
        stripped = line.strip()
        if stripped:
            resp = json.loads(stripped)
            responses.append(resp)
            if resp.get("id") is not None:
                seen_ids.add(resp["id"])

    proc.stdin.close()
    proc.stderr.read()  # drain for reliable process shutdown
    proc.wait(timeout=10)
    proc.stdout.close()
    proc.stderr.close()

    return responses


@pytest.fixture()
def mcp_exchange(subprocess_env: dict[str, str]) -> Callable[[list[dict]], list[dict]]:
    """Run the stdio server in a subprocess; ``requests`` follow the initialize handshake."""

    def _exchange(requests: list[dict]) -> list[dict]:
        return _run_mcp_exchange(subprocess_env, [*_initialize_messages(), *requests])

    return _exchange
