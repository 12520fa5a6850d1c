"""Shared test fixtures for the godoc_mcp test suite."""

from __future__ import annotations

import asyncio
import os
from pathlib import Path
from typing import TYPE_CHECKING

import aiosqlite
import pytest

from godoc_mcp.cache import Cache
from godoc_mcp.projects import ProjectStore
from godoc_mcp.runner import CommandResult

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator, Callable

STDLIB_IO_DOC = (
    'package io // import "io"\n\nPackage io provides basic interfaces to I/O primitives.\n'
)


class FakeGo:
    """Scripted stand-in for GoCommand.

    Records every call. ``go mod init`` writes a real go.mod into the scratch
    directory so the filesystem looks like the real toolchain left it.
    """

    def __init__(self) -> None:
        self.calls: list[tuple[tuple[str, ...], str | None]] = []
        self.doc_output = STDLIB_IO_DOC
        self._scripted: dict[str, CommandResult | BaseException] = {}

    def script(
        self,
        subcommand: str,
        *,
        output: str = "",
        returncode: int = 0,
        error: BaseException | None = None,
    ) -> None:
        """Make every ``go <subcommand>`` call return a scripted result or raise ``error``."""
        self._scripted[subcommand] = (
            error if error is not None else CommandResult(("go", subcommand), returncode, output)
        )

    def calls_for(self, subcommand: str) -> list[tuple[tuple[str, ...], str | None]]:
        return [call for call in self.calls if call[0][0] == subcommand]

    async def run(self, *args: str, cwd: str | Path | None = None) -> CommandResult:
        # Yield like a real subprocess would so concurrent callers interleave
        await asyncio.sleep(0)
        self.calls.append((args, os.fspath(cwd) if cwd else None))

        scripted = self._scripted.get(args[0])
        if isinstance(scripted, BaseException):
            raise scripted
        if scripted is not None:
            return scripted

        if args[:2] == ("mod", "init") and cwd:
            (Path(cwd) / "go.mod").write_text(f"module {args[2]}\n\ngo 1.23\n")
        output = self.doc_output if args[0] == "doc" else ""
        return CommandResult(("go", *args), 0, output)


@pytest.fixture()
def fake_go() -> FakeGo:
    return FakeGo()


@pytest.fixture()
def scratch_root(tmp_path: Path) -> Path:
    """Parent directory for scratch modules, isolated per test."""
    root = tmp_path / "scratch"
    root.mkdir()
    return root


@pytest.fixture()
async def projects(fake_go: FakeGo, scratch_root: Path) -> AsyncGenerator[ProjectStore, None]:
    store = ProjectStore(fake_go, temp_root=scratch_root)
    yield store
    await store.cleanup()


@pytest.fixture()
async def cache() -> AsyncGenerator[Cache, None]:
    async with aiosqlite.connect(":memory:") as db:
        cache = Cache(db)
        await cache.init_db()
        yield cache


@pytest.fixture()
def write_module() -> Callable[[Path, str], Path]:
    """Factory creating ``root/go.mod`` declaring a module name; returns ``root``."""

    def _write(root: Path, module_name: str) -> Path:
        root.mkdir(parents=True, exist_ok=True)
        (root / "go.mod").write_text(f"module {module_name}\n\ngo 1.23\n")
        return root

    return _write
