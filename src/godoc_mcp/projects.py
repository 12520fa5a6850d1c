"""Ephemeral Go project store.

Resolves a package reference to the directory ``go doc`` should run in. Local
paths that live inside a Go module resolve to that module's root, which is
owned by the caller and never cached or deleted here. Everything else is
backed by a scratch module the store creates, pools for ``ttl_seconds`` and
deletes on eviction or shutdown.

Scratch records live in one insertion-ordered collection guarded by an
``asyncio.Lock``. Registration, eviction and cleanup mutate it under the
lock; the slow ``go mod init`` / ``go get`` calls run outside it.
"""

from __future__ import annotations

import asyncio
import os
import shutil
import tempfile
import time
from pathlib import Path
from typing import TYPE_CHECKING

import structlog

from godoc_mcp.errors import ErrorCode, GodocError
from godoc_mcp.models.projects import ResolvedProject, ScratchProject, ScratchState
from godoc_mcp.paths import (
    PathKind,
    classify,
    find_module_root,
    is_local,
    local_import_path,
    read_module_name,
)
from godoc_mcp.runner import CommandTimeoutError

if TYPE_CHECKING:
    from collections.abc import Callable

    from godoc_mcp.protocols import CommandRunnerProtocol

log = structlog.get_logger()

DEFAULT_PROJECT_TTL_SECONDS = 30 * 60


class ProjectStore:
    """Creates, pools and evicts scratch Go modules keyed by package reference."""

    def __init__(
        self,
        go: CommandRunnerProtocol,
        *,
        ttl_seconds: float = DEFAULT_PROJECT_TTL_SECONDS,
        temp_module_name: str = "godoc-temp",
        temp_dir_prefix: str = "godoc-mcp-",
        temp_root: str | Path | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._go = go
        self._ttl = ttl_seconds
        self._module_name = temp_module_name
        self._prefix = temp_dir_prefix
        self._temp_root = os.fspath(temp_root) if temp_root is not None else None
        self._clock = clock
        self._projects: dict[Path, ScratchProject] = {}
        self._lock = asyncio.Lock()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def scratch_dirs(self) -> list[Path]:
        """Directories the store still owns (active or awaiting deletion), oldest first."""
        return list(self._projects)

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    async def get_or_create(self, ref: str) -> ResolvedProject:
        """Return the working directory and go doc identifier for ``ref``.

        Raises GodocError(INVALID_PATH) for an empty reference and
        GodocError(PROJECT_CREATION_FAILED) when a scratch module cannot be built.
        """
        kind = classify(ref)
        local_path = os.path.abspath(ref) if is_local(kind) else None
        key = local_path or ref

        record = self._lookup(key)
        if record is not None:
            log.debug("project_cache_hit", package=ref, project_dir=str(record.path))
            return self._resolved(ref, kind, record, local_path)

        if local_path is not None:
            module_root = find_module_root(local_path)
            if module_root is not None:
                module_name = read_module_name(module_root)
                package_path = (
                    local_import_path(local_path, module_root, module_name)
                    if module_name
                    else local_path
                )
                log.debug("module_root_found", package=ref, module_root=str(module_root))
                return ResolvedProject(
                    reference=ref,
                    kind=kind,
                    working_dir=module_root,
                    package_path=package_path,
                    module_name=module_name,
                )

        log.debug("project_cache_miss", package=ref, kind=kind)
        path = await self._create(ref, kind)
        record = await self._register(key, path)
        log.info("project_created", package=ref, project_dir=str(path), kind=kind)
        return self._resolved(ref, kind, record, local_path)

    def _lookup(self, key: str) -> ScratchProject | None:
        # Latest registration wins when two creators raced for the same key
        now = self._clock()
        for record in reversed(self._projects.values()):
            if (
                record.key == key
                and record.state is ScratchState.ACTIVE
                and not record.expired(now)
            ):
                return record
        return None

    def _resolved(
        self,
        ref: str,
        kind: PathKind,
        record: ScratchProject,
        local_path: str | None,
    ) -> ResolvedProject:
        return ResolvedProject(
            reference=ref,
            kind=kind,
            working_dir=record.path,
            package_path=local_path or ref,
            module_name=self._module_name,
            scratch=True,
        )

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    async def _create(self, ref: str, kind: PathKind) -> Path:
        path = Path(tempfile.mkdtemp(prefix=self._prefix, dir=self._temp_root))
        try:
            await self._run_checked(
                path,
                ("mod", "init", self._module_name),
                message="failed to initialize go.mod",
                suggestion="Check that the Go toolchain is installed and working (run 'go env').",
            )
            if kind is PathKind.IMPORT_PATH:
                await self._run_checked(
                    path,
                    ("get", ref),
                    message=f"failed to get package {ref}",
                    suggestion=(
                        "Suggestions:\n"
                        "1. Check the import path for typos\n"
                        "2. Make sure the module is publicly reachable (GOPROXY, GOPRIVATE)\n"
                        "3. Check your network connection and try again"
                    ),
                    recoverable=True,
                )
        except BaseException:
            await self._discard(path)
            raise
        return path

    async def _run_checked(
        self,
        cwd: Path,
        args: tuple[str, ...],
        *,
        message: str,
        suggestion: str,
        recoverable: bool = False,
    ) -> None:
        try:
            result = await self._go.run(*args, cwd=cwd)
        except CommandTimeoutError as exc:
            raise GodocError(
                code=ErrorCode.PROJECT_CREATION_FAILED,
                message=f"{message}: {exc}",
                suggestion=suggestion,
                recoverable=True,
            ) from exc
        except OSError as exc:
            raise GodocError(
                code=ErrorCode.PROJECT_CREATION_FAILED,
                message=f"{message}: could not run go: {exc}",
                suggestion="Install the Go toolchain and make sure 'go' is on PATH.",
                recoverable=False,
            ) from exc

        if not result.ok:
            log.warning(
                "project_command_failed",
                args=list(args),
                returncode=result.returncode,
                project_dir=str(cwd),
            )
            raise GodocError(
                code=ErrorCode.PROJECT_CREATION_FAILED,
                message=f"{message}: exit status {result.returncode}\noutput: {result.output}",
                suggestion=suggestion,
                recoverable=recoverable,
            )

    async def _register(self, key: str, path: Path) -> ScratchProject:
        async with self._lock:
            if self._closed:
                await self._remove_dir(path)
                raise GodocError(
                    code=ErrorCode.PROJECT_CREATION_FAILED,
                    message="project store is shut down",
                    suggestion="The server is stopping; retry after it restarts.",
                    recoverable=True,
                )
            now = self._clock()
            record = ScratchProject(key=key, path=path, created_at=now, expires_at=now + self._ttl)
            self._projects[path] = record
            return record

    # ------------------------------------------------------------------
    # Eviction and shutdown
    # ------------------------------------------------------------------

    async def evict_expired(self) -> int:
        """Delete every scratch module whose TTL has passed.

        Returns the number of records newly evicted. A directory that cannot be
        deleted stays tracked as evicted and is retried on the next sweep and by
        ``cleanup()``.
        """
        async with self._lock:
            if self._closed:
                return 0
            now = self._clock()
            expired = [record for record in self._projects.values() if record.expired(now)]
            evicted = 0
            for record in expired:
                if record.state is ScratchState.ACTIVE:
                    record.state = ScratchState.EVICTED
                    evicted += 1
                    log.info("project_evicted", package=record.key, project_dir=str(record.path))
                if await self._remove_dir(record.path):
                    del self._projects[record.path]
            return evicted

    async def cleanup(self) -> None:
        """Delete every tracked scratch module and stop accepting new ones.

        Idempotent. Directories that fail to delete stay tracked so a later
        call retries them.
        """
        async with self._lock:
            self._closed = True
            records = list(self._projects.values())
            for record in records:
                record.state = ScratchState.EVICTED
                if await self._remove_dir(record.path):
                    del self._projects[record.path]
            if records:
                log.info(
                    "project_store_cleaned",
                    removed=len(records) - len(self._projects),
                    remaining=len(self._projects),
                )

    async def _discard(self, path: Path) -> None:
        """Remove a directory whose creation failed, tracking it if that fails."""
        async with self._lock:
            if await self._remove_dir(path) or self._closed:
                return
            now = self._clock()
            self._projects[path] = ScratchProject(
                key="",
                path=path,
                created_at=now,
                expires_at=now,
                state=ScratchState.EVICTED,
            )

    async def _remove_dir(self, path: Path) -> bool:
        """Delete ``path``. Returns True once the directory is gone."""
        try:
            await asyncio.to_thread(shutil.rmtree, path)
        except FileNotFoundError:
            log.debug("project_dir_already_gone", project_dir=str(path))
        except OSError:
            log.warning("project_cleanup_error", project_dir=str(path), exc_info=True)
            return False
        return True
