"""MCP server entrypoint.

Responsibilities (and nothing more):
- Configure structlog
- Create AppState via the FastMCP lifespan context manager
- Register the get_doc tool
- Start the correct transport (stdio or HTTP)
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from contextlib import asynccontextmanager, suppress
from pathlib import Path
from typing import TYPE_CHECKING, Annotated

import aiosqlite
import structlog
from mcp.server.fastmcp import Context, FastMCP
from mcp.types import CallToolResult, TextContent
from pydantic import Field

import godoc_mcp.tools.get_doc as t_get_doc
from godoc_mcp import __version__
from godoc_mcp.cache import Cache
from godoc_mcp.config import Settings
from godoc_mcp.docs import DocInvoker
from godoc_mcp.errors import GodocError
from godoc_mcp.projects import ProjectStore
from godoc_mcp.runner import GoCommand
from godoc_mcp.schedulers import run_doc_cache_sweeper, run_project_sweeper
from godoc_mcp.state import AppState
from godoc_mcp.transport import run_http_server

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

log = structlog.get_logger()


# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------


def _setup_logging(settings: Settings) -> None:
    """Configure structlog. Called once at startup before any log statements."""
    log_level = logging.getLevelNamesMapping()[settings.logging.level]

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    if settings.logging.format == "json":
        processors = [*shared_processors, structlog.processors.JSONRenderer()]
    else:
        processors = [*shared_processors, structlog.dev.ConsoleRenderer()]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        # stdout carries the MCP JSON-RPC stream, so logs go to stderr
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(server: FastMCP) -> AsyncGenerator[AppState, None]:
    """Create and tear down all shared resources for the server's lifetime."""
    settings = Settings()
    _setup_logging(settings)

    log.info("server_starting", version=__version__, transport=settings.server.transport)

    go = GoCommand(settings.go.binary, timeout=settings.go.command_timeout_seconds)

    db_path = Path(settings.cache.db_path).expanduser()
    db_path.parent.mkdir(parents=True, exist_ok=True)
    db = await aiosqlite.connect(str(db_path))
    cache = Cache(db)
    await cache.init_db()

    projects = ProjectStore(
        go,
        ttl_seconds=settings.projects.ttl_seconds,
        temp_module_name=settings.go.temp_module_name,
        temp_dir_prefix=settings.go.temp_dir_prefix,
    )
    docs = DocInvoker(go, cache, ttl_seconds=settings.cache.ttl_seconds)

    state = AppState(settings=settings, projects=projects, docs=docs, cache=cache)

    doc_sweeper_task = asyncio.create_task(run_doc_cache_sweeper(state))
    project_sweeper_task = asyncio.create_task(run_project_sweeper(state))

    log.info("server_started", version=__version__, go_binary=settings.go.binary)

    try:
        yield state
    finally:
        doc_sweeper_task.cancel()
        project_sweeper_task.cancel()
        with suppress(asyncio.CancelledError):
            await doc_sweeper_task
        with suppress(asyncio.CancelledError):
            await project_sweeper_task
        # Scratch modules must not outlive the process
        await projects.cleanup()
        await db.close()
        log.info("server_stopping")


# ---------------------------------------------------------------------------
# FastMCP instance and tool registration
# ---------------------------------------------------------------------------

mcp = FastMCP("godoc-mcp", lifespan=lifespan)
# FastMCP has no version kwarg; set it on the underlying Server
# so the MCP initialize handshake reports our version, not the SDK's.
mcp._mcp_server.version = __version__  # pyright: ignore[reportPrivateUsage]

GET_DOC_DESCRIPTION = """Get Go documentation for a package, type, function, or method.
This is the preferred and most efficient way to understand Go packages, providing official package
documentation in a concise format. Use this before attempting to read source files directly. Results
are cached and optimized for AI consumption.

Best Practices:
1. ALWAYS try this tool first before reading package source code
2. Start with basic package documentation before looking at source code or specific symbols
3. Use -all flag when you need comprehensive package documentation
4. Only look up specific symbols after understanding the package overview

Common Usage Patterns:
- Standard library: Use just the package name (e.g., "io", "net/http")
- External packages: Use full import path (e.g., "github.com/user/repo")
- Local packages: Use relative path (e.g., "./pkg") or absolute path

The documentation is cached for 5 minutes to improve performance."""


def _serialise_tool_error(error: GodocError) -> CallToolResult:
    """Convert a GodocError to the MCP tool error result envelope."""
    return CallToolResult(
        content=[TextContent(type="text", text=json.dumps(error.to_dict()))],
        isError=True,
    )


@mcp.tool(description=GET_DOC_DESCRIPTION)
async def get_doc(
    path: Annotated[
        str,
        Field(
            description=(
                "Path to the Go package or file. This can be an import path "
                "(e.g., 'io', 'github.com/user/repo') or a local file path."
            )
        ),
    ],
    ctx: Context,
    target: Annotated[
        str,
        Field(
            description=(
                "Optional: Specific symbol to get documentation for (e.g., function name, "
                "type name, interface name). Leave empty to get full package documentation."
            )
        ),
    ] = "",
    cmd_flags: Annotated[
        list[str] | None,
        Field(
            description=(
                "Optional: Additional go doc command flags. Common flags:\n"
                "  -all: Show all documentation for package\n"
                "  -src: Show the source code\n"
                "  -u: Show unexported symbols as well as exported"
            )
        ),
    ] = None,
    working_dir: Annotated[
        str,
        Field(
            description=(
                "Working directory to execute go doc from. Needed for relative paths "
                "(including '.') to resolve the correct module context; without it they "
                "resolve against the server's own directory. Optional for absolute paths "
                "and standard library packages."
            )
        ),
    ] = "",
    page: Annotated[
        int,
        Field(description="Page number (1-based) for paginated results. Default is 1."),
    ] = 1,
    page_size: Annotated[
        int,
        Field(
            description=(
                "Number of lines per page (100-5000). Default is 1000. "
                "Use smaller values for very large documentation."
            ),
        ),
    ] = 1000,
) -> object:
    state: AppState = ctx.request_context.lifespan_context
    try:
        return await t_get_doc.handle(
            path,
            state,
            target=target,
            cmd_flags=cmd_flags,
            working_dir=working_dir,
            page=page,
            page_size=page_size,
        )
    except GodocError as exc:
        log.warning(
            "tool_error",
            tool="get_doc",
            code=exc.code,
            message=exc.message,
            recoverable=exc.recoverable,
        )
        return _serialise_tool_error(exc)
    except Exception:
        log.error("tool_unexpected_error", tool="get_doc", exc_info=True)
        raise


# ---------------------------------------------------------------------------
# Entrypoint
# ---------------------------------------------------------------------------


def main() -> None:
    settings = Settings()

    if settings.server.transport == "http":
        _setup_logging(settings)
        run_http_server(mcp, settings)
        return

    mcp.run()


if __name__ == "__main__":
    main()
