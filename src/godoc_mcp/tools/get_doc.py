"""Tool handler for get_doc.

Receives AppState, resolves the requested path to a working directory and a
go doc identifier, runs go doc through the cached invoker, and returns one
page of the output as a structured dict. No MCP or FastMCP imports here;
server.py handles the MCP wiring.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import TYPE_CHECKING

import structlog

from godoc_mcp.errors import ErrorCode, GodocError
from godoc_mcp.models.tools import GetDocInput, GetDocOutput
from godoc_mcp.pagination import paginate
from godoc_mcp.paths import (
    classify,
    find_module_root,
    is_local,
    local_import_path,
    read_module_name,
)

if TYPE_CHECKING:
    from godoc_mcp.state import AppState


async def handle(
    path: str,
    state: AppState,
    *,
    target: str = "",
    cmd_flags: list[str] | None = None,
    working_dir: str = "",
    page: int = 1,
    page_size: int = 1000,
) -> dict:
    """Handle a get_doc tool call."""
    log = structlog.get_logger().bind(tool="get_doc", path=path)
    log.info("handler_called")

    # Validate input
    try:
        validated = GetDocInput(
            path=path,
            target=target,
            cmd_flags=cmd_flags or [],
            working_dir=working_dir,
            page=page,
            page_size=page_size,
        )
    except ValueError as exc:
        raise GodocError(
            code=ErrorCode.INVALID_INPUT,
            message=str(exc),
            suggestion=(
                "Provide a non-empty path, flags starting with '-', "
                "page >= 1 and page_size between 100 and 5000."
            ),
            recoverable=False,
        ) from exc

    cwd, package_path = await _resolve(validated.path, validated.working_dir, state)

    args = [*validated.cmd_flags, package_path]
    if validated.target:
        args.append(validated.target)

    doc = await state.docs.invoke(cwd, args)
    window = paginate(doc, validated.page, validated.page_size)

    log.debug(
        "returning_paginated_documentation",
        page=window.number,
        total_pages=window.total_pages,
        lines=window.last_line - window.first_line + 1,
    )

    output = GetDocOutput(
        path=validated.path,
        resolved_path=package_path,
        target=validated.target,
        page=window.number,
        total_pages=window.total_pages,
        first_line=window.first_line,
        last_line=window.last_line,
        total_lines=window.total_lines,
        summary=window.summary,
        content=window.content,
    )
    return output.model_dump(mode="json")


async def _resolve(path: str, working_dir: str, state: AppState) -> tuple[Path, str]:
    """Return (directory to run go doc in, identifier to pass to go doc)."""
    kind = classify(path)

    if not working_dir:
        project = await state.projects.get_or_create(path)
        return project.working_dir, project.package_path

    cwd = Path(os.path.abspath(working_dir))
    if not cwd.is_dir():
        raise GodocError(
            code=ErrorCode.INVALID_INPUT,
            message=f"invalid working directory: {working_dir}",
            suggestion="working_dir must be an existing directory.",
            recoverable=False,
        )

    # Import paths and stdlib names resolve against the caller's module as-is
    if not is_local(kind):
        return cwd, path

    module_root = find_module_root(cwd)
    if module_root is None:
        raise GodocError(
            code=ErrorCode.INVALID_INPUT,
            message=f"no go.mod found in {cwd} or any parent directory",
            suggestion="Set working_dir to a directory inside a Go module.",
            recoverable=False,
        )
    module_name = read_module_name(module_root)
    if not module_name:
        raise GodocError(
            code=ErrorCode.INVALID_INPUT,
            message=f"no module declaration found in {module_root / 'go.mod'}",
            suggestion="Add a 'module <path>' line to go.mod.",
            recoverable=False,
        )

    local_path = Path(os.path.abspath(cwd / path))
    if not local_path.is_relative_to(module_root):
        raise GodocError(
            code=ErrorCode.INVALID_INPUT,
            message=f"{path} is outside the module rooted at {module_root}",
            suggestion="Use a path inside the working directory's module, or omit working_dir.",
            recoverable=False,
        )
    return cwd, local_import_path(local_path, module_root, module_name)
