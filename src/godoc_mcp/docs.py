"""Documentation invoker: cached ``go doc`` execution with error mapping.

Failures are classified by an ordered rule table over the command's combined
output. The first matching rule decides the error code and suggestion; output
no rule recognises becomes DOC_EXECUTION_FAILED carrying the raw output.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import TYPE_CHECKING

import structlog

from godoc_mcp.cache import doc_cache_key
from godoc_mcp.errors import ErrorCode, GodocError
from godoc_mcp.runner import CommandTimeoutError

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path

    from godoc_mcp.protocols import CacheProtocol, CommandRunnerProtocol

log = structlog.get_logger()

DEFAULT_DOC_TTL_SECONDS = 5 * 60


@dataclass(frozen=True)
class FailureRule:
    patterns: tuple[str, ...]
    code: ErrorCode
    title: str
    suggestion: str

    def matches(self, output: str) -> bool:
        return any(pattern in output for pattern in self.patterns)


FAILURE_RULES: tuple[FailureRule, ...] = (
    FailureRule(
        patterns=("no such package", "is not in std"),
        code=ErrorCode.PACKAGE_NOT_FOUND,
        title="Package not found.",
        suggestion=(
            "Suggestions:\n"
            "1. For standard library packages, use just the package name (e.g., 'io', 'net/http')\n"
            "2. For external packages, ensure they are imported in the module\n"
            "3. For local packages, provide the relative path (e.g., './pkg') or absolute path\n"
            "4. Check for typos in the package name"
        ),
    ),
    FailureRule(
        patterns=("no such symbol",),
        code=ErrorCode.SYMBOL_NOT_FOUND,
        title="Symbol not found.",
        suggestion=(
            "Suggestions:\n"
            "1. Check if the symbol name is correct (case-sensitive)\n"
            "2. Use -u flag to see unexported symbols\n"
            "3. Use -all flag to see all package documentation"
        ),
    ),
    FailureRule(
        patterns=("ambiguous",),
        code=ErrorCode.AMBIGUOUS_REFERENCE,
        title="Reference is ambiguous.",
        suggestion=(
            "Suggestions:\n"
            "1. Use the full import path instead of the last path element\n"
            "2. Qualify the symbol as 'pkg.Symbol' or 'Type.Method'"
        ),
    ),
    FailureRule(
        patterns=("build constraints exclude all Go files",),
        code=ErrorCode.PLATFORM_EXCLUDED,
        title="No Go files found for current platform.",
        suggestion=(
            "Suggestions:\n"
            "1. Try using -all flag to see all package files\n"
            "2. Check if you need to set GOOS/GOARCH environment variables"
        ),
    ),
)


def classify_failure(output: str, returncode: int) -> GodocError:
    """Map failed go doc output onto the error taxonomy."""
    for rule in FAILURE_RULES:
        if rule.matches(output):
            return GodocError(
                code=rule.code,
                message=f"{rule.title}\nError details: {output.strip()}",
                suggestion=rule.suggestion,
                recoverable=False,
            )
    return GodocError(
        code=ErrorCode.DOC_EXECUTION_FAILED,
        message=f"go doc error: exit status {returncode}\noutput: {output.strip()}",
        suggestion="Use -h flag to see all available options.",
        recoverable=False,
    )


class DocInvoker:
    """Runs ``go doc`` and caches successful output."""

    def __init__(
        self,
        go: CommandRunnerProtocol,
        cache: CacheProtocol,
        ttl_seconds: int = DEFAULT_DOC_TTL_SECONDS,
    ) -> None:
        self._go = go
        self._cache = cache
        self._ttl = ttl_seconds

    async def invoke(self, working_dir: str | Path | None, args: Sequence[str]) -> str:
        """Return go doc output for ``args`` run in ``working_dir``.

        An empty working directory means the server's own current directory.
        """
        cwd = os.fspath(working_dir) if working_dir else ""
        cache_key = doc_cache_key(cwd, args)
        bound = log.bind(working_dir=cwd, args=list(args))

        cached = await self._cache.get_doc(cache_key)
        if cached is not None:
            bound.debug("doc_cache_hit", bytes=cached.byte_size)
            return cached.content

        try:
            result = await self._go.run("doc", *args, cwd=cwd or None)
        except CommandTimeoutError as exc:
            raise GodocError(
                code=ErrorCode.DOC_EXECUTION_FAILED,
                message=f"go doc error: {exc}",
                suggestion="Narrow the request to a single symbol or try again.",
                recoverable=True,
            ) from exc
        except OSError as exc:
            # A scratch module can be evicted between resolution and this call
            if cwd and not os.path.isdir(cwd):
                raise GodocError(
                    code=ErrorCode.DOC_EXECUTION_FAILED,
                    message=f"go doc error: working directory no longer exists: {cwd}",
                    suggestion="Retry the request; a fresh module will be created.",
                    recoverable=True,
                ) from exc
            raise GodocError(
                code=ErrorCode.DOC_EXECUTION_FAILED,
                message=f"go doc error: could not run {exc.filename or 'go'}: {exc}",
                suggestion="Install the Go toolchain and make sure 'go' is on PATH.",
                recoverable=False,
            ) from exc

        if not result.ok:
            error = classify_failure(result.output, result.returncode)
            bound.info("doc_command_failed", code=error.code, returncode=result.returncode)
            raise error

        await self._cache.set_doc(
            cache_key=cache_key,
            working_dir=cwd,
            args=args,
            content=result.output,
            ttl_seconds=self._ttl,
        )
        bound.debug("doc_cache_miss", bytes=len(result.output.encode()))
        return result.output
