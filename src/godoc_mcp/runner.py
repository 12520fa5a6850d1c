"""Subprocess runner for the ``go`` toolchain.

All ``go`` invocations (``go doc``, ``go mod init``, ``go get``) go through a
single GoCommand instance shared across tool calls. Callers decide how a
failure maps onto the error taxonomy; this module only reports what happened.
"""

from __future__ import annotations

import asyncio
import os
from contextlib import suppress
from dataclasses import dataclass
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from pathlib import Path

log = structlog.get_logger()


@dataclass(frozen=True)
class CommandResult:
    """Exit status and interleaved stdout/stderr of a finished command."""

    args: tuple[str, ...]
    returncode: int
    output: str

    @property
    def ok(self) -> bool:
        return self.returncode == 0


class CommandTimeoutError(Exception):
    """The command ran past its deadline and was killed."""

    def __init__(self, args: tuple[str, ...], timeout: float) -> None:
        super().__init__(f"'{' '.join(args)}' timed out after {timeout:g}s")
        self.args_run = args
        self.timeout = timeout


class GoCommand:
    """Runs ``<binary> <args...>`` in a working directory with a timeout."""

    def __init__(self, binary: str = "go", timeout: float = 120.0) -> None:
        self.binary = binary
        self.timeout = timeout

    async def run(self, *args: str, cwd: str | Path | None = None) -> CommandResult:
        """Run the command and return its combined output.

        Raises CommandTimeoutError when the deadline passes and OSError when
        the binary cannot be started. A non-zero exit is not an exception.
        """
        argv = (self.binary, *args)
        process = await asyncio.create_subprocess_exec(
            *argv,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.STDOUT,
            cwd=os.fspath(cwd) if cwd else None,
        )
        try:
            stdout, _ = await asyncio.wait_for(process.communicate(), timeout=self.timeout)
        except TimeoutError:
            with suppress(ProcessLookupError):
                process.kill()
            await process.wait()
            log.warning(
                "go_command_timeout",
                args=list(args),
                cwd=str(cwd or ""),
                timeout=self.timeout,
            )
            raise CommandTimeoutError(argv, self.timeout) from None
        except asyncio.CancelledError:
            with suppress(ProcessLookupError):
                process.kill()
            await process.wait()
            raise

        result = CommandResult(
            args=argv,
            returncode=process.returncode if process.returncode is not None else -1,
            output=stdout.decode("utf-8", errors="replace"),
        )
        log.debug(
            "go_command_finished",
            args=list(args),
            cwd=str(cwd or ""),
            returncode=result.returncode,
            output_bytes=len(stdout),
        )
        return result
