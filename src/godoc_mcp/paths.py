"""Package reference classification and Go module root discovery.

Everything here is either a pure string function or a read-only filesystem
walk. Nothing in this module writes to disk.
"""

from __future__ import annotations

import os
from enum import StrEnum
from pathlib import Path

import structlog

from godoc_mcp.errors import ErrorCode, GodocError

log = structlog.get_logger()

MODULE_FILE = "go.mod"
SOURCE_SUFFIX = ".go"


class PathKind(StrEnum):
    STDLIB = "stdlib"
    RELATIVE = "relative"
    ABSOLUTE = "absolute"
    IMPORT_PATH = "import_path"


def classify(ref: str) -> PathKind:
    """Classify a package reference by its prefix and the presence of a dot.

    Standard-library import paths never contain a dot; any dotted reference
    that is not a filesystem path is assumed to start with a host name.
    """
    if not ref or not ref.strip():
        raise GodocError(
            code=ErrorCode.INVALID_PATH,
            message="Package path must not be empty.",
            suggestion=(
                "Provide a standard library package (e.g. 'io', 'net/http'), "
                "an import path (e.g. 'github.com/user/repo'), "
                "or a local path (e.g. './pkg', '/abs/path/to/pkg')."
            ),
            recoverable=False,
        )
    if ref.startswith("."):
        return PathKind.RELATIVE
    if ref.startswith("/") or os.path.isabs(ref):
        return PathKind.ABSOLUTE
    if "." not in ref:
        return PathKind.STDLIB
    return PathKind.IMPORT_PATH


def is_local(kind: PathKind) -> bool:
    return kind in (PathKind.RELATIVE, PathKind.ABSOLUTE)


def find_module_root(abs_path: str | Path) -> Path | None:
    """Return the nearest ancestor directory containing ``go.mod``.

    Returns ``None`` when the path does not exist, when it names a file that
    is not Go source, or when no ``go.mod`` is found below the filesystem root.
    """
    path = Path(abs_path)
    try:
        is_dir = path.is_dir()
        exists = is_dir or path.exists()
    except OSError:
        return None
    if not exists:
        return None
    if not is_dir and path.suffix != SOURCE_SUFFIX:
        return None

    directory = path if is_dir else path.parent
    anchor = Path(directory.anchor)
    while directory != anchor:
        if (directory / MODULE_FILE).is_file():
            return directory
        directory = directory.parent
    return None


def read_module_name(module_root: str | Path) -> str | None:
    """Return the module path declared in ``<module_root>/go.mod``, if any."""
    mod_file = Path(module_root) / MODULE_FILE
    try:
        content = mod_file.read_text(encoding="utf-8")
    except OSError:
        log.debug("module_file_unreadable", path=str(mod_file))
        return None

    for line in content.splitlines():
        line = line.strip()
        if not line.startswith("module "):
            continue
        name = line.removeprefix("module ").split("//", 1)[0].strip()
        # go.mod allows the module path to be quoted
        return name.strip('"`') or None
    return None


def local_import_path(abs_path: str | Path, module_root: Path, module_name: str) -> str:
    """Map a local package directory (or ``.go`` file) to its import path."""
    path = Path(abs_path)
    if path.suffix == SOURCE_SUFFIX and not path.is_dir():
        path = path.parent
    rel = path.relative_to(module_root).as_posix()
    if rel == ".":
        return module_name
    return f"{module_name}/{rel}"
