from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pathlib import Path

    from godoc_mcp.paths import PathKind


class ScratchState(StrEnum):
    ACTIVE = "active"
    EVICTED = "evicted"


@dataclass
class ScratchProject:
    """A store-owned temporary Go module backing stdlib/remote lookups.

    Times come from ``time.monotonic()``. Expiry is fixed at creation.
    """

    key: str
    path: Path
    created_at: float
    expires_at: float
    state: ScratchState = ScratchState.ACTIVE

    def expired(self, now: float) -> bool:
        return now >= self.expires_at


@dataclass(frozen=True)
class ResolvedProject:
    """Where to run ``go doc`` for a reference, and what to ask it for."""

    reference: str
    kind: PathKind
    working_dir: Path
    package_path: str  # identifier passed to go doc
    module_name: str | None = None
    scratch: bool = False
