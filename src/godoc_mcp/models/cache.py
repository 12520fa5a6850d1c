from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel


class DocCacheEntry(BaseModel):
    """Cached ``go doc`` output for one (working directory, args) pair."""

    cache_key: str  # SHA-256 of the JSON list [working_dir, *args]
    working_dir: str
    args: list[str]
    content: str
    byte_size: int
    fetched_at: datetime
    expires_at: datetime
