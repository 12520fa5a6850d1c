"""SQLite documentation cache with a short TTL.

Entries are keyed by a hash of (working directory, ordered go doc args) so
the same arguments resolved in different module contexts never collide.

All cache operations catch ``aiosqlite.Error`` internally and degrade
gracefully: read failures return ``None`` (treated as cache miss by callers),
write failures are logged and ignored (the go doc output is still returned).
Infrastructure errors never cross the Cache class boundary.
"""

from __future__ import annotations

import hashlib
import json
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

import aiosqlite
import structlog

from godoc_mcp.models.cache import DocCacheEntry

if TYPE_CHECKING:
    from collections.abc import Sequence

log = structlog.get_logger()

_CREATE_DOC_TABLE = """
CREATE TABLE IF NOT EXISTS doc_cache (
    cache_key   TEXT PRIMARY KEY,
    working_dir TEXT NOT NULL,
    args        TEXT NOT NULL,
    content     TEXT NOT NULL,
    byte_size   INTEGER NOT NULL,
    fetched_at  TEXT NOT NULL,
    expires_at  TEXT NOT NULL
)
"""

_CREATE_DOC_INDEX = "CREATE INDEX IF NOT EXISTS idx_doc_expires ON doc_cache(expires_at)"


def doc_cache_key(working_dir: str, args: Sequence[str]) -> str:
    """Deterministic key for a go doc invocation."""
    payload = json.dumps([working_dir, *args], separators=(",", ":"))
    return hashlib.sha256(payload.encode()).hexdigest()


class Cache:
    """SQLite-backed documentation cache implementing CacheProtocol."""

    def __init__(self, db: aiosqlite.Connection) -> None:
        self._db = db

    async def init_db(self) -> None:
        """Create tables and set WAL mode. Called once at startup."""
        await self._db.execute("PRAGMA journal_mode = WAL")
        await self._db.execute(_CREATE_DOC_TABLE)
        await self._db.execute(_CREATE_DOC_INDEX)
        await self._db.commit()

    async def get_doc(self, cache_key: str) -> DocCacheEntry | None:
        """Read a fresh entry. Expired entries, misses and read failures return ``None``."""
        try:
            cursor = await self._db.execute(
                "SELECT cache_key, working_dir, args, content, byte_size, "
                "fetched_at, expires_at FROM doc_cache WHERE cache_key = ?",
                (cache_key,),
            )
            row = await cursor.fetchone()
            if row is None:
                return None

            expires_at = datetime.fromisoformat(row[6])
            if datetime.now(UTC) >= expires_at:
                return None

            return DocCacheEntry(
                cache_key=row[0],
                working_dir=row[1],
                args=json.loads(row[2]),
                content=row[3],
                byte_size=row[4],
                fetched_at=datetime.fromisoformat(row[5]),
                expires_at=expires_at,
            )
        except aiosqlite.Error:
            log.warning("cache_read_error", key=f"doc:{cache_key}", exc_info=True)
            return None

    async def set_doc(
        self,
        cache_key: str,
        working_dir: str,
        args: Sequence[str],
        content: str,
        ttl_seconds: int,
    ) -> None:
        """Write an entry. Non-fatal on failure."""
        try:
            now = datetime.now(UTC)
            expires_at = now + timedelta(seconds=ttl_seconds)
            await self._db.execute(
                "INSERT OR REPLACE INTO doc_cache "
                "(cache_key, working_dir, args, content, byte_size, fetched_at, expires_at) "
                "VALUES (?, ?, ?, ?, ?, ?, ?)",
                (
                    cache_key,
                    working_dir,
                    json.dumps(list(args)),
                    content,
                    len(content.encode()),
                    now.isoformat(),
                    expires_at.isoformat(),
                ),
            )
            await self._db.commit()
        except aiosqlite.Error:
            log.warning("cache_write_error", key=f"doc:{cache_key}", exc_info=True)

    async def cleanup_expired(self) -> None:
        """Delete every expired entry. Non-fatal on failure."""
        try:
            cursor = await self._db.execute(
                "DELETE FROM doc_cache WHERE expires_at <= ?",
                (datetime.now(UTC).isoformat(),),
            )
            deleted = cursor.rowcount
            await self._db.commit()
            log.debug("doc_cache_cleanup_complete", deleted=deleted)
        except aiosqlite.Error:
            log.warning("doc_cache_cleanup_error", exc_info=True)
