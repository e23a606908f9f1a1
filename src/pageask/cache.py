"""SQLite key/value cache with per-entry expiry, plus the two-namespace manager.

All store operations catch ``aiosqlite.Error`` internally and degrade
gracefully: read failures return ``None`` (treated as cache miss by callers),
write failures are logged and ignored (the fetched or generated value is
still returned). Infrastructure errors never cross the Cache class boundary.
Errors are logged with ``exc_info=True`` so they remain observable via stderr.

Expired entries are never returned. ``cleanup_expired`` only reclaims rows
that have been expired for longer than a grace period.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

import aiosqlite
import structlog

from pageask.models.cache import CacheEntry, CacheNamespace

if TYPE_CHECKING:
    from pageask.config import CacheSettings
    from pageask.protocols import CacheStoreProtocol

log = structlog.get_logger()

_CLEANUP_GRACE = timedelta(days=7)

_CREATE_KV_TABLE = """
CREATE TABLE IF NOT EXISTS kv_cache (
    key         TEXT PRIMARY KEY,
    value       TEXT NOT NULL,
    fetched_at  TEXT NOT NULL,
    expires_at  TEXT NOT NULL
)
"""

_CREATE_METADATA_TABLE = """
CREATE TABLE IF NOT EXISTS server_metadata (
    key   TEXT PRIMARY KEY,
    value TEXT NOT NULL
)
"""

_CREATE_KV_INDEX = "CREATE INDEX IF NOT EXISTS idx_kv_expires ON kv_cache(expires_at)"


def content_key(url: str) -> str:
    return f"{CacheNamespace.CONTENT}:{url}"


def answer_key(url: str, question: str) -> str:
    # Question text is embedded verbatim: distinct phrasings are distinct entries.
    return f"{CacheNamespace.ANSWER}:{url}|{question}"


class Cache:
    """SQLite-backed key/value store implementing CacheStoreProtocol."""

    def __init__(self, db: aiosqlite.Connection) -> None:
        self._db = db

    async def init_db(self) -> None:
        """Create tables and set WAL mode. Called once at startup."""
        await self._db.execute("PRAGMA journal_mode = WAL")
        await self._db.execute(_CREATE_KV_TABLE)
        await self._db.execute(_CREATE_METADATA_TABLE)
        await self._db.execute(_CREATE_KV_INDEX)
        await self._db.commit()

    async def get_entry(self, key: str) -> CacheEntry | None:
        """Read a live entry. Returns ``None`` on miss, expiry, or read failure."""
        try:
            cursor = await self._db.execute(
                "SELECT key, value, fetched_at, expires_at FROM kv_cache WHERE key = ?",
                (key,),
            )
            row = await cursor.fetchone()
            if row is None:
                return None

            expires_at = datetime.fromisoformat(row[3])
            if datetime.now(UTC) >= expires_at:
                return None

            return CacheEntry(
                key=row[0],
                value=row[1],
                fetched_at=datetime.fromisoformat(row[2]),
                expires_at=expires_at,
            )
        except aiosqlite.Error:
            log.warning("cache_read_error", key=key, exc_info=True)
            return None

    async def get(self, key: str) -> str | None:
        entry = await self.get_entry(key)
        return entry.value if entry is not None else None

    async def put(self, key: str, value: str, ttl_seconds: int) -> None:
        """Write an entry, replacing any existing one. Non-fatal on failure."""
        try:
            now = datetime.now(UTC)
            expires_at = now + timedelta(seconds=ttl_seconds)
            await self._db.execute(
                "INSERT OR REPLACE INTO kv_cache (key, value, fetched_at, expires_at) "
                "VALUES (?, ?, ?, ?)",
                (key, value, now.isoformat(), expires_at.isoformat()),
            )
            await self._db.commit()
        except aiosqlite.Error:
            log.warning("cache_write_error", key=key, exc_info=True)

    # ------------------------------------------------------------------
    # Maintenance
    # ------------------------------------------------------------------

    async def cleanup_expired(self) -> None:
        """Delete entries expired more than 7 days ago. Non-fatal on failure."""
        try:
            cutoff = (datetime.now(UTC) - _CLEANUP_GRACE).isoformat()
            cursor = await self._db.execute("DELETE FROM kv_cache WHERE expires_at < ?", (cutoff,))
            deleted = cursor.rowcount
            await self._db.commit()
            log.info("cache_cleanup_complete", deleted=deleted)
        except aiosqlite.Error:
            log.warning("cache_cleanup_error", exc_info=True)

    async def cleanup_if_due(self, interval_hours: int) -> None:
        """Run ``cleanup_expired`` unless it already ran within ``interval_hours``.

        A failure to read the last-run timestamp falls through to cleanup.
        """
        now = datetime.now(UTC)
        try:
            cursor = await self._db.execute(
                "SELECT value FROM server_metadata WHERE key = 'last_cleanup_at'"
            )
            row = await cursor.fetchone()
            if row is not None:
                last_run = datetime.fromisoformat(row[0])
                if now - last_run < timedelta(hours=interval_hours):
                    log.debug("cache_cleanup_skipped", last_cleanup_at=row[0])
                    return
        except aiosqlite.Error:
            log.warning("cache_metadata_read_error", exc_info=True)

        await self.cleanup_expired()

        try:
            await self._db.execute(
                "INSERT OR REPLACE INTO server_metadata (key, value) "
                "VALUES ('last_cleanup_at', ?)",
                (now.isoformat(),),
            )
            await self._db.commit()
        except aiosqlite.Error:
            log.warning("cache_metadata_write_error", exc_info=True)


class CacheManager:
    """Content and answer namespaces over one store, each with its own default TTL."""

    def __init__(self, store: CacheStoreProtocol, settings: CacheSettings) -> None:
        self._store = store
        self._default_ttls = {
            CacheNamespace.CONTENT: settings.content_ttl_hours * 3600,
            CacheNamespace.ANSWER: settings.answer_ttl_hours * 3600,
        }

    def default_ttl(self, namespace: CacheNamespace) -> int:
        return self._default_ttls[namespace]

    async def get(self, namespace: CacheNamespace, key: str) -> str | None:
        _check_namespace(namespace, key)
        value = await self._store.get(key)
        log.debug("cache_hit" if value is not None else "cache_miss", namespace=namespace, key=key)
        return value

    async def put(
        self,
        namespace: CacheNamespace,
        key: str,
        value: str,
        ttl: int | None = None,
    ) -> None:
        _check_namespace(namespace, key)
        await self._store.put(key, value, ttl if ttl is not None else self.default_ttl(namespace))


def _check_namespace(namespace: CacheNamespace, key: str) -> None:
    if not key.startswith(f"{namespace}:"):
        raise ValueError(f"key {key!r} is outside namespace {namespace!r}")
