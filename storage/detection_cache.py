"""
Header detection cache (optional in-memory or DuckDB persistence)

The same rent roll is often uploaded several times; caching the header
detection result avoids repeating the model call. The cache is injected into
the HeaderDetector, so any object with ``get``/``put`` works.
"""
import hashlib
import json
import logging
import re
import time
from pathlib import Path
from typing import Callable, Dict, Optional, Protocol, Sequence, Tuple

import duckdb

from config import settings
from models.sheet import Cell, HeaderDetectionResult
from utils.helpers import normalize_string

logger = logging.getLogger(__name__)

_UNSAFE_KEY_CHARS = re.compile(r"[^A-Za-z0-9_]")


class DetectionCache(Protocol):
    def get(self, key: str) -> Optional[HeaderDetectionResult]:
        ...

    def put(self, key: str, result: HeaderDetectionResult) -> None:
        ...


def hash_first_rows(rows: Sequence[Sequence[Cell]], limit: int = settings.CACHE_HASH_ROWS) -> str:
    """sha1 over the first rows (cells joined by |, rows by newlines), 12 hex chars"""
    text = "\n".join(
        "|".join(normalize_string(cell) for cell in row) for row in list(rows)[:limit]
    )
    return hashlib.sha1(text.encode("utf-8")).hexdigest()[:12]


def make_cache_key(file_name: str, file_size: int, rows: Sequence[Sequence[Cell]]) -> str:
    """
    Build a cache key from the file name, its size and the sheet's leading
    rows. Characters outside [A-Za-z0-9_] become underscores.
    """
    raw_key = f"{file_name}_{file_size}_{hash_first_rows(rows)}"
    return _UNSAFE_KEY_CHARS.sub("_", raw_key)


class NullDetectionCache:
    """Never stores anything"""

    def get(self, key: str) -> Optional[HeaderDetectionResult]:
        return None

    def put(self, key: str, result: HeaderDetectionResult) -> None:
        return None


class InMemoryDetectionCache:
    """
    Process-local cache with a time-to-live. Expired entries are dropped
    when read and purged on every write.
    """

    def __init__(
        self,
        ttl_seconds: float = settings.CACHE_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: Dict[str, Tuple[HeaderDetectionResult, float]] = {}

    def get(self, key: str) -> Optional[HeaderDetectionResult]:
        entry = self._entries.get(key)
        if entry is None:
            return None

        result, expires_at = entry
        if self._clock() >= expires_at:
            del self._entries[key]
            return None
        return result

    def put(self, key: str, result: HeaderDetectionResult) -> None:
        now = self._clock()
        self._purge(now)
        self._entries[key] = (result, now + self.ttl_seconds)

    def _purge(self, now: float) -> None:
        expired = [k for k, (_, expires_at) in self._entries.items() if now >= expires_at]
        for k in expired:
            del self._entries[k]

    def stats(self) -> dict:
        return {"size": len(self._entries), "keys": list(self._entries.keys())}

    def clear(self) -> None:
        self._entries.clear()


class DuckDBDetectionCache:
    """
    Persistent cache backed by a DuckDB table. The result is stored as a
    JSON payload; the TTL is checked on read.
    """

    def __init__(
        self,
        db_path: Optional[str] = None,
        ttl_seconds: float = settings.CACHE_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        self.db_path = db_path or settings.CACHE_DATABASE_PATH
        self.ttl_seconds = ttl_seconds
        self._clock = clock

        if self.db_path != ":memory:":
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)

        self.conn = duckdb.connect(self.db_path)
        self._create_tables()

    def _create_tables(self):
        """Create the cache table"""
        self.conn.execute("""
            CREATE TABLE IF NOT EXISTS header_detection_cache (
                cache_key VARCHAR PRIMARY KEY,
                payload VARCHAR,
                expires_at DOUBLE
            )
        """)

    def get(self, key: str) -> Optional[HeaderDetectionResult]:
        row = self.conn.execute(
            "SELECT payload, expires_at FROM header_detection_cache WHERE cache_key = ?",
            [key],
        ).fetchone()
        if row is None:
            return None

        payload, expires_at = row
        if self._clock() >= expires_at:
            self.conn.execute("DELETE FROM header_detection_cache WHERE cache_key = ?", [key])
            return None
        return HeaderDetectionResult.from_dict(json.loads(payload))

    def put(self, key: str, result: HeaderDetectionResult) -> None:
        now = self._clock()
        self.conn.execute("DELETE FROM header_detection_cache WHERE expires_at <= ?", [now])
        self.conn.execute(
            "INSERT OR REPLACE INTO header_detection_cache (cache_key, payload, expires_at) VALUES (?, ?, ?)",
            [key, json.dumps(result.to_dict()), now + self.ttl_seconds],
        )

    def stats(self) -> dict:
        (size,) = self.conn.execute("SELECT COUNT(*) FROM header_detection_cache").fetchone()
        return {"size": size, "path": self.db_path}

    def clear(self) -> None:
        self.conn.execute("DELETE FROM header_detection_cache")

    def close(self) -> None:
        self.conn.close()


def build_cache(backend: Optional[str] = None, path: Optional[str] = None) -> DetectionCache:
    """Create the cache named by ``backend`` (memory | duckdb | none)"""
    name = (backend or settings.CACHE_BACKEND).lower()
    if name == "memory":
        return InMemoryDetectionCache()
    if name == "duckdb":
        return DuckDBDetectionCache(db_path=path)
    if name == "none":
        return NullDetectionCache()
    raise ValueError(f"Unknown cache backend: {backend}")
