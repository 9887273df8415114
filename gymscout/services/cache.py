"""In-memory TTL cache for Airtable table reads.

Entries expire ``ttl_seconds`` after they are stored, and the least recently
used ones are evicted once the estimated payload passes ``max_bytes``.  A
TTL of zero makes ``put`` a no-op, which is the default configuration.

The clock is injectable so expiry can be tested without sleeping:

>>> cache = TTLCache(ttl_seconds=3600)
>>> cache.put("table:Gyms", rows)
>>> cache.get("table:Gyms")
rows
"""

from __future__ import annotations

import json
import logging
import threading
import time
from collections import OrderedDict
from collections.abc import Callable
from dataclasses import asdict, is_dataclass
from typing import Any, NamedTuple

logger = logging.getLogger(__name__)

DEFAULT_MAX_BYTES = 5 * 1024 * 1024


class _Entry(NamedTuple):
    value: Any
    size: int
    stored_at: float


def _json_default(obj: Any) -> Any:
    return asdict(obj) if is_dataclass(obj) else str(obj)


def estimate_bytes(value: Any) -> int:
    """Rough payload size: the UTF-8 length of *value* as JSON."""
    try:
        return len(json.dumps(value, default=_json_default).encode("utf-8"))
    except (TypeError, ValueError, OverflowError):
        return len(str(value).encode("utf-8"))


class TTLCache:
    """LRU cache whose entries expire after a fixed TTL.  Thread-safe."""

    def __init__(
        self,
        ttl_seconds: float,
        max_bytes: int = DEFAULT_MAX_BYTES,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._ttl = ttl_seconds
        self._max_bytes = max_bytes
        self._clock = clock
        self._entries: OrderedDict[str, _Entry] = OrderedDict()
        self._bytes = 0
        self._lock = threading.Lock()

    @property
    def enabled(self) -> bool:
        return self._ttl > 0

    def _is_stale(self, entry: _Entry) -> bool:
        return self._clock() - entry.stored_at >= self._ttl

    def _drop(self, key: str) -> _Entry | None:
        """Remove *key* and release its bytes.  Caller holds the lock."""
        entry = self._entries.pop(key, None)
        if entry is not None:
            self._bytes -= entry.size
        return entry

    def get(self, key: str) -> Any | None:
        """Return the live value for *key* and mark it recently used."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if self._is_stale(entry):
                self._drop(key)
                logger.debug("Cache: %s expired", key)
                return None
            self._entries.move_to_end(key)
            return entry.value

    def put(self, key: str, value: Any) -> None:
        if not self.enabled:
            return

        size = estimate_bytes(value)
        if size > self._max_bytes:
            logger.debug("Cache: %s is %d bytes, over the %d limit", key, size, self._max_bytes)
            return

        with self._lock:
            self._drop(key)
            while self._entries and self._bytes + size > self._max_bytes:
                oldest = next(iter(self._entries))
                self._drop(oldest)
                logger.debug("Cache: evicted %s", oldest)
            self._entries[key] = _Entry(value, size, self._clock())
            self._bytes += size

    def invalidate(self, key: str) -> bool:
        """Forget *key*.  ``True`` if it was cached."""
        with self._lock:
            return self._drop(key) is not None

    def invalidate_prefix(self, prefix: str) -> int:
        with self._lock:
            doomed = [key for key in self._entries if key.startswith(prefix)]
            for key in doomed:
                self._drop(key)
            return len(doomed)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._bytes = 0

    @property
    def current_bytes(self) -> int:
        return self._bytes

    @property
    def entry_count(self) -> int:
        return len(self._entries)

    def has(self, key: str) -> bool:
        """Whether *key* holds a live value.  Does not touch LRU order."""
        entry = self._entries.get(key)
        return entry is not None and not self._is_stale(entry)
