"""
Time-based record cache over the ``DataStore``.

Entries are keyed ``"<entity-type>_<id>"`` (``plant_perenual_42``) or by a
query digest (``search_1f2e...``). An entry written at ``t`` is fresh while
``now - t < ttl``; after that ``get`` treats it as absent but the file stays
until a manual ``clear``. ``get_stale`` ignores the TTL and is only meant for
rate-limit fallback.

Caching is an optimization: write failures (full disk, quota) are logged and
swallowed, never raised.
"""

from __future__ import annotations

import hashlib
import json
import logging
from collections.abc import Callable, Mapping
from typing import Any

from flora_catalog.store import DataStore, now_ms

logger = logging.getLogger(__name__)

DEFAULT_TTL_MS = 24 * 60 * 60 * 1000  # 24 hours


def record_key(record_id: str, entity_type: str = "plant") -> str:
    """Cache key for a single record, e.g. ``plant_inat_48662``."""
    return f"{entity_type}_{record_id}"


def search_key(
    source: str,
    query: str,
    page: int,
    kingdom: str | None = None,
    filters: Mapping[str, Any] | None = None,
) -> str:
    """Cache key for one source's page of search results.

    Provider filters are part of the key; unset (``None``) filters are
    ignored so ``{"edible": None}`` and ``{}`` share an entry.
    """
    applied = {k: v for k, v in (filters or {}).items() if v is not None}
    canonical = json.dumps(applied, sort_keys=True, default=str)
    raw = f"{source}|{query.strip().lower()}|{page}|{kingdom or ''}|{canonical}"
    digest = hashlib.sha256(raw.encode()).hexdigest()[:16]
    return f"search_{digest}"


class RecordCache:
    """Key/payload cache with a fixed TTL and a stale-tolerant read."""

    def __init__(
        self,
        store: DataStore,
        *,
        ttl_ms: int = DEFAULT_TTL_MS,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self.store = store
        self.ttl_ms = ttl_ms
        self._clock = clock

    def get(self, key: str) -> Any | None:
        """Return the payload if present and younger than the TTL."""
        envelope = self.store.read_raw(self.store.key_path(key))
        if envelope is None:
            logger.debug("Cache miss: %s", key)
            return None

        written_at = envelope.get("meta", {}).get("written_at_ms")
        if not isinstance(written_at, int):
            return None

        age = self._clock() - written_at
        if age >= self.ttl_ms:
            logger.debug("Cache expired: %s (age %.1fh)", key, age / 3_600_000)
            return None

        logger.debug("Cache hit: %s (age %dmin)", key, age // 60_000)
        return envelope.get("data")

    def get_stale(self, key: str) -> Any | None:
        """Return the most recent payload for ``key`` regardless of age."""
        return self.store.read(self.store.key_path(key))

    def is_fresh(self, key: str) -> bool:
        return self.get(key) is not None

    def put(self, key: str, payload: Any, *, source: str = "catalog") -> bool:
        """Store ``payload`` under ``key``. Returns False if the write failed."""
        try:
            self.store.write(
                self.store.key_path(key),
                payload,
                source=source,
                written_at_ms=self._clock(),
            )
        except OSError as e:
            logger.warning("Failed to cache %s: %s", key, e)
            return False
        return True

    def clear(self, prefix: str | None = None) -> int:
        """Delete entries whose key starts with ``prefix`` (all if None)."""
        removed = 0
        for key in list(self.store.keys(prefix or "")):
            if self.store.delete(self.store.key_path(key)):
                removed += 1
        logger.debug("Cleared %d cache entries (prefix=%r)", removed, prefix)
        return removed
