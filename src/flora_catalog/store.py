"""Key-value data store backed by metadata-enveloped JSON files.

Every entry is one JSON file wrapped in an envelope::

    {"meta": {"source": ..., "fetched_at": ..., "written_at_ms": ...}, "data": ...}

``written_at_ms`` is the write timestamp that TTL checks run against (see
``cache.RecordCache``). Layout under ``base_dir``:

  - cache/           one file per cache key (``plant_perenual_42.json``, ``search_<digest>.json``)
  - favorites.json   the persisted favorites list

An optional byte quota emulates a bounded browser storage area: a write that
would push the store past it raises ``StorageQuotaExceeded``.
"""

from __future__ import annotations

import json
import time
from collections.abc import Iterator
from datetime import UTC, datetime
from pathlib import Path
from typing import Any
from urllib.parse import quote, unquote


class StorageQuotaExceeded(OSError):
    """A write would exceed the store's byte quota."""


def now_ms() -> int:
    """Current wall-clock time as epoch milliseconds."""
    return int(time.time() * 1000)


class DataStore:
    """Manages read/write of enveloped JSON files."""

    def __init__(self, base_dir: Path, *, quota_bytes: int | None = None) -> None:
        self.base = base_dir
        self.cache = base_dir / "cache"
        self.quota_bytes = quota_bytes

    # -------------------------------------------------------------------------
    # Paths
    # -------------------------------------------------------------------------

    def key_path(self, key: str) -> Path:
        """Relative path of a cache key's file. Keys are percent-encoded."""
        return Path("cache") / f"{quote(key, safe='')}.json"

    def keys(self, prefix: str = "") -> Iterator[str]:
        """Yield cache keys, optionally only those starting with ``prefix``."""
        if not self.cache.exists():
            return
        for path in sorted(self.cache.glob("*.json")):
            key = unquote(path.stem)
            if key.startswith(prefix):
                yield key

    # -------------------------------------------------------------------------
    # Read / write
    # -------------------------------------------------------------------------

    def read(self, path: Path) -> Any | None:
        """Read data payload from a metadata-enveloped JSON file.

        Returns the ``data`` field, or None if the file doesn't exist.
        """
        envelope = self.read_raw(path)
        if envelope is None:
            return None
        return envelope.get("data")

    def read_raw(self, path: Path) -> dict[str, Any] | None:
        """Read the full envelope (meta + data), or None if missing/corrupt."""
        full = self._resolve(path)
        if not full.exists():
            return None
        try:
            with full.open() as f:
                result = json.load(f)
        except json.JSONDecodeError:
            return None
        return result if isinstance(result, dict) else None

    def write(
        self,
        path: Path,
        data: Any,
        source: str,
        written_at_ms: int | None = None,
        **params: Any,
    ) -> Path:
        """Write data wrapped in a metadata envelope.

        Args:
            path: Relative path under base_dir (e.g. ``cache/plant_inat_1.json``).
            data: JSON-serializable payload stored under the ``data`` key.
            source: Data source identifier (e.g. ``"perenual"``).
            written_at_ms: Write timestamp; defaults to now.
            **params: Extra metadata fields (query, page, etc.).

        Returns:
            Absolute path of the written file.

        Raises:
            StorageQuotaExceeded: The write would exceed ``quota_bytes``.
            OSError: The file could not be written.
        """
        full = self._resolve(path)

        meta: dict[str, Any] = {
            "source": source,
            "fetched_at": datetime.now(UTC).isoformat(),
            "written_at_ms": written_at_ms if written_at_ms is not None else now_ms(),
        }
        if params:
            meta.update(params)

        encoded = json.dumps({"meta": meta, "data": data}, indent=2)
        self._check_quota(full, len(encoded.encode()))

        full.parent.mkdir(parents=True, exist_ok=True)
        full.write_text(encoded)
        return full

    def delete(self, path: Path) -> bool:
        """Remove a stored file. Returns True if something was deleted."""
        full = self._resolve(path)
        if not full.exists():
            return False
        full.unlink()
        return True

    def size_bytes(self) -> int:
        """Total bytes currently held by the store."""
        if not self.base.exists():
            return 0
        return sum(p.stat().st_size for p in self.base.rglob("*.json") if p.is_file())

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _check_quota(self, full: Path, new_size: int) -> None:
        if self.quota_bytes is None:
            return
        current = self.size_bytes()
        if full.exists():
            current -= full.stat().st_size
        if current + new_size > self.quota_bytes:
            msg = f"Store quota of {self.quota_bytes} bytes exceeded writing {full.name}"
            raise StorageQuotaExceeded(msg)

    def _resolve(self, path: Path) -> Path:
        full = self.base / path if not path.is_absolute() else path
        try:
            full.resolve().relative_to(self.base.resolve())
        except ValueError:
            msg = f"Path escapes store base directory: {path}"
            raise ValueError(msg) from None
        return full
