"""Persisted favorites: one list of canonical records under a well-known key."""

from __future__ import annotations

from pathlib import Path

from flora_catalog.schemas import CanonicalRecord
from flora_catalog.store import DataStore

FAVORITES_PATH = Path("favorites.json")


class Favorites:
    """Favorites list backed by the data store.

    Records are stored as produced by the normalizer and never modified.
    Unlike the cache, write failures here propagate: losing a favorite is
    user-visible data loss.
    """

    def __init__(self, store: DataStore) -> None:
        self.store = store

    def load(self) -> list[CanonicalRecord]:
        payload = self.store.read(FAVORITES_PATH)
        if not isinstance(payload, list):
            return []
        return [CanonicalRecord.model_validate(item) for item in payload]

    def contains(self, record_id: str) -> bool:
        return any(f.id == record_id for f in self.load())

    def get(self, record_id: str) -> CanonicalRecord | None:
        return next((f for f in self.load() if f.id == record_id), None)

    def add(self, record: CanonicalRecord) -> bool:
        """Append ``record``. Returns False if its id is already a favorite."""
        favorites = self.load()
        if any(f.id == record.id for f in favorites):
            return False
        self._save([*favorites, record])
        return True

    def remove(self, record_id: str) -> bool:
        """Drop a favorite by id. Returns False if it was not present."""
        favorites = self.load()
        kept = [f for f in favorites if f.id != record_id]
        if len(kept) == len(favorites):
            return False
        self._save(kept)
        return True

    def clear(self) -> None:
        self.store.delete(FAVORITES_PATH)

    def _save(self, favorites: list[CanonicalRecord]) -> None:
        self.store.write(
            FAVORITES_PATH,
            [f.to_payload() for f in favorites],
            source="favorites",
        )
