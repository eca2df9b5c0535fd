"""
Cross-source merge with first-seen-wins deduplication.

Two records describe the same entity when their dedup keys match: the
scientific name, lower-cased and trimmed, or the common name when no
scientific name is known. This is deliberately approximate; distinct species
that share a name string collapse into one record.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence

from flora_catalog.schemas import DEFAULT_PRIORITY, NOT_AVAILABLE, CanonicalRecord, SourceTag


def _name(value: str) -> str:
    text = value.strip()
    return "" if text == NOT_AVAILABLE else text.lower()


def dedup_key(record: CanonicalRecord) -> str:
    """Normalized name key; empty if the record has no usable name."""
    return _name(record.scientific_name) or _name(record.common_name)


def _ordered_sources(
    partial: Mapping[SourceTag, Sequence[CanonicalRecord]],
    priority: Iterable[SourceTag],
) -> list[SourceTag]:
    ordered = [s for s in priority if s in partial]
    ordered.extend(s for s in partial if s not in ordered)
    return ordered


def merge(
    partial: Mapping[SourceTag, Sequence[CanonicalRecord]],
    priority: Iterable[SourceTag] = DEFAULT_PRIORITY,
) -> list[CanonicalRecord]:
    """
    Flatten per-source results into one deduplicated list.

    Sources are visited in ``priority`` order (sources missing from it follow
    in mapping order), records in provider order. The first record seen for a
    key wins; later ones are dropped without merging fields. Records with no
    key are always kept.
    """
    seen: set[str] = set()
    merged: list[CanonicalRecord] = []
    for source in _ordered_sources(partial, priority):
        for record in partial[source]:
            key = dedup_key(record)
            if not key:
                merged.append(record)
            elif key not in seen:
                seen.add(key)
                merged.append(record)
    return merged
