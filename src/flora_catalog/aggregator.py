"""
Concurrent multi-source search and by-id lookup.

The aggregator is the single entry point the presentation layer talks to:

    search()         one branch per enabled source, joined; failures -> []
    search_merged()  search() + dedup.merge() in declared priority order
    fetch_by_id()    cache -> recent records -> network, stale cache on 429

Every branch consults the cache before anything else, so a hit skips rate
limiting, retries, and normalization. Mutable state (limiter timestamps and
recently seen records) lives in a ``CatalogContext`` owned by the aggregator,
so separate aggregators never interfere.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from flora_catalog import dedup
from flora_catalog.cache import RecordCache, record_key, search_key
from flora_catalog.errors import FetchError, RateLimited, SourceDisabledError
from flora_catalog.normalize import normalize, normalize_many
from flora_catalog.schemas import (
    DEFAULT_PRIORITY,
    NOT_AVAILABLE,
    CanonicalRecord,
    Kingdom,
    SearchOptions,
    SourceConfig,
    SourceTag,
    parse_record_id,
)
from flora_catalog.services.throttle import RateLimiter, RetryPolicy, SourceInvoker
from flora_catalog.sources import SourceClient, default_sources
from flora_catalog.store import DataStore

if TYPE_CHECKING:
    from flora_catalog.config import Settings

logger = logging.getLogger(__name__)

PartialResults = dict[SourceTag, list[CanonicalRecord]]

#: Attempts per source (first call included).
DEFAULT_POLICIES: dict[str, RetryPolicy] = {
    SourceTag.PERENUAL: RetryPolicy(max_attempts=1),
    SourceTag.INATURALIST: RetryPolicy(max_attempts=2),
    SourceTag.TOXICSHROOMS: RetryPolicy(max_attempts=2),
}


@dataclass
class CatalogContext:
    """Per-aggregator mutable state."""

    invoker: SourceInvoker = field(
        default_factory=lambda: SourceInvoker(RateLimiter(), DEFAULT_POLICIES)
    )
    #: Records seen in searches, by id (used for sources without a detail endpoint).
    recent: dict[str, CanonicalRecord] = field(default_factory=dict)

    def remember(self, records: list[CanonicalRecord]) -> None:
        for record in records:
            self.recent[record.id] = record


def _as_records(payload: Any, key: str) -> list[CanonicalRecord] | None:
    """Cached search payload as records; an entry that fails validation is a miss."""
    if not isinstance(payload, list):
        return None
    try:
        return [CanonicalRecord.model_validate(item) for item in payload]
    except ValidationError as e:
        logger.warning("Ignoring unreadable cache entry %s: %s", key, e)
        return None


def cached_record(payload: Any, key: str) -> CanonicalRecord | None:
    """Cached single-record payload, or None if absent or unreadable."""
    if payload is None:
        return None
    try:
        return CanonicalRecord.model_validate(payload)
    except ValidationError as e:
        logger.warning("Ignoring unreadable cache entry %s: %s", key, e)
        return None


def matches_query(record: CanonicalRecord, query: str) -> bool:
    """Case-insensitive substring match against scientific and common names."""
    needle = query.strip().lower()
    if not needle:
        return True
    return any(
        name != NOT_AVAILABLE and needle in name.lower()
        for name in (record.scientific_name, record.common_name)
    )


class Aggregator:
    """Fan a query out to every enabled source and merge the results."""

    def __init__(
        self,
        cache: RecordCache,
        *,
        sources: Mapping[SourceTag, SourceClient] | None = None,
        config: Mapping[SourceTag, SourceConfig] | None = None,
        priority: tuple[SourceTag, ...] = DEFAULT_PRIORITY,
        context: CatalogContext | None = None,
    ) -> None:
        self.cache = cache
        self.sources = dict(sources) if sources is not None else default_sources()
        self.config = dict(config) if config is not None else {}
        self.priority = priority
        self.context = context or CatalogContext()

    @classmethod
    def from_settings(cls, settings: Settings) -> Aggregator:
        """Aggregator wired to the on-disk store and configured sources."""
        store = DataStore(settings.data_dir, quota_bytes=settings.store_quota_bytes)
        policies = {
            tag: RetryPolicy(policy.max_attempts, settings.retry_delay_seconds)
            for tag, policy in DEFAULT_POLICIES.items()
        }
        invoker = SourceInvoker(RateLimiter(settings.api_cooldown_seconds), policies)
        return cls(
            RecordCache(store, ttl_ms=settings.cache_ttl_ms),
            config=settings.source_config(),
            context=CatalogContext(invoker=invoker),
        )

    # -------------------------------------------------------------------------
    # Configuration
    # -------------------------------------------------------------------------

    def is_enabled(self, source: SourceTag, enabled: Mapping[SourceTag, Any] | None = None) -> bool:
        flags = self.config if enabled is None else enabled
        flag = flags.get(source, True)
        if isinstance(flag, SourceConfig):
            return flag.enabled
        return bool(flag)

    def _planned_sources(
        self, enabled: Mapping[SourceTag, Any] | None, kingdom: Kingdom | None
    ) -> list[SourceTag]:
        planned = []
        for tag, client in self.sources.items():
            if not self.is_enabled(tag, enabled):
                continue
            if kingdom and not client.taxon_filter and kingdom not in client.kingdoms:
                logger.debug("Skipping %s: does not cover %s", tag, kingdom)
                continue
            planned.append(tag)
        return planned

    # -------------------------------------------------------------------------
    # Search
    # -------------------------------------------------------------------------

    async def search(
        self,
        query: str = "",
        enabled: Mapping[SourceTag, Any] | None = None,
        options: SearchOptions | None = None,
    ) -> PartialResults:
        """
        Query every enabled source concurrently.

        Args:
            query: Free-text query; empty means unfiltered browse.
            enabled: ``source -> bool | SourceConfig`` overrides; defaults to
                the aggregator's configuration. Disabled sources get no calls.
            options: Page, kingdom restriction, provider filters.

        Returns:
            One (possibly empty) list per planned source. Source failures
            never propagate.
        """
        options = options or SearchOptions()
        planned = self._planned_sources(enabled, options.kingdom)
        outcomes = await asyncio.gather(
            *(self._search_source(tag, query, options) for tag in planned),
            return_exceptions=True,
        )

        results: PartialResults = {}
        for tag, outcome in zip(planned, outcomes, strict=True):
            if isinstance(outcome, BaseException):
                raise outcome
            results[tag] = outcome
        return results

    async def search_merged(
        self,
        query: str = "",
        enabled: Mapping[SourceTag, Any] | None = None,
        options: SearchOptions | None = None,
    ) -> list[CanonicalRecord]:
        """Search, then deduplicate in declared priority order."""
        return dedup.merge(await self.search(query, enabled, options), self.priority)

    async def _search_source(
        self, tag: SourceTag, query: str, options: SearchOptions
    ) -> list[CanonicalRecord]:
        client = self.sources[tag]
        kingdom = options.kingdom if client.taxon_filter else None
        key = search_key(tag, query, options.page, kingdom, options.filters)

        cached = _as_records(self.cache.get(key), key)
        if cached is not None:
            self.context.remember(cached)
            return cached

        try:
            raws = await self.context.invoker.invoke(
                tag,
                lambda: client.fetch_list(query, options.page, kingdom, options.filters),
            )
        except RateLimited as e:
            stale = _as_records(self.cache.get_stale(key), key)
            if stale is not None:
                logger.warning("%s rate limited, serving stale cache for %r", tag, query)
                self.context.remember(stale)
                return stale
            logger.warning("%s search failed: %s", tag, e)
            return []
        except FetchError as e:
            logger.warning("%s search failed: %s", tag, e)
            return []

        records = normalize_many(tag, raws)
        if not client.server_side_query:
            records = [r for r in records if matches_query(r, query)]

        self.cache.put(key, [r.to_payload() for r in records], source=tag)
        self.context.remember(records)
        return records

    # -------------------------------------------------------------------------
    # Direct lookup
    # -------------------------------------------------------------------------

    async def fetch_by_id(self, record_id: str) -> CanonicalRecord:
        """
        Look up one record by its app-wide id.

        Raises:
            ValueError: The id has no known source prefix.
            SourceDisabledError: The id's source is disabled.
            RateLimited: Rate limited and nothing (even stale) is cached.
            FetchError: The source failed after its retries.
        """
        tag, native_id = parse_record_id(record_id)
        if tag not in self.sources or not self.is_enabled(tag):
            raise SourceDisabledError(tag)
        client = self.sources[tag]
        key = record_key(record_id)

        cached = cached_record(self.cache.get(key), key)
        if cached is not None:
            return cached

        if not client.has_detail_endpoint and record_id in self.context.recent:
            return self.context.recent[record_id]

        try:
            raw = await self.context.invoker.invoke(tag, lambda: client.fetch_by_id(native_id))
        except RateLimited:
            stale = cached_record(self.cache.get_stale(key), key)
            if stale is None:
                raise
            logger.warning("%s rate limited, serving stale cache for %s", tag, record_id)
            return stale

        record = normalize(tag, raw)
        self.cache.put(key, record.to_payload(), source=tag)
        self.context.recent[record.id] = record
        return record
