"""Flora Catalog - plant and fungi discovery across multiple public APIs.

Architecture::

    datasources/   Per-provider request building (Perenual, iNaturalist, Toxic Shrooms)
    sources.py     Uniform source clients + capability flags over datasources
    services/      Shared HTTP session, per-source cooldown and bounded retries
    normalize.py   Provider JSON -> CanonicalRecord (total, sentinel defaults)
    store.py       Enveloped JSON key-value store (cache entries, favorites)
    cache.py       24h TTL cache with stale-tolerant fallback read
    aggregator.py  Concurrent fan-out search, by-id lookup, failure isolation
    dedup.py       First-seen-wins merge in declared source priority
    discovery.py   Random picks, observations, pests, category lookup
    flows/         Prefect orchestration (cache warming)

Data flow: sources -> throttle -> normalize -> cache -> aggregator -> dedup -> caller
"""

__version__ = "0.1.0"

from flora_catalog.config import Settings
from flora_catalog.schemas import CanonicalRecord, SourceTag

__all__ = ["CanonicalRecord", "Settings", "SourceTag", "__version__"]
