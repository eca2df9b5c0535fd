"""
Prefect flow that pre-fills the catalog cache.

Runs a merged search for each query (the empty query is the default browse
page) so later lookups in the same TTL window are served from disk. Sources
that are already fresh cost nothing: the aggregator checks the cache first.

Run locally:
    python -m flora_catalog.flows.warm

Run with Prefect dashboard:
    prefect server start &
    python -m flora_catalog.flows.warm
"""

from __future__ import annotations

import asyncio
from typing import Any

from prefect import flow, task
from prefect.cache_policies import NO_CACHE

from flora_catalog.aggregator import Aggregator
from flora_catalog.config import get_settings
from flora_catalog.dedup import merge
from flora_catalog.schemas import Kingdom, SearchOptions

DEFAULT_QUERIES: tuple[str, ...] = ("",)


def build_aggregator() -> Aggregator:
    return Aggregator.from_settings(get_settings())


@task(name="search-catalog", cache_policy=NO_CACHE)
def search_catalog(
    aggregator: Aggregator,
    query: str,
    kingdom: Kingdom | None = None,
) -> dict[str, Any]:
    """Run one fan-out search and summarize it."""
    partial = asyncio.run(aggregator.search(query, options=SearchOptions(kingdom=kingdom)))
    merged = merge(partial, aggregator.priority)
    return {
        "query": query,
        "kingdom": kingdom.value if kingdom else None,
        "per_source": {str(tag): len(records) for tag, records in partial.items()},
        "merged": len(merged),
    }


@flow(name="warm-catalog", log_prints=True)
def warm_catalog(
    queries: list[str] | None = None,
    kingdoms: list[Kingdom | None] | None = None,
) -> list[dict[str, Any]]:
    """
    Search every ``query`` x ``kingdom`` combination to populate the cache.

    Args:
        queries: Search strings. Defaults to the unfiltered browse query.
        kingdoms: Kingdom restrictions to warm. Defaults to unrestricted only.

    Returns:
        One summary dict per search.
    """
    aggregator = build_aggregator()
    summaries = []
    for query in queries or list(DEFAULT_QUERIES):
        for kingdom in kingdoms or [None]:
            summary = search_catalog(aggregator, query, kingdom)
            print(
                f"Warmed {query or '<browse>'!r} ({summary['kingdom'] or 'all'}): "
                f"{summary['merged']} records {summary['per_source']}"
            )
            summaries.append(summary)
    return summaries


if __name__ == "__main__":
    result = warm_catalog()
    print(f"Flow complete: {len(result)} searches")
