"""
Discovery helpers built on the aggregator: random picks and detail extras.

- random_plant()            curated Perenual ids, cache-first, stale fallback on 429
- random_mushroom()         iNaturalist fungi or Toxic Shrooms, each falling back to the other
- observations_for()        recent iNaturalist observations of a record's taxon
- pests_for()               Perenual pests/diseases matching a record's common name
- taxon_id_for_category()   category name -> iNaturalist taxon id
"""

from __future__ import annotations

import logging
import random
from typing import TYPE_CHECKING

from flora_catalog.aggregator import cached_record
from flora_catalog.cache import record_key
from flora_catalog.datasources import inaturalist, perenual
from flora_catalog.errors import FetchError, MalformedResponse, RateLimited, SourceDisabledError
from flora_catalog.normalize import (
    normalize_inaturalist,
    normalize_observation,
    normalize_pest,
)
from flora_catalog.schemas import (
    NOT_AVAILABLE,
    CanonicalRecord,
    Kingdom,
    Observation,
    PestDisease,
    SearchOptions,
    SourceTag,
    make_record_id,
)

if TYPE_CHECKING:
    from flora_catalog.aggregator import Aggregator

logger = logging.getLogger(__name__)

RANDOM_FUNGI_PAGES = 50

NO_CACHED_PLANTS_MESSAGE = (
    "API rate limit exceeded and no cached plants available. Please wait a few "
    "minutes and try again, or try a random mushroom (uses different APIs)."
)


# =============================================================================
# Random plant
# =============================================================================


def _curated_ids() -> list[str]:
    return [make_record_id(SourceTag.PERENUAL, i) for i in perenual.CURATED_SPECIES_IDS]


async def random_plant(aggregator: Aggregator, rng: random.Random | None = None) -> CanonicalRecord:
    """
    Pick a random curated Perenual plant.

    Ids with a fresh cache entry are preferred so most picks cost no request.
    If Perenual is rate limited, any cached curated plant is returned
    regardless of age.

    Raises:
        RateLimited: Rate limited and no curated plant was ever cached.
        FetchError: Any other failure fetching the chosen plant.
    """
    rng = rng or random.Random()
    curated = _curated_ids()
    fresh = [rid for rid in curated if aggregator.cache.is_fresh(record_key(rid))]
    record_id = rng.choice(fresh or curated)
    logger.debug("Random plant %s (%d cached candidates)", record_id, len(fresh))

    try:
        return await aggregator.fetch_by_id(record_id)
    except RateLimited as e:
        for rid in curated:
            key = record_key(rid)
            stale = cached_record(aggregator.cache.get_stale(key), key)
            if stale is not None:
                logger.warning("Rate limited; using cached plant %s", rid)
                return stale
        raise RateLimited(SourceTag.PERENUAL, NO_CACHED_PLANTS_MESSAGE) from e


# =============================================================================
# Random mushroom
# =============================================================================


async def _random_inaturalist_fungus(aggregator: Aggregator, rng: random.Random) -> CanonicalRecord:
    page = rng.randint(1, RANDOM_FUNGI_PAGES)
    results = await aggregator.search(
        "",
        {tag: tag == SourceTag.INATURALIST for tag in aggregator.sources},
        SearchOptions(page=page, kingdom=Kingdom.FUNGI),
    )
    records = results.get(SourceTag.INATURALIST, [])
    if not records:
        raise MalformedResponse(SourceTag.INATURALIST, "No fungi found in iNaturalist")
    return rng.choice(records)


async def _random_toxic_mushroom(aggregator: Aggregator, rng: random.Random) -> CanonicalRecord:
    results = await aggregator.search(
        "",
        {tag: tag == SourceTag.TOXICSHROOMS for tag in aggregator.sources},
        SearchOptions(kingdom=Kingdom.FUNGI),
    )
    records = results.get(SourceTag.TOXICSHROOMS, [])
    if not records:
        raise MalformedResponse(SourceTag.TOXICSHROOMS, "No mushrooms returned from API")
    return rng.choice(records)


async def random_mushroom(
    aggregator: Aggregator, rng: random.Random | None = None
) -> CanonicalRecord:
    """
    Pick a random fungus from iNaturalist or Toxic Shrooms (50/50).

    If the chosen source yields nothing, the other enabled one is tried.

    Raises:
        SourceDisabledError: Neither fungi source is enabled.
        MalformedResponse: Every enabled source came back empty.
    """
    rng = rng or random.Random()
    pickers = {
        SourceTag.INATURALIST: _random_inaturalist_fungus,
        SourceTag.TOXICSHROOMS: _random_toxic_mushroom,
    }
    order = [tag for tag in pickers if tag in aggregator.sources and aggregator.is_enabled(tag)]
    if not order:
        raise SourceDisabledError("fungi sources")
    if len(order) == 2 and rng.random() >= 0.5:
        order.reverse()

    *fallbacks, last = order
    for tag in fallbacks:
        try:
            return await pickers[tag](aggregator, rng)
        except MalformedResponse as e:
            logger.warning("Random mushroom from %s failed, trying %s: %s", tag, last, e)
    return await pickers[last](aggregator, rng)


# =============================================================================
# Detail extras
# =============================================================================


async def observations_for(aggregator: Aggregator, record: CanonicalRecord) -> list[Observation]:
    """Recent observations for an iNaturalist record; [] on any source failure."""
    taxon_id = record.attributes.taxon_id
    if record.source != SourceTag.INATURALIST or not taxon_id:
        return []
    if not aggregator.is_enabled(SourceTag.INATURALIST):
        return []

    try:
        raws = await aggregator.context.invoker.invoke(
            SourceTag.INATURALIST, lambda: inaturalist.fetch_observations(taxon_id)
        )
    except FetchError as e:
        logger.warning("Observations for %s failed: %s", record.id, e)
        return []

    observations = []
    for raw in raws:
        try:
            observations.append(normalize_observation(raw))
        except MalformedResponse as e:
            logger.warning("Dropping malformed observation: %s", e)
    return observations


async def pests_for(aggregator: Aggregator, record: CanonicalRecord) -> list[PestDisease]:
    """Perenual pests/diseases searched by the record's common name; [] on failure."""
    if record.common_name == NOT_AVAILABLE or not aggregator.is_enabled(SourceTag.PERENUAL):
        return []

    try:
        raws = await aggregator.context.invoker.invoke(
            SourceTag.PERENUAL, lambda: perenual.fetch_pests_and_diseases(record.common_name)
        )
    except FetchError as e:
        logger.warning("Pests for %s failed: %s", record.id, e)
        return []

    pests = []
    for raw in raws:
        try:
            pests.append(normalize_pest(raw))
        except MalformedResponse as e:
            logger.warning("Dropping malformed pest record: %s", e)
    return pests


async def taxon_id_for_category(aggregator: Aggregator, category: str) -> int | None:
    """
    Resolve a category name (``Magnoliopsida``, ``Ferns``) to an iNaturalist id.

    Known categories resolve without a request. Otherwise the first ``/taxa``
    hit whose scientific or common name matches exactly wins, else the first
    hit. Returns None when nothing resolves or the source fails.
    """
    known = inaturalist.CATEGORY_TAXON_IDS.get(category)
    if known is not None:
        return known

    try:
        raws = await aggregator.context.invoker.invoke(
            SourceTag.INATURALIST, lambda: inaturalist.search_taxa(category, 1)
        )
    except FetchError as e:
        logger.warning("Category lookup for %r failed: %s", category, e)
        return None

    taxa = []
    for raw in raws:
        try:
            taxa.append(normalize_inaturalist(raw))
        except MalformedResponse:
            continue
    if not taxa:
        return None
    exact = [t for t in taxa if category in (t.scientific_name, t.common_name)]
    return (exact or taxa)[0].attributes.taxon_id

