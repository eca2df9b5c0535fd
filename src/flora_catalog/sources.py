"""
Uniform source clients over the per-provider datasource modules.

Each client exposes the same two coroutines, ``fetch_list`` and
``fetch_by_id``, returning raw provider dicts (or raising ``FetchError``),
plus the capability flags the aggregator needs to plan a search. Clients
never touch the cache or the rate limiter; the aggregator wraps them.
"""

from __future__ import annotations

from typing import Any, ClassVar, Protocol

from flora_catalog.datasources import inaturalist, perenual, toxicshrooms
from flora_catalog.schemas import Kingdom, SourceTag

#: iNaturalist taxon id per kingdom, for server-side narrowing.
KINGDOM_TAXON_IDS: dict[Kingdom, int] = {
    Kingdom.PLANTAE: inaturalist.PLANTAE,
    Kingdom.FUNGI: inaturalist.FUNGI,
}


class SourceClient(Protocol):
    """What the aggregator needs from a source."""

    tag: SourceTag
    #: Query string is applied by the provider.
    server_side_query: bool
    #: Provider can narrow results to a kingdom.
    taxon_filter: bool
    #: Kingdoms the provider's catalog covers.
    kingdoms: frozenset[Kingdom]
    #: ``fetch_by_id`` returns richer data than a list item.
    has_detail_endpoint: bool

    async def fetch_list(
        self,
        query: str,
        page: int,
        kingdom: Kingdom | None = None,
        filters: dict[str, Any] | None = None,
    ) -> list[dict[str, Any]]: ...

    async def fetch_by_id(self, native_id: str) -> dict[str, Any]: ...


def _check_page(page: int) -> None:
    if page < 1:
        msg = f"page must be a positive integer, got {page}"
        raise ValueError(msg)


class PerenualSource:
    """Perenual species database."""

    tag: ClassVar[SourceTag] = SourceTag.PERENUAL
    server_side_query: ClassVar[bool] = True
    taxon_filter: ClassVar[bool] = False
    kingdoms: ClassVar[frozenset[Kingdom]] = frozenset({Kingdom.PLANTAE})
    has_detail_endpoint: ClassVar[bool] = True

    async def fetch_list(
        self,
        query: str,
        page: int,
        kingdom: Kingdom | None = None,
        filters: dict[str, Any] | None = None,
    ) -> list[dict[str, Any]]:
        _check_page(page)
        return await perenual.fetch_species_list(query, page, filters)

    async def fetch_by_id(self, native_id: str) -> dict[str, Any]:
        return await perenual.fetch_species_details(native_id)


class INaturalistSource:
    """iNaturalist taxa, narrowed by kingdom server-side."""

    tag: ClassVar[SourceTag] = SourceTag.INATURALIST
    server_side_query: ClassVar[bool] = True
    taxon_filter: ClassVar[bool] = True
    kingdoms: ClassVar[frozenset[Kingdom]] = frozenset({Kingdom.PLANTAE, Kingdom.FUNGI})
    has_detail_endpoint: ClassVar[bool] = True

    async def fetch_list(
        self,
        query: str,
        page: int,
        kingdom: Kingdom | None = None,
        filters: dict[str, Any] | None = None,
    ) -> list[dict[str, Any]]:
        _check_page(page)
        taxon_id = KINGDOM_TAXON_IDS[kingdom] if kingdom else None
        return await inaturalist.search_taxa(query, page, taxon_id)

    async def fetch_by_id(self, native_id: str) -> dict[str, Any]:
        return await inaturalist.fetch_taxon(native_id)


class ToxicShroomsSource:
    """Toxic Shrooms list; no server-side query, so results are filtered locally."""

    tag: ClassVar[SourceTag] = SourceTag.TOXICSHROOMS
    server_side_query: ClassVar[bool] = False
    taxon_filter: ClassVar[bool] = False
    kingdoms: ClassVar[frozenset[Kingdom]] = frozenset({Kingdom.FUNGI})
    has_detail_endpoint: ClassVar[bool] = False

    async def fetch_list(
        self,
        query: str,
        page: int,
        kingdom: Kingdom | None = None,
        filters: dict[str, Any] | None = None,
    ) -> list[dict[str, Any]]:
        _check_page(page)
        # The API is unpaginated: page 1 is the whole list.
        if page > 1:
            return []
        toxicity = (filters or {}).get("toxicity_type")
        return await toxicshrooms.fetch_mushrooms(toxicity)

    async def fetch_by_id(self, native_id: str) -> dict[str, Any]:
        return await toxicshrooms.fetch_mushroom(native_id)


def default_sources() -> dict[SourceTag, SourceClient]:
    """One client per known source, in declared priority order."""
    return {
        SourceTag.PERENUAL: PerenualSource(),
        SourceTag.INATURALIST: INaturalistSource(),
        SourceTag.TOXICSHROOMS: ToxicShroomsSource(),
    }
