"""iNaturalist taxon search, taxon details, and recent observations."""

from __future__ import annotations

from typing import Any

from flora_catalog.datasources.inaturalist import client
from flora_catalog.errors import MalformedResponse, RequestFailed


def build_taxa_params(
    query: str = "",
    page: int = 1,
    taxon_id: int | None = None,
    per_page: int = client.DEFAULT_PER_PAGE,
) -> dict[str, Any]:
    """Query parameters for ``/taxa``, ordered by observation count."""
    params: dict[str, Any] = {
        "q": query.strip(),
        "page": page,
        "per_page": min(per_page, client.MAX_PER_PAGE),
        "order_by": "observations_count",
        "order": "desc",
    }
    if taxon_id:
        params["taxon_id"] = taxon_id
    return params


def _results(data: Any) -> list[Any]:
    if not isinstance(data, dict):
        raise MalformedResponse(client.SOURCE, "iNaturalist response is not an object")
    results = data.get("results") or []
    if not isinstance(results, list):
        raise MalformedResponse(client.SOURCE, "iNaturalist 'results' is not a list")
    return results


async def search_taxa(
    query: str = "",
    page: int = 1,
    taxon_id: int | None = None,
    *,
    per_page: int = client.DEFAULT_PER_PAGE,
) -> list[dict[str, Any]]:
    """
    Search taxa by name, optionally within a parent taxon.

    Args:
        query: Name to search; empty lists the most-observed taxa.
        page: 1-based page number.
        taxon_id: Restrict to descendants of this taxon (e.g. ``client.FUNGI``).
        per_page: Results per page (capped at 200).

    Returns:
        Raw taxon dicts (the response's ``results`` array).
    """
    data = await client.get_taxa(build_taxa_params(query, page, taxon_id, per_page))
    return _results(data)


async def fetch_taxon(taxon_id: int | str) -> dict[str, Any]:
    """Fetch one taxon. Raises ``RequestFailed(404)`` if the id is unknown."""
    results = _results(await client.get_taxon(taxon_id))
    if not results:
        raise RequestFailed(client.SOURCE, 404)
    return results[0]


async def fetch_observations(taxon_id: int, page: int = 1) -> list[dict[str, Any]]:
    """Most recent observations of a taxon."""
    params: dict[str, Any] = {
        "taxon_id": taxon_id,
        "page": page,
        "per_page": client.OBSERVATIONS_PER_PAGE,
        "order": "desc",
        "order_by": "created_at",
    }
    return _results(await client.get_observations(params))
