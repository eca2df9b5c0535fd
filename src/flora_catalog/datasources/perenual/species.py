"""Perenual species search, details, and pest/disease lookups."""

from __future__ import annotations

from typing import Any

from flora_catalog.datasources.perenual import client
from flora_catalog.errors import MalformedResponse

#: Boolean filters sent as 1/0.
FLAG_FILTERS = ("edible", "poisonous", "indoor")
#: Free-form filters passed through when set.
VALUE_FILTERS = ("cycle", "watering", "sunlight", "hardiness")


def build_list_params(
    query: str = "",
    page: int = 1,
    filters: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Query parameters for ``/species-list``."""
    params: dict[str, Any] = {"page": page, "per_page": client.PER_PAGE}
    if query.strip():
        params["q"] = query.strip()

    filters = filters or {}
    for name in FLAG_FILTERS:
        if filters.get(name) is not None:
            params[name] = 1 if filters[name] else 0
    for name in VALUE_FILTERS:
        if filters.get(name):
            params[name] = filters[name]
    return params


def _results(data: Any, key: str = "data") -> list[Any]:
    if not isinstance(data, dict):
        raise MalformedResponse(client.SOURCE, "Perenual response is not an object")
    results = data.get(key) or []
    if not isinstance(results, list):
        raise MalformedResponse(client.SOURCE, f"Perenual {key!r} is not a list")
    return results


async def fetch_species_list(
    query: str = "",
    page: int = 1,
    filters: dict[str, Any] | None = None,
) -> list[dict[str, Any]]:
    """
    Fetch one page of species, optionally searched and filtered.

    Args:
        query: Free-text search; empty means unfiltered browse.
        page: 1-based page number.
        filters: Optional ``edible``/``poisonous``/``indoor`` booleans and
            ``cycle``/``watering``/``sunlight``/``hardiness`` values.

    Returns:
        Raw species dicts (the response's ``data`` array).
    """
    data = await client.get_species_list(build_list_params(query, page, filters))
    return _results(data)


async def fetch_species_details(species_id: int | str) -> dict[str, Any]:
    """Fetch the full raw record for one species."""
    data = await client.get_species_details(species_id)
    if not isinstance(data, dict) or not data.get("id"):
        raise MalformedResponse(client.SOURCE, f"Invalid species data for {species_id}")
    return data


async def fetch_pests_and_diseases(query: str = "", page: int = 1) -> list[dict[str, Any]]:
    """Fetch pests/diseases, searched by plant name when ``query`` is set."""
    params: dict[str, Any] = {"page": page}
    if query.strip():
        params["q"] = query.strip()
    data = await client.get_pest_disease_list(params)
    return _results(data)
