"""
iNaturalist API client.

Low-level request building for the iNaturalist API v1 (read-only, no key).

API docs: https://api.inaturalist.org/v1/docs/
Rate limits: ~1 req/sec, 10k/day
"""

from __future__ import annotations

from typing import Any

from flora_catalog.services import http

# ---------------------------------------------------------------------------
# Taxon IDs
# ---------------------------------------------------------------------------
PLANTAE = 47126  # Kingdom: plants
FUNGI = 47170  # Kingdom: fungi

#: Known ids for common plant categories.
CATEGORY_TAXON_IDS: dict[str, int] = {
    "Plantae": PLANTAE,
    "Tracheophyta": 211194,  # vascular plants
    "Angiospermae": 47125,  # flowering plants
    "Magnoliopsida": 47124,  # dicots
    "Liliopsida": 47219,  # monocots
    "Pinophyta": 58023,  # conifers
    "Pteridophyta": 121323,  # ferns
}

# ---------------------------------------------------------------------------
# API configuration
# ---------------------------------------------------------------------------
API_BASE = "https://api.inaturalist.org/v1"
SOURCE = "inaturalist"
MAX_PER_PAGE = 200  # API maximum for /taxa
DEFAULT_PER_PAGE = 30
OBSERVATIONS_PER_PAGE = 20


async def _get(endpoint: str, params: dict[str, Any] | None = None) -> Any:
    """GET against the iNaturalist API v1."""
    return await http.get_json(f"{API_BASE}/{endpoint}", params, source=SOURCE)


# ---------------------------------------------------------------------------
# Public helpers
# ---------------------------------------------------------------------------


async def get_taxa(params: dict[str, Any]) -> Any:
    """GET /taxa: taxon search."""
    return await _get("taxa", params)


async def get_taxon(taxon_id: int | str) -> Any:
    """GET /taxa/{id}: one taxon with ancestors."""
    return await _get(f"taxa/{taxon_id}")


async def get_observations(params: dict[str, Any]) -> Any:
    """GET /observations: search observations."""
    return await _get("observations", params)
