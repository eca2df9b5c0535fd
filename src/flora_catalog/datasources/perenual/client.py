"""
Perenual API client.

Low-level request building for the Perenual species API v2.

API docs: https://perenual.com/docs/api
Rate limits: free tier allows a limited number of requests per day; 429 when exceeded.
"""

from __future__ import annotations

from typing import Any

from flora_catalog.config import get_settings
from flora_catalog.services import http

# ---------------------------------------------------------------------------
# API configuration
# ---------------------------------------------------------------------------
API_BASE = "https://perenual.com/api/v2"
SOURCE = "perenual"
PER_PAGE = 10  # keep pages small, the free tier is request-limited

RATE_LIMIT_MESSAGE = (
    "Perenual API rate limit exceeded. The free tier allows limited requests per day. "
    "Please wait a few minutes and try again, or consider upgrading your API plan "
    "at https://perenual.com"
)

#: Curated species ids known to resolve (random discovery draws from these).
CURATED_SPECIES_IDS: tuple[int, ...] = (
    *range(1, 11),
    50, 100, 150, 200, 250, 300, 350, 400,
    500, 600, 700, 800, 900, 1000,
    1100, 1200, 1300, 1400, 1500, 1600,
    2000, 2500, 3000, 3500, 4000, 4500,
    5000, 5500, 6000, 6500, 7000, 7500,
    8000, 8500, 9000, 9500, 10000,
)  # fmt: skip


def api_key() -> str:
    return get_settings().perenual_api_key


async def _get(endpoint: str, params: dict[str, Any] | None = None) -> Any:
    """Keyed GET against the Perenual API."""
    query = {"key": api_key(), **(params or {})}
    return await http.get_json(
        f"{API_BASE}/{endpoint}",
        query,
        source=SOURCE,
        rate_limit_message=RATE_LIMIT_MESSAGE,
    )


# ---------------------------------------------------------------------------
# Public helpers
# ---------------------------------------------------------------------------


async def get_species_list(params: dict[str, Any]) -> Any:
    """GET /species-list: paginated species search."""
    return await _get("species-list", params)


async def get_species_details(species_id: int | str) -> Any:
    """GET /species/details/{id}: full species record."""
    return await _get(f"species/details/{species_id}")


async def get_pest_disease_list(params: dict[str, Any]) -> Any:
    """GET /pest-disease-list: pests and diseases, optionally searched."""
    return await _get("pest-disease-list", params)
