"""Toxic mushroom listing and name-based lookup."""

from __future__ import annotations

from typing import Any

from flora_catalog.datasources.toxicshrooms import client
from flora_catalog.errors import MalformedResponse, RequestFailed
from flora_catalog.normalize import slugify


async def fetch_mushrooms(toxicity_type: str | None = None) -> list[dict[str, Any]]:
    """Fetch all toxic mushrooms, optionally only ``poisonous`` or ``deadly``."""
    data = await client.get_mushrooms(toxicity_type)
    if not isinstance(data, list):
        raise MalformedResponse(client.SOURCE, "Toxic Shrooms response is not a list")
    return data


async def fetch_mushroom(slug: str) -> dict[str, Any]:
    """
    Find one mushroom by its slugified name (``Amanita_phalloides``).

    Raises:
        RequestFailed: 404 when no listed mushroom matches.
    """
    for item in await fetch_mushrooms():
        name = item.get("name") if isinstance(item, dict) else None
        if isinstance(name, str) and slugify(name) == slug:
            return item
    raise RequestFailed(client.SOURCE, 404)
