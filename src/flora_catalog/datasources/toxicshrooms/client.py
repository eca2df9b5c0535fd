"""
Toxic Shrooms API client.

Read-only list of poisonous and deadly mushrooms. The API has no search or
pagination; every call returns the whole (small) list.

Base URL: https://toxicshrooms.vercel.app/api/mushrooms
"""

from __future__ import annotations

from typing import Any

from flora_catalog.services import http

API_BASE = "https://toxicshrooms.vercel.app/api"
SOURCE = "toxicshrooms"

#: Optional path filter accepted by the API.
TOXICITY_TYPES = ("poisonous", "deadly")


async def get_mushrooms(toxicity_type: str | None = None) -> Any:
    """GET /mushrooms[/{type}]."""
    endpoint = "mushrooms"
    if toxicity_type:
        if toxicity_type not in TOXICITY_TYPES:
            msg = f"Unknown toxicity type {toxicity_type!r}; expected one of {TOXICITY_TYPES}"
            raise ValueError(msg)
        endpoint = f"mushrooms/{toxicity_type}"
    return await http.get_json(f"{API_BASE}/{endpoint}", source=SOURCE)
