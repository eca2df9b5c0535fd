"""Toxic Shrooms toxicity database (fungi only).

Public API:
  - client: API URL, toxicity types
  - mushrooms: fetch_mushrooms, fetch_mushroom
"""

from flora_catalog.datasources.toxicshrooms.client import TOXICITY_TYPES
from flora_catalog.datasources.toxicshrooms.mushrooms import fetch_mushroom, fetch_mushrooms

__all__ = [
    "TOXICITY_TYPES",
    "fetch_mushroom",
    "fetch_mushrooms",
]
