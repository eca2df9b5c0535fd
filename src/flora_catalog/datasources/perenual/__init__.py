"""Perenual species database (primary plant source).

Public API:
  - client: API URLs, key handling, curated species ids
  - species: fetch_species_list, fetch_species_details, fetch_pests_and_diseases
"""

from flora_catalog.datasources.perenual.client import CURATED_SPECIES_IDS
from flora_catalog.datasources.perenual.species import (
    fetch_pests_and_diseases,
    fetch_species_details,
    fetch_species_list,
)

__all__ = [
    "CURATED_SPECIES_IDS",
    "fetch_pests_and_diseases",
    "fetch_species_details",
    "fetch_species_list",
]
